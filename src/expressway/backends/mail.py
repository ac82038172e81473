"""Mail backend: validated transport settings from the ``mail`` namespace.

Only the settings are published (``services["mail"]``); sending is left
to the application's own mailer.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError

from expressway.core.errors import ConfigError
from expressway.core.logging import get_logger

logger = get_logger(__name__)


class MailSettings(BaseModel):
    """Mail transport settings. Unknown keys are kept for custom transports."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    driver: str = Field(default="smtp", description="Transport name")
    host: str = "localhost"
    port: int = Field(default=25, ge=0, le=65535)
    username: str | None = None
    password: SecretStr | None = None
    from_address: str | None = Field(default=None, alias="from")
    use_tls: bool = False


async def load(app) -> MailSettings:
    raw = app.config.get("mail", {}) or {}
    try:
        settings = MailSettings.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid mail configuration: {exc}", cause=exc).with_context(unit="mail") from exc
    app.services["mail"] = settings
    logger.info("mail_configured", driver=settings.driver, host=settings.host, port=settings.port)
    return settings
