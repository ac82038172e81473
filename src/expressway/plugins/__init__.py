"""Plugin protocol: shapes, discovery, resolution and concurrent loading.

Manifesto:
    Config files, middlewares, providers and backends are all loaded the
    same way: resolve an identifier, import the unit, classify its shape,
    and run it. Keeping that protocol in one package means every loader
    tolerates the same plugin shapes and fails the same way.

Tags:
    expressway, plugins, discovery, resolver, lifecycle

Doc-Types:
    api-reference
"""

from expressway.plugins.barrier import join_all
from expressway.plugins.discovery import (
    DEFAULT_EXCLUDES,
    DirectoryEntry,
    FilesystemDirectory,
    PluginDescriptor,
    PluginDirectory,
    PluginDiscovery,
    is_dotfile,
    is_index,
    is_private,
    named,
)
from expressway.plugins.resolver import (
    PluginReference,
    PluginResolver,
    ReferenceKind,
    export,
    import_file,
    is_path_like,
)
from expressway.plugins.units import PluginKind, classify, lifecycle, maybe_await, stateless

__all__ = [
    "DEFAULT_EXCLUDES",
    "DirectoryEntry",
    "FilesystemDirectory",
    "PluginDescriptor",
    "PluginDirectory",
    "PluginDiscovery",
    "PluginKind",
    "PluginReference",
    "PluginResolver",
    "ReferenceKind",
    "classify",
    "export",
    "import_file",
    "is_dotfile",
    "is_index",
    "is_path_like",
    "is_private",
    "join_all",
    "lifecycle",
    "maybe_await",
    "named",
    "stateless",
]
