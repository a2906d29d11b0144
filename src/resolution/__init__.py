"""jspm module resolution engine.

This package maps an import specifier plus a referencing location onto a
file path and a module format:
- specifier.py: classification of absolute, relative, package, URL and plain specifiers
- project.py: project discovery and jspm configuration loading
- cache.py: mtime-validated directory cache shared across calls
- package_path.py: canonical package references <-> jspm_packages layout
- mapping.py: longest-prefix conditional map lookup
- files.py: extension and index probing
- fallback.py: core modules and node_modules lookup
- engine.py: the orchestrator, with blocking and asyncio entry points
"""

from .cache import DirectoryCache
from .engine import package_path, package_path_sync, resolve, resolve_sync
from .errors import ErrorCode, ResolveError
from .fallback import FallbackResolver, NodeModulesResolver
from .formats import FormatPolicy
from .mapping import apply_map
from .models import (
    Environment,
    ModuleFormat,
    PackageReference,
    ProjectConfig,
    ResolvedModule,
)

__all__ = [
    "resolve",
    "resolve_sync",
    "package_path",
    "package_path_sync",
    "apply_map",
    "DirectoryCache",
    "Environment",
    "PackageReference",
    "ProjectConfig",
    "ResolvedModule",
    "ModuleFormat",
    "ResolveError",
    "ErrorCode",
    "FallbackResolver",
    "NodeModulesResolver",
    "FormatPolicy",
]
