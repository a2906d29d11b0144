"""Resolution outside any jspm project.

Covers Node core modules and the conventional ancestor ``node_modules``
search. The engine delegates here when no project configuration governs a
specifier, or when a plain name survives every map table.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Tuple

from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants

from . import fs
from .cache import DirectoryCache
from .errors import ResolveError, ErrorCode, module_not_found
from .files import resolve_file
from .formats import FormatPolicy, nearest_declared_mode
from .mapping import apply_map
from .models import Environment, ModuleFormat, PackageConfig, ResolvedModule
from .package_config import read_package_config
from .paths import normalize_path

logger = logging.getLogger(__name__)

_NODE_MODULES_SEGMENT = "/" + Constants.NODE_MODULES_DIR


def resolve_builtin(name: str, env: Environment, browser_builtins_dir: Optional[str] = None) -> Optional[ResolvedModule]:
    """Resolve a Node core module name.

    With ``env.browser`` and a builtins directory, core modules map to shim
    files in that directory; unimplemented ones map to ``@notfound.js``.

    Returns:
        ResolvedModule, or None when ``name`` is not a core module.
    """
    if name not in Constants.NODE_BUILTINS:
        return None
    if env.browser and browser_builtins_dir:
        directory = browser_builtins_dir.replace("\\", "/")
        if not directory.endswith("/"):
            directory += "/"
        if name in Constants.BROWSER_UNIMPLEMENTED_BUILTINS:
            return ResolvedModule(directory + Constants.NOTFOUND_MODULE + ".js", ModuleFormat.MODULE)
        return ResolvedModule(f"{directory}{name}.js", ModuleFormat.MODULE)
    return ResolvedModule(name, ModuleFormat.BUILTIN)


def split_package_name(name: str) -> Tuple[str, str]:
    """Split a plain name into its package part and ``/``-prefixed subpath.

    Scoped names keep their scope: ``@s/pkg/lib`` -> (``@s/pkg``, ``/lib``).
    """
    parts = name.split("/", 2 if name.startswith("@") else 1)
    if name.startswith("@") and len(parts) > 1:
        package = f"{parts[0]}/{parts[1]}"
        rest = parts[2] if len(parts) > 2 else None
    else:
        package = parts[0]
        rest = parts[1] if len(parts) > 1 else None
    return package, ("/" + rest if rest is not None else "")


class FallbackResolver(Protocol):
    """Generic resolver consulted when jspm configuration does not apply.

    Both methods are filesystem steps (see :mod:`resolution.fs`) so a single
    implementation serves the blocking and the asyncio entry points.
    """

    def resolve_name(
        self, name: str, parent: str, env: Environment, cache: Optional[DirectoryCache]
    ) -> fs.Steps[ResolvedModule]:
        """Resolve a plain name imported from ``parent``."""
        ...

    def resolve_path(
        self, path: str, parent: str, env: Environment, cache: Optional[DirectoryCache]
    ) -> fs.Steps[ResolvedModule]:
        """Resolve an absolute path outside any project."""
        ...


class NodeModulesResolver:
    """Ancestor ``node_modules`` lookup with package.json entry points and maps.

    Args:
        format_policy: Policy deciding formats of resolved files.
    """

    def __init__(self, format_policy: Optional[FormatPolicy] = None):
        self.format_policy = format_policy or FormatPolicy()

    def resolve_path(
        self, path: str, parent: str, env: Environment, cache: Optional[DirectoryCache]
    ) -> fs.Steps[ResolvedModule]:
        resolved = yield from resolve_file(path, parent)
        mode = None
        if self.format_policy.needs_declared_mode(resolved):
            mode = yield from nearest_declared_mode(resolved, cache)
        return ResolvedModule(resolved, self.format_policy.format_for(resolved, mode, legacy_scope=True))

    def resolve_name(
        self, name: str, parent: str, env: Environment, cache: Optional[DirectoryCache]
    ) -> fs.Steps[ResolvedModule]:
        package, subpath = split_package_name(name)
        directory = parent[:parent.rfind("/")]
        while True:
            if not directory.endswith(_NODE_MODULES_SEGMENT):
                package_dir = f"{directory}{_NODE_MODULES_SEGMENT}/{package}"
                if (yield from fs.is_dir(package_dir)):
                    if is_debug_enabled(logger):
                        logger.debug(
                            "node_modules package found",
                            extra=extra_context(
                                event="fallback_lookup",
                                component="fallback",
                                action="node_modules",
                                outcome="found",
                                target=package_dir,
                            ),
                        )
                    return (yield from self._resolve_in_package(package_dir, subpath, name, parent, env, cache))
            if "/" not in directory:
                break
            directory = directory[:directory.rfind("/")]
        raise module_not_found(name, parent)

    def _resolve_in_package(
        self,
        package_dir: str,
        subpath: str,
        name: str,
        parent: str,
        env: Environment,
        cache: Optional[DirectoryCache],
    ) -> fs.Steps[ResolvedModule]:
        config = yield from read_package_config(package_dir, cache)
        if config is None:
            config = PackageConfig()
        relative = "." + subpath if subpath else "./" + config.main

        mapped = apply_map(relative, config.map, env)
        if mapped == Constants.EMPTY_MODULE:
            return ResolvedModule(Constants.EMPTY_MODULE, ModuleFormat.BUILTIN)
        if mapped == Constants.NOTFOUND_MODULE:
            raise module_not_found(name, parent)
        if mapped is not None:
            target = normalize_path(f"{package_dir}/{mapped}")
        else:
            target = package_dir + relative[1:]

        try:
            resolved = yield from resolve_file(target, parent)
        except ResolveError as e:
            # a missing "main" falls back to the package's index file
            if subpath or e.kind is not ErrorCode.MODULE_NOT_FOUND:
                raise
            resolved = yield from resolve_file(package_dir + "/index", parent)

        if not resolved.endswith("/"):
            resolved = yield from fs.realpath(resolved)
        return ResolvedModule(resolved, self.format_policy.format_for(resolved, config.mode, legacy_scope=True))
