"""Module resolution orchestrator.

The algorithm is written once as filesystem steps (see :mod:`resolution.fs`)
and driven either synchronously (:func:`resolve_sync`) or on the event loop
(:func:`resolve`). Both issue the same filesystem requests in the same order.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Mapping, Optional, Set, Union

from common.logging_utils import Timer, extra_context, is_debug_enabled
from constants import Constants

from . import fs
from .cache import DirectoryCache
from .errors import ResolveError, invalid_configuration, module_not_found
from .fallback import FallbackResolver, NodeModulesResolver, resolve_builtin
from .files import resolve_file
from .formats import FormatPolicy, nearest_declared_mode
from .mapping import apply_map
from .models import (
    Environment,
    MapTable,
    ModuleFormat,
    PackageReference,
    ProjectConfig,
    ResolvedModule,
)
from .package_config import read_package_config
from .package_path import package_dir, parse_package_name, path_to_package
from .paths import file_url_to_path, is_within, normalize_path, to_posix
from .project import find_project
from .specifier import classify_specifier, validate_plain

logger = logging.getLogger(__name__)

EnvLike = Union[Environment, Mapping[str, Any], None]


def _is_relative_target(target: str) -> bool:
    return target in (".", "..") or target.startswith("./") or target.startswith("../")


def normalize_parent(parent: Optional[str]) -> str:
    """Turn a referencing location into a ``/``-separated absolute path.

    ``None`` stands for the working directory; ``file:`` URLs are converted.
    """
    if parent is None:
        return to_posix(os.getcwd()).rstrip("/") + "/"
    if parent.startswith("file:"):
        return file_url_to_path(parent)
    parent = to_posix(parent)
    if not parent.startswith("/") and not (len(parent) > 1 and parent[1] == ":"):
        trailing = "/" if parent.endswith("/") else ""
        parent = to_posix(os.path.abspath(parent)).rstrip("/") + trailing
    return parent


class Resolution:
    """State of a single resolve call.

    Args:
        specifier: Import string.
        parent: Normalized absolute referencing path.
        env: Environment conditions.
        cache: Shared directory cache, or None for an uncached lookup.
        cjs_resolve: Report CommonJS-loader formats.
        browser_builtins_dir: Directory of browser shims for core modules.
        resolve_node_modules: Enable the node_modules fallback.
        fallback: Resolver used outside jspm configuration.
        format_policy: Format derivation policy.
    """

    def __init__(
        self,
        specifier: str,
        parent: str,
        env: Environment,
        cache: Optional[DirectoryCache] = None,
        cjs_resolve: bool = False,
        browser_builtins_dir: Optional[str] = None,
        resolve_node_modules: bool = True,
        fallback: Optional[FallbackResolver] = None,
        format_policy: Optional[FormatPolicy] = None,
    ):
        self.specifier = specifier
        self.parent = parent
        self.env = env
        self.cache = cache
        self.cjs_resolve = cjs_resolve
        self.browser_builtins_dir = browser_builtins_dir
        self.resolve_node_modules = resolve_node_modules
        self.format_policy = format_policy or FormatPolicy()
        self.fallback = fallback or NodeModulesResolver(self.format_policy)
        self._visited: Set[str] = set()

    def run(self) -> fs.Steps[ResolvedModule]:
        """Resolve the specifier."""
        if self.specifier == Constants.EMPTY_MODULE:
            return ResolvedModule(Constants.EMPTY_MODULE, ModuleFormat.BUILTIN)

        spec = classify_specifier(self.specifier, self.parent)
        if spec.is_path:
            return (yield from self._resolve_path(spec.path))

        if spec.package is not None:
            project = yield from find_project(self.parent, self.cache)
            if project is None:
                raise module_not_found(self.specifier, self.parent)
            return (yield from self._resolve_package(spec.package, project))

        return (yield from self._resolve_plain(spec.name))

    def _log_map_hit(self, table: str, name: str, mapped: str) -> None:
        if is_debug_enabled(logger):
            logger.debug(
                "Map hit %s -> %s",
                name,
                mapped,
                extra=extra_context(
                    event="map_hit", component="engine", action="apply_map", outcome=table, target=name
                ),
            )

    def _resolve_path(self, path: str) -> fs.Steps[ResolvedModule]:
        lookup = path
        # a directory path may be a project root itself
        if not path.endswith("/") and (yield from fs.is_dir(path)):
            lookup = path + "/"
        project = yield from find_project(lookup, self.cache)
        if project is None:
            return (yield from self._delegate_path(path))

        ref = path_to_package(path, project.packages_root)
        if ref is not None:
            return (yield from self._resolve_package(ref, project))

        base = project.base_path(self.env)
        if is_within(path, base) and len(path) > len(base) + 1:
            relative = "." + path[len(base):]
            mapped = apply_map(relative, project.map, self.env)
            if mapped is not None:
                self._log_map_hit("global", relative, mapped)
                return (yield from self._resolve_subpath_target(mapped, base, project))

        return (yield from self._finalize(path, project))

    def _resolve_package(self, ref: PackageReference, project: ProjectConfig) -> fs.Steps[ResolvedModule]:
        key = str(ref)
        if key in self._visited:
            raise invalid_configuration(f"Circular map configuration resolving {key} from {project.root_dir}.")
        self._visited.add(key)

        directory = package_dir(ref, project.packages_root)
        if ref.subpath == "/":
            return (yield from self._finalize(directory + "/", project))

        config = yield from read_package_config(directory, self.cache)
        subpath = ref.subpath or "/" + (config.main if config is not None else "index")
        relative = "." + subpath

        mapped = apply_map(relative, project.dependency_map(ref.name), self.env)
        if mapped is None and config is not None:
            mapped = apply_map(relative, config.map, self.env)
        if mapped is not None:
            self._log_map_hit(ref.name, relative, mapped)
            return (yield from self._resolve_subpath_target(mapped, directory, project))

        return (yield from self._finalize(directory + subpath, project))

    def _resolve_subpath_target(self, mapped: str, scope_dir: str, project: ProjectConfig) -> fs.Steps[ResolvedModule]:
        """Resolve the target of a ``./``-keyed map entry owned by ``scope_dir``."""
        if mapped == Constants.EMPTY_MODULE:
            return ResolvedModule(Constants.EMPTY_MODULE, ModuleFormat.BUILTIN)
        if mapped == Constants.NOTFOUND_MODULE:
            raise module_not_found(self.specifier, self.parent)
        ref = parse_package_name(mapped)
        if ref is not None:
            return (yield from self._resolve_package(ref, project))
        if mapped.startswith("./"):
            mapped = mapped[2:]
        return (yield from self._finalize(self._scoped_path(mapped, scope_dir), project))

    def _scoped_path(self, relative: str, scope_dir: str) -> str:
        target = normalize_path(f"{scope_dir}/{relative}")
        if not is_within(target, scope_dir):
            raise invalid_configuration(
                f"Map target {relative} resolves to {target}, outside of {scope_dir}."
            )
        return target

    def _map_plain(
        self, name: str, table: Optional[MapTable], scope_dir: str, project: ProjectConfig, label: str
    ) -> fs.Steps[Union[ResolvedModule, str]]:
        """Apply one plain-name map table.

        Returns the final ResolvedModule for relative, sentinel or package
        reference targets, otherwise the (possibly remapped) plain name.
        """
        mapped = apply_map(name, table, self.env)
        if mapped is None:
            return name
        self._log_map_hit(label, name, mapped)
        if mapped == Constants.EMPTY_MODULE:
            return ResolvedModule(Constants.EMPTY_MODULE, ModuleFormat.BUILTIN)
        if mapped == Constants.NOTFOUND_MODULE:
            raise module_not_found(self.specifier, self.parent)
        if _is_relative_target(mapped):
            return (yield from self._finalize(self._scoped_path(mapped, scope_dir), project))
        ref = parse_package_name(mapped)
        if ref is not None:
            return (yield from self._resolve_package(ref, project))
        validate_plain(mapped)
        return mapped

    def _resolve_plain(self, name: str) -> fs.Steps[ResolvedModule]:
        project = yield from find_project(self.parent, self.cache)
        if project is None:
            return (yield from self._delegate_name(name))

        parent_ref = path_to_package(self.parent, project.packages_root)
        if parent_ref is not None:
            scope_dir = package_dir(parent_ref, project.packages_root)
            scope_config = yield from read_package_config(scope_dir, self.cache)
            tables = [(project.dependency_map(parent_ref.name), parent_ref.name)]
        else:
            scope_dir = project.root_dir
            scope_config = project.manifest
            tables = []
        if scope_config is not None:
            tables.append((scope_config.map, "package.json"))

        own_name = scope_config.name if scope_config is not None else None
        if own_name and (name == own_name or name.startswith(own_name + "/")):
            subpath = name[len(own_name):]
            if parent_ref is not None:
                return (yield from self._resolve_package(parent_ref.with_subpath(subpath), project))
            return (yield from self._resolve_path(scope_dir + (subpath or "/" + scope_config.main)))

        for table, label in tables:
            if not table:
                continue
            outcome = yield from self._map_plain(name, table, scope_dir, project, label)
            if isinstance(outcome, ResolvedModule):
                return outcome
            if outcome != name:
                name = outcome
                break

        outcome = yield from self._map_plain(name, project.map, project.base_path(self.env), project, "global")
        if isinstance(outcome, ResolvedModule):
            return outcome
        return (yield from self._delegate_name(outcome))

    def _delegate_path(self, path: str) -> fs.Steps[ResolvedModule]:
        if is_debug_enabled(logger):
            logger.debug(
                "No project governs path",
                extra=extra_context(
                    event="fallback", component="engine", action="delegate_path", target=path
                ),
            )
        result = yield from self.fallback.resolve_path(path, self.parent, self.env, self.cache)
        return self._legacy(result)

    def _delegate_name(self, name: str) -> fs.Steps[ResolvedModule]:
        builtin = resolve_builtin(name, self.env, self.browser_builtins_dir)
        if builtin is not None:
            return builtin
        if not self.resolve_node_modules:
            raise module_not_found(name, self.parent)
        if is_debug_enabled(logger):
            logger.debug(
                "Delegating to fallback resolver",
                extra=extra_context(
                    event="fallback", component="engine", action="delegate_name", target=name
                ),
            )
        result = yield from self.fallback.resolve_name(name, self.parent, self.env, self.cache)
        return self._legacy(result)

    def _finalize(self, path: str, project: ProjectConfig) -> fs.Steps[ResolvedModule]:
        resolved = yield from resolve_file(path, self.parent)
        mode = None
        if self.format_policy.needs_declared_mode(resolved):
            mode = yield from self._declared_mode(resolved, project)
        return self._legacy(
            ResolvedModule(resolved, self.format_policy.format_for(resolved, mode, legacy_scope=False))
        )

    def _declared_mode(self, resolved: str, project: ProjectConfig) -> fs.Steps[Optional[str]]:
        ref = path_to_package(resolved, project.packages_root)
        if ref is not None:
            config = yield from read_package_config(package_dir(ref, project.packages_root), self.cache)
            return config.mode if config is not None else None
        if is_within(resolved, project.root_dir):
            return project.manifest.mode if project.manifest is not None else None
        return (yield from nearest_declared_mode(resolved, self.cache))

    def _legacy(self, result: ResolvedModule) -> ResolvedModule:
        if not self.cjs_resolve or result.format is ModuleFormat.BUILTIN:
            return result
        return ResolvedModule(result.resolved, self.format_policy.cjs_format(result.resolved, self.parent))


def _build(specifier: str, parent: Optional[str], env: EnvLike, cache: Optional[DirectoryCache], **options: Any) -> Resolution:
    if options.get("browser_builtins_dir") is None:
        options["browser_builtins_dir"] = Constants.BROWSER_BUILTINS_DIR
    if options.get("resolve_node_modules") is None:
        options["resolve_node_modules"] = Constants.RESOLVE_NODE_MODULES
    return Resolution(
        specifier,
        normalize_parent(parent),
        Environment.from_mapping(env),
        cache,
        **options,
    )


def _log_outcome(resolution: Resolution, timer: Timer, result: Optional[ResolvedModule], error: Optional[ResolveError]) -> None:
    if not is_debug_enabled(logger):
        return
    logger.debug(
        "Resolved %s",
        resolution.specifier,
        extra=extra_context(
            event="resolve",
            component="engine",
            action="resolve",
            outcome=error.code if error is not None else "success",
            target=result.resolved if result is not None else None,
            parent=resolution.parent,
            duration_ms=timer.duration_ms(),
        ),
    )


def resolve_sync(
    specifier: str,
    parent: Optional[str] = None,
    *,
    env: EnvLike = None,
    cache: Optional[DirectoryCache] = None,
    cjs_resolve: bool = False,
    browser_builtins_dir: Optional[str] = None,
    resolve_node_modules: Optional[bool] = None,
    fallback: Optional[FallbackResolver] = None,
    format_policy: Optional[FormatPolicy] = None,
    filesystem: Optional[fs.FileSystem] = None,
) -> ResolvedModule:
    """Resolve ``specifier`` imported from ``parent``, blocking on filesystem access.

    Args:
        specifier: Import string.
        parent: Referencing module path or ``file:`` URL; a trailing ``/``
            denotes a directory. Defaults to the working directory.
        env: Environment or mapping of condition flags.
        cache: DirectoryCache shared between calls.
        cjs_resolve: Report CommonJS-loader formats.
        browser_builtins_dir: Browser shims directory for core modules.
        resolve_node_modules: Enable node_modules lookup for unmapped names.
        fallback: Replacement for the node_modules fallback resolver.
        format_policy: Replacement format derivation policy.
        filesystem: Filesystem capability, the local filesystem by default.

    Returns:
        ResolvedModule

    Raises:
        ResolveError: INVALID_MODULE_NAME, MODULE_NOT_FOUND or INVALID_CONFIGURATION.
    """
    resolution = _build(
        specifier, parent, env, cache,
        cjs_resolve=cjs_resolve,
        browser_builtins_dir=browser_builtins_dir,
        resolve_node_modules=resolve_node_modules,
        fallback=fallback,
        format_policy=format_policy,
    )
    with Timer() as timer:
        try:
            result = fs.run_sync(resolution.run(), filesystem)
        except ResolveError as e:
            _log_outcome(resolution, timer, None, e)
            raise
    _log_outcome(resolution, timer, result, None)
    return result


async def resolve(
    specifier: str,
    parent: Optional[str] = None,
    *,
    env: EnvLike = None,
    cache: Optional[DirectoryCache] = None,
    cjs_resolve: bool = False,
    browser_builtins_dir: Optional[str] = None,
    resolve_node_modules: Optional[bool] = None,
    fallback: Optional[FallbackResolver] = None,
    format_policy: Optional[FormatPolicy] = None,
    filesystem: Optional[fs.AsyncFileSystem] = None,
) -> ResolvedModule:
    """Asynchronous twin of :func:`resolve_sync`."""
    resolution = _build(
        specifier, parent, env, cache,
        cjs_resolve=cjs_resolve,
        browser_builtins_dir=browser_builtins_dir,
        resolve_node_modules=resolve_node_modules,
        fallback=fallback,
        format_policy=format_policy,
    )
    with Timer() as timer:
        try:
            result = await fs.run_async(resolution.run(), filesystem)
        except ResolveError as e:
            _log_outcome(resolution, timer, None, e)
            raise
    _log_outcome(resolution, timer, result, None)
    return result


def package_path_steps(path: str, cache: Optional[DirectoryCache]) -> fs.Steps[Optional[str]]:
    """Root directory of the jspm package containing ``path``, or None."""
    path = to_posix(path)
    project = yield from find_project(path, cache)
    if project is None:
        return None
    ref = path_to_package(path, project.packages_root)
    if ref is None:
        return None
    return package_dir(ref, project.packages_root)


def package_path_sync(path: str, cache: Optional[DirectoryCache] = None) -> Optional[str]:
    return fs.run_sync(package_path_steps(path, cache))


async def package_path(path: str, cache: Optional[DirectoryCache] = None) -> Optional[str]:
    return await fs.run_async(package_path_steps(path, cache))
