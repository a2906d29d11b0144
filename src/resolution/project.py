"""Project discovery and jspm configuration loading.

A project root is a directory holding a jspm configuration file (``jspm.json``
unless the manifest's ``configFiles.jspm`` points elsewhere), optionally next
to a ``package.json`` manifest. Lookups are memoized per directory in a
:class:`DirectoryCache`, keyed by the modification times of both files.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants

from . import fs
from .cache import DirectoryCache
from .models import DirCacheEntry, MapTable, ProjectConfig
from .package_config import parse_json_object, process_package_json
from .package_path import is_package_boundary
from .paths import normalize_path

logger = logging.getLogger(__name__)

_PACKAGES_SEGMENT = "/" + Constants.PACKAGES_DIR
_NODE_MODULES_SEGMENT = "/" + Constants.NODE_MODULES_DIR


def _join(root: str, relative: str) -> str:
    """Join a manifest-relative directory onto ``root`` without trailing separator."""
    if relative.startswith("/"):
        joined = normalize_path(relative)
    else:
        joined = normalize_path(f"{root}/{relative}")
    return joined.rstrip("/") or root


def _directory_field(manifest: Optional[Dict[str, Any]], name: str) -> Optional[str]:
    if not manifest:
        return None
    directories = manifest.get("directories")
    if not isinstance(directories, dict):
        return None
    value = directories.get(name)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def config_file_path(root_dir: str, manifest: Optional[Dict[str, Any]]) -> str:
    """Location of the jspm configuration file for a project root."""
    relative = Constants.JSPM_CONFIG_FILE
    if manifest:
        config_files = manifest.get("configFiles")
        if isinstance(config_files, dict) and isinstance(config_files.get("jspm"), str):
            relative = config_files["jspm"].strip() or relative
    return _join(root_dir, relative)


def build_project_config(
    root_dir: str,
    manifest: Optional[Dict[str, Any]],
    jspm_config: Dict[str, Any],
) -> ProjectConfig:
    """Assemble a ProjectConfig from the parsed manifest and jspm configuration.

    Args:
        root_dir: Project root, no trailing separator.
        manifest: Parsed package.json, or None when absent.
        jspm_config: Parsed jspm configuration file.

    Returns:
        ProjectConfig
    """
    packages = _directory_field(manifest, "packages")
    lib = _directory_field(manifest, "lib")
    dist = _directory_field(manifest, "dist")

    global_map = jspm_config.get("map")
    dependencies: Dict[str, MapTable] = {}
    raw_dependencies = jspm_config.get("dependencies")
    if isinstance(raw_dependencies, dict):
        for name, entry in raw_dependencies.items():
            if isinstance(entry, dict) and isinstance(entry.get("map"), dict):
                dependencies[name] = entry["map"]

    return ProjectConfig(
        root_dir=root_dir,
        packages_root=_join(root_dir, packages or Constants.PACKAGES_DIR),
        base_path_dev=_join(root_dir, lib) if lib else root_dir,
        base_path_production=_join(root_dir, dist) if dist else root_dir,
        map=global_map if isinstance(global_map, dict) else {},
        dependencies=dependencies,
        manifest=process_package_json(manifest) if manifest else None,
    )


def load_project_at(directory: str, cache: Optional[DirectoryCache]) -> fs.Steps[Optional[ProjectConfig]]:
    """Load the project rooted exactly at ``directory``.

    Reuses the cached entry while both files keep their modification times;
    otherwise reparses and overwrites it. Absence is cached too.
    """
    manifest_path = f"{directory}/{Constants.MANIFEST_FILE}"
    manifest_mtime = yield from fs.mtime(manifest_path)

    previous = cache.get_project(directory) if cache is not None else None
    manifest: Optional[Dict[str, Any]] = None
    if previous is not None and previous.manifest_mtime == manifest_mtime:
        config_path = previous.config_path
    else:
        if manifest_mtime is not None:
            manifest = parse_json_object((yield from fs.read_text(manifest_path)), manifest_path)
        config_path = config_file_path(directory, manifest)

    config_mtime = yield from fs.mtime(config_path)
    if cache is not None:
        entry = cache.current_project(directory, manifest_mtime, config_mtime)
        if entry is not None and entry.config_path == config_path:
            return entry.config

    if manifest is None and manifest_mtime is not None:
        manifest = parse_json_object((yield from fs.read_text(manifest_path)), manifest_path)

    config = None
    if config_mtime is not None:
        jspm_config = parse_json_object((yield from fs.read_text(config_path)), config_path)
        if jspm_config is not None:
            config = build_project_config(directory, manifest, jspm_config)

    if is_debug_enabled(logger):
        logger.debug(
            "Project lookup",
            extra=extra_context(
                event="project_lookup",
                component="project",
                action="load",
                outcome="found" if config is not None else "absent",
                target=directory or "/",
            ),
        )
    if cache is not None:
        cache.set_project(
            directory,
            DirCacheEntry(
                manifest_mtime=manifest_mtime,
                config_path=config_path,
                config_mtime=config_mtime,
                config=config,
            ),
        )
    return config


def find_project(path: str, cache: Optional[DirectoryCache]) -> fs.Steps[Optional[ProjectConfig]]:
    """Find the nearest project governing ``path``.

    The walk starts at the directory containing ``path`` (a path ending in
    ``/`` starts at itself) and moves toward the root. It stops at a
    node_modules directory, and jumps from anywhere inside a jspm_packages
    tree straight to the directory owning it unless it stands exactly on a
    package root.

    Returns:
        ProjectConfig, or None when no project governs ``path``.
    """
    directory = path[:path.rfind("/")]
    while True:
        if directory.endswith(_NODE_MODULES_SEGMENT):
            return None

        packages_index = directory.rfind(_PACKAGES_SEGMENT + "/")
        if directory.endswith(_PACKAGES_SEGMENT):
            directory = directory[:-len(_PACKAGES_SEGMENT)]
            continue
        if packages_index != -1 and directory.rfind(_NODE_MODULES_SEGMENT + "/") < packages_index:
            packages_root = directory[:packages_index + len(_PACKAGES_SEGMENT)]
            if not is_package_boundary(directory, packages_root):
                directory = directory[:packages_index]
                continue

        config = yield from load_project_at(directory, cache)
        if config is not None:
            return config
        if "/" not in directory:
            return None
        directory = directory[:directory.rfind("/")]
