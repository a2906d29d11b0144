"""package.json processing for packages and project roots.

Extracts the fields that influence resolution (name, main, map, module type)
and folds the ``browser``/``electron``/``react-native`` entry point fields into
conditional map entries.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from constants import Conditions, Constants

from . import fs
from .cache import DirectoryCache
from .models import MapTable, PackageConfig

logger = logging.getLogger(__name__)

_ENTRY_FIELDS = (
    Conditions.REACT_NATIVE.value,
    Conditions.ELECTRON.value,
    Conditions.BROWSER.value,
)


def parse_json_object(source: Optional[str], path: str) -> Optional[Dict[str, Any]]:
    """Parse ``source`` as a JSON object.

    Malformed JSON and non-object documents are treated as an absent file.
    """
    if source is None:
        return None
    try:
        data = json.loads(source)
    except json.JSONDecodeError as e:
        logger.debug("Ignoring malformed JSON in %s: %s", path, e)
        return None
    if not isinstance(data, dict):
        logger.debug("Ignoring %s: top level is not an object", path)
        return None
    return data


def _strip_leading_dot_and_trailing_slash(path: str) -> str:
    if path.startswith("./"):
        path = path[2:]
    if path.endswith("/"):
        path = path[:-1]
    return path


def _declared_mode(pjson: Dict[str, Any]) -> Optional[str]:
    mode = pjson.get("mode")
    if mode in ("esm", "cjs"):
        return mode
    declared_type = pjson.get("type")
    if declared_type == "module":
        return "esm"
    if declared_type == "commonjs":
        return "cjs"
    return None


def process_package_json(pjson: Dict[str, Any]) -> PackageConfig:
    """Reduce a parsed package.json to a PackageConfig.

    Args:
        pjson: Parsed package.json object.

    Returns:
        PackageConfig
    """
    name = pjson.get("name") if isinstance(pjson.get("name"), str) else None
    main = None
    if isinstance(pjson.get("main"), str):
        main = _strip_leading_dot_and_trailing_slash(pjson["main"]) or None
    table: MapTable = dict(pjson["map"]) if isinstance(pjson.get("map"), dict) else {}

    main = main or "index"
    entry_map: Dict[str, Any] = {}
    for field_name in _ENTRY_FIELDS:
        value = pjson.get(field_name)
        if isinstance(value, str) and value.strip():
            entry_map[field_name] = _strip_leading_dot_and_trailing_slash(value)
    if entry_map:
        entry_map[Conditions.DEFAULT.value] = main
        table.setdefault("./" + main, entry_map)

    browser = pjson.get(Conditions.BROWSER.value)
    if isinstance(browser, dict):
        for key, target in browser.items():
            if target is False:
                target = Constants.EMPTY_MODULE
            if not isinstance(target, str):
                continue
            if key.startswith("./") and not key.endswith(".js"):
                key += ".js"
            if key in table:
                continue
            table[key] = {Conditions.BROWSER.value: target}

    return PackageConfig(name=name, main=main, map=table, mode=_declared_mode(pjson))


def read_package_config(directory: str, cache: Optional[DirectoryCache]) -> fs.Steps[Optional[PackageConfig]]:
    """Read and process ``<directory>/package.json``, consulting the cache.

    Returns:
        PackageConfig, or None when the file is absent or malformed.
    """
    path = f"{directory}/{Constants.MANIFEST_FILE}"
    current = yield from fs.mtime(path)
    if cache is not None:
        entry = cache.current_package(directory, current)
        if entry is not None:
            return entry.config

    config = None
    if current is not None:
        source = yield from fs.read_text(path)
        data = parse_json_object(source, path)
        if data is not None:
            config = process_package_json(data)

    if cache is not None:
        cache.set_package(directory, current, config)
    return config
