"""Constants used in the project."""

import json
import logging
import os
from enum import Enum

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    MODULE_NOT_FOUND = 3
    INVALID_MODULE_NAME = 4
    INVALID_CONFIGURATION = 5


class Conditions(Enum):
    """Environment condition names understood by conditional maps.

    Args:
        Enum (string): Condition names as they appear in map tables.
    """

    BROWSER = "browser"
    NODE = "node"
    DEV = "dev"
    PRODUCTION = "production"
    REACT_NATIVE = "react-native"
    ELECTRON = "electron"
    MODULE = "module"
    DEFAULT = "default"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    MANIFEST_FILE = "package.json"
    JSPM_CONFIG_FILE = "jspm.json"
    PACKAGES_DIR = "jspm_packages"
    NODE_MODULES_DIR = "node_modules"

    EMPTY_MODULE = "@empty"
    NOTFOUND_MODULE = "@notfound"

    # Candidate suffixes for extension probing, in order.
    FILE_EXTENSIONS = [".js", ".json", ".node"]
    INDEX_FILES = ["/index.js", "/index.json", "/index.node"]

    DEFAULT_ENV = {
        Conditions.BROWSER.value: False,
        Conditions.NODE.value: True,
        Conditions.DEV.value: True,
        Conditions.PRODUCTION.value: False,
        Conditions.REACT_NATIVE.value: False,
        Conditions.ELECTRON.value: False,
        Conditions.MODULE.value: True,
    }

    NODE_BUILTINS = [
        "assert", "buffer", "child_process", "cluster", "console", "constants",
        "crypto", "dgram", "dns", "domain", "events", "fs", "http", "https",
        "module", "net", "os", "path", "process", "punycode", "querystring",
        "readline", "repl", "stream", "string_decoder", "sys", "timers", "tls",
        "tty", "url", "util", "vm", "zlib",
    ]
    BROWSER_UNIMPLEMENTED_BUILTINS = [
        "child_process", "cluster", "dgram", "dns", "fs", "module", "net",
        "readline", "repl", "tls",
    ]

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "JSPM_RESOLVE_LOG_LEVEL"
    ENV_CONFIG_PATH = "JSPM_RESOLVE_CONFIG"

    # Resolver defaults; may be overridden by YAML settings or CLI flags.
    BROWSER_BUILTINS_DIR = None
    RESOLVE_NODE_MODULES = True


def _config_candidates():
    """Return settings file locations in precedence order."""
    candidates = []
    env_path = os.environ.get(Constants.ENV_CONFIG_PATH)
    if env_path:
        candidates.append(env_path)
    candidates.append(os.path.join(os.getcwd(), "jspm-resolve.yml"))
    candidates.append(os.path.join(os.path.expanduser("~"), ".config", "jspm-resolve", "config.yml"))
    return candidates


def _load_yaml_config(path=None):
    """Load the resolver settings file.

    Args:
        path: Explicit settings path. When omitted, the default locations are tried.

    Returns:
        dict: Parsed settings, or an empty dict when nothing usable was found.
    """
    candidates = [path] if path else _config_candidates()
    for candidate in candidates:
        if not candidate or not os.path.isfile(candidate):
            continue
        try:
            with open(candidate, "r", encoding="utf-8") as fh:
                if candidate.lower().endswith(".json"):
                    data = json.load(fh)
                else:
                    import yaml  # pylint: disable=import-outside-toplevel
                    data = yaml.safe_load(fh)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.warning("Failed to load settings from %s: %s", candidate, exc)
            continue
        if isinstance(data, dict):
            return data
        logger.warning("Ignoring settings file %s: top level is not a mapping", candidate)
    return {}


def apply_settings(settings):
    """Apply the ``resolver`` section of a settings mapping onto Constants.

    Args:
        settings (dict): Parsed settings file contents.
    """
    section = settings.get("resolver") if isinstance(settings, dict) else None
    if not isinstance(section, dict):
        return
    env = section.get("env")
    if isinstance(env, dict):
        merged = dict(Constants.DEFAULT_ENV)
        for key, value in env.items():
            if isinstance(value, bool):
                merged[str(key)] = value
        Constants.DEFAULT_ENV = merged
    builtins_dir = section.get("browser_builtins_dir")
    if isinstance(builtins_dir, str) and builtins_dir.strip():
        Constants.BROWSER_BUILTINS_DIR = builtins_dir.strip()
    if isinstance(section.get("resolve_node_modules"), bool):
        Constants.RESOLVE_NODE_MODULES = section["resolve_node_modules"]
    level = section.get("log_level")
    if isinstance(level, str) and level.strip() and not os.environ.get(Constants.ENV_LOG_LEVEL):
        os.environ[Constants.ENV_LOG_LEVEL] = level.strip().upper()
