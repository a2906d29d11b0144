"""CLI configuration: settings file loading and command line overrides.

Precedence, lowest first: built-in Constants defaults, the settings file,
command line flags.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from constants import Conditions, Constants, _load_yaml_config, apply_settings

logger = logging.getLogger(__name__)


def load_settings(args) -> Dict[str, Any]:
    """Load the settings file named by ``--config`` (or a default location) into Constants.

    Returns:
        dict: The parsed settings; empty when none was found.
    """
    settings = _load_yaml_config(getattr(args, "CONFIG", None))
    if settings:
        apply_settings(settings)
    return settings


def apply_resolver_overrides(args) -> None:
    """Apply CLI overrides for resolver tunables (CLI has highest precedence)."""
    if getattr(args, "BUILTINS_DIR", None):
        Constants.BROWSER_BUILTINS_DIR = args.BUILTINS_DIR
    if getattr(args, "NO_NODE_MODULES", False):
        Constants.RESOLVE_NODE_MODULES = False


def build_env(args) -> Dict[str, bool]:
    """Environment conditions requested on the command line.

    Only flags that were given are included, so settings-file defaults still
    apply to the rest.
    """
    env: Dict[str, bool] = {}
    if getattr(args, "BROWSER", False):
        env[Conditions.BROWSER.value] = True
    if getattr(args, "PRODUCTION", False):
        env[Conditions.PRODUCTION.value] = True
    if env:
        logger.debug("Environment overrides from CLI: %s", env)
    return env
