"""Longest-prefix, environment-conditioned map lookup."""

from typing import Any, Iterator, Optional

from .errors import invalid_configuration
from .models import Environment, MapTable


def condition_map(target: Any, env: Environment) -> Optional[str]:
    """Select a literal target from a (possibly nested) conditional value.

    Conditions are evaluated in declaration order and the first true one
    wins. Returns None when no condition matches.
    """
    while not isinstance(target, str):
        if not isinstance(target, dict):
            return None
        for condition, branch in target.items():
            if env.is_true(condition):
                target = branch
                break
        else:
            return None
    return target


def _match_candidates(name: str) -> Iterator[str]:
    """Yield lookup keys from longest to shortest.

    ``a/b/c`` yields ``a/b/c``, ``a/b/``, ``a/b``, ``a/`` and ``a``; a
    trailing ``/`` on ``name`` is tried both with and without the separator.
    """
    index = len(name) - 1
    exact_separator = name.endswith("/")
    match = name
    while True:
        if match == ".":
            return
        yield match
        if exact_separator:
            match = name[:index]
        else:
            index = name.rfind("/", 0, index)
            match = name[:index + 1]
        exact_separator = not exact_separator
        if index == -1:
            return


def apply_map(name: str, table: Optional[MapTable], env: Environment) -> Optional[str]:
    """Map ``name`` through ``table``.

    Args:
        name: Plain specifier or ``./``-relative subpath.
        table: Map table; ``None`` or empty means unmapped.
        env: Environment used for conditional entries.

    Returns:
        The replacement joined with the unmatched remainder of ``name``, or
        None when nothing matched.

    Raises:
        ResolveError: INVALID_CONFIGURATION for a target with a trailing
            separator on a key without one.
    """
    if not table:
        return None
    for match in _match_candidates(name):
        if match not in table:
            continue
        mapped = condition_map(table[match], env)
        if mapped is None:
            continue
        if match.startswith("./") and mapped.startswith("./"):
            mapped = mapped[2:]
        if mapped.endswith("/"):
            if not match.endswith("/"):
                raise invalid_configuration(
                    f'Invalid map config "{match}" -> "{mapped}" - target cannot have a trailing separator.'
                )
        elif match.endswith("/"):
            mapped += "/"
        return mapped + name[len(match):]
    return None
