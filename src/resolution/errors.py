"""Resolution error type."""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """Failure kinds reported by the resolver."""
    INVALID_MODULE_NAME = "INVALID_MODULE_NAME"
    MODULE_NOT_FOUND = "MODULE_NOT_FOUND"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"


class ResolveError(Exception):
    """Raised when a specifier cannot be resolved.

    The ``code`` attribute carries the ErrorCode value as a string so callers
    can branch on the cause without importing the enum.
    """

    def __init__(self, kind: ErrorCode, message: str):
        super().__init__(message)
        self.kind = kind
        self.code = kind.value
        self.message = message

    def __repr__(self) -> str:
        return f"ResolveError({self.code}, {self.message!r})"


def module_not_found(name: str, parent: Optional[str] = None) -> ResolveError:
    """Build a MODULE_NOT_FOUND error for ``name`` imported from ``parent``."""
    suffix = f" from {parent}" if parent else ""
    return ResolveError(ErrorCode.MODULE_NOT_FOUND, f"Cannot find module {name}{suffix}.")


def invalid_module_name(message: str) -> ResolveError:
    return ResolveError(ErrorCode.INVALID_MODULE_NAME, message)


def invalid_configuration(message: str) -> ResolveError:
    return ResolveError(ErrorCode.INVALID_CONFIGURATION, message)
