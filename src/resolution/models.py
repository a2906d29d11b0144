"""Data models for module resolution."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from constants import Conditions, Constants

# A map table value is either a literal replacement or a condition branch.
MapTarget = Union[str, Dict[str, Any]]
MapTable = Dict[str, MapTarget]


class ModuleFormat(Enum):
    """Format label attached to a resolved module."""
    MODULE = "module"
    COMMONJS = "commonjs"
    BUILTIN = "builtin"
    JSON = "json"
    ADDON = "addon"
    UNKNOWN = "unknown"


class SpecifierKind(Enum):
    """Classification of an import specifier."""
    ABSOLUTE = "absolute"
    RELATIVE = "relative"
    PACKAGE = "package"
    URL = "url"
    PLAIN = "plain"


_CONDITION_FIELDS = {
    Conditions.BROWSER.value: "browser",
    Conditions.NODE.value: "node",
    Conditions.DEV.value: "dev",
    Conditions.PRODUCTION.value: "production",
    Conditions.REACT_NATIVE.value: "react_native",
    Conditions.ELECTRON.value: "electron",
    Conditions.MODULE.value: "module",
}


@dataclass(frozen=True)
class Environment:
    """Resolved set of environment conditions.

    Conditions outside the known set always evaluate to False, ``default``
    always evaluates to True.
    """
    browser: bool = False
    node: bool = True
    dev: bool = True
    production: bool = False
    react_native: bool = False
    electron: bool = False
    module: bool = True

    @classmethod
    def from_mapping(cls, env: Union["Environment", Mapping[str, Any], None] = None) -> "Environment":
        """Build an Environment from a loose mapping of condition flags.

        ``browser``/``node`` complement each other when only one is given, as
        do ``dev``/``production`` (``production`` wins when both are given).
        Non-boolean values are ignored.
        """
        if isinstance(env, Environment):
            return env
        given = {k: v for k, v in dict(env or {}).items() if isinstance(v, bool)}
        values = {
            attr: bool(given.get(name, Constants.DEFAULT_ENV.get(name, False)))
            for name, attr in _CONDITION_FIELDS.items()
        }
        browser = given.get(Conditions.BROWSER.value)
        node = given.get(Conditions.NODE.value)
        if browser is not None and node is None:
            values["node"] = not browser
        elif node is not None and browser is None:
            values["browser"] = not node
        production = given.get(Conditions.PRODUCTION.value)
        dev = given.get(Conditions.DEV.value)
        if production is not None:
            values["dev"] = not production
        elif dev is not None:
            values["production"] = not dev
        return cls(**values)

    def is_true(self, condition: str) -> bool:
        """Evaluate a single condition name."""
        if condition == Conditions.DEFAULT.value:
            return True
        attr = _CONDITION_FIELDS.get(condition)
        if attr is None:
            return False
        return bool(getattr(self, attr))


@dataclass(frozen=True)
class PackageReference:
    """Canonical package identity ``registry:name@version`` plus a subpath.

    ``subpath`` is either empty or starts with ``/``.
    """
    name: str
    subpath: str = ""

    def with_subpath(self, subpath: str) -> "PackageReference":
        return PackageReference(self.name, subpath)

    def __str__(self) -> str:
        return self.name + self.subpath


@dataclass
class PackageConfig:
    """Processed package.json of a package or project root."""
    name: Optional[str] = None
    main: str = "index"
    map: MapTable = field(default_factory=dict)
    mode: Optional[str] = None  # "esm" | "cjs" | None


@dataclass
class ProjectConfig:
    """Configuration of one jspm project root.

    Paths are ``/``-separated and carry no trailing separator.
    """
    root_dir: str
    packages_root: str
    base_path_dev: str
    base_path_production: str
    map: MapTable = field(default_factory=dict)
    dependencies: Dict[str, MapTable] = field(default_factory=dict)
    manifest: Optional[PackageConfig] = None

    def base_path(self, env: Environment) -> str:
        """Return the active base directory for the environment."""
        return self.base_path_production if env.production else self.base_path_dev

    def dependency_map(self, package_name: str) -> MapTable:
        return self.dependencies.get(package_name) or {}


@dataclass
class DirCacheEntry:
    """Last project lookup result for one directory.

    Valid only while both recorded modification times match the disk.
    ``None`` mtimes mean the file was absent.
    """
    manifest_mtime: Optional[int]
    config_path: str
    config_mtime: Optional[int]
    config: Optional[ProjectConfig]


@dataclass(frozen=True)
class ResolvedModule:
    """Resolution outcome."""
    resolved: str
    format: ModuleFormat

    def to_dict(self) -> Dict[str, str]:
        return {"resolved": self.resolved, "format": self.format.value}
