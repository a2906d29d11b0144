"""Shared fixtures: on-disk jspm project layouts built under tmp_path."""

import json
from pathlib import Path

import pytest


class Layout:
    """Helper writing files relative to a root directory."""

    def __init__(self, root: Path):
        self.root = root

    def path(self, relative: str = "") -> str:
        """Posix string path of ``relative`` under the root."""
        if not relative:
            return self.root.as_posix()
        return (self.root / relative).as_posix()

    def write(self, relative: str, text: str = "") -> Path:
        target = self.root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
        return target

    def write_json(self, relative: str, data) -> Path:
        return self.write(relative, json.dumps(data))

    def mkdir(self, relative: str) -> Path:
        target = self.root / relative
        target.mkdir(parents=True, exist_ok=True)
        return target


@pytest.fixture
def layout(tmp_path):
    """Empty layout rooted at a fresh directory."""
    root = tmp_path / "work"
    root.mkdir()
    return Layout(root)


@pytest.fixture
def project(tmp_path):
    """A jspm project with a global map, two packages and dependency maps."""
    root = tmp_path / "project"
    root.mkdir()
    p = Layout(root)
    p.write_json("package.json", {"name": "app"})
    p.write_json("jspm.json", {
        "map": {
            "a": "./b",
            "c": {"browser": "./c-browser", "default": "./c-node"},
            "d": {"browser": "./d"},
            "pkg": "npm:pkg@1.0.0",
            "legacy": "npm:legacy@1.0.0",
            "loop": "npm:loop@1.0.0",
            "stub": "@empty",
            "gone": "@notfound",
            "outside": "../outside",
            "m": "./m.mjs",
        },
        "dependencies": {
            "npm:pkg@1.0.0": {
                "map": {
                    "dep": "npm:dep@2.0.0",
                    "alias": "a",
                    "./internal": "./lib/internal-impl",
                },
            },
            "npm:loop@1.0.0": {
                "map": {"./index": "npm:loop@1.0.0"},
            },
        },
    })
    p.write("b.js")
    p.write("c-browser.js")
    p.write("c-node.js")
    p.write("d.js")
    p.write("m.mjs")
    p.write_json("jspm_packages/npm/pkg@1.0.0/package.json", {"main": "./main.js"})
    p.write("jspm_packages/npm/pkg@1.0.0/main.js")
    p.write("jspm_packages/npm/pkg@1.0.0/sub.js")
    p.write("jspm_packages/npm/pkg@1.0.0/lib/internal-impl.js")
    p.write("jspm_packages/npm/dep@2.0.0/index.js")
    p.write_json("jspm_packages/npm/legacy@1.0.0/package.json", {"type": "commonjs"})
    p.write("jspm_packages/npm/legacy@1.0.0/index.js")
    p.write("jspm_packages/npm/loop@1.0.0/index.js")
    return p
