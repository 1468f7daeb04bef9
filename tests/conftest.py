from __future__ import annotations

import json
import subprocess
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from republisher.config import ForkConfig

UPSTREAM_PACKAGE = {
    "name": "ky",
    "version": "1.7.2",
    "description": "Tiny and elegant HTTP client based on the Fetch API",
    "license": "MIT",
    "repository": "sindresorhus/ky",
    "funding": "https://github.com/sindresorhus/ky?sponsor=1",
    "author": {"name": "Sindre Sorhus", "email": "sindresorhus@gmail.com"},
    "type": "module",
    "exports": "./distribution/index.js",
    "sideEffects": False,
    "engines": {"node": ">=18"},
    "keywords": ["fetch", "request", "http"],
    "devDependencies": {"typescript": "^5.4.5", "xo": "^0.58.0"},
    "xo": {"envs": ["browser"]},
}


class FakeProcesses:
    """Stands in for subprocess.run; records calls and replays scripted results."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.view_result = subprocess.CompletedProcess(["npm", "view"], 1, "", "npm ERR! code E404\nnpm ERR! 404 Not Found")
        self.fail_on: str | None = None
        self.on_clone: Callable[[Path], None] | None = None

    @property
    def commands(self) -> list[list[str]]:
        return [call["args"] for call in self.calls]

    def __call__(self, args: list[str], **kwargs: Any) -> subprocess.CompletedProcess:
        self.calls.append({"args": list(args), **kwargs})
        if args[:2] == ["npm", "view"]:
            return self.view_result
        if args[:2] == ["git", "clone"] and self.on_clone is not None:
            self.on_clone(Path(kwargs["cwd"]))
        if self.fail_on is not None and " ".join(args).startswith(self.fail_on):
            return subprocess.CompletedProcess(args, 2)
        return subprocess.CompletedProcess(args, 0)


def populate_checkout(workdir: Path, package: dict[str, Any] | None = None) -> None:
    (workdir / "source").mkdir()
    (workdir / "source" / "index.ts").write_text("export {};\n", encoding="utf-8")
    (workdir / "tsconfig.json").write_text("{}", encoding="utf-8")
    (workdir / "readme.md").write_text("# ky\n\nTiny HTTP client.\n", encoding="utf-8")
    (workdir / "package.json").write_text(json.dumps(package or UPSTREAM_PACKAGE), encoding="utf-8")


@pytest.fixture()
def fake_processes(monkeypatch: pytest.MonkeyPatch) -> FakeProcesses:
    fake = FakeProcesses()
    fake.on_clone = populate_checkout
    monkeypatch.setattr(subprocess, "run", fake)
    monkeypatch.delenv("GITHUB_ACTIONS", raising=False)
    return fake


@pytest.fixture()
def config(tmp_path: Path) -> ForkConfig:
    return ForkConfig(workdir=tmp_path / ".package")
