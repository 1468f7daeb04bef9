"""
config.py

Responsibility: Hold the fork configuration as a deterministic, typed model.

Defaults reproduce the fixed republish behaviour (ky -> @smeijer/ky). An optional
YAML file can override individual values; the CLI treats the resulting `ForkConfig`
as the single source of truth and threads it through every step.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from republisher import RepublishError


class ConfigError(RepublishError):
    pass


REGISTRY_CHECKS = ("npm", "http")


def _default_exports() -> dict[str, str]:
    return {
        "./package.json": "./package.json",
        ".": "./src/index.ts",
    }


@dataclass(frozen=True)
class PackageIdentity:
    """Descriptor fields that are always replaced with fork values."""

    name: str = "@smeijer/ky"
    license: str = "MIT"
    repository_url: str = "git+https://github.com/smeijer/ky.git"
    funding: str = "https://github.com/smeijer/ky?sponsor=1"
    author_name: str = "Stephan Meijer"
    author_email: str = "stephan.meijer@gmail.com"
    module_type: str = "module"
    files: tuple[str, ...] = ("dist",)
    exports: dict[str, str] = field(default_factory=_default_exports)


@dataclass(frozen=True)
class ForkConfig:
    """Everything a republish run needs to know, minus the registry token itself."""

    upstream_url: str = "https://github.com/sindresorhus/ky.git"
    upstream_slug: str = "sindresorhus/ky"
    fork_slug: str = "smeijer/ky"
    project_name: str = "ky"
    workdir: Path = Path(".package")
    package: PackageIdentity = field(default_factory=PackageIdentity)
    rename_dirs: dict[str, str] = field(default_factory=lambda: {"source": "src"})
    remove_files: tuple[str, ...] = ("tsconfig.json",)
    readme_name: str = "readme.md"
    registry_url: str = "https://registry.npmjs.org"
    registry_check: str = "npm"
    tools_bin: str = "../node_modules/.bin"
    token_env: str = "NPM_TOKEN"

    @property
    def descriptor_path(self) -> Path:
        return self.workdir / "package.json"

    @property
    def readme_path(self) -> Path:
        return self.workdir / self.readme_name

    def tool(self, name: str) -> str:
        """Path to a build binary, as seen from inside the working directory."""
        return f"{self.tools_bin.rstrip('/')}/{name}"


def _field_names(cls: type) -> set[str]:
    return {f.name for f in dataclasses.fields(cls)}


def _check_keys(data: dict[str, Any], cls: type, where: str) -> None:
    unknown = sorted(set(data) - _field_names(cls))
    if unknown:
        raise ConfigError(f"Unknown key(s) in {where}: {', '.join(unknown)}")


def _as_mapping(value: Any, where: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"`{where}` must be an object/mapping when provided.")
    return value


def _as_str_tuple(value: Any, where: str) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, (list, tuple)):
        raise ConfigError(f"`{where}` must be a list of strings.")
    return tuple(str(v) for v in value)


def _parse_package(raw: dict[str, Any]) -> PackageIdentity:
    _check_keys(raw, PackageIdentity, "package")
    data = dict(raw)
    if "files" in data:
        data["files"] = _as_str_tuple(data["files"], "package.files")
    if "exports" in data:
        data["exports"] = {str(k): str(v) for k, v in _as_mapping(data["exports"], "package.exports").items()}
    for key, value in list(data.items()):
        if key not in ("files", "exports"):
            data[key] = str(value).strip()
    return PackageIdentity(**data)


def config_from_mapping(data: dict[str, Any], base: ForkConfig | None = None) -> ForkConfig:
    """
    Apply a mapping of overrides on top of `base` (defaults when omitted).

    Nested `package` overrides are merged field by field, so a file only needs to
    list what differs from the defaults.
    """
    base = base or ForkConfig()
    _check_keys(data, ForkConfig, "config")

    changes: dict[str, Any] = {}
    for key, value in data.items():
        if key == "package":
            merged = {**dataclasses.asdict(base.package), **_as_mapping(value, "package")}
            changes["package"] = _parse_package(merged)
        elif key == "workdir":
            changes["workdir"] = Path(str(value))
        elif key == "rename_dirs":
            changes["rename_dirs"] = {str(k): str(v) for k, v in _as_mapping(value, "rename_dirs").items()}
        elif key == "remove_files":
            changes["remove_files"] = _as_str_tuple(value, "remove_files")
        else:
            changes[key] = str(value).strip()

    config = dataclasses.replace(base, **changes)
    if config.registry_check not in REGISTRY_CHECKS:
        raise ConfigError(
            f"`registry_check` must be one of {', '.join(REGISTRY_CHECKS)} (got {config.registry_check!r})"
        )
    return config


def load_config(config_path: str | Path | None = None) -> ForkConfig:
    """
    Load a `ForkConfig`, optionally overriding defaults from a YAML file.

    Recognized top-level keys mirror the `ForkConfig` fields; `package` takes the
    `PackageIdentity` fields.
    """
    if config_path is None:
        return ForkConfig()

    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"Config file does not exist: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file is not valid YAML: {path}") from e
    if not isinstance(data, dict):
        raise ConfigError("Config file must be a mapping/object at the top level.")

    return config_from_mapping(data)
