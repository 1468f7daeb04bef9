"""
cli.py

Responsibility: CLI entrypoint for republisher.

High-level flow (single command, no required flags):
1) Recreate the working directory and clone upstream into it
2) Adjust the layout and rewrite package.json -> fork descriptor
3) Stop early if <name>@<version> is already on the registry
4) Prepend the fork notice to the README
5) npm install, tshy, attw -P, configure auth from $NPM_TOKEN, npm publish

This module should orchestrate behavior but keep concerns isolated:
- Configuration: `config.py`
- Commands: `runner.py`
- Registry lookups: `registry.py`
- package.json: `descriptor.py`
- README: `readme.py`
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import os
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

from republisher import RepublishError
from republisher.config import REGISTRY_CHECKS, ForkConfig, load_config
from republisher.descriptor import build_descriptor, load_descriptor, write_descriptor
from republisher.readme import patch_readme
from republisher.registry import is_published
from republisher.runner import add_mask, annotate_error, run_command

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepublishResult:
    name: str
    version: str
    published: bool
    skipped: bool


def _recreate_dir(path: Path) -> None:
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)


def _adjust_layout(config: ForkConfig) -> None:
    workdir = config.workdir
    for src, dst in config.rename_dirs.items():
        src_path = workdir / src
        if not src_path.exists():
            raise RepublishError(f"Cannot rename {src_path}: it does not exist")
        src_path.rename(workdir / dst)

    for name in config.remove_files:
        target = workdir / name
        if target.is_dir():
            shutil.rmtree(target)
        else:
            target.unlink(missing_ok=True)


def _auth_config_key(registry_url: str) -> str:
    """
    Return the npm config key for a registry's auth token, e.g.
    https://registry.npmjs.org -> //registry.npmjs.org/:_authToken
    """
    parsed = urlparse(registry_url)
    path = parsed.path.rstrip("/")
    return f"//{parsed.netloc}{path}/:_authToken"


def _read_token(config: ForkConfig, environ: dict[str, str]) -> str:
    token = environ.get(config.token_env, "").strip()
    if not token:
        raise RepublishError(f"Registry token is required (set {config.token_env})")
    return token


def republish(config: ForkConfig, *, environ: dict[str, str] | None = None) -> RepublishResult:
    env = dict(os.environ) if environ is None else environ
    workdir = config.workdir

    _recreate_dir(workdir)

    logger.info("Cloning repo...")
    run_command(["git", "clone", config.upstream_url, "."], cwd=workdir)

    _adjust_layout(config)

    pkg = build_descriptor(load_descriptor(config.descriptor_path), config.package)
    write_descriptor(config.descriptor_path, pkg)
    name, version = pkg["name"], pkg["version"]

    if is_published(
        name,
        version,
        method=config.registry_check,
        registry_url=config.registry_url,
        cwd=workdir,
    ):
        logger.info("Done, %s@%s is already published", name, version)
        return RepublishResult(name=name, version=version, published=False, skipped=True)

    patch_readme(config.readme_path, config)

    run_command(["npm", "install"], cwd=workdir)
    run_command([config.tool("tshy")], cwd=workdir)
    run_command([config.tool("attw"), "-P"], cwd=workdir)

    token = _read_token(config, env)
    add_mask(token)
    run_command(
        ["npm", "config", "set", f"{_auth_config_key(config.registry_url)}={token}"],
        cwd=workdir,
        secrets=[token],
    )
    run_command(["npm", "publish", "--registry", config.registry_url], cwd=workdir)

    logger.info("Done, published %s@%s", name, version)
    return RepublishResult(name=name, version=version, published=True, skipped=False)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="republish",
        description="Republish a forked npm package under a new name (token from NPM_TOKEN)",
    )
    p.add_argument("--config", default=None, help="YAML file overriding the built-in fork settings")
    p.add_argument("--workdir", default=None, help="Disposable working directory (default: .package)")
    p.add_argument(
        "--registry-check",
        choices=REGISTRY_CHECKS,
        default=None,
        help="How to check for an existing version: npm CLI or HTTP (default: npm)",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return p


def _resolve_config(args: argparse.Namespace) -> ForkConfig:
    config = load_config(args.config)

    # CLI overrides
    changes: dict[str, object] = {}
    if args.workdir:
        changes["workdir"] = Path(args.workdir)
    if args.registry_check:
        changes["registry_check"] = args.registry_check
    return dataclasses.replace(config, **changes) if changes else config


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )

    try:
        republish(_resolve_config(args))
    except RepublishError as e:
        annotate_error(str(e))
        print(f"republish: {e}", file=sys.stderr)
        return 1
    except Exception as e:  # noqa: BLE001 - anything unexpected still exits 1
        logger.debug("Unexpected failure", exc_info=True)
        print(f"republish: unexpected failure: {e!r}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
