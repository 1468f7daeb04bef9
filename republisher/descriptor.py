"""
descriptor.py

Responsibility: Load, rewrite and persist the package descriptor (package.json).

The rewrite replaces ownership, licensing and build-tool fields with fork values and
copies a fixed set of fields verbatim from upstream. Key order is stable so the
written file diffs cleanly between runs.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from republisher import RepublishError
from republisher.config import PackageIdentity

_MISSING = object()


class DescriptorError(RepublishError):
    pass


def load_descriptor(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise DescriptorError(f"Package descriptor not found: {path}") from e
    except json.JSONDecodeError as e:
        raise DescriptorError(f"Package descriptor is not valid JSON: {path}: {e}") from e
    if not isinstance(data, dict):
        raise DescriptorError(f"Package descriptor must be a JSON object: {path}")
    return data


def build_descriptor(upstream: dict[str, Any], identity: PackageIdentity) -> dict[str, Any]:
    """
    Build the fork descriptor from the upstream one.

    Preserved verbatim: description, sideEffects, engines, keywords and the three
    dependency maps. Preserved fields missing upstream are left out; an explicit
    null upstream stays null.
    """
    version = upstream.get("version")
    if version is None:
        raise DescriptorError("Upstream package descriptor has no version.")

    out: dict[str, Any] = {
        "name": identity.name,
        "version": str(version),
        "description": upstream.get("description", _MISSING),
        "license": identity.license,
        "repository": {
            "type": "git",
            "url": identity.repository_url,
        },
        "funding": identity.funding,
        "author": {
            "name": identity.author_name,
            "email": identity.author_email,
        },
        "type": identity.module_type,
        "sideEffects": upstream.get("sideEffects", _MISSING),
        "engines": upstream.get("engines", _MISSING),
        "files": list(identity.files),
        "keywords": upstream.get("keywords", _MISSING),
        "dependencies": upstream.get("dependencies", _MISSING),
        "devDependencies": upstream.get("devDependencies", _MISSING),
        "peerDependencies": upstream.get("peerDependencies", _MISSING),
        "tshy": {
            "exports": dict(identity.exports),
        },
    }
    return {k: v for k, v in out.items() if v is not _MISSING}


def write_descriptor(path: Path, data: dict[str, Any]) -> None:
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
