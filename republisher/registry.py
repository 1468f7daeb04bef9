"""
registry.py

Responsibility: Answer "is <name>@<version> already on the registry?".

This module must be the only place that:
- Queries the npm registry (through the npm CLI or over HTTP)
- Decides which registry answers mean "not published"

Both backends keep the not-found rule in a single `_is_not_found` function, because
it depends on wording/status codes chosen by external tools.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from urllib.parse import quote

import requests

from republisher import RepublishError

logger = logging.getLogger(__name__)

NPM_NOT_FOUND_MARKER = "E404"


class RegistryError(RepublishError):
    pass


def _is_not_found(stderr: str) -> bool:
    return NPM_NOT_FOUND_MARKER in stderr


def is_published_npm(
    name: str,
    version: str,
    *,
    registry_url: str = "https://registry.npmjs.org",
    cwd: Path | None = None,
) -> bool:
    """
    Ask `npm view` for an exact version. Nonzero exit with E404 means "not published".
    """
    spec = f"{name}@{version}"
    try:
        result = subprocess.run(
            ["npm", "view", spec, "--registry", registry_url],
            cwd=str(cwd) if cwd is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            check=False,
        )
    except OSError as e:
        raise RegistryError(f"Could not run npm view {spec}: {e}") from e

    if result.returncode != 0:
        stderr = result.stderr or ""
        if _is_not_found(stderr):
            logger.debug("npm view %s: not found", spec)
            return False
        raise RegistryError(f"Command failed: {stderr.strip() or f'npm view {spec}'}")

    return True


class RegistryClient:
    """Plain HTTP lookups against the registry's package document endpoints."""

    def __init__(self, registry_url: str = "https://registry.npmjs.org", timeout: float = 30) -> None:
        self._registry_url = registry_url.rstrip("/")
        self._timeout = timeout

    def _version_url(self, name: str, version: str) -> str:
        # Scoped names keep the leading "@" but encode the slash.
        return f"{self._registry_url}/{quote(name, safe='@')}/{quote(version, safe='')}"

    @staticmethod
    def _is_not_found(status_code: int) -> bool:
        return status_code == 404

    def version_exists(self, name: str, version: str) -> bool:
        url = self._version_url(name, version)
        try:
            r = requests.get(url, headers={"Accept": "application/json"}, timeout=self._timeout)
        except requests.RequestException as e:
            raise RegistryError(f"Registry request failed: GET {url}: {e}") from e

        if r.status_code == 200:
            return True
        if self._is_not_found(r.status_code):
            logger.debug("GET %s: not found", url)
            return False
        raise RegistryError(f"Registry error {r.status_code} GET {url}: {r.text[:200]}")


def is_published(
    name: str,
    version: str,
    *,
    method: str = "npm",
    registry_url: str = "https://registry.npmjs.org",
    cwd: Path | None = None,
) -> bool:
    if method == "npm":
        return is_published_npm(name, version, registry_url=registry_url, cwd=cwd)
    if method == "http":
        return RegistryClient(registry_url).version_exists(name, version)
    raise RegistryError(f"Unknown registry check method: {method}")
