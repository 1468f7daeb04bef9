"""
runner.py

Responsibility: Run external commands (git, npm, tshy, attw) synchronously.

Rules:
- Commands run in an explicit working directory, never the process cwd by accident.
- stdout/stderr are inherited so tool output streams straight to the caller.
- A nonzero exit raises `CommandError`; there are no retries.
- Secrets passed via `redact` never appear in logs or exception messages.

Under GitHub Actions each command is wrapped in a collapsible log group.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

from republisher import RepublishError

logger = logging.getLogger(__name__)

REDACTED = "***"


class CommandError(RepublishError):
    def __init__(self, message: str, *, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


def in_github_actions(environ: dict[str, str] | None = None) -> bool:
    env = os.environ if environ is None else environ
    return env.get("GITHUB_ACTIONS") == "true"


def redact(text: str, secrets: Sequence[str]) -> str:
    for secret in secrets:
        if secret:
            text = text.replace(secret, REDACTED)
    return text


def _workflow_command(line: str) -> None:
    # Workflow commands must reach stdout ahead of any child process output.
    sys.stdout.write(line + "\n")
    sys.stdout.flush()


def add_mask(secret: str) -> None:
    if secret and in_github_actions():
        _workflow_command(f"::add-mask::{secret}")


def escape_workflow_data(message: str) -> str:
    # "%" first, so the escapes below are not double-encoded.
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def annotate_error(message: str) -> None:
    if in_github_actions():
        _workflow_command("::error::" + escape_workflow_data(message))


def report_error(message: str) -> None:
    logger.error(message)
    annotate_error(message)


@contextmanager
def log_group(title: str) -> Iterator[None]:
    if in_github_actions():
        _workflow_command(f"::group::{title}")
    else:
        logger.info(title)
    try:
        yield
    finally:
        if in_github_actions():
            _workflow_command("::endgroup::")


def run_command(
    cmd: Sequence[str],
    *,
    cwd: Path,
    env: dict[str, str] | None = None,
    secrets: Sequence[str] = (),
) -> None:
    """
    Run `cmd` in `cwd`, streaming its output, raising `CommandError` on failure.
    """
    shown = redact(" ".join(cmd), secrets)
    with log_group(f"Running command: {shown}"):
        try:
            result = subprocess.run(list(cmd), cwd=str(cwd), env=env, check=False)
        except OSError as e:
            report_error(f"Command failed: {shown}")
            raise CommandError(f"Command failed: {shown} ({e.strerror or e})") from e
        if result.returncode != 0:
            report_error(f"Command failed: {shown}")
            raise CommandError(
                f"Command failed: {shown} (exit status {result.returncode})",
                returncode=result.returncode,
            )
