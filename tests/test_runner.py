from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Any

import pytest

from republisher.runner import CommandError, annotate_error, escape_workflow_data, log_group, redact, run_command


def test_run_command_uses_cwd_and_streams(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    seen: dict[str, Any] = {}

    def run(args: list[str], **kwargs: Any) -> subprocess.CompletedProcess:
        seen["args"] = args
        seen.update(kwargs)
        return subprocess.CompletedProcess(args, 0)

    monkeypatch.setattr(subprocess, "run", run)
    run_command(["npm", "install"], cwd=tmp_path)

    assert seen["args"] == ["npm", "install"]
    assert seen["cwd"] == str(tmp_path)
    assert "stdout" not in seen
    assert "stderr" not in seen


def test_run_command_nonzero_raises(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(subprocess, "run", lambda args, **kw: subprocess.CompletedProcess(args, 3))
    with pytest.raises(CommandError, match="Command failed: npm publish") as excinfo:
        run_command(["npm", "publish"], cwd=tmp_path)
    assert excinfo.value.returncode == 3


def test_run_command_missing_executable_raises(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def run(args: list[str], **kwargs: Any) -> subprocess.CompletedProcess:
        raise FileNotFoundError(2, "No such file or directory", args[0])

    monkeypatch.setattr(subprocess, "run", run)
    with pytest.raises(CommandError, match="No such file or directory"):
        run_command(["../node_modules/.bin/tshy"], cwd=tmp_path)


def test_run_command_redacts_secrets(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.delenv("GITHUB_ACTIONS", raising=False)
    monkeypatch.setattr(subprocess, "run", lambda args, **kw: subprocess.CompletedProcess(args, 1))
    caplog.set_level("INFO")

    with pytest.raises(CommandError) as excinfo:
        run_command(["npm", "config", "set", "key=s3cret"], cwd=tmp_path, secrets=["s3cret"])

    assert "s3cret" not in str(excinfo.value)
    assert "s3cret" not in caplog.text
    assert "key=***" in caplog.text


def test_redact_ignores_empty_secrets() -> None:
    assert redact("abc", ["", "b"]) == "a***c"


def test_log_group_emits_workflow_commands(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setenv("GITHUB_ACTIONS", "true")
    with log_group("Running command: git clone"):
        print("inside")

    out = capsys.readouterr().out
    assert out == "::group::Running command: git clone\ninside\n::endgroup::\n"


def test_escape_workflow_data_escapes_percent_first() -> None:
    assert escape_workflow_data("100%\r\ndone") == "100%25%0D%0Adone"


def test_annotate_error_under_actions(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setenv("GITHUB_ACTIONS", "true")
    annotate_error("npm ERR! 50% done\nfailed")
    assert capsys.readouterr().out == "::error::npm ERR! 50%25 done%0Afailed\n"

    monkeypatch.delenv("GITHUB_ACTIONS")
    annotate_error("quiet")
    assert capsys.readouterr().out == ""
