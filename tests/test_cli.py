from __future__ import annotations

import json
import logging

from typer.testing import CliRunner

from logstream.cli import app
from logstream.logging_setup import configure_logging

runner = CliRunner()


def test_errors_command_prints_messages(tmp_path) -> None:
    log = tmp_path / "error.log"
    log.write_bytes(b'{"message":"disk full"}\n\n{"message":"timeout"}\n')

    res = runner.invoke(app, ["errors", str(log)])

    assert res.exit_code == 0
    assert res.stdout.splitlines() == ["disk full", "timeout"]


def test_errors_command_reads_stdin() -> None:
    res = runner.invoke(app, ["errors", "--format", "raw"], input=b'{"message":"x"}\n')

    assert res.exit_code == 0
    assert res.stdout.splitlines() == ['{"message":"x"}']


def test_audit_command_json_output(tmp_path, audit_line) -> None:
    log = tmp_path / "audit.log"
    log.write_bytes(audit_line + b"\n")

    res = runner.invoke(app, ["audit", str(log), "--format", "json"])

    assert res.exit_code == 0
    out = json.loads(res.stdout)
    assert out["request"]["path"] == "/v1/key/create/my-key"
    assert out["response"] == {"code": 200, "time": 1500000}
    assert out["time"] == "2024-03-05T10:11:12.123456Z"


def test_audit_command_text_output(tmp_path, audit_line) -> None:
    log = tmp_path / "audit.log"
    log.write_bytes(audit_line + b"\n")

    res = runner.invoke(app, ["audit", str(log)])

    assert res.exit_code == 0
    assert res.stdout.strip() == (
        "2024-03-05T10:11:12.123456Z 200 3ecfcdf38fcbe141ae26a1030f81e96b /v1/key/create/my-key 1.500ms"
    )


def test_decode_error_exits_with_one(tmp_path) -> None:
    log = tmp_path / "error.log"
    log.write_bytes(b'{"message":"ok"}\nnot json\n')

    res = runner.invoke(app, ["errors", str(log)])

    assert res.exit_code == 1
    assert "ok" in res.stdout
    assert "Stream stopped" in res.output


def test_line_limit_option(tmp_path) -> None:
    log = tmp_path / "error.log"
    log.write_bytes(b'{"message":"' + b"x" * 100 + b'"}\n')

    res = runner.invoke(app, ["errors", str(log), "--max-line-bytes", "32"])

    assert res.exit_code == 1
    assert "token too long" in res.output


def test_unknown_format_is_usage_error(tmp_path) -> None:
    log = tmp_path / "error.log"
    log.write_bytes(b"")

    res = runner.invoke(app, ["errors", str(log), "--format", "xml"])

    assert res.exit_code == 2


def test_configure_logging_does_not_duplicate_handlers() -> None:
    first = configure_logging("DEBUG")
    second = configure_logging("INFO")

    assert first is second
    assert len(second.handlers) == 1
    assert second.level == logging.INFO
    assert second.propagate is False
