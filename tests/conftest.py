from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    # Ensure `import logstream` works when running tests without installing the package.
    repo_root = Path(__file__).resolve().parents[1]
    src_dir = repo_root / "src"
    if src_dir.exists() and str(src_dir) not in sys.path:
        sys.path.insert(0, str(src_dir))


@pytest.fixture(autouse=True)
def _no_ambient_config(monkeypatch, tmp_path) -> None:
    # Keep a developer's logstream.yaml or env overrides out of the tests.
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("LOGSTREAM_MAX_LINE_BYTES", raising=False)
    monkeypatch.delenv("LOGSTREAM_READ_SIZE", raising=False)


@pytest.fixture
def audit_line() -> bytes:
    return (
        b'{"time":"2024-03-05T10:11:12.123456789Z",'
        b'"request":{"path":"/v1/key/create/my-key","identity":"3ecfcdf38fcbe141ae26a1030f81e96b"},'
        b'"response":{"code":200,"time":1500000}}'
    )
