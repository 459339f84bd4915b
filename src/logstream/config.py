from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .paths import find_config
from .scanner import MAX_LINE_BYTES, READ_SIZE

OUTPUT_FORMATS = ("text", "json", "raw")

ENV_MAX_LINE_BYTES = "LOGSTREAM_MAX_LINE_BYTES"
ENV_READ_SIZE = "LOGSTREAM_READ_SIZE"


@dataclass
class StreamConfig:
    # Longest line the scanner accepts before failing with "token too long".
    max_line_bytes: int = MAX_LINE_BYTES

    # Bytes requested from the source per read call.
    read_size: int = READ_SIZE

    # CLI output: text|json|raw.
    output_format: str = "text"

    def stream_kwargs(self) -> dict[str, int]:
        return {"max_line_bytes": self.max_line_bytes, "read_size": self.read_size}


def _as_str(v: Any) -> str | None:
    return v if isinstance(v, str) and v else None


def _as_int(v: Any) -> int | None:
    if isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v if v > 0 else None
    if isinstance(v, str):
        try:
            n = int(v.strip())
        except ValueError:
            return None
        return n if n > 0 else None
    return None


def load_stream_config(
    path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
) -> StreamConfig:
    """Load stream settings from YAML, then apply environment overrides.

    Without an explicit `path` the nearest logstream.yaml is used, if any.
    Missing or invalid values fall back to the defaults.
    """

    yaml_path = path if path is not None else find_config()

    data: dict[str, Any] = {}
    if yaml_path is not None and yaml_path.exists():
        loaded = yaml.safe_load(yaml_path.read_text(encoding="utf-8"))
        if isinstance(loaded, dict):
            data = loaded

    cfg = StreamConfig()

    cfg.max_line_bytes = _as_int(data.get("max_line_bytes")) or cfg.max_line_bytes
    cfg.read_size = _as_int(data.get("read_size")) or cfg.read_size

    fmt = _as_str(data.get("output_format"))
    if fmt in OUTPUT_FORMATS:
        cfg.output_format = fmt

    # Process env wins over the file.
    env = os.environ if env is None else env
    cfg.max_line_bytes = _as_int(env.get(ENV_MAX_LINE_BYTES)) or cfg.max_line_bytes
    cfg.read_size = _as_int(env.get(ENV_READ_SIZE)) or cfg.read_size

    return cfg
