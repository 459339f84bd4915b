from __future__ import annotations

from pathlib import Path

CONFIG_FILENAME = "logstream.yaml"


def find_config(start: Path | None = None) -> Path | None:
    """Find the nearest logstream.yaml by walking up from `start` (default: cwd).

    This keeps behavior predictable when invoking `logstream` from subdirectories.
    """

    cur = (start or Path.cwd()).resolve()
    for p in [cur, *cur.parents]:
        candidate = p / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None
