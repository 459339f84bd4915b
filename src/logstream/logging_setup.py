from __future__ import annotations

import logging

FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "WARNING") -> logging.Logger:
    """Attach a stderr handler to the `logstream` logger.

    Calling this more than once only updates the level.
    """

    lvl = getattr(logging, level.upper(), logging.WARNING)
    root = logging.getLogger("logstream")
    root.setLevel(lvl)

    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(FORMAT))
        root.addHandler(handler)
    for handler in root.handlers:
        handler.setLevel(lvl)

    # Avoid duplicate output through the root logger.
    root.propagate = False
    return root
