from __future__ import annotations

import logging
import os
import sys


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LEVEL_ENV_VARS = ("FLOWREPLAY_LOG_LEVEL", "LOG_LEVEL")



def configure_logging(level_name: str | None = None) -> None:
    if level_name is None:
        level_name = next((os.environ[name] for name in LEVEL_ENV_VARS if os.environ.get(name)), "WARNING")
    level = getattr(logging, level_name.strip().upper(), logging.WARNING)
    # stdout carries traces and JSON output.
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)
