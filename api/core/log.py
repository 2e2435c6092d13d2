"""
Process-wide logging setup.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # basicConfig is a no-op once handlers exist (e.g. under uvicorn); still honor the level.
    logging.getLogger().setLevel(level.upper())
