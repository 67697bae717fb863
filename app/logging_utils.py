"""
app/logging_utils.py

JSON event lines for pipeline milestones (import finished, KPIs computed).
"""

from __future__ import annotations

import json
import logging
from typing import Any


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Log ``{"event": event, **fields}`` as one sorted-key JSON line.

    Serialization is skipped when *level* is disabled for *logger*; values
    JSON cannot encode are written with ``str``.
    """

    if logger.isEnabledFor(level):
        line = json.dumps({"event": event, **fields}, default=str, ensure_ascii=False, sort_keys=True)
        logger.log(level, line)
