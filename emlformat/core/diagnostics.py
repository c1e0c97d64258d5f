from __future__ import annotations

import json
import logging

from emlformat.core.config import Settings

logger = logging.getLogger("emlformat")


def log_diagnostic(
    *,
    settings: Settings,
    event: str,
    level: int = logging.WARNING,
    **fields: object,
) -> None:
    if not settings.VERBOSE_DIAGNOSTICS:
        return
    logger.log(
        level,
        json.dumps(
            {"event": event, **fields},
            separators=(",", ":"),
            sort_keys=True,
            default=str,
        ),
    )
