"""Utility functions for the gateway backend.

Contains timestamp helpers, stage diagnostics and JSON error bodies.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse

logger = logging.getLogger("gateway.diagnostics")


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def log_stage(stage: str, info: Any, level: int = logging.INFO) -> None:
    """Emit a diagnostic record for a named stage.

    The record carries ``stage`` and ``diagnostic`` attributes so handlers and
    tests can inspect the metadata without parsing the message.
    """
    logger.log(level, "[%s]: %s", stage, info, extra={"stage": stage, "diagnostic": info})


def error_response(
    status_code: int,
    error: Any,
    details: Optional[str] = None,
    with_timestamp: bool = True,
) -> JSONResponse:
    """Build a JSON error body: ``{error, details?, timestamp?}``."""
    content: Dict[str, Any] = {"error": error}
    if details is not None:
        content["details"] = details
    if with_timestamp:
        content["timestamp"] = now_iso()
    return JSONResponse(status_code=status_code, content=content)
