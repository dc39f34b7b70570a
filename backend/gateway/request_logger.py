"""HTTP request logging for debugging."""

import logging
from typing import Optional

from fastapi import Request, Response

logger = logging.getLogger(__name__)


def tag_for_path(path: str) -> str:
    """Classify a request path for log filtering."""
    if path.startswith("/health"):
        return "HEALTH_CHECK"
    if "/chatbot" in path:
        return "CHATBOT_REQUEST"
    if "/payment" in path:
        return "PAYMENT_REQUEST"
    return "OTHER_REQUEST"


def _client_ip(request: Request) -> str:
    h = request.headers
    return (
        h.get("x-forwarded-for", "").split(",")[0].strip() or
        h.get("x-real-ip") or
        (request.client.host if request.client else "unknown")
    )


async def log_request(
    request: Request,
    response: Optional[Response] = None,
    tag: str = "HTTP_REQUEST",
    duration_ms: Optional[float] = None,
) -> None:
    """Log one HTTP request. Bodies are never logged."""
    record = {
        "tag": tag,
        "method": request.method,
        "path": str(request.url.path),
        "status_code": response.status_code if response is not None else 0,
        "client_ip": _client_ip(request),
        "user_agent": request.headers.get("user-agent", ""),
    }
    if duration_ms is not None:
        record["duration_ms"] = round(duration_ms, 1)
    logger.info(f"[{tag}] {record['method']} {record['path']} -> {record['status_code']}", extra={"request": record})
