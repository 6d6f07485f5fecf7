import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("artifacthooks.access")

# client libraries whose per-request INFO lines repeat the delivery log
_CHATTY = ("httpx", "httpcore")


def init_logging(level: str = "INFO"):
    resolved = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        level=resolved,
    )
    logging.getLogger("artifacthooks").setLevel(resolved)
    for name in _CHATTY:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))


class RequestLogMiddleware(BaseHTTPMiddleware):
    """One ``METHOD path status duration`` line per request."""

    async def dispatch(self, request: Request, call_next):
        start = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000
        logger.info(
            "%s %s %s %.2fms",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        return response
