import time
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("access")

class LoggingMiddleware(BaseHTTPMiddleware):
    """One access-log line per request, with the acting user and timing"""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "%s %s %s user=%s client=%s %.4fs",
            request.method,
            request.url.path,
            response.status_code,
            request.headers.get("x-user-id", "-"),
            request.client.host if request.client else "-",
            elapsed,
        )

        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        return response
