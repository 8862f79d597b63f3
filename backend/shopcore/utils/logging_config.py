import logging
import sys
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO") -> logging.Logger:
    logger = logging.getLogger("shopcore")
    logger.setLevel(level.upper())
    if not logger.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(h)
    return logger


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.logger = logging.getLogger("shopcore.http")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            self._log(request, 500, start, request_id, exc_info=True)
            raise
        self._log(request, response.status_code, start, request_id)
        response.headers["X-Request-ID"] = request_id
        return response

    def _log(self, request: Request, status_code: int, start: float, request_id: str, exc_info=False):
        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        msg = "%s %s -> %s in %sms user=%s request_id=%s"
        args = (
            request.method,
            request.url.path,
            status_code,
            duration_ms,
            request.headers.get("x-user-id"),
            request_id,
        )
        if status_code >= 500:
            self.logger.error(msg, *args, exc_info=exc_info)
        elif status_code >= 400:
            self.logger.warning(msg, *args)
        else:
            self.logger.info(msg, *args)
