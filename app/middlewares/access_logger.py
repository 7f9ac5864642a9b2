from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
import logging
import time

logger = logging.getLogger("access")

_SILENT_PATHS = {"/", "/health", "/liveness", "/readiness"}


class AccessLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        # probes would drown everything else
        if path in _SILENT_PATHS:
            return await call_next(request)

        x_forwarded_for = request.headers.get("x-forwarded-for")
        ip = (
            x_forwarded_for.split(",")[0].strip()
            if x_forwarded_for
            else (request.client.host if request.client else "-")
        )

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        logger.info(
            f"🛰️ {request.method} {path} -> {response.status_code} ({elapsed_ms:.1f} ms)",
            extra={
                "ip": ip,
                "path": path,
                "method": request.method,
                "status_code": response.status_code,
                "user_agent": request.headers.get("user-agent", ""),
            },
        )
        return response
