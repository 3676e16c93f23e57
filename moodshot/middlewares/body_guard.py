from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from moodshot.config import get_settings

logger = logging.getLogger("moodshot.body-guard")


class BodyGuardMiddleware(BaseHTTPMiddleware):
    """Reject API requests whose body exceeds the configured size."""

    WATCH_PATH_PREFIXES = ("/api/",)

    def __init__(self, app, *, max_bytes: int | None = None, **_: Any) -> None:  # type: ignore[override]
        self.max_bytes = self._normalise_limit(max_bytes)
        super().__init__(app)

    @staticmethod
    def _normalise_limit(candidate: int | None) -> int | None:
        if candidate is None:
            candidate = get_settings().max_body_bytes
        if candidate <= 0:
            return None
        return candidate

    def _reject(self, rid: str, size: int) -> JSONResponse:
        logger.warning("[guard] rid=%s rejected size=%s limit=%s", rid, size, self.max_bytes)
        return JSONResponse(
            status_code=413,
            content={
                "success": False,
                "error": "payload_too_large",
                "message": f"Request body exceeds {self.max_bytes} bytes",
            },
        )

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        if self.max_bytes is None or request.method not in {"POST", "PUT", "PATCH"}:
            return await call_next(request)

        path = request.url.path
        if not any(path.startswith(prefix) for prefix in self.WATCH_PATH_PREFIXES):
            return await call_next(request)

        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        start = time.time()

        content_length_header = request.headers.get("content-length")
        try:
            content_length = int(content_length_header) if content_length_header else None
        except (TypeError, ValueError):
            content_length = None

        if content_length and content_length > self.max_bytes:
            return self._reject(rid, content_length)

        body = await request.body()
        if len(body) > self.max_bytes:
            return self._reject(rid, len(body))

        response = await call_next(request)
        logger.debug(
            "[guard] rid=%s path=%s size=%s status=%s dur_ms=%s",
            rid,
            path,
            len(body),
            response.status_code,
            int((time.time() - start) * 1000),
        )
        return response


__all__ = ["BodyGuardMiddleware"]
