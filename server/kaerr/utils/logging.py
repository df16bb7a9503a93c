import json
import logging
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import HTTPException
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware


REQUEST_ID_CTX: ContextVar[str | None] = ContextVar("request_id", default=None)

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "request_id", "taskName"}


class RequestIdFilter(logging.Filter):
    """Attach the current request ID to every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = REQUEST_ID_CTX.get()
        return True


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None)
        if request_id:
            payload["request_id"] = request_id

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS and key not in payload:
                payload[key] = value

        return json.dumps(payload, default=str)


def configure_logging(level: int | str = logging.INFO) -> None:
    """Send structured JSON logs to stderr through the root logger."""

    if isinstance(level, str):
        level = level.upper()

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RequestIdFilter())

    logging.basicConfig(level=level, handlers=[handler], force=True)


def _elapsed_ms(start: float) -> int:
    return int((time.time() - start) * 1000)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Assign a request ID, log the request outcome, and echo the ID header."""

    def __init__(self, app, header_name: str = "X-Request-ID") -> None:
        super().__init__(app)
        self.header_name = header_name
        self._logger = logging.getLogger("kaerr.request")

    async def dispatch(self, request, call_next):
        request_id = request.headers.get(self.header_name) or uuid.uuid4().hex
        token = REQUEST_ID_CTX.set(request_id)
        fields = {"method": request.method, "path": request.url.path}
        start = time.time()
        self._logger.info("request_started", extra=fields)

        try:
            response = await call_next(request)
        except HTTPException as exc:
            self._logger.warning(
                "request_failed",
                extra={**fields, "status_code": exc.status_code, "duration_ms": _elapsed_ms(start)},
            )
            response = JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
            for name, value in (exc.headers or {}).items():
                response.headers[name] = value
        except Exception:
            self._logger.exception(
                "request_failed",
                extra={**fields, "status_code": 500, "duration_ms": _elapsed_ms(start)},
            )
            response = JSONResponse(status_code=500, content={"detail": "Internal Server Error"})
        else:
            self._logger.info(
                "request_completed",
                extra={**fields, "status_code": response.status_code, "duration_ms": _elapsed_ms(start)},
            )
        finally:
            REQUEST_ID_CTX.reset(token)

        response.headers[self.header_name] = request_id
        return response
