"""JSON responses and response middleware."""

from __future__ import annotations

import dataclasses
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

from werkzeug.wrappers import Response

logger = logging.getLogger(__name__)


def _encode(obj: Any) -> Any:
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)}
    if isinstance(obj, datetime):
        if obj.tzinfo is None:
            obj = obj.replace(tzinfo=timezone.utc)
        text = obj.isoformat()
        return text[:-6] + "Z" if text.endswith("+00:00") else text
    if isinstance(obj, uuid.UUID):
        return str(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def json_response(code: int, payload: Any) -> Response:
    """Serialise ``payload`` as JSON; a payload that cannot be encoded gives a 500."""
    try:
        body = json.dumps(payload, default=_encode)
    except (TypeError, ValueError) as exc:
        logger.error("Error marshalling JSON: %s", exc)
        return Response(status=500, content_type="application/json")
    return Response(body, status=code, content_type="application/json")


def error_response(code: int, msg: str, err: Optional[BaseException] = None) -> Response:
    """Return ``{"error": msg}``, logging the cause and any server error."""
    if err is not None:
        logger.error("%s", err)
    if code > 499:
        logger.error("Responding with 5XX error: %s", msg)
    return json_response(code, {"error": msg})


def no_cache(app: Callable) -> Callable:
    """Wrap a WSGI app so its responses carry ``Cache-Control: no-store``."""

    def wrapped(environ: dict, start_response: Callable) -> Iterable[bytes]:
        def _start(status, headers, exc_info=None):
            if not any(name.lower() == "cache-control" for name, _ in headers):
                headers = list(headers) + [("Cache-Control", "no-store")]
            return start_response(status, headers, exc_info)

        return app(environ, _start)

    return wrapped