# src/crowdfund/api/structured_logging.py
from __future__ import annotations

import logging
import os
import re
import time
import uuid
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from crowdfund.api.security import CALLER_HEADER
from crowdfund.runtime.ledger_logging import log_event

_DISABLED_VALUES = {"0", "false", "no", "n", "off"}
_CAMPAIGN_PATH = re.compile(r"^/v1/campaigns/(\d+)(?:/|$)")


def _resolve_level(level_name: Optional[str]) -> int:
    name = (level_name or os.environ.get("CROWDFUND_LOG_LEVEL") or "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def configure_structured_logging(level_name: Optional[str] = None) -> None:
    """Send every record to stdout as a bare message line.

    Ledger and HTTP events are already JSON strings (see `log_event`), so the
    formatter adds nothing. Level comes from the argument, then
    CROWDFUND_LOG_LEVEL, then INFO. Handlers installed by the host (uvicorn,
    pytest) are left alone; calling again only adjusts the level.
    """
    level = _resolve_level(level_name)
    root = logging.getLogger()
    root.setLevel(level)

    for h in root.handlers:
        if getattr(h, "_crowdfund_jsonl", False):
            h.setLevel(level)
            return

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    setattr(handler, "_crowdfund_jsonl", True)
    root.addHandler(handler)


def _campaign_id(path: str) -> Optional[int]:
    m = _CAMPAIGN_PATH.match(path or "")
    return int(m.group(1)) if m else None


class RequestLogMiddleware(BaseHTTPMiddleware):
    """One `http_request` event per request on logger `crowdfund.http`.

    The caller header and the campaign id in the path are included so HTTP
    lines can be joined with `crowdfund.ledger` events. CROWDFUND_LOG_REQUESTS=0
    turns it off.
    """

    def __init__(self, app) -> None:
        super().__init__(app)
        flag = (os.environ.get("CROWDFUND_LOG_REQUESTS") or "1").strip().lower()
        self._enabled = flag not in _DISABLED_VALUES
        self._logger = logging.getLogger("crowdfund.http")

    async def dispatch(self, request: Request, call_next):
        if not self._enabled:
            return await call_next(request)

        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.monotonic()
        response: Optional[Response] = None
        failure: Optional[str] = None

        try:
            response = await call_next(request)
        except Exception as e:
            failure = type(e).__name__
            raise
        finally:
            path = str(request.url.path or "")
            log_event(
                self._logger,
                "http_request",
                request_id=request_id,
                method=request.method,
                path=path,
                campaign_id=_campaign_id(path),
                caller=request.headers.get(CALLER_HEADER) or "",
                status=int(response.status_code) if response is not None else 500,
                duration_ms=int((time.monotonic() - started) * 1000),
                error=failure,
            )

        response.headers.setdefault("x-request-id", request_id)
        return response
