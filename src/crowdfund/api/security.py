from __future__ import annotations

from fastapi import Request

from crowdfund.api.errors import ApiError
from crowdfund.ledger.constants import is_null_identity

CALLER_HEADER = "x-crowdfund-caller"


def require_caller(request: Request, *, header: str = CALLER_HEADER) -> str:
    """Return the invoking identity for a request.

    Authentication happens upstream: the fronting proxy verifies the client
    and sets X-Crowdfund-Caller. This service only refuses requests where the
    header is missing or carries the null identity.
    """
    caller = (request.headers.get(header) or "").strip()
    if not caller:
        raise ApiError.forbidden("caller_missing", f"{header} header is required", {})
    if is_null_identity(caller):
        raise ApiError.forbidden("caller_invalid", "caller must not be the null identity", {"caller": caller})
    return caller
