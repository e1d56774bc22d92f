from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from crowdfund.runtime.errors import LedgerError


# LedgerError.code -> HTTP status
_LEDGER_STATUS: Dict[str, int] = {
    "invalid_payload": 400,
    "token_error": 402,
    "forbidden": 403,
    "not_found": 404,
    "conflict": 409,
}


@dataclass(eq=False)
class ApiError(Exception):
    status_code: int
    code: str
    message: str
    details: Dict[str, Any]

    @staticmethod
    def bad_request(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(400, code, message, details or {})

    @staticmethod
    def forbidden(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(403, code, message, details or {})

    @staticmethod
    def not_found(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(404, code, message, details or {})

    @staticmethod
    def internal(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(500, code, message, details or {})

    @staticmethod
    def from_ledger_error(err: LedgerError) -> "ApiError":
        details = err.details if isinstance(err.details, dict) else {}
        return ApiError(
            _LEDGER_STATUS.get(err.code, 400),
            err.reason,
            type(err).__name__,
            dict(details),
        )

    def to_response(self) -> JSONResponse:
        return JSONResponse(
            status_code=self.status_code,
            content={
                "ok": False,
                "error": {"code": self.code, "message": self.message, "details": self.details},
            },
        )


async def api_error_handler(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, ApiError):
        return exc.to_response()
    if isinstance(exc, LedgerError):
        return ApiError.from_ledger_error(exc).to_response()
    return ApiError.internal("internal_error", type(exc).__name__, {}).to_response()
