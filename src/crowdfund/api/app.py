from __future__ import annotations

import os
from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from crowdfund.api.errors import ApiError, api_error_handler
from crowdfund.api.routes_public import public_router
from crowdfund.api.structured_logging import RequestLogMiddleware, configure_structured_logging
from crowdfund.runtime.boot import LedgerRuntime
from crowdfund.runtime.boot import build_runtime as _build_runtime
from crowdfund.runtime.errors import LedgerError


def build_runtime() -> LedgerRuntime:
    """Build the ledger runtime for the API.

    This wrapper exists so tests can monkeypatch `crowdfund.api.app.build_runtime`
    without reaching into runtime modules.
    """
    return _build_runtime()


def _parse_cors_origins(mode: str) -> List[str]:
    """Parse CORS origins with production-safe defaults.

    Policy:
      - If CROWDFUND_CORS_ORIGINS is unset/empty -> CORS disabled (fail-closed)
      - Wildcard "*" is rejected in prod mode
    """
    raw = os.environ.get("CROWDFUND_CORS_ORIGINS", "").strip()
    if not raw:
        return []

    origins = [o.strip() for o in raw.split(",") if o.strip()]

    if "*" in origins:
        if mode == "prod":
            raise RuntimeError(
                "Unsafe CORS configuration: wildcard '*' not allowed in production. "
                "Set explicit origins in CROWDFUND_CORS_ORIGINS."
            )
        return ["*"]

    return origins


def create_app(*, boot_runtime: bool = True) -> FastAPI:
    """Create the FastAPI application.

    boot_runtime:
      - True (default): load ledger config + attach app.state.runtime
      - False: keep lightweight for unit tests / import-time validation
    """
    if boot_runtime:
        runtime = build_runtime()
        mode = str(runtime.cfg.mode or "prod").strip().lower()
        configure_structured_logging(runtime.cfg.log_level)
    else:
        runtime = None
        mode = (os.environ.get("CROWDFUND_MODE") or "prod").strip().lower()

    # Disable docs in production.
    if mode == "prod":
        app = FastAPI(title="Crowdfund Ledger API", docs_url=None, redoc_url=None, openapi_url=None)
    else:
        app = FastAPI(title="Crowdfund Ledger API")

    app.state.runtime = runtime

    # --- Errors ---
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(LedgerError, api_error_handler)

    # --- Middleware ---
    app.add_middleware(RequestLogMiddleware)

    cors_origins = _parse_cors_origins(mode)
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "X-Crowdfund-Caller"],
        )

    # --- Routers ---
    app.include_router(public_router)

    return app
