# src/crowdfund/api/routes_public.py
from __future__ import annotations

from fastapi import APIRouter

from crowdfund.api.routes_public_parts.campaigns import router as campaigns_router
from crowdfund.api.routes_public_parts.contributions import router as contributions_router
from crowdfund.api.routes_public_parts.health import router as health_router
from crowdfund.api.routes_public_parts.metrics import router as metrics_router
from crowdfund.api.routes_public_parts.settlement import router as settlement_router
from crowdfund.api.routes_public_parts.tokens import router as tokens_router

public_router = APIRouter()

# Versioned API surface
public_router.include_router(health_router, prefix="", tags=["health"])
public_router.include_router(campaigns_router, prefix="/v1", tags=["campaigns"])
public_router.include_router(contributions_router, prefix="/v1", tags=["contributions"])
public_router.include_router(settlement_router, prefix="/v1", tags=["settlement"])
public_router.include_router(tokens_router, prefix="/v1", tags=["tokens"])

# Ops
public_router.include_router(metrics_router, prefix="/v1", tags=["metrics"])
