"""Safety scoring endpoints."""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, status

from ...schemas.safety import ExplainRequest, ExplainResponse, SafetyRankRequest, SafetyRankResponse
from ...services.safety.service import explain_route, rank_routes
from ...services.scoring.coordinator import ScoringCoordinator, build_coordinator

router = APIRouter(prefix="/safety", tags=["safety"])
logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_coordinator() -> ScoringCoordinator:
    """Build the process-wide coordinator on first use."""
    return build_coordinator()


@router.post("/rank", response_model=SafetyRankResponse, status_code=status.HTTP_200_OK)
async def rank(
    payload: SafetyRankRequest,
    coordinator: ScoringCoordinator = Depends(get_coordinator),
) -> SafetyRankResponse:
    try:
        return await rank_routes(payload, coordinator)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error ranking routes: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to rank routes: {str(exc)}",
        ) from exc


@router.post("/explain", response_model=ExplainResponse, status_code=status.HTTP_200_OK)
async def explain(
    payload: ExplainRequest,
    coordinator: ScoringCoordinator = Depends(get_coordinator),
) -> ExplainResponse:
    """Free-text safety explanation for a single route."""
    try:
        return await explain_route(payload, coordinator)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error explaining route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to explain route: {str(exc)}",
        ) from exc
