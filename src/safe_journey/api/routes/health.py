"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...services.scoring.coordinator import ScoringCoordinator
from .safety import get_coordinator

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/ai", status_code=status.HTTP_200_OK)
def health_ai(coordinator: ScoringCoordinator = Depends(get_coordinator)) -> dict:
    """Report whether AI scoring is available or requests fall back to the heuristic."""
    return {
        "service": "ai-scoring",
        "configured": coordinator.ai_enabled,
        "model": coordinator.model_name,
        "prefer_ai": coordinator.prefer_ai,
    }
