"""Safety scoring request/response schemas."""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class RouteCandidateModel(BaseModel):
    route_id: Optional[str] = Field(default=None, description="Identifier assigned by the routing provider.")
    distance_km: float = Field(..., ge=0)
    duration_min: float = Field(..., ge=0)
    geometry: Any = Field(default=None, description="Opaque route geometry, returned unchanged.")
    crime_count: int = Field(default=0, ge=0)
    dark_area_count: int = Field(default=0, ge=0)
    traffic_level: int = Field(default=0, ge=0)
    incidents: List[Any] = Field(default_factory=list)
    pois: List[Any] = Field(default_factory=list, description="Safety points of interest, e.g. police or hospitals.")


class ScoringContextModel(BaseModel):
    time_of_day: Optional[int] = Field(default=None, ge=0, le=23, description="Hour of travel; defaults to now.")
    location: Optional[str] = None


class SafetyRankRequest(BaseModel):
    routes: List[RouteCandidateModel] = Field(..., min_length=1)
    context: Optional[ScoringContextModel] = None
    prefer_ai: Optional[bool] = Field(
        default=None,
        description="Override the configured AI preference for this request.",
    )
    dedupe: bool = Field(
        default=False,
        description="Drop routes with the same distance, duration and score as a safer-ranked one.",
    )


class ScoredRouteModel(RouteCandidateModel):
    index: int
    rank: int
    score: float = Field(..., ge=0, le=1)
    raw_score: float
    scale: float
    reason: str
    confidence: float
    risks: List[str]
    recommendations: List[str]
    source: str


class SafetyRankResponse(BaseModel):
    safest_route: Optional[ScoredRouteModel]
    routes: List[ScoredRouteModel]
    source: str


class ExplainRequest(BaseModel):
    route: RouteCandidateModel
    context: Optional[ScoringContextModel] = None


class ExplainResponse(BaseModel):
    explanation: str
