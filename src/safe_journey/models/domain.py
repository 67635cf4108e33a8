"""Domain models for route candidates and their safety scores."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ScoreSource(str, Enum):
    HEURISTIC = "heuristic"
    AI = "ai"


@dataclass(frozen=True, slots=True)
class RouteCandidate:
    """One proposed path between two points with its decoded risk features."""

    distance_km: float
    duration_min: float
    geometry: Any = None
    crime_count: int = 0
    dark_area_count: int = 0
    traffic_level: int = 0
    incidents: tuple[Any, ...] = ()
    pois: tuple[Any, ...] = ()
    route_id: Optional[str] = None

    def __post_init__(self) -> None:
        for name in ("distance_km", "duration_min", "crime_count", "dark_area_count", "traffic_level"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        # Accept lists from callers but keep the candidate immutable.
        object.__setattr__(self, "incidents", tuple(self.incidents))
        object.__setattr__(self, "pois", tuple(self.pois))


@dataclass(frozen=True, slots=True)
class ScoringContext:
    time_of_day: Optional[int] = None
    location: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ScoreResult:
    """Safety score for a single route.

    ``score`` is always on the canonical [0, 1] scale (1 = safest) and equals
    ``raw_score / scale``. ``raw_score`` keeps the provider-native value:
    0-10 for model output, 0-5 for the heuristic.
    """

    score: float
    raw_score: float
    scale: float
    reason: str
    confidence: float
    source: ScoreSource
    risks: tuple[str, ...] = field(default_factory=tuple)
    recommendations: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class RankedRoute:
    route: RouteCandidate
    result: ScoreResult
    rank: int
    index: int
