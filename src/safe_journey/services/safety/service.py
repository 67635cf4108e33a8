"""Request orchestration between the HTTP schemas and the scoring engine."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Sequence

from ...models.domain import RankedRoute, RouteCandidate, ScoringContext
from ...schemas.safety import (
    ExplainRequest,
    ExplainResponse,
    RouteCandidateModel,
    SafetyRankRequest,
    SafetyRankResponse,
    ScoredRouteModel,
    ScoringContextModel,
)
from ..scoring.coordinator import ScoringCoordinator

logger = logging.getLogger(__name__)


def _to_candidate(model: RouteCandidateModel) -> RouteCandidate:
    return RouteCandidate(
        distance_km=model.distance_km,
        duration_min=model.duration_min,
        geometry=model.geometry,
        crime_count=model.crime_count,
        dark_area_count=model.dark_area_count,
        traffic_level=model.traffic_level,
        incidents=tuple(model.incidents),
        pois=tuple(model.pois),
        route_id=model.route_id,
    )


def _to_context(model: ScoringContextModel | None) -> ScoringContext:
    if model is None:
        return ScoringContext()
    return ScoringContext(time_of_day=model.time_of_day, location=model.location)


def _to_scored_model(item: RankedRoute) -> ScoredRouteModel:
    route, result = item.route, item.result
    return ScoredRouteModel(
        route_id=route.route_id,
        distance_km=route.distance_km,
        duration_min=route.duration_min,
        geometry=route.geometry,
        crime_count=route.crime_count,
        dark_area_count=route.dark_area_count,
        traffic_level=route.traffic_level,
        incidents=list(route.incidents),
        pois=list(route.pois),
        index=item.index,
        rank=item.rank,
        score=result.score,
        raw_score=result.raw_score,
        scale=result.scale,
        reason=result.reason,
        confidence=result.confidence,
        risks=list(result.risks),
        recommendations=list(result.recommendations),
        source=result.source.value,
    )


def dedupe_ranked(ranked: Sequence[RankedRoute]) -> list[RankedRoute]:
    """Drop routes that repeat an earlier route's distance, duration and score.

    Routing providers sometimes return the same alternative twice. The first
    occurrence in rank order is kept and ranks are renumbered.
    """
    seen: set[tuple[float, float, float]] = set()
    unique: list[RankedRoute] = []
    for item in sorted(ranked, key=lambda entry: entry.rank):
        key = (item.route.distance_km, item.route.duration_min, item.result.score)
        if key in seen:
            continue
        seen.add(key)
        unique.append(replace(item, rank=len(unique)))
    return unique


async def rank_routes(payload: SafetyRankRequest, coordinator: ScoringCoordinator) -> SafetyRankResponse:
    routes = [_to_candidate(model) for model in payload.routes]
    prefer_ai = coordinator.prefer_ai if payload.prefer_ai is None else payload.prefer_ai

    ranked = await coordinator.score(routes, _to_context(payload.context), prefer_ai=prefer_ai)
    if payload.dedupe:
        before = len(ranked)
        ranked = dedupe_ranked(ranked)
        if len(ranked) != before:
            logger.info(f"Removed {before - len(ranked)} duplicate routes")

    scored = [_to_scored_model(item) for item in ranked]
    sources = {item.source for item in scored}
    return SafetyRankResponse(
        safest_route=scored[0] if scored else None,
        routes=scored,
        source=sources.pop() if len(sources) == 1 else "mixed",
    )


async def explain_route(payload: ExplainRequest, coordinator: ScoringCoordinator) -> ExplainResponse:
    explanation = await coordinator.explain(_to_candidate(payload.route), _to_context(payload.context))
    return ExplainResponse(explanation=explanation)
