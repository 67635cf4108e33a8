"""Batch ranking of route candidates with a single multi-route prompt."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional, Sequence

from ...models.domain import RankedRoute, RouteCandidate, ScoreResult, ScoringContext
from .ai_scorer import AIScorer, build_ai_result, resolve_time_of_day
from .errors import SafetyScoringError
from .heuristic import HeuristicScorer
from .parser import Malformed, Shape, Structured, parse

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 4
DEFAULT_BATCH_REASON = "AI analysis"
DEFAULT_BATCH_RECOMMENDATION = "Consider this route"

BATCH_PROMPT_TEMPLATE = """You are a safety analysis expert. Compare these {count} routes and rank them by safety.

Routes:
{routes}

Context:
- Time: {time_of_day}:00
- Location: {location}

For each route, provide:
1. Safety score (0-10, 10 = safest)
2. Brief reason
3. Main risks
4. Recommendation

Return JSON array with this format:
[
  {{
    "routeId": 1,
    "score": <0-10>,
    "reason": "<explanation>",
    "risks": ["<risk1>", "<risk2>"],
    "recommendation": "<should take this route?>"
  }},
  ...
]

Rank routes from safest to most dangerous."""


def order_by_score(results: Sequence[ScoreResult], routes: Sequence[RouteCandidate]) -> list[RankedRoute]:
    """Sort descending by score; equal scores keep their input order."""
    order = sorted(range(len(routes)), key=lambda index: -results[index].score)
    return [
        RankedRoute(route=routes[index], result=results[index], rank=rank, index=index)
        for rank, index in enumerate(order)
    ]


def to_rankings(ranked: Sequence[RankedRoute]) -> list[dict[str, Any]]:
    """Render ranked routes in the array format requested from the model.

    Not used when answering requests; kept so the batch reply format can be
    reproduced from engine output (fixtures, round-trip checks).
    """
    rows = sorted(ranked, key=lambda item: item.rank)
    return [
        {
            "routeId": item.index + 1,
            "score": item.result.raw_score,
            "reason": item.result.reason,
            "risks": list(item.result.risks),
            "recommendation": item.result.recommendations[0]
            if item.result.recommendations
            else DEFAULT_BATCH_RECOMMENDATION,
        }
        for item in rows
    ]


def _matches_route_id(entry: Any, route_id: int) -> bool:
    if not isinstance(entry, dict):
        return False
    value = entry.get("routeId")
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value == route_id
    if isinstance(value, float):
        return value.is_integer() and int(value) == route_id
    if isinstance(value, str):
        text = value.strip()
        return text.isdigit() and int(text) == route_id
    return False


class Ranker:
    def __init__(
        self,
        scorer: AIScorer,
        heuristic: HeuristicScorer | None = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self.scorer = scorer
        self.heuristic = heuristic or HeuristicScorer()
        self.max_concurrency = max_concurrency

    def build_prompt(self, routes: Sequence[RouteCandidate], context: ScoringContext) -> str:
        routes_data = [
            {
                "id": position,
                "distance": route.distance_km,
                "duration": route.duration_min,
                "crime": route.crime_count,
                "darkAreas": route.dark_area_count,
                "traffic": route.traffic_level,
                "incidents": len(route.incidents),
                "pois": len(route.pois),
            }
            for position, route in enumerate(routes, start=1)
        ]
        return BATCH_PROMPT_TEMPLATE.format(
            count=len(routes),
            routes=json.dumps(routes_data, indent=2),
            time_of_day=resolve_time_of_day(context),
            location=context.location or "Urban area",
        )

    async def rank_routes(
        self, routes: Sequence[RouteCandidate], context: ScoringContext | None = None
    ) -> list[RankedRoute]:
        context = context or ScoringContext()
        if not routes:
            return []

        text = await self.scorer.generate(self.build_prompt(routes, context))

        match parse(text, Shape.ARRAY):
            case Structured(value=rankings):
                results = self._merge(routes, rankings)
            case Malformed():
                logger.warning(
                    f"Batch ranking reply was not a JSON array, scoring {len(routes)} routes individually"
                )
                results = await self._score_individually(routes, context)
        return order_by_score(results, routes)

    def _merge(self, routes: Sequence[RouteCandidate], rankings: list[Any]) -> list[ScoreResult]:
        results: list[ScoreResult] = []
        for index in range(len(routes)):
            route_id = index + 1
            entry: Optional[dict[str, Any]] = next(
                (item for item in rankings if _matches_route_id(item, route_id)), None
            )
            if entry is None and index < len(rankings) and isinstance(rankings[index], dict):
                entry = rankings[index]
                logger.warning(
                    f"No ranking declared routeId {route_id}; using entry {index} "
                    f"(routeId={entry.get('routeId')!r}) by position"
                )
            if entry is None:
                logger.warning(f"No ranking entry for route {route_id}, using default score")
            results.append(
                build_ai_result(
                    entry or {},
                    default_reason=DEFAULT_BATCH_REASON,
                    default_recommendations=(DEFAULT_BATCH_RECOMMENDATION,),
                )
            )
        return results

    async def _score_individually(
        self, routes: Sequence[RouteCandidate], context: ScoringContext
    ) -> list[ScoreResult]:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def score_one(index: int, route: RouteCandidate) -> ScoreResult:
            async with semaphore:
                try:
                    return await self.scorer.score_route(route, context)
                except SafetyScoringError as exc:
                    logger.warning(f"AI scoring failed for route {index + 1}, using heuristic score: {exc}")
                    return self.heuristic.score(route)

        # gather preserves argument order regardless of completion order
        return list(await asyncio.gather(*(score_one(index, route) for index, route in enumerate(routes))))
