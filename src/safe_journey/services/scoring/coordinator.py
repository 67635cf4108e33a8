"""Entry point of the scoring engine: AI ranking with heuristic fallback."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ...config import Settings, settings as default_settings
from ...models.domain import RankedRoute, RouteCandidate, ScoringContext
from .ai_scorer import AIScorer
from .errors import SafetyScoringError
from .heuristic import HeuristicScorer
from .model_client import ModelClient, build_model_client
from .ranker import Ranker, order_by_score

logger = logging.getLogger(__name__)


class ScoringCoordinator:
    """Choose between the AI ranker and the heuristic for a batch of routes.

    Any failure of the AI path is logged and the whole batch is scored with
    the heuristic instead, so callers always get a ranking back.
    """

    def __init__(
        self,
        client: Optional[ModelClient] = None,
        *,
        max_concurrency: int = 4,
        prefer_ai: bool = True,
        heuristic: HeuristicScorer | None = None,
    ) -> None:
        self.client = client
        self.prefer_ai = prefer_ai
        self.heuristic = heuristic or HeuristicScorer()
        self.ai_scorer = AIScorer(client)
        self.ranker = Ranker(self.ai_scorer, heuristic=self.heuristic, max_concurrency=max_concurrency)

    @property
    def ai_enabled(self) -> bool:
        return self.client is not None

    @property
    def model_name(self) -> Optional[str]:
        return self.client.model_name if self.client is not None else None

    def score_heuristic(self, routes: Sequence[RouteCandidate]) -> list[RankedRoute]:
        return order_by_score([self.heuristic.score(route) for route in routes], routes)

    async def score(
        self,
        routes: Sequence[RouteCandidate],
        context: ScoringContext | None = None,
        prefer_ai: bool = True,
    ) -> list[RankedRoute]:
        context = context or ScoringContext()
        if not prefer_ai or not self.ai_enabled:
            return self.score_heuristic(routes)

        try:
            return await self.ranker.rank_routes(routes, context)
        except SafetyScoringError as exc:
            logger.warning(f"AI ranking failed, falling back to heuristic scoring: {exc}")
            return self.score_heuristic(routes)

    async def explain(self, route: RouteCandidate, context: ScoringContext | None = None) -> str:
        return await self.ai_scorer.explain(route, context)


def build_coordinator(config: Settings | None = None) -> ScoringCoordinator:
    config = config or default_settings
    return ScoringCoordinator(
        build_model_client(config),
        max_concurrency=config.ai_max_concurrency,
        prefer_ai=config.prefer_ai,
    )
