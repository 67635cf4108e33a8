"""Single-route safety scoring backed by a text-generation model."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import asdict
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

from ...models.domain import RouteCandidate, ScoreResult, ScoreSource, ScoringContext
from .errors import ClientNotInitialized, ModelCallFailed
from .model_client import ModelClient
from .parser import Malformed, Shape, Structured, parse

logger = logging.getLogger(__name__)

AI_SCALE = 10.0
DEFAULT_AI_SCORE = 5.0
DEFAULT_AI_REASON = "AI safety analysis"
DEFAULT_AI_CONFIDENCE = 0.8
EXPLANATION_UNAVAILABLE = "AI explanation is not available for this route"
EXPLANATION_FAILED = "Unable to generate detailed explanation"

SCORE_PROMPT_TEMPLATE = """You are a safety analysis expert for urban navigation routes.

Analyze this route and provide a safety score from 0-10 (10 = safest, 0 = most dangerous).

Route Data:
- Distance: {distance} km
- Duration: {duration} minutes
- Crime incidents: {crime}
- Dark/poorly lit areas: {dark_areas}
- Traffic congestion level: {traffic}
- Time of day: {time_of_day}:00
- Location: {location}
- Traffic incidents: {incidents}
- Safety POIs nearby (police, hospitals): {pois}

Consider these factors:
1. Crime rate (higher = more dangerous)
2. Lighting conditions (dark areas = more dangerous)
3. Traffic congestion (heavy traffic = more dangerous)
4. Time of day (night = more dangerous)
5. Presence of safety infrastructure (police, hospitals = safer)
6. Traffic incidents (more incidents = more dangerous)

Return your response as a JSON object with this exact format:
{{
  "score": <number between 0-10>,
  "reason": "<brief explanation of safety assessment>",
  "confidence": <number between 0-1>,
  "risks": ["<risk1>", "<risk2>", ...],
  "recommendations": ["<recommendation1>", "<recommendation2>", ...]
}}

Be specific and practical in your analysis."""

EXPLAIN_PROMPT_TEMPLATE = """Provide a detailed safety explanation for this route:

Route: {route}
Context: {context}

Explain:
1. Overall safety assessment
2. Specific risks and concerns
3. Safety features and positives
4. Recommendations for safe travel
5. Best time to travel this route

Be concise but informative."""


def resolve_time_of_day(context: ScoringContext) -> int:
    if context.time_of_day is not None:
        return context.time_of_day
    return datetime.now().hour


def _to_float(value: Any, default: float) -> float:
    if isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def _to_str_tuple(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value.strip() else ()
    if isinstance(value, Iterable):
        return tuple(str(item) for item in value if item is not None)
    return (str(value),)


def build_ai_result(
    data: Mapping[str, Any],
    *,
    default_reason: str = DEFAULT_AI_REASON,
    default_recommendations: tuple[str, ...] = (),
) -> ScoreResult:
    """Turn a parsed model reply into a normalised :class:`ScoreResult`.

    Missing or unusable fields fall back to defaults. The raw score is
    clamped to 0-10 before normalisation so ``score == raw_score / 10``.
    """
    raw_score = min(max(_to_float(data.get("score"), DEFAULT_AI_SCORE), 0.0), AI_SCALE)
    confidence = min(max(_to_float(data.get("confidence"), DEFAULT_AI_CONFIDENCE), 0.0), 1.0)
    reason = data.get("reason")
    if not isinstance(reason, str) or not reason.strip():
        reason = default_reason

    if "recommendations" in data:
        recommendations = _to_str_tuple(data.get("recommendations"))
    elif "recommendation" in data:
        recommendations = _to_str_tuple(data.get("recommendation"))
    else:
        recommendations = default_recommendations

    return ScoreResult(
        score=raw_score / AI_SCALE,
        raw_score=raw_score,
        scale=AI_SCALE,
        reason=reason.strip(),
        confidence=confidence,
        source=ScoreSource.AI,
        risks=_to_str_tuple(data.get("risks")),
        recommendations=recommendations or default_recommendations,
    )


class AIScorer:
    """Scores one route per model call."""

    def __init__(self, client: Optional[ModelClient]) -> None:
        self.client = client

    def _require_client(self) -> ModelClient:
        if self.client is None:
            raise ClientNotInitialized()
        return self.client

    def build_prompt(self, route: RouteCandidate, context: ScoringContext) -> str:
        return SCORE_PROMPT_TEMPLATE.format(
            distance=route.distance_km,
            duration=route.duration_min,
            crime=route.crime_count,
            dark_areas=route.dark_area_count,
            traffic=route.traffic_level,
            time_of_day=resolve_time_of_day(context),
            location=context.location or "Unknown",
            incidents=len(route.incidents),
            pois=len(route.pois),
        )

    async def generate(self, prompt: str) -> str:
        """Invoke the model once, wrapping any client error in ModelCallFailed."""
        client = self._require_client()
        logger.debug(f"Sending {len(prompt)} character prompt to {client.model_name}")
        try:
            return await client.generate_content(prompt)
        except Exception as exc:
            raise ModelCallFailed(str(exc) or type(exc).__name__) from exc

    async def score_route(self, route: RouteCandidate, context: ScoringContext | None = None) -> ScoreResult:
        context = context or ScoringContext()
        text = await self.generate(self.build_prompt(route, context))

        match parse(text, Shape.OBJECT):
            case Structured(value=value):
                data = value
            case Malformed(partial=partial):
                data = partial or {}
        return build_ai_result(data)

    async def explain(self, route: RouteCandidate, context: ScoringContext | None = None) -> str:
        if self.client is None:
            return EXPLANATION_UNAVAILABLE

        context = context or ScoringContext()
        prompt = EXPLAIN_PROMPT_TEMPLATE.format(
            route=json.dumps(asdict(route), indent=2, default=str),
            context=json.dumps(asdict(context), indent=2),
        )
        try:
            return await self.generate(prompt)
        except ModelCallFailed as exc:
            logger.warning(f"Route explanation failed: {exc.detail}")
            return EXPLANATION_FAILED
