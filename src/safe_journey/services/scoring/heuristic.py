"""Deterministic safety scoring from route risk features."""

from __future__ import annotations

from ...models.domain import RouteCandidate, ScoreResult, ScoreSource

BASE_SCORE = 5.0
CRIME_WEIGHT = 0.5
DARK_AREA_WEIGHT = 0.3
TRAFFIC_WEIGHT = 0.2
HEURISTIC_SCALE = BASE_SCORE
HEURISTIC_CONFIDENCE = 0.5
NO_ISSUES_REASON = "No major issues"


class HeuristicScorer:
    """Formula-based scorer used when no model is available.

    The native score starts at 5 and loses points per crime report, dark
    section and traffic level. It is rounded to one decimal and never drops
    below zero; the canonical score is the native value divided by 5.
    """

    def score(self, route: RouteCandidate) -> ScoreResult:
        native = BASE_SCORE
        reasons: list[str] = []

        if route.crime_count > 0:
            native -= route.crime_count * CRIME_WEIGHT
            reasons.append("High crime area")
        if route.dark_area_count > 0:
            native -= route.dark_area_count * DARK_AREA_WEIGHT
            reasons.append("Poorly lit sections")
        if route.traffic_level > 0:
            native -= route.traffic_level * TRAFFIC_WEIGHT
            reasons.append("Heavy traffic")

        native = max(round(native, 1), 0.0)
        return ScoreResult(
            score=native / HEURISTIC_SCALE,
            raw_score=native,
            scale=HEURISTIC_SCALE,
            reason=", ".join(reasons) or NO_ISSUES_REASON,
            confidence=HEURISTIC_CONFIDENCE,
            source=ScoreSource.HEURISTIC,
            risks=tuple(reasons),
        )
