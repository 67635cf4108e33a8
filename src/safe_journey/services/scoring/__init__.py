"""Safety scoring and ranking engine."""

from .ai_scorer import AIScorer
from .coordinator import ScoringCoordinator, build_coordinator
from .errors import ClientNotInitialized, ModelCallFailed, SafetyScoringError
from .heuristic import HeuristicScorer
from .ranker import Ranker

__all__ = [
    "AIScorer",
    "ClientNotInitialized",
    "HeuristicScorer",
    "ModelCallFailed",
    "Ranker",
    "SafetyScoringError",
    "ScoringCoordinator",
    "build_coordinator",
]
