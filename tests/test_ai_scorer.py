import asyncio

import pytest

from src.safe_journey.models.domain import RouteCandidate, ScoreSource, ScoringContext
from src.safe_journey.services.scoring.ai_scorer import (
    EXPLANATION_FAILED,
    EXPLANATION_UNAVAILABLE,
    AIScorer,
)
from src.safe_journey.services.scoring.errors import ClientNotInitialized, ModelCallFailed


class FakeClient:
    model_name = "fake-model"

    def __init__(self, reply: str = "", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    async def generate_content(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


def _route() -> RouteCandidate:
    return RouteCandidate(
        distance_km=3.4,
        duration_min=11.0,
        crime_count=2,
        dark_area_count=1,
        traffic_level=0,
        incidents=[{"type": "roadworks"}],
        pois=[{"name": "Police"}, {"name": "Hospital"}],
    )


def test_score_route_normalises_model_score():
    client = FakeClient(
        '```json\n{"score": 7, "reason": "busy and lit", "confidence": 0.9, '
        '"risks": ["pickpockets"], "recommendations": ["stay on main road"]}\n```'
    )

    result = asyncio.run(AIScorer(client).score_route(_route(), ScoringContext(time_of_day=22, location="Pune")))

    assert result.raw_score == 7
    assert result.score == result.raw_score / 10
    assert result.scale == 10.0
    assert result.reason == "busy and lit"
    assert result.confidence == 0.9
    assert result.risks == ("pickpockets",)
    assert result.recommendations == ("stay on main road",)
    assert result.source is ScoreSource.AI


def test_score_route_prompt_embeds_route_features():
    client = FakeClient('{"score": 5}')

    asyncio.run(AIScorer(client).score_route(_route(), ScoringContext(time_of_day=22, location="Pune")))

    prompt = client.prompts[0]
    assert "Distance: 3.4 km" in prompt
    assert "Crime incidents: 2" in prompt
    assert "Dark/poorly lit areas: 1" in prompt
    assert "Time of day: 22:00" in prompt
    assert "Location: Pune" in prompt
    assert "Traffic incidents: 1" in prompt
    assert "Safety POIs nearby (police, hospitals): 2" in prompt


def test_score_route_defaults_location():
    client = FakeClient('{"score": 5}')

    asyncio.run(AIScorer(client).score_route(_route()))

    assert "Location: Unknown" in client.prompts[0]


def test_score_route_fills_missing_fields():
    result = asyncio.run(AIScorer(FakeClient("{}")).score_route(_route()))

    assert result.raw_score == 5.0
    assert result.score == 0.5
    assert result.reason == "AI safety analysis"
    assert result.confidence == 0.8
    assert result.risks == ()
    assert result.recommendations == ()


def test_score_route_recovers_from_free_text():
    client = FakeClient("I think the score is 6.5 because reason: heavy traffic")

    result = asyncio.run(AIScorer(client).score_route(_route()))

    assert result.raw_score == 6.5
    assert result.score == 0.65
    assert "heavy traffic" in result.reason
    assert result.confidence == 0.7


@pytest.mark.parametrize("reply, expected", [('{"score": 14}', 10.0), ('{"score": -2}', 0.0), ('{"score": "high"}', 5.0)])
def test_score_route_keeps_score_in_range(reply: str, expected: float):
    result = asyncio.run(AIScorer(FakeClient(reply)).score_route(_route()))

    assert result.raw_score == expected
    assert 0.0 <= result.score <= 1.0
    assert result.score == result.raw_score / 10


def test_score_route_requires_client():
    with pytest.raises(ClientNotInitialized):
        asyncio.run(AIScorer(None).score_route(_route()))


def test_score_route_wraps_transport_errors():
    client = FakeClient(error=RuntimeError("quota exceeded"))

    with pytest.raises(ModelCallFailed) as excinfo:
        asyncio.run(AIScorer(client).score_route(_route()))

    assert excinfo.value.detail == "quota exceeded"
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_explain_returns_model_text():
    client = FakeClient("Mostly safe during the day.")

    explanation = asyncio.run(AIScorer(client).explain(_route(), ScoringContext(location="Pune")))

    assert explanation == "Mostly safe during the day."
    assert '"crime_count": 2' in client.prompts[0]


def test_explain_placeholders():
    assert asyncio.run(AIScorer(None).explain(_route())) == EXPLANATION_UNAVAILABLE
    failing = FakeClient(error=ConnectionError("offline"))
    assert asyncio.run(AIScorer(failing).explain(_route())) == EXPLANATION_FAILED
