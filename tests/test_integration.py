import json

import pytest
from fastapi.testclient import TestClient

from src.safe_journey.api.routes.safety import get_coordinator
from src.safe_journey.main import create_app
from src.safe_journey.services.scoring.coordinator import ScoringCoordinator


class DummyModel:
    model_name = "dummy-model"

    def __init__(self, reply: str) -> None:
        self.reply = reply

    async def generate_content(self, prompt: str) -> str:
        return self.reply


def _payload(**overrides) -> dict:
    payload = {
        "routes": [
            {"route_id": "A", "distance_km": 5.2, "duration_min": 16, "crime_count": 2, "dark_area_count": 1},
            {"route_id": "B", "distance_km": 6.0, "duration_min": 19, "traffic_level": 2, "geometry": "abc"},
            {"route_id": "C", "distance_km": 6.0, "duration_min": 19, "traffic_level": 2, "geometry": "abc"},
        ],
        "context": {"time_of_day": 23, "location": "Bengaluru"},
    }
    payload.update(overrides)
    return payload


def _client_with(coordinator: ScoringCoordinator) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_coordinator] = lambda: coordinator
    return TestClient(app)


@pytest.fixture
def heuristic_client() -> TestClient:
    return _client_with(ScoringCoordinator(None))


def test_health(heuristic_client: TestClient):
    assert heuristic_client.get("/api/health").json() == {"status": "ok"}

    ai = heuristic_client.get("/api/health/ai").json()
    assert ai["configured"] is False
    assert ai["model"] is None


def test_rank_endpoint_heuristic(heuristic_client: TestClient):
    response = heuristic_client.post("/api/safety/rank", json=_payload())

    assert response.status_code == 200
    payload = response.json()
    assert payload["source"] == "heuristic"
    assert [route["route_id"] for route in payload["routes"]] == ["B", "C", "A"]
    assert payload["safest_route"]["route_id"] == "B"
    assert payload["safest_route"]["geometry"] == "abc"
    last = payload["routes"][-1]
    assert last["raw_score"] == pytest.approx(3.7)
    assert last["reason"] == "High crime area, Poorly lit sections"
    assert last["rank"] == 2
    assert last["index"] == 0


def test_rank_endpoint_dedupes_routes(heuristic_client: TestClient):
    response = heuristic_client.post("/api/safety/rank", json=_payload(dedupe=True))

    assert response.status_code == 200
    routes = response.json()["routes"]
    assert [route["route_id"] for route in routes] == ["B", "A"]
    assert [route["rank"] for route in routes] == [0, 1]


def test_rank_endpoint_uses_ai_when_configured():
    reply = json.dumps(
        [
            {"routeId": 1, "score": 9, "reason": "patrolled", "risks": [], "recommendation": "Take it"},
            {"routeId": 2, "score": 4, "reason": "congested"},
            {"routeId": 3, "score": 3, "reason": "congested"},
        ]
    )
    client = _client_with(ScoringCoordinator(DummyModel(reply)))

    response = client.post("/api/safety/rank", json=_payload())

    assert response.status_code == 200
    payload = response.json()
    assert payload["source"] == "ai"
    assert payload["safest_route"]["route_id"] == "A"
    assert payload["safest_route"]["score"] == 0.9
    assert payload["safest_route"]["recommendations"] == ["Take it"]


def test_rank_endpoint_can_opt_out_of_ai():
    client = _client_with(ScoringCoordinator(DummyModel("[]")))

    response = client.post("/api/safety/rank", json=_payload(prefer_ai=False))

    assert response.json()["source"] == "heuristic"


def test_rank_endpoint_validates_input(heuristic_client: TestClient):
    assert heuristic_client.post("/api/safety/rank", json={"routes": []}).status_code == 422
    bad = _payload(routes=[{"distance_km": -1, "duration_min": 3}])
    assert heuristic_client.post("/api/safety/rank", json=bad).status_code == 422


def test_explain_endpoint():
    client = _client_with(ScoringCoordinator(DummyModel("Well lit, stay alert near the station.")))

    response = client.post(
        "/api/safety/explain",
        json={"route": {"distance_km": 2.5, "duration_min": 8}, "context": {"location": "Mumbai"}},
    )

    assert response.status_code == 200
    assert response.json() == {"explanation": "Well lit, stay alert near the station."}


def test_explain_endpoint_without_ai(heuristic_client: TestClient):
    response = heuristic_client.post("/api/safety/explain", json={"route": {"distance_km": 1, "duration_min": 4}})

    assert response.json()["explanation"] == "AI explanation is not available for this route"


def test_rank_endpoint_follows_coordinator_preference():
    client = _client_with(ScoringCoordinator(DummyModel('[{"routeId": 1, "score": 9}]'), prefer_ai=False))

    response = client.post("/api/safety/rank", json=_payload())

    assert response.json()["source"] == "heuristic"


def test_health_ai_reports_injected_coordinator():
    client = _client_with(ScoringCoordinator(DummyModel("[]"), prefer_ai=False))

    payload = client.get("/api/health/ai").json()

    assert payload["configured"] is True
    assert payload["model"] == "dummy-model"
    assert payload["prefer_ai"] is False


def test_explain_endpoint_reports_unexpected_errors():
    class FailingCoordinator(ScoringCoordinator):
        async def explain(self, route, context=None):
            raise RuntimeError("explanation backend crashed")

    client = _client_with(FailingCoordinator(None))

    response = client.post("/api/safety/explain", json={"route": {"distance_km": 1, "duration_min": 4}})

    assert response.status_code == 500
    assert "explanation backend crashed" in response.json()["detail"]
