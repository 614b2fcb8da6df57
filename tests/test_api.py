# tests/test_api.py

"""
API Endpoint Tests - Tests for all FastAPI endpoints
"""

from unittest.mock import MagicMock

import pytest
from fastapi import status

from meddpicc_scoring.core.dependencies import get_configuration_store
from meddpicc_scoring.core.exceptions import ConfigurationConflictError

ORG_ID = "org-acme"
HEADERS = {"X-Actor-Id": "user-admin"}
BASE = f"/api/v1/organizations/{ORG_ID}"


@pytest.fixture
def configuration_payload():
    return {
        "pillars": [
            {
                "id": "metrics",
                "name": "Metrics",
                "weight": 60,
                "questions": [{"id": "current_cost", "text": "What is the current cost of the problem?"}],
            },
            {
                "id": "champion",
                "name": "Champion",
                "weight": 40,
                "questions": [{"id": "champion_identity", "text": "Who is our internal champion?"}],
            },
        ],
        "thresholds": {"low": 80, "medium": 60, "high": 40},
        "reason": "first rubric",
    }


# HEALTH / ROOT


class TestHealthEndpoint:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert data["storage_backend"] == "memory"
        assert data["cache_size"] == 0

    def test_root(self, client):
        assert client.get("/").json()["status"] == "running"


# CONFIGURATION ENDPOINTS


class TestConfigurationEndpoints:

    def test_save_and_activate(self, client, configuration_payload):
        response = client.post(f"{BASE}/configurations", json=configuration_payload, headers=HEADERS)
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["version"] == 1
        assert response.json()["warnings"] == []

        response = client.post(f"{BASE}/configurations/1/activate", headers=HEADERS)
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "active"
        assert data["total_weight"] == 100

        active = client.get(f"{BASE}/configurations/active").json()
        assert active["version"] == 1
        assert [p["id"] for p in active["pillars"]] == ["metrics", "champion"]

    def test_save_with_activate_flag(self, client, configuration_payload):
        client.post(f"{BASE}/configurations?activate=true", json=configuration_payload, headers=HEADERS)
        assert client.get(f"{BASE}/configurations/active").json()["version"] == 1

    def test_weight_mismatch_returns_warning(self, client, configuration_payload):
        configuration_payload["pillars"][0]["weight"] = 10
        response = client.post(f"{BASE}/configurations", json=configuration_payload, headers=HEADERS)
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["warnings"] == ["Pillar weights sum to 50, expected 100"]

    def test_invalid_configuration_422(self, client):
        payload = {"pillars": [], "thresholds": {"low": 40, "medium": 60, "high": 80}}
        response = client.post(f"{BASE}/configurations", json=payload, headers=HEADERS)

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        data = response.json()
        assert data["error_code"] == "CONFIGURATION_INVALID"
        assert "At least one pillar is required" in data["details"]["errors"]
        assert data["details"]["retryable"] is False

    def test_missing_thresholds_422(self, client):
        response = client.post(f"{BASE}/configurations", json={"pillars": []}, headers=HEADERS)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["message"] == "Thresholds are required"

    def test_no_active_configuration_404(self, client):
        response = client.get(f"{BASE}/configurations/active")
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error_code"] == "CONFIGURATION_NOT_FOUND"

    def test_unknown_version_404(self, client):
        response = client.get(f"{BASE}/configurations/42")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_list_and_history(self, client, configuration_payload):
        client.post(f"{BASE}/configurations", json=configuration_payload, headers=HEADERS)
        client.post(f"{BASE}/configurations", json=configuration_payload, headers=HEADERS)
        client.post(f"{BASE}/configurations/2/activate?reason=promote", headers=HEADERS)

        versions = client.get(f"{BASE}/configurations").json()
        assert [(v["version"], v["status"]) for v in versions] == [(1, "draft"), (2, "active")]

        history = client.get(f"{BASE}/configurations/history").json()
        assert [e["change_type"] for e in history] == ["activated", "created", "created"]
        assert history[0]["reason"] == "promote"
        assert history[0]["actor_id"] == "user-admin"

    def test_restore(self, client, configuration_payload):
        client.post(f"{BASE}/configurations?activate=true", json=configuration_payload, headers=HEADERS)
        response = client.post(f"{BASE}/configurations/1/restore?activate=true", headers=HEADERS)

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["version"] == 2
        assert client.get(f"{BASE}/configurations/active").json()["version"] == 2

    def test_export_import_clone(self, client, configuration_payload):
        client.post(f"{BASE}/configurations?activate=true", json=configuration_payload, headers=HEADERS)

        document = client.get(f"{BASE}/configurations/export").json()
        assert document["metadata"]["organization_id"] == ORG_ID

        response = client.post(
            "/api/v1/organizations/org-import/configurations/import",
            json={"payload": document},
            headers=HEADERS,
        )
        assert response.status_code == status.HTTP_201_CREATED

        response = client.post(
            f"/api/v1/organizations/org-clone/configurations/clone?source_organization_id={ORG_ID}",
            headers=HEADERS,
        )
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["version"] == 1

    def test_bootstrap_default(self, client):
        response = client.post(f"{BASE}/configurations/bootstrap", headers=HEADERS)
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["is_active"] is True
        assert len(data["pillars"]) == 9
        assert data["total_weight"] == 100

    def test_conflict_maps_to_409(self, client):
        store = MagicMock()
        store.activate_configuration.side_effect = ConfigurationConflictError(ORG_ID)
        client.app.dependency_overrides[get_configuration_store] = lambda: store
        try:
            response = client.post(f"{BASE}/configurations/2/activate", headers=HEADERS)
        finally:
            client.app.dependency_overrides.clear()

        assert response.status_code == status.HTTP_409_CONFLICT
        data = response.json()
        assert data["error_code"] == "CONFIGURATION_CONFLICT"
        assert data["details"]["retryable"] is True


# SCORING ENDPOINTS


class TestScoringEndpoints:

    @pytest.fixture(autouse=True)
    def active_configuration(self, client, configuration_payload):
        client.post(f"{BASE}/configurations?activate=true", json=configuration_payload, headers=HEADERS)

    def test_score_comprehensive(self, client):
        payload = {
            "entity_id": "opp-1",
            "responses": [
                {"pillar_id": "metrics", "question_id": "current_cost", "answer": "x", "points": 10},
            ],
        }
        response = client.post(f"{BASE}/scores", json=payload)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total_score"] == 60.0
        assert data["risk_level"] == "medium risk"
        assert data["config_version_used"] == 1
        assert data["entity_id"] == "opp-1"
        assert data["next_actions"] == ["Complete Champion assessment - currently 0% complete"]

    def test_score_simple(self, client):
        payload = {
            "entity_id": "opp-2",
            "simple_responses": {"champion": "Who is our internal champion?: VP Ops"},
        }
        data = client.post(f"{BASE}/scores", json=payload).json()
        assert data["per_pillar_breakdown"][1]["answered_questions"] == 1
        assert data["warnings"] == []

    def test_score_cached_between_calls(self, client):
        payload = {"entity_id": "opp-1", "responses": []}
        first = client.post(f"{BASE}/scores", json=payload).json()
        second = client.post(f"{BASE}/scores", json=payload).json()

        assert first["last_calculated"] == second["last_calculated"]
        stats = client.get("/api/v1/cache/stats").json()
        assert stats["size"] == 1
        assert stats["hits"] == 1

    def test_both_representations_rejected(self, client):
        payload = {
            "entity_id": "opp-1",
            "responses": [{"pillar_id": "metrics", "question_id": "current_cost", "answer": "x"}],
            "simple_responses": {"metrics": "x"},
        }
        response = client.post(f"{BASE}/scores", json=payload)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_missing_entity_id(self, client):
        response = client.post(f"{BASE}/scores", json={"responses": []})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["message"] == "Entity ID is required"

    def test_malformed_json_400(self, client):
        response = client.post(
            f"{BASE}/scores",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == "INVALID_REQUEST"

    def test_unknown_organization_404(self, client):
        response = client.post("/api/v1/organizations/nobody/scores", json={"entity_id": "opp-1"})
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_format_conversion_endpoints(self, client):
        simple = client.post(
            f"{BASE}/responses/simple",
            json={"responses": [{"pillar_id": "metrics", "question_id": "current_cost", "answer": "$2M"}]},
        ).json()
        assert simple == {"metrics": "What is the current cost of the problem?: $2M", "champion": ""}

        data = client.post(
            f"{BASE}/responses/comprehensive",
            json={"pillar_id": "metrics", "text": "unlabelled note"},
        ).json()
        assert data["responses"][0]["question_id"] == "current_cost"
        assert len(data["warnings"]) == 1

    def test_clear_cache(self, client):
        client.post(f"{BASE}/scores", json={"entity_id": "opp-1"})
        assert client.delete("/api/v1/cache").json() == {"cleared": 1}
        assert client.get("/api/v1/cache/stats").json()["size"] == 0

    def test_litmus_test_and_stage_gates(self, client, configuration_payload):
        configuration_payload["litmus_test"] = {
            "questions": [
                {
                    "id": "budget_confirmed",
                    "text": "Is budget confirmed and available?",
                    "type": "yes_no",
                    "answers": [{"text": "Yes - Budget approved", "points": 10}, {"text": "No", "points": 2}],
                }
            ]
        }
        configuration_payload["stage_gates"] = [
            {
                "from_stage": "Prospecting",
                "to_stage": "Engaging",
                "criteria": [{"description": "Champion identified", "pillar_id": "champion"}],
            }
        ]
        client.post(f"{BASE}/configurations?activate=true", json=configuration_payload, headers=HEADERS)
        active = client.get(f"{BASE}/configurations/active").json()
        assert active["litmus_test"]["name"] == "Final Qualification Gate"

        payload = {
            "entity_id": "opp-9",
            "responses": [
                {"pillar_id": "litmus", "question_id": "budget_confirmed", "answer": "No"},
                {"pillar_id": "champion", "question_id": "champion_identity", "answer": "VP Ops", "points": 6},
            ],
        }
        data = client.post(f"{BASE}/scores", json=payload).json()

        assert data["litmus_test_score"] == 20.0
        assert data["stage_gate_readiness"] == {"Prospecting_to_Engaging": True}
        assert data["total_score"] == 24.0
        assert data["warnings"] == []

    def test_duplicate_question_text_422(self, client, configuration_payload):
        configuration_payload["pillars"][0]["questions"].append(
            {"id": "cost_again", "text": "What is the current cost of the problem?"}
        )
        response = client.post(f"{BASE}/configurations", json=configuration_payload, headers=HEADERS)

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["details"]["errors"] == [
            "Duplicate question text in pillar metrics: What is the current cost of the problem?"
        ]
