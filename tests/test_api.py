"""Tests for the HTTP API."""

import base64

from fastapi.testclient import TestClient

from nutrition_engine.api.app import create_app
from nutrition_engine.containers import AppContainer
from nutrition_engine.domain.grading import (
    FocusGrade,
    HealthGrade,
    RemoteGradingResult,
    WellnessFocus,
)
from nutrition_engine.services.grading import GradingService
from tests.conftest import GRILLED_CHICKEN, SODA, FakeRemoteGrader


def test_health(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_targets_endpoint(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/targets",
        json={
            "activity_level": "sedentary",
            "basal_metabolic_rate": 1100,
            "dietary_goals": ["Weight Loss"],
            "health_conditions": ["hypertension"],
        },
    )

    body = response.json()
    assert response.status_code == 200
    assert body["targets"]["calories"] == 1200
    assert body["targets"]["sodium"] == 1500
    assert body["applied_goals"] == ["weight_loss"]
    assert body["metabolic_correction"] is True
    assert body["life_stage"] is None


def test_targets_rejects_unknown_custom_nutrient(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.post("/targets", json={"custom_targets": {"zap": 3}})

    assert response.status_code == 422


def test_classify_endpoint(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.post("/classify", json={"nutrient_id": "protein", "amount": 75})
    negative = client.post("/classify", json={"nutrient_id": "protein", "amount": -5})

    assert response.json()["classification"] == "beneficial_high"
    assert response.json()["severity"] == 3
    assert negative.status_code == 422


def test_grade_endpoint(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/grade", json={"name": "Soda", "nutrients": SODA, "focus": "blood_sugar"}
    )

    body = response.json()
    assert response.status_code == 200
    assert body["overall_grade"] == "F"
    assert body["active_focus"] == "blood_sugar_balance"
    assert body["grading_source"] == "algorithmic"
    assert len(body["focus_scores"]) == 10
    assert body["alternatives"][0]["name"] == "Salad alternative"


def test_grade_rejects_unknown_focus(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/grade", json={"name": "Soda", "nutrients": SODA, "focus": "longevity"}
    )

    assert response.status_code == 422


def test_compare_endpoint(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/compare",
        json={
            "items": [
                {"method": "text", "text": "soda"},
                {"method": "manual", "name": "Grilled chicken", "nutrients": GRILLED_CHICKEN},
                {"method": "text", "text": "mystery"},
            ]
        },
    )

    body = response.json()
    assert response.status_code == 200
    assert [slot["status"] for slot in body["slots"]] == ["ready", "ready", "error"]
    assert body["result"]["rankings"][0]["name"] == "Grilled chicken"
    assert body["result"]["insight"]["winner_index"] == 0
    assert len(body["result"]["category_comparisons"]) == 7


def test_compare_rejects_too_many_items(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    item = {"method": "manual", "name": "Soda", "nutrients": SODA}

    response = client.post("/compare", json={"items": [item] * 6})

    assert response.status_code == 422


def test_compare_rejects_bad_photo(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    good = base64.b64encode(b"\xff\xd8\xff").decode()

    response = client.post(
        "/compare",
        json={
            "items": [
                {"method": "photo", "image_base64": good},
                {"method": "photo", "image_base64": "not base64!"},
            ]
        },
    )

    assert response.status_code == 422


def test_grade_endpoint_exposes_remote_focus_details(container: AppContainer) -> None:
    remote = RemoteGradingResult(
        overall_grade=HealthGrade.B,
        focus_grades={
            WellnessFocus.MUSCLE_BUILDING: FocusGrade(
                grade=HealthGrade.A, pros=["31 g protein"], cons=[]
            )
        },
    )
    container.grading_service = GradingService(
        remote_grader=FakeRemoteGrader(result=remote)
    )
    client = TestClient(create_app(container))

    response = client.post(
        "/grade", json={"name": "Chicken", "nutrients": GRILLED_CHICKEN}
    )

    body = response.json()
    assert body["grading_source"] == "remote"
    assert body["focus_grades"]["muscle_building"] == "A"
    assert body["focus_details"] == {
        "muscle_building": {"grade": "A", "pros": ["31 g protein"], "cons": []}
    }


def test_targets_endpoint_uses_life_stage(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.post("/targets", json={"age_years": 16, "sex": "female"})

    body = response.json()
    assert body["life_stage"] == "adolescents_14_18"
    assert body["targets"]["iron"] == 15
    assert body["targets"]["water"] == 2300
