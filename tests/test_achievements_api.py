from __future__ import annotations

from fastapi.testclient import TestClient

from conftest import ADMIN_HEADERS, USER_A_HEADERS
from src.api.dependencies import get_achievements_service
from src.main import create_app


def test_achievements_returns_envelope_with_camel_case_fields(client):
    response = client.get("/api/v1/achievements", params={"month": 3}, headers=ADMIN_HEADERS)

    assert response.status_code == 200
    payload = response.json()
    data = payload["data"]
    company = data["achievements"][-1]
    assert company["id"] == "company-monthly-2024-3"
    assert company["targetType"] == "COMPANY"
    assert company["periodDisplay"] == "Mar 2024"
    assert company["targetAmount"] == 200.0
    assert company["achievedAmount"] == 276.0
    assert company["achievementPercentage"] == 138.0
    assert company["isAchieved"] is True
    assert company["dealsCount"] == 3
    assert company["dateRange"] == {
        "start": "2024-03-01T00:00:00+00:00",
        "end": "2024-03-31T23:59:59.999999+00:00",
    }
    assert data["summary"]["totalDeals"] == 3
    assert data["summary"]["totalTargets"] == 3
    assert data["viewer"]["isAdmin"] is True
    assert payload["meta"]["currency"] == "INR"
    assert payload["meta"]["degraded"] is False
    assert payload["meta"]["timeWindow"] == "monthly"


def test_achievements_sets_private_cache_header(client):
    response = client.get("/api/v1/achievements", headers=USER_A_HEADERS)

    assert response.status_code == 200
    assert response.headers["cache-control"] == "private, max-age=300, stale-while-revalidate=600"


def test_achievements_requires_identity(client):
    response = client.get("/api/v1/achievements")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "unauthorized"


def test_achievements_rejects_unknown_role(client):
    response = client.get("/api/v1/achievements", headers={"X-User-Id": "user-a", "X-User-Role": "ROOT"})

    assert response.status_code == 401


def test_non_admin_cannot_view_other_user(client):
    response = client.get("/api/v1/achievements", params={"userId": "user-b"}, headers=USER_A_HEADERS)

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "forbidden"


def test_invalid_period_is_validation_error(client):
    response = client.get("/api/v1/achievements", params={"period": "WEEKLY"}, headers=ADMIN_HEADERS)

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "validation_error"


def test_month_with_yearly_period_is_bad_request(client):
    response = client.get(
        "/api/v1/achievements", params={"period": "YEARLY", "month": 2}, headers=ADMIN_HEADERS
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "bad_request"


def test_target_type_query_parameter(client):
    response = client.get(
        "/api/v1/achievements",
        params={"targetType": "COMPANY", "userId": "COMPANY"},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 200
    achievements = response.json()["data"]["achievements"]
    assert achievements
    assert {item["targetType"] for item in achievements} == {"COMPANY"}
    assert all(item["user"] is None for item in achievements)


def test_unexpected_error_returns_internal_error_envelope():
    class ExplodingService:
        def get_achievements(self, filters, viewer):
            raise RuntimeError("database unavailable")

    app = create_app()
    app.dependency_overrides[get_achievements_service] = lambda: ExplodingService()
    try:
        with TestClient(app, raise_server_exceptions=False) as client:
            response = client.get("/api/v1/achievements", headers=ADMIN_HEADERS)
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {
        "error": {"code": "internal_error", "message": "Internal server error", "details": None}
    }
