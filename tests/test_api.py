"""HTTP-level tests: posted snapshot in, dashboard JSON out."""

import pytest
from fastapi.testclient import TestClient

from conftest import NOW
from salonscope.app.dependencies import get_now
from salonscope.app.main import app

SNAPSHOT = {
    "clients": [
        {
            "id": 1, "name": "Anna", "phone": "+10000000001", "email": "anna@example.com",
            "first_visit_date": "2024-10-19T12:00:00", "last_visit_date": "2026-10-09T12:00:00",
            "visit_count": 10, "spent": 120000, "sold_amount": 0, "avg_sum": 12000,
        },
        {
            "id": 2, "name": "Boris", "last_visit_date": "2026-09-09T12:00:00",
            "sold_amount": 500,
        },
    ],
    "records": [
        {
            "id": 10, "datetime": "2026-10-20T10:00:00",
            "client": {"id": 42, "name": "Galina", "phone": "+10000000042"},
            "confirmed": 0,
            "services": [{"id": 5, "title": "Haircut", "cost": 1500}],
        },
        {
            "id": 11, "datetime": "2026-10-19T09:00:00",
            "client": {"id": 1, "name": "Anna"}, "confirmed": 1,
        },
    ],
}


@pytest.fixture
def client():
    app.dependency_overrides[get_now] = lambda: NOW
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/").json()["status"] == "ok"


class TestClientScores:
    def test_listing(self, client):
        response = client.post("/api/v1/clients/scores", json=SNAPSHOT)
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        top = body["items"][0]
        assert top["id"] == 1
        assert top["score"] == 85
        assert top["tier"] == "PLATINUM"
        assert top["client_status"] == "VIP"
        assert top["risk_level"] == "LOW"
        assert body["items"][1]["name"] == "Boris"
        assert body["items"][1]["total_spent"] == 500

    def test_filter_validation(self, client):
        response = client.post("/api/v1/clients/scores?client_status=GONE", json=SNAPSHOT)
        assert response.status_code == 422

    def test_status_filter(self, client):
        body = client.post("/api/v1/clients/scores?client_status=PROBLEM", json=SNAPSHOT).json()
        assert [item["id"] for item in body["items"]] == [2]

    def test_detail(self, client):
        body = client.post("/api/v1/clients/1/score", json=SNAPSHOT).json()
        details = body["ivk_details"]
        assert details["components"] == {
            "recency": 25, "frequency": 10, "monetary": 25, "loyalty": 25,
        }
        assert details["percentages"]["frequency"] == 42
        assert details["metrics"]["months_as_client"] == 24
        assert len(details["recommendations"]) == 2

    def test_detail_unknown_client(self, client):
        assert client.post("/api/v1/clients/99/score", json=SNAPSHOT).status_code == 404

    def test_tiers(self, client):
        rows = client.post("/api/v1/clients/tiers", json=SNAPSHOT).json()
        assert [row["tier"] for row in rows] == ["PLATINUM", "BRONZE"]


class TestNoShow:
    def test_prediction(self, client):
        response = client.post("/api/v1/analytics/noshow-prediction", json=SNAPSHOT)
        assert response.status_code == 200
        body = response.json()

        first = body["upcoming"][0]
        assert first["record_id"] == 10
        assert first["risk_score"] == 25
        assert first["risk_level"] == "MEDIUM"
        assert first["date"] == "2026-10-20"
        assert first["time"] == "10:00"
        assert first["service_name"] == "Haircut"
        # earlier today still counts as upcoming
        assert [a["record_id"] for a in body["upcoming"]] == [10, 11]
        assert body["summary"]["total_upcoming"] == 2
        assert body["patterns"]["overall_no_show_rate"] == 5.0

    def test_risk_filter(self, client):
        body = client.post(
            "/api/v1/analytics/noshow-prediction?risk_level=LOW", json=SNAPSHOT
        ).json()
        assert [a["record_id"] for a in body["upcoming"]] == [11]

    def test_bad_risk_level(self, client):
        response = client.post(
            "/api/v1/analytics/noshow-prediction?risk_level=EXTREME", json=SNAPSHOT
        )
        assert response.status_code == 422


def test_smart_segments(client):
    body = client.post(
        "/api/v1/analytics/smart-segments?include_clients=true", json=SNAPSHOT
    ).json()
    assert [s["id"] for s in body["segments"]] == ["need_discount", "vip_no_touch"]
    assert body["segments"][1]["clients"][0]["id"] == 1
    assert body["summary"]["high_priority_clients"] == 1
    assert body["broadcast_suggestions"][0]["expected_response_rate"] == 15


def test_ltv(client):
    body = client.post("/api/v1/analytics/ltv?sort_by=churn_risk", json=SNAPSHOT).json()
    assert body["total_clients"] == 2
    assert [c["id"] for c in body["clients"]] == [2, 1]
    assert body["clients"][1]["ltv"] == 180000
    assert body["pareto"]["top_20_percent_count"] == 1
    assert set(body["segments"]) == {"diamond", "gold", "silver", "bronze"}


def test_flat_client_id_keeps_client_history(client):
    snapshot = {
        "clients": [],
        "records": [
            {"id": 1, "datetime": "2026-10-12T12:00:00", "client_id": 7, "attendance": -1},
            {"id": 2, "datetime": "2026-10-05T12:00:00", "client_id": 7, "attendance": -1},
            {"id": 3, "datetime": "2026-09-28T12:00:00", "client_id": 7, "attendance": -1},
            {"id": 4, "datetime": "2026-10-20T12:00:00", "client_id": 7, "confirmed": 1},
        ],
    }
    body = client.post("/api/v1/analytics/noshow-prediction", json=snapshot).json()

    [appointment] = body["upcoming"]
    assert appointment["client_id"] == 7
    assert appointment["risk_score"] == 40
    assert appointment["risk_level"] == "MEDIUM"
    assert appointment["risk_factors"] == ["Client missed 3 of 3 visits (100%)"]
