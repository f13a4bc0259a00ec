"""HTTP tests for the admin listing and summary endpoints."""

import pytest
from fastapi.testclient import TestClient

from conftest import FakeClock, consultation_body


@pytest.fixture
def seeded_client(client: TestClient, clock: FakeClock) -> TestClient:
    bodies = [
        consultation_body(phone="13800138000", sourcePage="/a", intentionProducts=["x"]),
        consultation_body(phone="13800138001", sourcePage="/a", intentionProducts=["x", "y"]),
        consultation_body(name="Li Si", phone="13800138002", sourcePage="/b", intentionProducts=["y"]),
    ]
    for body in bodies:
        assert client.post("/api/leads/consultation", json=body).status_code == 201
        clock.advance(1)
    assert client.post("/api/leads/phone", json={"phone": "13900139000", "source": "footer"}).status_code == 201
    return client


@pytest.mark.parametrize(
    "path",
    ["/api/admin/leads/consultations", "/api/admin/leads/phones", "/api/admin/leads/summary", "/api/leads"],
)
def test_admin_endpoints_require_api_key(client: TestClient, path: str) -> None:
    missing = client.get(path)
    invalid = client.get(path, headers={"X-API-Key": "wrong"})

    assert missing.status_code == 403
    assert missing.json()["error"]["code"] == "missing_api_key"
    assert invalid.status_code == 403
    assert invalid.json()["error"]["code"] == "invalid_api_key"


def test_list_consultations_newest_first(seeded_client: TestClient, admin_headers: dict) -> None:
    resp = seeded_client.get("/api/admin/leads/consultations", headers=admin_headers)

    assert resp.status_code == 200
    data = resp.json()
    assert data["ok"] is True
    assert [item["phone"] for item in data["items"]] == ["13800138002", "13800138001", "13800138000"]
    assert data["items"][0]["sourcePage"] == "/b"
    assert data["items"][0]["intentionProducts"] == ["y"]
    assert data["pagination"] == {
        "page": 1,
        "pageSize": 20,
        "total": 3,
        "totalPages": 1,
        "hasPrev": False,
        "hasNext": False,
    }


def test_list_consultations_with_filters(seeded_client: TestClient, admin_headers: dict) -> None:
    resp = seeded_client.get(
        "/api/admin/leads/consultations",
        params={"product": "x", "sourcePage": "/A", "pageSize": "1", "page": "9"},
        headers=admin_headers,
    )

    data = resp.json()
    assert resp.status_code == 200
    assert data["filters"]["product"] == "x"
    assert data["filters"]["sourcePage"] == "/A"
    assert data["filters"]["startAt"] is None
    assert data["pagination"]["page"] == 2
    assert data["pagination"]["total"] == 2
    assert [item["phone"] for item in data["items"]] == ["13800138000"]


@pytest.mark.parametrize(
    "params, code",
    [
        ({"page": "0"}, "invalid_pagination"),
        ({"pageSize": "101"}, "invalid_pagination"),
        ({"startAt": "not-a-date"}, "invalid_date"),
        ({"startAt": "0001-01-01T00:00:00+01:00"}, "invalid_date"),
        ({"startAt": "2025-02-01", "endAt": "2025-01-01"}, "invalid_date_range"),
    ],
)
def test_invalid_query_parameters_return_400(client: TestClient, admin_headers: dict, params, code) -> None:
    resp = client.get("/api/admin/leads/consultations", params=params, headers=admin_headers)

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == code


def test_list_phone_leads(seeded_client: TestClient, admin_headers: dict) -> None:
    resp = seeded_client.get(
        "/api/admin/leads/phones",
        params={"source": "FOOT", "startAt": "2025-01-15T00:00:00Z"},
        headers=admin_headers,
    )

    data = resp.json()
    assert resp.status_code == 200
    assert data["filters"]["source"] == "FOOT"
    assert [item["phone"] for item in data["items"]] == ["13900139000"]


def test_summary(seeded_client: TestClient, admin_headers: dict) -> None:
    resp = seeded_client.get("/api/admin/leads/summary", headers=admin_headers)

    data = resp.json()
    assert resp.status_code == 200
    assert data["totals"] == {"consultations": 3, "phoneLeads": 1}
    assert data["today"] == {"consultations": 3, "phoneLeads": 1}
    assert data["top"]["consultationBySourcePage"][0] == {"sourcePage": "/a", "count": 2}
    assert {p["product"]: p["count"] for p in data["top"]["consultationByProduct"]} == {"x": 2, "y": 2}
    assert data["top"]["phoneLeadBySource"] == [{"source": "footer", "count": 1}]


def test_recent_view(seeded_client: TestClient, admin_headers: dict) -> None:
    resp = seeded_client.get("/api/leads", headers=admin_headers)

    data = resp.json()
    assert resp.status_code == 200
    assert data["consultationsCount"] == 3
    assert data["phoneLeadsCount"] == 1
    assert data["consultations"][0]["phone"] == "13800138002"
