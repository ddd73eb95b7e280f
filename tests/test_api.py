"""
Integration Tests for the HTTP surface
Tests for: session gate, response envelope, error codes, end-to-end flows
"""
from datetime import date, timedelta

API = "/api/v1"


def create_cabinet(client, headers, number="A1", drawer_count=1, drawer_capacity=2):
    resp = client.post(f"{API}/file-cabinets", headers=headers, json={
        "number": number, "drawer_count": drawer_count, "drawer_capacity": drawer_capacity,
    })
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


def create_employee(client, headers, registration, full_name=None):
    resp = client.post(f"{API}/employees", headers=headers, json={
        "full_name": full_name or f"Funcionário {registration}",
        "registration": registration,
        "admission_date": "2020-01-01",
    })
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


class TestSessionGate:
    def test_health_is_public(self, client):
        resp = client.get(f"{API}/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "database": "ok"}

    def test_info_requires_session(self, client, auth_headers):
        assert client.get(f"{API}/info").status_code == 401
        body = client.get(f"{API}/info", headers=auth_headers).json()
        assert body["user"] == "admin"
        assert body["backend"] == "sqlite"

    def test_missing_token_is_unauthorized(self, client):
        resp = client.get(f"{API}/occupation-map")
        assert resp.status_code == 401
        body = resp.json()
        assert body["success"] is False
        assert body["data"] is None
        assert body["code"] == "unauthorized"
        assert "login" in body["error"].lower()

    def test_bogus_token_is_unauthorized(self, client):
        resp = client.get(f"{API}/occupation-map", headers={"Authorization": "Bearer nada"})
        assert resp.status_code == 401

    def test_login_returns_token_and_profile(self, client, admin_user):
        resp = client.post(f"{API}/auth/login", json={"login": "Admin", "password": "secret123"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["error"] is None
        assert body["data"]["profile"]["login"] == "admin"
        assert body["data"]["token"]
        assert body["data"]["snapshot"]["units_by_type"] == {"PASTA": 0, "ENVELOPE": 0, "GAVETEIRO": 0, "CAIXA": 0}
        assert body["data"]["snapshot"]["last_movement"] is None

    def test_wrong_password(self, client, admin_user):
        resp = client.post(f"{API}/auth/login", json={"login": "admin", "password": "errada"})
        assert resp.status_code == 401
        assert resp.json()["code"] == "unauthorized"

    def test_login_rate_limited(self, client, admin_user):
        for _ in range(5):
            client.post(f"{API}/auth/login", json={"login": "admin", "password": "errada"})
        resp = client.post(f"{API}/auth/login", json={"login": "admin", "password": "secret123"})
        assert resp.status_code == 401
        assert "tentativas" in resp.json()["error"]

    def test_logout_revokes_session(self, client, auth_headers):
        assert client.get(f"{API}/auth/session", headers=auth_headers).status_code == 200
        assert client.post(f"{API}/auth/logout", headers=auth_headers).json()["data"] is True
        assert client.get(f"{API}/auth/session", headers=auth_headers).status_code == 401


class TestEnvelope:
    def test_validation_error_envelope(self, client, auth_headers):
        resp = client.post(f"{API}/file-cabinets", headers=auth_headers, json={"number": "A1", "drawer_count": 0})
        assert resp.status_code == 422
        body = resp.json()
        assert body["success"] is False
        assert body["code"] == "invalid_input"
        assert "drawer_count" in body["error"]

    def test_not_found_envelope(self, client, auth_headers):
        resp = client.get(f"{API}/employees/999", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json()["code"] == "not_found"

    def test_duplicate_registration_is_constraint_violation(self, client, auth_headers):
        create_employee(client, auth_headers, "M1")
        resp = client.post(f"{API}/employees", headers=auth_headers, json={
            "full_name": "Outro", "registration": "M1", "admission_date": "2021-01-01",
        })
        assert resp.status_code == 409
        assert resp.json()["code"] == "constraint_violation"


class TestCabinetFlow:
    def test_assign_and_occupation_map(self, client, auth_headers):
        cabinet = create_cabinet(client, auth_headers, "A1", drawer_count=1, drawer_capacity=2)
        listing = client.get(f"{API}/file-cabinets", headers=auth_headers).json()["data"]
        drawer_id = listing[0]["occupancy"]["drawers"][0]["drawer_id"]
        assert listing[0]["cabinet"]["id"] == cabinet["id"]

        for n, registration in enumerate(("M1", "M2"), start=1):
            employee = create_employee(client, auth_headers, registration)
            resp = client.post(f"{API}/drawer-positions/assign", headers=auth_headers, json={
                "employee_id": employee["id"], "drawer_id": drawer_id, "position": n,
            })
            assert resp.status_code == 200, resp.text
            assert resp.json()["data"]["is_occupied"] is True

        data = client.get(f"{API}/occupation-map", headers=auth_headers).json()["data"]
        assert data["cabinets"][0]["status"] == "CRITICAL"
        assert data["cabinets"][0]["occupancy_rate"] == 100.0
        assert data["totals"]["critical_cabinets"] == 1

        detail = client.get(f"{API}/employees/{employee['id']}", headers=auth_headers).json()["data"]
        assert detail["basic"]["drawer_location"] == "A1-G1-P2"
        assert detail["drawer_position"]["position_number"] == 2

    def test_assign_beyond_capacity(self, client, auth_headers):
        create_cabinet(client, auth_headers, "A1", drawer_capacity=2)
        listing = client.get(f"{API}/file-cabinets", headers=auth_headers).json()["data"]
        drawer_id = listing[0]["occupancy"]["drawers"][0]["drawer_id"]
        employee = create_employee(client, auth_headers, "M1")
        resp = client.post(f"{API}/drawer-positions/assign", headers=auth_headers, json={
            "employee_id": employee["id"], "drawer_id": drawer_id, "position": 3,
        })
        assert resp.status_code == 409

    def test_reorganization_endpoint_clamps(self, client, auth_headers):
        resp = client.post(f"{API}/reorganization/suggest", headers=auth_headers,
                           json={"critical_threshold": 5, "max_moves": 999})
        assert resp.status_code == 200
        plan = resp.json()["data"]
        assert plan["critical_threshold"] == 50
        assert plan["max_moves"] == 50
        assert plan["suggestions"] == []


class TestArchiveFlow:
    def test_terminate_transfer_dispose(self, client, auth_headers):
        box = client.post(f"{API}/archive/boxes", headers=auth_headers, json={
            "box_number": "CX-2024-01", "year": 2024, "capacity": 10,
        }).json()["data"]
        employee = create_employee(client, auth_headers, "M1")

        resp = client.post(f"{API}/employees/{employee['id']}/terminate", headers=auth_headers, json={
            "termination_date": "2024-05-01", "box_id": box["id"], "disposal_eligible_date": "2020-01-01",
        })
        assert resp.status_code == 200, resp.text
        result = resp.json()["data"]
        assert result["employee"]["status"] == "TERMINATED"
        item_id = result["archive_item"]["id"]

        again = client.post(f"{API}/employees/{employee['id']}/terminate", headers=auth_headers,
                            json={"termination_date": "2024-05-02"})
        assert again.status_code == 409

        candidates = client.get(f"{API}/archive/disposal-candidates", headers=auth_headers).json()["data"]
        assert [c["item_id"] for c in candidates] == [item_id]

        term = client.post(f"{API}/archive/disposal", headers=auth_headers,
                           json={"item_ids": [item_id]}).json()["data"]
        assert term["term_number"].startswith("TERMO-")
        assert term["registered_by"] == "admin"
        assert term["items"][0]["disposed"] is True

        boxes = client.get(f"{API}/archive/boxes", headers=auth_headers).json()["data"]
        assert boxes[0]["current_count"] == 1

    def test_transfer_endpoint(self, client, auth_headers):
        box = client.post(f"{API}/archive/boxes", headers=auth_headers, json={
            "box_number": "CX-1", "year": 2024, "capacity": 1,
        }).json()["data"]
        e1 = create_employee(client, auth_headers, "M1")
        e2 = create_employee(client, auth_headers, "M2")
        ok = client.post(f"{API}/archive/transfer", headers=auth_headers,
                         json={"employee_id": e1["id"], "box_id": box["id"]})
        assert ok.status_code == 200
        full = client.post(f"{API}/archive/transfer", headers=auth_headers,
                           json={"employee_id": e2["id"], "box_id": box["id"]})
        assert full.status_code == 409


class TestLoanFlow:
    def test_loan_lifecycle(self, client, auth_headers):
        employee = create_employee(client, auth_headers, "M1")
        past = date.today() - timedelta(days=10)
        loan = client.post(f"{API}/loans", headers=auth_headers, json={
            "employee_id": employee["id"],
            "requester_name": "Jurídico",
            "loan_date": past.isoformat(),
            "expected_return_date": (past + timedelta(days=3)).isoformat(),
        }).json()["data"]
        assert loan["loaned_by"] == "admin"

        overdue = client.get(f"{API}/loans/overdue", headers=auth_headers).json()["data"]
        assert overdue[0]["id"] == loan["id"]
        assert overdue[0]["days_overdue"] == 7

        report = client.get(f"{API}/reports/loans", headers=auth_headers).json()["data"]
        assert report["borrowed"] == 1
        assert report["overdue"] == 1

        returned = client.post(f"{API}/loans/{loan['id']}/return", headers=auth_headers, json={})
        assert returned.status_code == 200
        assert returned.json()["data"]["status"] == "RETURNED"
        assert client.post(f"{API}/loans/{loan['id']}/return", headers=auth_headers, json={}).status_code == 409
        assert client.get(f"{API}/loans/pending", headers=auth_headers).json()["data"] == []

    def test_invalid_status_filter(self, client, auth_headers):
        resp = client.get(f"{API}/loans", headers=auth_headers, params={"status": "perdido"})
        assert resp.status_code == 422


class TestReports:
    def test_dashboard_and_movements(self, client, auth_headers):
        create_employee(client, auth_headers, "M1")
        stats = client.get(f"{API}/reports/dashboard", headers=auth_headers).json()["data"]
        assert stats["active_employees"] == 1
        assert stats["terminated_employees"] == 0

        resp = client.post(f"{API}/movements", headers=auth_headers, json={"action": "CONFERENCIA", "note": "ok"})
        assert resp.status_code == 200
        recorded = resp.json()["data"]
        assert recorded["movement"]["actor"] == "admin"
        assert recorded["snapshot"]["last_movement"]["id"] == recorded["movement"]["id"]
        assert recorded["snapshot"]["movements_today"] == 1
        movements = client.get(f"{API}/movements", headers=auth_headers).json()["data"]
        assert movements[0]["action"] == "CONFERENCIA"

        report = client.get(f"{API}/reports/movements", headers=auth_headers).json()["data"]
        assert report["total"] == 1
        assert report["today"] == 1
        assert report["by_action"] == {"CONFERENCIA": 1}
        assert report["recent"][0]["note"] == "ok"


class TestStorageUnits:
    def test_create_and_list(self, client, auth_headers):
        resp = client.post(f"{API}/storage-units", headers=auth_headers, json={
            "label": " PT-01 ", "type": "pasta", "section": " ", "capacity": 40,
            "metadata": {"cor": "azul"},
        })
        assert resp.status_code == 200, resp.text
        created = resp.json()["data"]
        assert created["unit"]["label"] == "PT-01"
        assert created["unit"]["type"] == "PASTA"
        assert created["unit"]["section"] is None
        assert created["unit"]["occupancy"] == 0
        assert created["unit"]["metadata"] == {"cor": "azul"}
        assert created["snapshot"]["total_units"] == 1
        assert created["snapshot"]["units_by_type"]["PASTA"] == 1
        assert created["snapshot"]["last_movement"]["action"] == "Cadastro de unidade"

        units = client.get(f"{API}/storage-units", headers=auth_headers).json()["data"]
        assert [u["id"] for u in units] == [created["unit"]["id"]]

    def test_short_label_is_rejected(self, client, auth_headers):
        resp = client.post(f"{API}/storage-units", headers=auth_headers, json={"label": "X", "type": "CAIXA"})
        assert resp.status_code == 422
        assert "Informe um identificador" in resp.json()["error"]

    def test_requires_session(self, client):
        assert client.get(f"{API}/storage-units").status_code == 401


class TestEmployeeUpdate:
    def test_explicit_null_is_invalid_input(self, client, auth_headers):
        employee = create_employee(client, auth_headers, "M1")
        resp = client.put(f"{API}/employees/{employee['id']}", headers=auth_headers,
                          json={"admission_date": None})
        assert resp.status_code == 422
        assert resp.json()["code"] == "invalid_input"
        assert "admission_date" in resp.json()["error"]

    def test_omitted_fields_are_kept(self, client, auth_headers):
        employee = create_employee(client, auth_headers, "M1", full_name="Ana")
        resp = client.put(f"{API}/employees/{employee['id']}", headers=auth_headers, json={"notes": "x"})
        assert resp.status_code == 200
        assert resp.json()["data"]["full_name"] == "Ana"


class TestUnexpectedErrors:
    def test_unhandled_exception_uses_envelope(self, client, auth_headers):
        from fastapi.testclient import TestClient
        from app.db import get_db

        def broken_db():
            raise RuntimeError("boom")
            yield

        client.app.dependency_overrides[get_db] = broken_db
        resp = TestClient(client.app, raise_server_exceptions=False).get(
            f"{API}/storage-units", headers=auth_headers,
        )
        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert body["data"] is None
        assert body["code"] == "storage_failure"
        assert "RuntimeError" in body["error"]
