"""HTTP-level tests: route rules, tenant scoping and error shapes."""
from __future__ import annotations

from tests.conftest import A_ADMIN, A_EMPLOYEE, A_INACTIVE, B_EMPLOYEE, make_token


def test_health_is_public(client):
    resp = client.get("/health")
    assert resp.status_code == 200


def test_missing_token(client):
    resp = client.get("/me")
    assert resp.status_code == 401


def test_malformed_authorization_header(client, tokens):
    resp = client.get("/me", headers={"Authorization": f"Token {tokens['hr']}"})
    assert resp.status_code == 400


def test_expired_token(client):
    expired = make_token(A_EMPLOYEE, "ed@acme.test", expires_in=-3600)
    assert client.get("/me", headers={"Authorization": f"Bearer {expired}"}).status_code == 401


def test_token_without_active_profile(client):
    for user_id in (A_INACTIVE, "dddddddd-0000-4000-8000-000000000000"):
        token = make_token(user_id, "someone@acme.test")
        resp = client.get("/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid or inactive user"


def test_me(client, auth):
    resp = client.get("/me", headers=auth("hr"))
    assert resp.status_code == 200
    body = resp.json()
    assert body["profile"]["email"] == "hr@acme.test"
    assert body["profile"]["role"] == "hr"
    assert body["profile"]["organization"]["orgname"] == "Acme"
    assert body["permissions"]["can_create_employee"] is True
    assert body["permissions"]["can_delete_employee"] is False
    assert body["principal"]["email"] == "hr@acme.test"


def test_employee_list_is_tenant_scoped(client, auth):
    acme = {p["email"] for p in client.get("/employees", headers=auth("employee")).json()}
    globex = {p["email"] for p in client.get("/employees", headers=auth("globex")).json()}

    assert acme == {"admin@acme.test", "hr@acme.test", "ed@acme.test"}
    assert globex == {"admin@globex.test", "bob@globex.test"}


def test_other_tenant_employee_is_not_found(client, auth):
    assert client.get(f"/employees/{B_EMPLOYEE}", headers=auth("admin")).status_code == 404


def test_employee_cannot_edit(client, auth):
    resp = client.patch(f"/employees/{A_EMPLOYEE}", json={"fullname": "Hacked"}, headers=auth("employee"))
    assert resp.status_code == 403
    assert "can_edit_employee" in resp.json()["detail"]


def test_hr_edits_employee(client, auth):
    resp = client.patch(f"/employees/{A_EMPLOYEE}", json={"fullname": "Edward"}, headers=auth("hr"))
    assert resp.status_code == 200
    assert resp.json()["fullname"] == "Edward"


def test_update_rejects_tenant_columns(client, auth):
    resp = client.patch(f"/employees/{A_EMPLOYEE}", json={"orgid": 2}, headers=auth("admin"))
    assert resp.status_code == 422


def test_status_cannot_be_patched(client, auth):
    resp = client.patch(f"/employees/{A_EMPLOYEE}", json={"status": "Inactive"}, headers=auth("hr"))
    assert resp.status_code == 422


def test_hr_cannot_delete(client, auth):
    assert client.delete(f"/employees/{A_EMPLOYEE}", headers=auth("hr")).status_code == 403


def test_admin_deactivates_employee(client, auth):
    assert client.delete(f"/employees/{A_EMPLOYEE}", headers=auth("admin")).status_code == 204
    assert client.get(f"/employees/{A_EMPLOYEE}", headers=auth("admin")).status_code == 404
    # A deactivated user can no longer call the API.
    assert client.get("/me", headers=auth("employee")).status_code == 401


def test_admin_cannot_deactivate_self(client, auth):
    resp = client.delete(f"/employees/{A_ADMIN}", headers=auth("admin"))
    assert resp.status_code == 403


def test_attendance_day(client, auth):
    first = client.post("/attendance/check-in", json={"latitude": 1.5, "longitude": 2.5}, headers=auth("employee"))
    assert first.status_code == 201
    assert first.json()["duration"] == "In Progress"
    assert first.json()["locationlat"] == 1.5

    again = client.post("/attendance/check-in", headers=auth("employee"))
    assert again.status_code == 409

    today = client.get("/attendance/today", headers=auth("employee")).json()
    assert today["attendanceid"] == first.json()["attendanceid"]

    out = client.post("/attendance/check-out", headers=auth("employee"))
    assert out.status_code == 200
    assert out.json()["checkouttime"] is not None


def test_attendance_edit_is_hr_only(client, auth):
    row = client.post("/attendance/check-in", headers=auth("employee")).json()

    denied = client.patch(f"/attendance/{row['attendanceid']}", json={"status": "Absent"}, headers=auth("employee"))
    assert denied.status_code == 403

    allowed = client.patch(f"/attendance/{row['attendanceid']}", json={"status": "Absent"}, headers=auth("hr"))
    assert allowed.status_code == 200
    assert allowed.json()["status"] == "Absent"


def test_attendance_listing(client, auth):
    row = client.post("/attendance/check-in", headers=auth("employee")).json()
    day = row["date"]

    assert client.get("/attendance", params={"start": day, "end": day}, headers=auth("employee")).status_code == 403

    listed = client.get("/attendance", params={"start": day, "end": day}, headers=auth("hr")).json()
    assert [r["fullname"] for r in listed] == ["Ed Engineer"]

    foreign = client.get("/attendance", params={"start": day, "end": day}, headers=auth("globex")).json()
    assert foreign == []


def test_clients_listing_needs_manage_organization(client, auth):
    assert client.get("/organization/clients", headers=auth("hr")).status_code == 403

    resp = client.get("/organization/clients", headers=auth("admin"))
    assert resp.status_code == 200
    assert [c["clientname"] for c in resp.json()] == ["Acme HQ"]


def test_reference_data_is_scoped(client, auth):
    acme = [d["departmentname"] for d in client.get("/departments", headers=auth("employee")).json()]
    globex = [d["departmentname"] for d in client.get("/departments", headers=auth("globex")).json()]
    assert acme == ["Engineering"]
    assert globex == ["Sales"]
    assert client.get("/organization", headers=auth("employee")).json()["clientname"] == "Acme HQ"


def test_dashboard_shape_depends_on_role(client, auth):
    hr = client.get("/dashboard", headers=auth("hr")).json()
    assert hr["total_employees"] == 3

    mine = client.get("/dashboard", headers=auth("employee")).json()
    assert mine["checked_in"] is False
    assert "total_employees" not in mine
