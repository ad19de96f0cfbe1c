import pytest

from jobboard.auth import Principal, require_roles
from jobboard.errors import NotAuthorizedError


def test_role_gate_is_case_insensitive():
    gate = require_roles("ADMIN", "Employer")
    principal = Principal(user_id=1, role="employer")
    assert gate(principal) is principal

    with pytest.raises(NotAuthorizedError):
        gate(Principal(user_id=2, role="jobseeker"))


def test_jobseeker_cannot_post_jobs(client, jobseeker, job_payload):
    r = client.post("/api/jobs", json=job_payload(), headers=jobseeker["headers"])
    assert r.status_code == 403
    assert r.json()["message"] == "Not authorized to access this route"


def test_employer_cannot_reach_admin_routes(client, employer):
    assert client.get("/api/jobs/admin/jobs", headers=employer["headers"]).status_code == 403
    r = client.patch("/api/jobs/admin/jobs/1/status", json={"status": "APPROVED"}, headers=employer["headers"])
    assert r.status_code == 403


def test_admin_cannot_use_jobseeker_routes(client, admin):
    assert client.get("/api/jobs/user/applications", headers=admin["headers"]).status_code == 403


def test_protected_route_without_token(client):
    r = client.get("/api/jobs/employer/dashboard")
    assert r.status_code == 401
    assert r.json()["message"] == "Not authorized to access this route"


def test_refresh_token_is_not_a_bearer_credential(client, employer):
    refresh = employer["tokens"]["refreshToken"]
    r = client.get("/api/jobs/employer/dashboard", headers={"Authorization": f"Bearer {refresh}"})
    assert r.status_code == 401
