from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select

from jobboard import models


def _job_count(db_session):
    return db_session.execute(select(func.count(models.Job.id))).scalar_one()


def _public_ids(client, **params):
    r = client.get("/api/jobs", params=params)
    assert r.status_code == 200, r.text
    return [j["id"] for j in r.json()["data"]["jobs"]]


def test_create_job_starts_pending(client, employer, job_payload):
    r = client.post("/api/jobs", json=job_payload(status="APPROVED"), headers=employer["headers"])
    assert r.status_code == 201, r.text
    job = r.json()["data"]["job"]

    assert job["status"] == "PENDING"
    assert job["postedBy"] == employer["user"]["id"]
    assert job["company"]["id"] == employer["user"]["company"]
    assert job["company"]["name"] == "Acme"
    assert job["requirements"] == ["3+ years Python", "SQL"]
    assert job["salaryRange"] == {"min": 90000.0, "max": 120000.0, "currency": "USD"}
    assert job["applicationCount"] == 0


def test_salary_min_above_max_is_rejected(client, employer, job_payload, db_session):
    payload = job_payload(salaryRange={"min": 150000, "max": 100000})
    r = client.post("/api/jobs", json=payload, headers=employer["headers"])

    assert r.status_code == 400
    assert r.json()["message"] == "Minimum salary cannot be greater than maximum salary"
    assert _job_count(db_session) == 0


def test_deadline_must_be_in_future(client, employer, job_payload, db_session):
    past = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
    r = client.post("/api/jobs", json=job_payload(applicationDeadline=past), headers=employer["headers"])
    assert r.status_code == 400
    assert r.json()["message"] == "Application deadline must be in the future"
    assert _job_count(db_session) == 0


def test_missing_fields_fail_validation(client, employer):
    r = client.post("/api/jobs", json={"title": "Only a title"}, headers=employer["headers"])
    assert r.status_code == 400
    fields = {d["field"] for d in r.json()["details"]}
    assert {"description", "location", "salaryRange", "jobType"} <= fields


def test_default_deadline_and_string_location(client, employer, job_payload):
    payload = job_payload(location="Denver")
    payload.pop("applicationDeadline")
    job = client.post("/api/jobs", json=payload, headers=employer["headers"]).json()["data"]["job"]

    assert job["location"]["city"] == "Denver"
    deadline = datetime.fromisoformat(job["applicationDeadline"].replace("Z", "+00:00"))
    if deadline.tzinfo is None:
        deadline = deadline.replace(tzinfo=timezone.utc)
    delta = deadline - datetime.now(timezone.utc)
    assert timedelta(days=29) < delta <= timedelta(days=30)


def test_rejected_job_not_in_public_listing(client, make_job, set_status):
    job = make_job()
    assert job["id"] not in _public_ids(client)

    set_status(job["id"], "REJECTED", notes="Missing salary details")
    assert job["id"] not in _public_ids(client, status="APPROVED")

    approved = make_job(title="Data Engineer")
    set_status(approved["id"], "APPROVED")
    assert _public_ids(client, status="APPROVED") == [approved["id"]]


def test_transition_is_idempotent(client, make_job, set_status):
    job = make_job()
    first = set_status(job["id"], "APPROVED")
    second = set_status(job["id"], "APPROVED", notes="Looks good")

    assert first["status"] == second["status"] == "APPROVED"
    assert second["adminNotes"] == "Looks good"


def test_invalid_transitions_rejected(client, admin, make_job, set_status):
    job = make_job()
    url = f"/api/jobs/admin/jobs/{job['id']}/status"

    r = client.patch(url, json={"status": "CLOSED"}, headers=admin["headers"])
    assert r.status_code == 400
    assert r.json()["message"] == "Cannot change job status from PENDING to CLOSED"

    set_status(job["id"], "APPROVED")
    set_status(job["id"], "CLOSED")
    r = client.patch(url, json={"status": "APPROVED"}, headers=admin["headers"])
    assert r.status_code == 400

    r = client.patch(url, json={"status": "BOGUS"}, headers=admin["headers"])
    assert r.status_code == 400


def test_transition_unknown_job_404(client, admin):
    r = client.patch("/api/jobs/admin/jobs/999/status", json={"status": "APPROVED"}, headers=admin["headers"])
    assert r.status_code == 404
    assert r.json()["message"] == "Job not found"


def test_status_notification_failure_keeps_transition(client, make_job, set_status, monkeypatch, db_session):
    from jobboard import notifications

    def boom(*args, **kwargs):
        raise OSError("smtp down")

    monkeypatch.setattr(notifications, "send_email", boom)
    job = make_job()
    updated = set_status(job["id"], "APPROVED")

    assert updated["status"] == "APPROVED"
    assert db_session.get(models.Job, job["id"]).status == models.JobStatus.APPROVED


def test_employer_dashboard_stats(client, employer, make_job, set_status):
    a = make_job(title="A")
    b = make_job(title="B")
    make_job(title="C")
    set_status(a["id"], "APPROVED")
    set_status(b["id"], "REJECTED")

    r = client.get("/api/jobs/employer/dashboard", headers=employer["headers"])
    assert r.status_code == 200
    data = r.json()["data"]
    assert len(data["jobs"]) == 3
    assert data["stats"]["totalJobs"] == 3
    assert data["stats"]["pendingJobs"] == 1
    assert data["stats"]["activeJobs"] == 1
    assert data["stats"]["totalApplications"] == 0
    assert data["stats"]["allStatuses"] == {"PENDING": 1, "APPROVED": 1, "REJECTED": 1, "CLOSED": 0}


def test_dashboard_only_shows_own_company(client, make_job, other_employer):
    make_job()
    r = client.get("/api/jobs/employer/dashboard", headers=other_employer["headers"])
    assert r.json()["data"]["stats"]["totalJobs"] == 0


def test_public_listing_features(client, make_job, set_status):
    listings = [
        dict(title="Python Developer", description="Own our API services", skills=["python"], jobType="FULL_TIME",
             salaryRange={"min": 100000, "max": 130000}),
        dict(title="Go Developer", description="Maintain the billing daemon", skills=["go"], jobType="PART_TIME",
             salaryRange={"min": 40000, "max": 60000},
             location={"city": "Remote", "remote": True}),
        dict(title="Frontend Developer", description="Craft the customer dashboard", skills=["react"], jobType="FULL_TIME",
             salaryRange={"min": 70000, "max": 90000},
             location={"city": "Boston", "state": "MA"}),
    ]
    ids = {}
    for fields in listings:
        job = make_job(**fields)
        set_status(job["id"], "APPROVED")
        ids[fields["title"]] = job["id"]

    assert _public_ids(client, q="python") == [ids["Python Developer"]]
    assert _public_ids(client, q="REACT") == [ids["Frontend Developer"]]
    assert set(_public_ids(client, jobType="FULL_TIME")) == {ids["Python Developer"], ids["Frontend Developer"]}
    assert _public_ids(client, remote="true") == [ids["Go Developer"]]
    assert _public_ids(client, location="boston") == [ids["Frontend Developer"]]
    assert _public_ids(client, minSalary=95000) == [ids["Python Developer"]]
    assert _public_ids(client, maxSalary=65000) == [ids["Go Developer"]]

    titles = [j["title"] for j in client.get("/api/jobs", params={"sort": "title"}).json()["data"]["jobs"]]
    assert titles == sorted(titles)

    r = client.get("/api/jobs", params={"limit": 2, "page": 2, "sort": "-salaryRange.min"})
    body = r.json()
    assert body["total"] == 3
    assert body["results"] == 1
    assert body["data"]["jobs"][0]["id"] == ids["Go Developer"]

    r = client.get("/api/jobs", params={"fields": "title,salaryRange"})
    assert set(r.json()["data"]["jobs"][0]) == {"id", "title", "salaryRange"}


def test_public_listing_rejects_bad_sort_and_paging(client):
    assert client.get("/api/jobs", params={"sort": "password"}).status_code == 400
    assert client.get("/api/jobs", params={"page": 0}).status_code == 400
    assert client.get("/api/jobs", params={"jobType": "CONTRACT"}).status_code == 400


def test_admin_listing_filters_by_status(client, admin, make_job, set_status):
    pending = make_job(title="Pending one")
    approved = make_job(title="Approved one")
    set_status(approved["id"], "APPROVED")

    r = client.get("/api/jobs/admin/jobs", params={"status": "pending"}, headers=admin["headers"])
    assert [j["id"] for j in r.json()["data"]["jobs"]] == [pending["id"]]

    r = client.get("/api/jobs/admin/jobs", headers=admin["headers"])
    assert r.json()["total"] == 2

    r = client.get("/api/jobs/admin/jobs", params={"status": "nope"}, headers=admin["headers"])
    assert r.status_code == 400


def test_get_job_counts_views_and_clicks(client, approved_job):
    url = f"/api/jobs/{approved_job['id']}"
    assert client.get(url).json()["data"]["job"]["viewsCount"] == 1
    assert client.get(url).json()["data"]["job"]["viewsCount"] == 2

    r = client.post(f"{url}/track-click")
    assert r.status_code == 200
    assert r.json()["data"]["applicationClickCount"] == 1

    assert client.get("/api/jobs/999").status_code == 404


def test_owner_can_update_job(client, employer, make_job):
    job = make_job()
    r = client.patch(
        f"/api/jobs/{job['id']}",
        json={"title": "Senior Backend Engineer", "salaryRange": {"min": 100000, "max": 140000}},
        headers=employer["headers"],
    )
    assert r.status_code == 200, r.text
    updated = r.json()["data"]["job"]
    assert updated["title"] == "Senior Backend Engineer"
    assert updated["salaryRange"]["max"] == 140000
    assert updated["status"] == "PENDING"


def test_update_rechecks_constraints(client, employer, make_job):
    job = make_job()
    r = client.patch(
        f"/api/jobs/{job['id']}", json={"salaryRange": {"min": 10, "max": 5}}, headers=employer["headers"]
    )
    assert r.status_code == 400

    past = (datetime.now(timezone.utc) - timedelta(hours=1)).isoformat()
    r = client.patch(f"/api/jobs/{job['id']}", json={"applicationDeadline": past}, headers=employer["headers"])
    assert r.status_code == 400


def test_other_employer_cannot_update_or_delete(client, make_job, other_employer):
    job = make_job()
    r = client.patch(f"/api/jobs/{job['id']}", json={"title": "Hijacked"}, headers=other_employer["headers"])
    assert r.status_code == 403
    assert r.json()["message"] == "Not authorized to update this job"

    r = client.delete(f"/api/jobs/{job['id']}", headers=other_employer["headers"])
    assert r.status_code == 403


def test_owner_and_admin_can_delete(client, employer, admin, make_job):
    mine = make_job()
    assert client.delete(f"/api/jobs/{mine['id']}", headers=employer["headers"]).status_code == 204
    assert client.get(f"/api/jobs/{mine['id']}").status_code == 404

    other = make_job()
    assert client.delete(f"/api/jobs/{other['id']}", headers=admin["headers"]).status_code == 204
