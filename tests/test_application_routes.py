import pytest

from tests.conftest import job_payload, login


@pytest.fixture
async def posted_job(client_factory):
    """An admin client with one job already posted."""
    admin = client_factory()
    await login(admin, "boss@example.com", "Boss", "admin")
    job = (await admin.post("/api/jobs", json=job_payload())).json()
    return admin, job


@pytest.fixture
async def student(client_factory):
    client = client_factory()
    await login(client, "ada@example.com", "Ada", "student")
    return client


async def test_student_applies(student, posted_job, email_service):
    _, job = posted_job

    response = await student.post("/api/applications", json={"jobId": job["id"]})

    assert response.status_code == 201
    body = response.json()
    assert body["jobId"] == job["id"]
    assert body["status"] == "pending"
    assert email_service.templates_sent_to("ada@example.com")[-1] == "application_submitted"
    assert email_service.templates_sent_to("boss@example.com") == ["otp_code", "new_applicant"]


async def test_duplicate_application_rejected(student, posted_job):
    _, job = posted_job
    await student.post("/api/applications", json={"jobId": job["id"]})

    response = await student.post("/api/applications", json={"jobId": job["id"]})

    assert response.status_code == 400
    assert response.json()["detail"] == "Already applied to this job"
    assert len((await student.get("/api/applications/my")).json()) == 1


async def test_apply_to_missing_job(student):
    response = await student.post("/api/applications", json={"jobId": "nope"})

    assert response.status_code == 404


async def test_apply_requires_job_id(student):
    response = await student.post("/api/applications", json={})

    assert response.status_code == 400
    assert "jobId" in response.json()["errors"]


async def test_admin_cannot_apply(posted_job):
    admin, job = posted_job

    response = await admin.post("/api/applications", json={"jobId": job["id"]})

    assert response.status_code == 403


async def test_my_applications_include_job(student, posted_job):
    _, job = posted_job
    await student.post("/api/applications", json={"jobId": job["id"]})

    response = await student.get("/api/applications/my")

    assert response.status_code == 200
    [application] = response.json()
    assert application["job"]["id"] == job["id"]
    assert application["job"]["company"] == "Acme"


async def test_owner_sees_applicants(student, posted_job):
    admin, job = posted_job
    await student.post("/api/applications", json={"jobId": job["id"]})

    response = await admin.get(f"/api/jobs/{job['id']}/applications")

    assert response.status_code == 200
    [application] = response.json()
    assert application["student"]["email"] == "ada@example.com"


async def test_other_admin_cannot_see_applicants(client_factory, posted_job):
    _, job = posted_job
    rival = client_factory()
    await login(rival, "rival@example.com", "Rival", "admin")

    response = await rival.get(f"/api/jobs/{job['id']}/applications")

    assert response.status_code == 403


async def test_owner_accepts_application(student, posted_job, email_service):
    admin, job = posted_job
    application = (await student.post("/api/applications", json={"jobId": job["id"]})).json()

    response = await admin.patch(f"/api/applications/{application['id']}/status", json={"status": "accepted"})

    assert response.status_code == 200
    assert response.json()["status"] == "accepted"
    assert email_service.templates_sent_to("ada@example.com")[-1] == "application_accepted"
    [mine] = (await student.get("/api/applications/my")).json()
    assert mine["status"] == "accepted"


async def test_decision_is_final(student, posted_job):
    admin, job = posted_job
    application = (await student.post("/api/applications", json={"jobId": job["id"]})).json()
    url = f"/api/applications/{application['id']}/status"
    await admin.patch(url, json={"status": "declined"})

    response = await admin.patch(url, json={"status": "accepted"})

    assert response.status_code == 400
    [mine] = (await student.get("/api/applications/my")).json()
    assert mine["status"] == "declined"


async def test_non_owner_cannot_decide(client_factory, student, posted_job):
    _, job = posted_job
    application = (await student.post("/api/applications", json={"jobId": job["id"]})).json()
    rival = client_factory()
    await login(rival, "rival@example.com", "Rival", "admin")

    response = await rival.patch(f"/api/applications/{application['id']}/status", json={"status": "accepted"})

    assert response.status_code == 403
    [mine] = (await student.get("/api/applications/my")).json()
    assert mine["status"] == "pending"


async def test_invalid_status_rejected(student, posted_job):
    admin, job = posted_job
    application = (await student.post("/api/applications", json={"jobId": job["id"]})).json()
    url = f"/api/applications/{application['id']}/status"

    for status in ("pending", "maybe"):
        response = await admin.patch(url, json={"status": status})
        assert response.status_code == 400
        assert "status" in response.json()["errors"]


async def test_student_cannot_decide(student, posted_job):
    _, job = posted_job
    application = (await student.post("/api/applications", json={"jobId": job["id"]})).json()

    response = await student.patch(f"/api/applications/{application['id']}/status", json={"status": "accepted"})

    assert response.status_code == 403


async def test_decide_missing_application(posted_job):
    admin, _ = posted_job

    response = await admin.patch("/api/applications/nope/status", json={"status": "accepted"})

    assert response.status_code == 404


async def test_anonymous_apply_and_decide_are_forbidden(client, posted_job):
    _, job = posted_job

    apply_response = await client.post("/api/applications", json={"jobId": job["id"]})
    decide_response = await client.patch("/api/applications/any/status", json={"status": "accepted"})

    assert apply_response.status_code == 403
    assert apply_response.json()["detail"] == "Unauthorized"
    assert decide_response.status_code == 403


async def test_anonymous_my_applications_is_unauthenticated(client):
    response = await client.get("/api/applications/my")

    assert response.status_code == 401
    assert response.json()["detail"] == "Not authenticated"
