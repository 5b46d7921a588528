"""Both storage backends must behave identically; every test runs on each."""

from datetime import datetime, timedelta, timezone

import pytest

from app.core.exceptions import DuplicateRecord
from app.models.entities import Application, ApplicationStatus, Otp, Session, UserRole
from tests.conftest import make_job, make_user

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


async def test_ping(storage):
    assert await storage.ping() is True


async def test_user_roundtrip_and_lookup_by_email(storage):
    user = await storage.create_user(make_user(UserRole.admin, email="boss@example.com"))

    by_id = await storage.get_user(user.id)
    by_email = await storage.get_user_by_email("boss@example.com")

    assert by_id.model_dump() == user.model_dump()
    assert by_email.id == user.id
    assert by_email.role == UserRole.admin


async def test_missing_records_are_none_not_errors(storage):
    assert await storage.get_user("nope") is None
    assert await storage.get_user_by_email("nobody@example.com") is None
    assert await storage.get_job("nope") is None
    assert await storage.get_application("nope") is None
    assert await storage.get_latest_otp_by_email("nobody@example.com") is None
    assert await storage.get_session("nope") is None
    assert await storage.list_jobs() == []


async def test_duplicate_email_rejected(storage):
    await storage.create_user(make_user(email="dup@example.com"))
    with pytest.raises(DuplicateRecord):
        await storage.create_user(make_user(email="dup@example.com", name="Other"))


async def test_update_user_is_partial(storage):
    user = await storage.create_user(
        make_user(email="ada@example.com").model_copy(update={"is_verified": False})
    )

    updated = await storage.update_user(user.id, is_verified=True)

    assert updated.is_verified is True
    assert updated.name == user.name
    assert updated.role == user.role
    assert (await storage.get_user(user.id)).is_verified is True


async def test_update_missing_user_returns_none(storage):
    assert await storage.update_user("missing", is_verified=True) is None


async def test_latest_otp_is_most_recently_created(storage):
    older = Otp(email="a@b.com", code="111111", created_at=T0, expires_at=T0 + timedelta(minutes=5))
    newer = Otp(email="a@b.com", code="222222", created_at=T0 + timedelta(seconds=30),
                expires_at=T0 + timedelta(minutes=5, seconds=30))
    other = Otp(email="c@d.com", code="333333", created_at=T0 + timedelta(minutes=1),
                expires_at=T0 + timedelta(minutes=6))
    # Insert out of order so the backend has to sort
    await storage.create_otp(newer)
    await storage.create_otp(older)
    await storage.create_otp(other)

    latest = await storage.get_latest_otp_by_email("a@b.com")

    assert latest.code == "222222"
    assert latest.expires_at == newer.expires_at


async def test_delete_otp_exposes_previous_code(storage):
    older = Otp(email="a@b.com", code="111111", created_at=T0, expires_at=T0 + timedelta(minutes=5))
    newer = Otp(email="a@b.com", code="222222", created_at=T0 + timedelta(seconds=1),
                expires_at=T0 + timedelta(minutes=5))
    await storage.create_otp(older)
    await storage.create_otp(newer)

    assert await storage.delete_otp(newer.id) is True
    assert await storage.delete_otp(newer.id) is False
    assert await storage.delete_otp("not-there") is False

    assert (await storage.get_latest_otp_by_email("a@b.com")).code == "111111"


async def test_jobs_listed_newest_first(storage):
    admin = await storage.create_user(make_user(UserRole.admin, email="admin@example.com"))
    other = await storage.create_user(make_user(UserRole.admin, email="other@example.com"))
    first = await storage.create_job(make_job(admin.id, created_at=T0, title="First"))
    second = await storage.create_job(make_job(other.id, created_at=T0 + timedelta(hours=1), title="Second"))
    third = await storage.create_job(make_job(admin.id, created_at=T0 + timedelta(hours=2), title="Third"))

    assert [j.id for j in await storage.list_jobs()] == [third.id, second.id, first.id]
    assert [j.id for j in await storage.list_jobs_by_admin(admin.id)] == [third.id, first.id]
    assert (await storage.get_job(second.id)).title == "Second"


async def test_job_timestamps_come_back_as_utc(storage):
    admin = await storage.create_user(make_user(UserRole.admin))
    job = await storage.create_job(make_job(admin.id, created_at=T0, deadline=T0 + timedelta(days=7)))

    fetched = await storage.get_job(job.id)

    assert fetched.deadline == T0 + timedelta(days=7)
    assert fetched.deadline.tzinfo is not None


async def test_one_application_per_job_and_student(storage):
    await storage.create_application(Application(job_id="job-1", student_id="stu-1"))
    with pytest.raises(DuplicateRecord):
        await storage.create_application(Application(job_id="job-1", student_id="stu-1"))

    found = await storage.get_application_by_job_and_student("job-1", "stu-1")
    assert found.status == ApplicationStatus.pending
    assert await storage.get_application_by_job_and_student("job-1", "stu-2") is None


async def test_application_listings(storage):
    a1 = await storage.create_application(Application(job_id="job-1", student_id="stu-1", applied_at=T0))
    a2 = await storage.create_application(
        Application(job_id="job-1", student_id="stu-2", applied_at=T0 + timedelta(minutes=1))
    )
    a3 = await storage.create_application(
        Application(job_id="job-2", student_id="stu-1", applied_at=T0 + timedelta(minutes=2))
    )

    assert [a.id for a in await storage.list_applications_by_job("job-1")] == [a2.id, a1.id]
    assert [a.id for a in await storage.list_applications_by_student("stu-1")] == [a3.id, a1.id]
    assert await storage.list_applications_by_student("stu-9") == []


async def test_update_application_status(storage):
    application = await storage.create_application(Application(job_id="job-1", student_id="stu-1"))

    updated = await storage.update_application_status(application.id, ApplicationStatus.accepted)

    assert updated.status == ApplicationStatus.accepted
    assert (await storage.get_application(application.id)).status == ApplicationStatus.accepted
    assert await storage.update_application_status("missing", ApplicationStatus.declined) is None


async def test_session_lifecycle(storage):
    session = Session(id="sid-1", user_id="u-1", role=UserRole.student,
                      created_at=T0, expires_at=T0 + timedelta(hours=1))
    await storage.create_session(session)

    assert (await storage.get_session("sid-1")).user_id == "u-1"
    assert await storage.delete_session("sid-1") is True
    assert await storage.delete_session("sid-1") is False
    assert await storage.get_session("sid-1") is None
