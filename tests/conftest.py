import os
from datetime import datetime, timedelta, timezone

# Set Env Vars BEFORE any app imports to satisfy Pydantic Settings
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.config import Settings
from app.db import MemoryStorage, SqlStorage, create_db_engine
from app.main import create_app
from app.models.entities import Job, User, UserRole
from app.services.email_service import EmailService


class FakeClock:
    """Controllable replacement for utcnow()."""

    def __init__(self, start: datetime = None):
        self.now = start or datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingEmailService(EmailService):
    """Captures outgoing emails instead of talking to SMTP."""

    def __init__(self, settings: Settings):
        super().__init__(settings)
        self.sent = []
        self.fail = False

    async def send(self, to_email: str, subject: str, template_name: str, **context) -> bool:
        # Render anyway so template errors surface in tests
        self.render(template_name, **context)
        if self.fail:
            return False
        self.sent.append({"to": to_email, "subject": subject, "template": template_name, "context": context})
        return True

    def templates_sent_to(self, email: str):
        return [m["template"] for m in self.sent if m["to"] == email]


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        storage_backend="memory",
        jwt_secret_key="test-secret",
        expose_dev_otp=True,
        smtp_user="",
        smtp_password="",
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def email_service(settings):
    return RecordingEmailService(settings)


@pytest.fixture
async def memory_storage():
    storage = MemoryStorage()
    await storage.init()
    yield storage
    await storage.close()


@pytest.fixture
async def sql_storage():
    storage = SqlStorage(create_db_engine("sqlite://"))
    await storage.init()
    yield storage
    await storage.close()


@pytest.fixture
async def sql_file_storages(tmp_path):
    """
    Factory for SqlStorage instances sharing one SQLite file, each on its
    own engine like separate worker processes.
    """
    url = f"sqlite:///{tmp_path / 'portal.db'}"
    opened = []

    async def make() -> SqlStorage:
        backend = SqlStorage(create_db_engine(url))
        await backend.init()
        opened.append(backend)
        return backend

    yield make
    for backend in opened:
        await backend.close()


@pytest.fixture(params=["memory", "sql"])
async def storage(request):
    """Runs a test once against each backend."""
    if request.param == "memory":
        backend = MemoryStorage()
    else:
        backend = SqlStorage(create_db_engine("sqlite://"))
    await backend.init()
    yield backend
    await backend.close()


@pytest.fixture
def app(settings, memory_storage, email_service):
    return create_app(settings=settings, storage=memory_storage, email_service=email_service)


@pytest.fixture
async def client_factory(app):
    """Each client keeps its own cookie jar, i.e. its own browser session."""
    clients = []

    def make() -> AsyncClient:
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(client)
        return client

    yield make
    for client in clients:
        await client.aclose()


@pytest.fixture
def client(client_factory):
    return client_factory()


async def login(client: AsyncClient, email: str, name: str, role: str) -> dict:
    """Run the OTP flow through the API and return the user payload."""
    sent = await client.post("/api/auth/send-otp", json={"email": email, "name": name, "role": role})
    assert sent.status_code == 200, sent.text
    code = sent.json()["devOtp"]

    verified = await client.post(
        "/api/auth/verify-otp",
        json={"email": email, "code": code, "name": name, "role": role}
    )
    assert verified.status_code == 200, verified.text
    return verified.json()["user"]


def job_payload(**overrides) -> dict:
    payload = {
        "title": "Backend Intern",
        "company": "Acme",
        "location": "Bengaluru",
        "description": "Build APIs",
        "requirements": "Python, SQL, Git",
        "deadline": (datetime.now(timezone.utc) + timedelta(days=30)).isoformat(),
    }
    payload.update(overrides)
    return payload


def make_user(role: UserRole = UserRole.student, email: str = None, name: str = "Ada") -> User:
    return User(email=email or f"{role.value}-{name.lower()}@example.com", name=name, role=role, is_verified=True)


def make_job(posted_by: str, created_at: datetime = None, deadline: datetime = None, title: str = "Intern") -> Job:
    now = datetime.now(timezone.utc)
    return Job(
        title=title,
        company="Acme",
        location="Remote",
        description="Work on things",
        requirements="Python, SQL",
        deadline=deadline or now + timedelta(days=30),
        posted_by=posted_by,
        created_at=created_at or now
    )
