import asyncio
import os

# Point the app at an in-memory database before anything imports the engine
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SEND_VERIFICATION_CODES", "false")

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from heartline.main import app
from heartline.db.database import Base, get_db, seed_communities
from heartline.db.models import user, token, swipe, image, community, chat_data  # noqa: F401
from heartline.core.dependencies import (
    get_email_sender,
    get_face_detector,
    get_image_storage,
    get_notifier,
    get_sms_sender,
)

TEST_COMMUNITIES = ["Travel", "Music", "Fitness"]
STRONG_PASSWORD = "Abcdef1!"


class RecordingSender:
    """Stands in for the email or SMS sender and keeps every code it was asked to send."""

    def __init__(self):
        self.sent = []
        self.error = None
        self.delay = 0

    async def send_verification_code(self, to, code):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        self.sent.append((to, code))
        return "fake"

    def last_code(self, to):
        for recipient, code in reversed(self.sent):
            if recipient == to:
                return code
        return None


class FakeStorage:
    def __init__(self):
        self.objects = {}
        self.fail_uploads = False
        self.fail_deletes = False

    async def upload(self, object_name, data, content_type):
        if self.fail_uploads:
            raise RuntimeError("storage unavailable")
        self.objects[object_name] = (data, content_type)

    async def delete(self, object_name):
        if self.fail_deletes:
            raise RuntimeError("storage unavailable")
        self.objects.pop(object_name, None)

    async def presigned_url(self, object_name):
        return f"https://storage.test/{object_name}?signed=1"


class FakeNotifier:
    def __init__(self):
        self.published = []
        self.error = None

    async def publish_chat_notification(self, receiver_id, payload):
        if self.error:
            raise self.error
        self.published.append((receiver_id, payload))
        return 1


class FakeDetector:
    def __init__(self):
        self.result = {"success": True, "faces": 1, "boxes": [[10, 10, 50, 50]], "message": "Face detected."}

    def __call__(self, image_bytes):
        return self.result


class Providers:
    def __init__(self):
        self.email = RecordingSender()
        self.sms = RecordingSender()
        self.storage = FakeStorage()
        self.notifier = FakeNotifier()
        self.detector = FakeDetector()


@pytest_asyncio.fixture
async def session_maker():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    maker = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with maker() as session:
        await seed_communities(session, TEST_COMMUNITIES)

    yield maker
    await engine.dispose()


@pytest.fixture
def providers():
    return Providers()


@pytest_asyncio.fixture
async def client(session_maker, providers):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_sender] = lambda: providers.email
    app.dependency_overrides[get_sms_sender] = lambda: providers.sms
    app.dependency_overrides[get_image_storage] = lambda: providers.storage
    app.dependency_overrides[get_notifier] = lambda: providers.notifier
    app.dependency_overrides[get_face_detector] = lambda: providers.detector

    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def signup_payload(phone_or_email="user@example.com", **overrides):
    payload = {
        "name": "Alex",
        "phoneOrEmail": phone_or_email,
        "password": STRONG_PASSWORD,
        "dateOfBirth": "1995-04-12",
        "gender": "female",
        "preferredGenders": ["male"],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def register(client, providers):
    """Sign up, verify and sign in a user. Returns (user_id, auth headers)."""

    async def _register(phone_or_email, **overrides):
        res = await client.post("/api/user/signup", json=signup_payload(phone_or_email, **overrides))
        assert res.status_code == 201, res.text
        user_id = res.json()["userId"]

        sender = providers.email if "@" in phone_or_email else providers.sms
        code = sender.last_code(phone_or_email.lower() if "@" in phone_or_email else phone_or_email)
        res = await client.post("/api/user/verify", json={"phoneOrEmail": phone_or_email, "code": code})
        assert res.status_code == 200, res.text

        res = await client.post(
            "/api/user/signin",
            json={"phoneOrEmail": phone_or_email, "password": overrides.get("password", STRONG_PASSWORD)},
        )
        assert res.status_code == 200, res.text
        return user_id, {"Authorization": f"Bearer {res.json()['token']}"}

    return _register
