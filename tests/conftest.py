import asyncio
import json
import os
from datetime import datetime

# Set testing environment before the application is imported
os.environ["TESTING"] = "1"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite:///./test.db")

import fakeredis
import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from tickets.main import app
from tickets.api.deps import get_email_client, get_short_link_gateway
from tickets.core.database import Base, get_db, get_redis
from tickets.models.appointment import Appointment, AppointmentFormat
from tickets.models.invitation import Invitation  # noqa: F401
from tickets.services.email_client import EmailClient
from tickets.services.short_link import ShortLinkGateway

SHORTENER_API_URL = "https://shortener.test/short_url/hash"
INVITATION_BASE_URL = "https://tickets.test/api/validations"

# Create test database
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_tickets.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db


class FakeShortener:
    """Stands in for the URL shortening service.

    ``fail_on`` makes the n-th call (1-based) answer 500, ``delay`` maps the call
    number and token to the seconds to wait before answering.
    """

    def __init__(self, fail_on=None, delay=None):
        self.requests = []
        self.fail_on = fail_on
        self.delay = delay
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        number = len(self.requests)
        long_url = request.content.decode()
        token = long_url.rsplit("/", 1)[-1]

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay(number, token))
        finally:
            self.in_flight -= 1

        if self.fail_on == number:
            return httpx.Response(500, text="shortener exploded")
        return httpx.Response(
            200,
            json={
                "hash": token[:8],
                "short_url": f"https://sho.rt/{token}",
                "long_url": long_url,
            },
        )


class FakeEmailApi:
    """Stands in for the email API, failing for the addresses in ``fail_for``."""

    def __init__(self, fail_for=()):
        self.messages = []
        self.fail_for = set(fail_for)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if body["To"] in self.fail_for:
            return httpx.Response(503, json={"Message": "unavailable"})
        self.messages.append(body)
        return httpx.Response(200, json={"ErrorCode": 0, "Message": "OK"})


def make_gateway(shortener) -> ShortLinkGateway:
    return ShortLinkGateway(
        httpx.AsyncClient(transport=httpx.MockTransport(shortener)),
        api_url=SHORTENER_API_URL,
        api_key="test-api-key",
        base_url=INVITATION_BASE_URL,
    )


def make_email_client(email_api) -> EmailClient:
    return EmailClient(
        httpx.AsyncClient(transport=httpx.MockTransport(email_api)),
        base_url="https://email.test",
        sender="tickets@example.com",
        authorization_token="test-token",
    )


def add_appointment(db, **overrides) -> Appointment:
    data = {
        "title": "Workshop",
        "description": "Hands-on session",
        "format": AppointmentFormat.OFFLINE,
        "address": "123 Main St",
        "link": None,
        "date": datetime(2024, 10, 10, 10, 0),
        "duration": 3600,
    }
    data.update(overrides)
    appointment = Appointment(**data)
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


@pytest.fixture(scope="function")
def test_db():
    # Create tables
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def db_session(test_db):
    db = TestingSessionLocal()
    yield db
    db.close()

@pytest.fixture
def shortener():
    return FakeShortener()

@pytest.fixture
def email_api():
    return FakeEmailApi()

@pytest.fixture
def client(test_db, shortener, email_api):
    gateway = make_gateway(shortener)
    email_client = make_email_client(email_api)
    fake_redis = fakeredis.FakeRedis(decode_responses=True)

    app.dependency_overrides[get_short_link_gateway] = lambda: gateway
    app.dependency_overrides[get_email_client] = lambda: email_client
    app.dependency_overrides[get_redis] = lambda: fake_redis

    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

    for dependency in (get_short_link_gateway, get_email_client, get_redis):
        app.dependency_overrides.pop(dependency, None)
