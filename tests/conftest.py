import os
import time
from datetime import datetime, timedelta, timezone

# point the app at a throwaway DB before anything imports app.shared.db
os.environ["DB_URL"] = "sqlite://"
os.environ["ENV"] = "test"
os.environ.pop("SUMMARIZER_API_KEY", None)

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.shared.db import Base, SessionLocal, engine
from app.shared.deps import get_clock, get_summarizer


class TickingClock:
    """Deterministic clock; every reading is one step later than the previous one."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)):
        self.current = start or datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)
        self.step = step

    def now(self) -> datetime:
        self.current += self.step
        return self.current


class FakeSummarizer:
    def __init__(self):
        self.calls = []
        self.reply = "short summary"
        self.error: Exception | None = None
        self.delay = 0.0

    def summarize(self, title, text):
        self.calls.append((title, text))
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return self.reply


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def summarizer():
    return FakeSummarizer()


@pytest.fixture
def client(clock, summarizer):
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_summarizer] = lambda: summarizer
    # https so the Secure session cookies are sent back
    with TestClient(app, base_url="https://testserver") as c:
        yield c
    app.dependency_overrides.clear()


def signup(client, email="ada@example.com", password="s3cret-pass", name="Ada"):
    """Register a user and return bearer headers; the cookie jar is left empty."""
    r = client.post("/api/v1/users/register", json={"name": name, "email": email, "password": password})
    assert r.status_code == 201, r.text
    client.cookies.clear()
    return {"Authorization": f"Bearer {r.json()['data']['accessToken']}"}


@pytest.fixture(name="signup")
def signup_fixture(client):
    return lambda **kw: signup(client, **kw)
