import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from cartas.app import create_app
from cartas.auth.passwords import hash_password
from cartas.config import Settings
from cartas.infra.letter_repo import InMemoryLetterRepo

PASSWORDS = {
    "user_1": "primera-clave-de-prueba",
    "user_2": "segunda-clave-de-prueba",
}

LETTER = {
    "subject": "Hola",
    "body": "<p>Primera carta</p>",
    "signature": "Ana",
}


class ManualClock:
    """Clock the tests move by hand."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture(scope="session")
def password_hashes() -> dict:
    # argon2 is slow on purpose; hash once per test session.
    return {identity: hash_password(pw) for identity, pw in PASSWORDS.items()}


@pytest.fixture()
def settings(password_hashes) -> Settings:
    return Settings(
        secret_key="clave-de-firma-de-pruebas",
        user_1_password_hash=password_hashes["user_1"],
        user_2_password_hash=password_hashes["user_2"],
        environment="development",
        log_level="DEBUG",
    )


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock(datetime.now(timezone.utc).replace(microsecond=0))


@pytest.fixture()
def repo() -> InMemoryLetterRepo:
    return InMemoryLetterRepo()


@pytest.fixture()
def app(settings, repo, clock):
    return create_app(settings, repo=repo, clock=clock)


@pytest.fixture()
def make_client(app):
    """Each call returns an independent browser (own cookie jar)."""

    def _make() -> TestClient:
        return TestClient(app)

    return _make


@pytest.fixture()
def client(make_client) -> TestClient:
    return make_client()


def login(client: TestClient, identity: str = "user_1"):
    r = client.post("/auth/login", json={"password": PASSWORDS[identity]})
    assert r.status_code == 200, r.text
    return r


@pytest.fixture()
def user_1(make_client) -> TestClient:
    c = make_client()
    login(c, "user_1")
    return c


@pytest.fixture()
def user_2(make_client) -> TestClient:
    c = make_client()
    login(c, "user_2")
    return c
