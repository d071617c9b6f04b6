import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import create_engine

from taskboard.config import Settings
from taskboard.database import wait_for_database


class FlakyEngine:
    """Fails the first `failures` connection attempts, then connects for real."""

    def __init__(self, failures):
        self.failures = failures
        self.calls = 0
        self._engine = create_engine("sqlite://")

    def connect(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))
        return self._engine.connect()


def test_wait_for_database_retries_until_connected():
    bind = FlakyEngine(failures=2)
    wait_for_database(bind, attempts=5, delay=0)
    assert bind.calls == 3


def test_wait_for_database_gives_up():
    bind = FlakyEngine(failures=10)
    with pytest.raises(RuntimeError):
        wait_for_database(bind, attempts=3, delay=0)
    assert bind.calls == 3


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("JWT_EXPIRATION_SECONDS", "120")
    monkeypatch.setenv("DB_CONNECT_RETRIES", "2")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    s = Settings()
    assert s.JWT_EXPIRATION_SECONDS == 120
    assert s.DB_CONNECT_RETRIES == 2
    assert s.LOG_LEVEL == "DEBUG"
    assert s.JWT_ALGORITHM == "HS256"


def test_settings_refuse_default_secret_outside_dev(monkeypatch):
    monkeypatch.setenv("ENV", "prod")
    monkeypatch.delenv("JWT_SECRET", raising=False)
    monkeypatch.delenv("ALLOW_INSECURE_JWT", raising=False)
    with pytest.raises(RuntimeError):
        Settings()
    monkeypatch.setenv("JWT_SECRET", "a-real-secret")
    assert Settings().ENV == "prod"
