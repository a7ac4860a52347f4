import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("EMAIL_BACKEND", "disabled")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import sys
from pathlib import Path

project_root = Path(__file__).resolve().parents[1]
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from bid_accounts.core.config import Settings, VerificationPolicy
from bid_accounts.core.database import Database
from bid_accounts.core.security import PasswordHasher, TokenGenerator
from bid_accounts.main import create_app
from bid_accounts.services.account_store import AccountStore
from bid_accounts.services.accounts import AccountService
from bid_accounts.services.email_service import EmailService, NotificationResult
from bid_accounts.services.email_verification import VerificationLifecycle


class RecordingNotifier(EmailService):
    """Email service that records what would have been sent"""

    def __init__(self, settings: Settings):
        super().__init__(settings)
        self.sent = []
        self.fail = False
        self.explode = False

    def _record(self, kind: str, email: str, **data) -> NotificationResult:
        self.sent.append({"kind": kind, "email": email, **data})
        if self.explode:
            raise RuntimeError("mail server on fire")
        if self.fail:
            return NotificationResult(success=False, error="mailbox unavailable")
        return NotificationResult(success=True)

    def send_welcome(self, email: str, full_name: str) -> NotificationResult:
        return self._record("welcome", email, full_name=full_name)

    def send_verification(self, email: str, full_name: str, verification_link: str) -> NotificationResult:
        return self._record("verification", email, full_name=full_name, link=verification_link)

    def of_kind(self, kind: str):
        return [entry for entry in self.sent if entry["kind"] == kind]


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": "sqlite://",
        "password_hash_rounds": 4,
        "email_backend": "disabled",
        "expose_verification_token": True,
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture()
def settings():
    return make_settings()


@pytest.fixture()
def notifier(settings):
    return RecordingNotifier(settings)


@pytest.fixture()
def database():
    db = Database("sqlite://").open()
    db.create_all()
    yield db
    db.close()


@pytest.fixture()
def db_session(database):
    with database.session() as session:
        yield session


@pytest.fixture()
def store(db_session):
    return AccountStore(db_session)


@pytest.fixture()
def clock():
    return FrozenClock(datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture()
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture()
def lifecycle(clock):
    return VerificationLifecycle(TokenGenerator(ttl=timedelta(hours=24), clock=clock))


@pytest.fixture()
def make_service(store, hasher, lifecycle, notifier):
    def _make(policy: VerificationPolicy = VerificationPolicy.GATED) -> AccountService:
        return AccountService(
            store=store,
            hasher=hasher,
            lifecycle=lifecycle,
            notifier=notifier,
            policy=policy,
            frontend_url="http://frontend.test",
        )
    return _make


@pytest.fixture()
def make_client(notifier):
    clients = []

    def _make(**overrides) -> TestClient:
        app = create_app(make_settings(**overrides))
        app.state.notifier = notifier
        test_client = TestClient(app, raise_server_exceptions=False)
        test_client.__enter__()
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        test_client.__exit__(None, None, None)


@pytest.fixture()
def client(make_client):
    return make_client()


@pytest.fixture()
def auto_client(make_client):
    return make_client(verification_policy=VerificationPolicy.AUTO_VERIFIED)


@pytest.fixture()
def settings_factory():
    return make_settings
