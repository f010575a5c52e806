import asyncio
import inspect
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timedelta

# Point the app at a throwaway database before anything imports the engine
_test_tmp_dir = tempfile.mkdtemp(prefix="banking_portal_test_")
os.environ["DATABASE_URL"] = f"sqlite:///{_test_tmp_dir}/test.db"
os.environ["SEED_DEMO_DATA"] = "false"
os.environ["BREVO_API_KEY"] = ""
os.environ.setdefault("SESSION_SECRET", "test-secret-key-for-testing-only-do-not-use-in-production")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from banking_portal.core.database import Base, SessionLocal, engine  # noqa: E402
from banking_portal.core.email import EmailDeliveryError  # noqa: E402
from banking_portal.dependencies import get_notifier  # noqa: E402
from banking_portal.main import app  # noqa: E402
from banking_portal.seed import DEMO_PASSWORD, seed_database  # noqa: E402


@dataclass
class SentOtp:
    to_email: str
    code: str
    name: str
    purpose: str


class RecordingNotifier:
    """Captures outgoing mail instead of calling Brevo."""

    def __init__(self):
        self.otps: list[SentOtp] = []
        self.confirmations: list[tuple] = []
        self.external_notices: list[tuple] = []
        self.fail_otp = False

    async def send_otp_notification(self, to_email, otp_code, name, purpose):
        if self.fail_otp:
            raise EmailDeliveryError("provider unavailable")
        self.otps.append(SentOtp(to_email, otp_code, name, purpose))

    async def send_bill_payment_confirmation(self, *args):
        self.confirmations.append(("bill_payment",) + args)

    async def send_cheque_order_confirmation(self, *args):
        self.confirmations.append(("cheque_order",) + args)

    async def send_external_account_notification(self, to_email, name, institution_name, deposit_1, deposit_2):
        self.external_notices.append((institution_name, deposit_1, deposit_2))

    def last_code(self, purpose: str) -> str:
        for sent in reversed(self.otps):
            if sent.purpose == purpose:
                return sent.code
        raise AssertionError(f"no {purpose} OTP was sent")


class FakeClock:
    def __init__(self, start: datetime = datetime(2025, 1, 20, 9, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def wrong_code(code: str) -> str:
    """A different valid-looking 6-digit code."""
    return "100000" if code != "100000" else "100001"


def pytest_pyfunc_call(pyfuncitem):
    if inspect.iscoroutinefunction(pyfuncitem.obj):
        call_kwargs = {
            name: pyfuncitem.funcargs[name]
            for name in pyfuncitem._fixtureinfo.argnames
            if name in pyfuncitem.funcargs
        }
        asyncio.run(pyfuncitem.obj(**call_kwargs))
        return True
    return None


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def demo_users(db):
    seed_database(db)


@pytest.fixture
def notifier():
    recorder = RecordingNotifier()
    app.dependency_overrides[get_notifier] = lambda: recorder
    yield recorder
    app.dependency_overrides.pop(get_notifier, None)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client(notifier, demo_users):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def member_client(client, notifier):
    """A client that completed both login steps as member 1972000."""
    response = client.post("/api/auth/login", json={"user_id": "1972000", "password": DEMO_PASSWORD})
    assert response.status_code == 200
    response = client.post(
        "/api/auth/verify-otp",
        json={"code": notifier.last_code("login"), "purpose": "login"},
    )
    assert response.status_code == 200
    return client
