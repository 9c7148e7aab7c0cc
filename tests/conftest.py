import os

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["JWT_ACCESS_TOKEN_SECRET"] = "test-secret"

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from quotes_api.config import AuthConfig
from quotes_api.database import Base, engine, init_db
from quotes_api.dependencies import get_otp_manager, get_session_manager
from quotes_api.errors import SmsSendError
from quotes_api.main import app
from quotes_api.services.otp import OtpManager
from quotes_api.services.sessions import SessionManager
from quotes_api.services.tokens import TokenSigner

TEST_SECRET = "test-secret"


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeSmsSender:
    def __init__(self) -> None:
        self.sent = []
        self.fail = False

    def send(self, to_phone: str, code: str) -> bool:
        if self.fail:
            raise SmsSendError("Failed to send OTP SMS")
        self.sent.append((to_phone, code, "sync"))
        return True

    def send_async(self, to_phone: str, code: str) -> None:
        self.sent.append((to_phone, code, "async"))

    def last_code(self, to_phone: str) -> str:
        for phone, code, _ in reversed(self.sent):
            if phone == to_phone:
                return code
        raise AssertionError(f"no code sent to {to_phone}")


@pytest.fixture(autouse=True)
def database():
    init_db()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 5, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def sms():
    return FakeSmsSender()


@pytest.fixture
def config():
    return AuthConfig(signing_secret=TEST_SECRET, signing_algorithm="HS512")


@pytest.fixture
def sessions(config, clock):
    signer = TokenSigner(
        config.signing_secret, config.signing_algorithm, config.token_lifetime
    )
    return SessionManager(config, signer, clock=clock)


@pytest.fixture
def otp(config, sessions, sms, clock):
    return OtpManager(config, sessions, sms, clock=clock)


@pytest.fixture
def login(otp, sms):
    def _login(phone_number: str = "+15550001111"):
        otp.issue_otp(phone_number)
        return otp.verify_otp(phone_number, sms.last_code(phone_number))

    return _login


@pytest.fixture
def client(otp, sessions):
    app.dependency_overrides[get_otp_manager] = lambda: otp
    app.dependency_overrides[get_session_manager] = lambda: sessions
    yield TestClient(app)
    app.dependency_overrides.clear()
