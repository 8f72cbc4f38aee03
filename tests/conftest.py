# tests/conftest.py
"""
Fixtures for the qrdash test-suite.

Every test gets a fresh app bound to an in-memory SQLite database; no Redis
and no geo lookups are configured, so nothing leaves the process. Access
tokens are minted locally with the same HS256 secret the app validates with.
"""

import datetime
import os

# Config is read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BASE_URL", "http://qr.test")
os.environ["REDIS_URL"] = ""
os.environ["GEOIP_LOOKUP_URL"] = ""

import jwt
import pytest

from qrdash import create_app, extensions
from qrdash.config import Config
from qrdash.extensions import db
from qrdash.models.profile import Profile
from qrdash.models.qr_code import QRCode

JWT_SECRET = "test-jwt-secret"

DESKTOP_CHROME_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    BASE_URL = "http://qr.test"
    HOME_URL = "http://qr.test/"
    PASSWORD_GATE_URL = "http://qr.test/protected"
    AUTH_JWT_SECRET = JWT_SECRET
    AUTH_JWT_AUDIENCE = "authenticated"
    REDIS_URL = None
    GEOIP_LOOKUP_URL = ""
    DASHBOARD_TIMEZONE = "UTC"
    FREE_QR_QUOTA = 5
    BLOCKED_DOMAINS = ["blocked.example"]


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_token():
    def _make(user_id="user-1", email="owner@example.com", expires_in=3600, secret=JWT_SECRET):
        now = datetime.datetime.now(datetime.timezone.utc)
        payload = {
            "sub": user_id,
            "email": email,
            "aud": "authenticated",
            "iat": now,
            "exp": now + datetime.timedelta(seconds=expires_in),
        }
        return jwt.encode(payload, secret, algorithm="HS256")

    return _make


@pytest.fixture
def auth_headers(make_token):
    def _headers(user_id="user-1"):
        return {"Authorization": f"Bearer {make_token(user_id)}"}

    return _headers


@pytest.fixture
def make_profile(app):
    def _make(user_id="user-1", subscription_status="free", qr_quota=5, qr_used=0):
        profile = Profile(
            id=user_id,
            email=f"{user_id}@example.com",
            subscription_status=subscription_status,
            qr_quota=qr_quota,
            qr_used=qr_used,
        )
        db.session.add(profile)
        db.session.commit()
        return profile

    return _make


@pytest.fixture
def make_code(app):
    counter = {"n": 0}

    def _make(user_id="user-1", short_code=None, created_at=None, **kwargs):
        counter["n"] += 1
        qr = QRCode(
            user_id=user_id,
            name=kwargs.pop("name", f"Code {counter['n']}"),
            short_code=short_code or f"code{counter['n']:02d}",
            qr_type=kwargs.pop("qr_type", "url"),
            destination_url=kwargs.pop("destination_url", "https://example.com/landing"),
            created_at=created_at or datetime.datetime(2024, 1, 1) + datetime.timedelta(minutes=counter["n"]),
            **kwargs,
        )
        db.session.add(qr)
        db.session.commit()
        return qr

    return _make


class DictRedis:
    """The slice of the redis client the short-code cache uses."""

    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value

    def delete(self, *keys):
        for key in keys:
            self.store.pop(key, None)


@pytest.fixture
def fake_redis(app, monkeypatch):
    client = DictRedis()
    monkeypatch.setattr(extensions, "redis_client", client)
    return client
