import datetime
from urllib.parse import parse_qs, urlparse

import pytest

from qrdash.extensions import db
from qrdash.models.qr_code import QRCode
from qrdash.models.scan_event import ScanEvent
from qrdash.repositories.qr_repository import (
    CodeSnapshot, LIMIT_REACHED, QRCodeStore, RECORDED,
)
from qrdash.services import redirect_resolver as rr
from qrdash.services.redirect_resolver import RedirectResolver
from qrdash.utils.passwords import hash_qr_password
from tests.conftest import DESKTOP_CHROME_UA

NOW = datetime.datetime(2025, 6, 1, 12, 0, 0)
HOME = "http://qr.test/"
GATE = "http://qr.test/protected"


class FakeStore:
    """In-memory stand-in for the service-role store."""

    def __init__(self, *snapshots):
        self.codes = {s.short_code: s for s in snapshots}
        self.events = []
        self.discarded = False

    def find_by_short_code(self, code):
        return self.codes.get(code)

    def record_scan(self, snapshot, event, now):
        if snapshot.max_scans is not None and snapshot.current_scans >= snapshot.max_scans:
            return LIMIT_REACHED
        snapshot.current_scans += 1
        self.events.append(event)
        return RECORDED

    def discard(self):
        self.discarded = True


class BrokenStore(FakeStore):
    def find_by_short_code(self, code):
        raise ConnectionError("storage unavailable")


def snapshot(short_code="abc123", **overrides):
    values = dict(
        id="qr-1",
        short_code=short_code,
        destination_url="https://example.com/menu",
        is_active=True,
        expires_at=None,
        max_scans=None,
        current_scans=0,
        password_hash=None,
    )
    values.update(overrides)
    return CodeSnapshot(**values)


def resolve(store, code="abc123", ua=DESKTOP_CHROME_UA):
    resolver = RedirectResolver(store, home_url=HOME, password_gate_url=GATE)
    return resolver.resolve(code, ip="203.0.113.7", user_agent=ua, referrer="https://ref.example", now=NOW)


def error_marker(location):
    return parse_qs(urlparse(location).query).get("error", [None])[0]


def test_valid_code_redirects_and_records_one_event():
    store = FakeStore(snapshot())
    result = resolve(store)

    assert result.location == "https://example.com/menu"
    assert result.outcome == rr.REDIRECTED
    assert len(store.events) == 1
    event = store.events[0]
    assert event["device_type"] == "desktop"
    assert event["browser"] == "Chrome"
    assert event["ip_address"] == "203.0.113.7"
    assert event["referrer"] == "https://ref.example"
    assert len(event["visitor_fingerprint"]) == 32


def test_unknown_code_redirects_home_with_not_found():
    store = FakeStore()
    result = resolve(store, code="nope00")
    assert result.location.startswith(HOME)
    assert error_marker(result.location) == "qr_not_found"
    assert store.events == []


@pytest.mark.parametrize("overrides, marker", [
    ({"is_active": False}, "qr_inactive"),
    ({"expires_at": NOW - datetime.timedelta(seconds=1)}, "qr_expired"),
    ({"max_scans": 3, "current_scans": 3}, "qr_limit_reached"),
    ({"max_scans": 3, "current_scans": 5}, "qr_limit_reached"),
])
def test_unusable_codes_redirect_with_marker_and_record_nothing(overrides, marker):
    store = FakeStore(snapshot(**overrides))
    result = resolve(store)
    assert error_marker(result.location) == marker
    assert result.is_error
    assert store.events == []


def test_checks_run_in_order_inactive_before_expired():
    store = FakeStore(snapshot(is_active=False, expires_at=NOW - datetime.timedelta(days=1)))
    assert error_marker(resolve(store).location) == "qr_inactive"


def test_future_expiry_still_redirects():
    store = FakeStore(snapshot(expires_at=NOW + datetime.timedelta(days=1)))
    assert resolve(store).location == "https://example.com/menu"


def test_password_protected_code_records_scan_then_sends_to_gate():
    store = FakeStore(snapshot(password_hash=hash_qr_password("open-sesame")))
    result = resolve(store)

    assert result.outcome == rr.PASSWORD_REQUIRED
    assert result.location == f"{GATE}?code=abc123"
    assert len(store.events) == 1


def test_storage_failure_becomes_server_error_redirect():
    store = BrokenStore()
    result = resolve(store)
    assert error_marker(result.location) == "server_error"
    assert store.discarded


def test_unlimited_code_records_every_resolution():
    snap = snapshot()
    store = FakeStore(snap)
    for _ in range(7):
        assert resolve(store).outcome == rr.REDIRECTED
    assert len(store.events) == 7
    assert (snap.id, snap.short_code, snap.destination_url) == ("qr-1", "abc123", "https://example.com/menu")


# --- against the SQL store -------------------------------------------------


def test_sql_store_counts_scan_and_appends_event(app, make_profile, make_code):
    make_profile()
    qr = make_code(short_code="sql001")
    store = QRCodeStore(db.session)

    assert store.record_scan(store.find_by_short_code("sql001"), {"ip_address": "1.2.3.4"}, NOW) == RECORDED

    qr = db.session.get(QRCode, qr.id)
    assert qr.current_scans == 1
    assert qr.last_scanned_at == NOW
    assert ScanEvent.query.filter_by(qr_code_id=qr.id).count() == 1


def test_sql_store_refuses_the_scan_past_max_scans(app, make_profile, make_code):
    """Two scans that both read current_scans=0 cannot both claim max_scans=1."""
    make_profile()
    qr = make_code(short_code="race01", max_scans=1)
    store = QRCodeStore(db.session)

    first = store.find_by_short_code("race01")
    second = store.find_by_short_code("race01")
    assert first.current_scans == second.current_scans == 0

    assert store.record_scan(first, {}, NOW) == RECORDED
    assert store.record_scan(second, {}, NOW) == LIMIT_REACHED

    assert db.session.get(QRCode, qr.id).current_scans == 1
    assert ScanEvent.query.filter_by(qr_code_id=qr.id).count() == 1
