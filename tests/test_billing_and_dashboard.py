import datetime

from qrdash.extensions import db
from qrdash.models.profile import Profile
from qrdash.models.qr_purchase import QRPurchase
from qrdash.models.scan_event import ScanEvent
from qrdash.services.analytics import day_bounds_utc
from tests.conftest import DESKTOP_CHROME_UA


def test_profile_is_created_on_first_request(client, auth_headers):
    body = client.get("/profile", headers=auth_headers("new-user")).get_json()

    assert body["success"] is True
    assert body["data"]["subscription_status"] == "free"
    assert body["data"]["quota"]["remaining"] == 5
    assert body["data"]["quota"]["can_create"] is True
    assert db.session.get(Profile, "new-user") is not None


def test_profile_reports_upgrade_required_at_quota(client, auth_headers, make_profile):
    make_profile(qr_used=5)
    quota = client.get("/profile", headers=auth_headers()).get_json()["data"]["quota"]
    assert quota["can_create"] is False
    assert quota["upgrade_required"] is True


def test_plans_are_public(client):
    body = client.get("/billing/plans").get_json()
    assert body["data"]["plans"]["free"]["qr_quota"] == 5
    assert body["data"]["plans"]["monthly"]["qr_quota"] is None


def test_buying_codes_raises_quota_and_unblocks_creation(client, auth_headers, make_profile):
    make_profile(qr_used=5)

    body = client.post("/billing/purchases", json={"quantity": 3}, headers=auth_headers()).get_json()

    assert body["success"] is True
    assert body["data"]["qr_quota"] == 8
    assert body["data"]["purchase"]["payment_status"] == "completed"
    assert body["data"]["purchase"]["amount_paid"] == 15.0
    assert QRPurchase.query.count() == 1

    created = client.post("/qr-codes", json={"name": "More", "content": {"url": "https://example.com"}},
                          headers=auth_headers()).get_json()
    assert created["success"] is True


def test_purchase_quantity_is_bounded(client, auth_headers):
    for quantity in (0, 101, "lots"):
        body = client.post("/billing/purchases", json={"quantity": quantity}, headers=auth_headers()).get_json()
        assert body["success"] is False
    assert QRPurchase.query.count() == 0


def test_activate_paid_plan_then_cancel(client, auth_headers, make_profile, make_code):
    make_profile(qr_quota=1)
    make_code()
    make_code()

    assert client.post("/billing/activate", json={"plan": "lifetime"}, headers=auth_headers()).get_json()["success"] is False

    body = client.post("/billing/activate", json={"plan": "yearly"}, headers=auth_headers()).get_json()
    assert body["data"]["subscription_status"] == "yearly"
    listing = client.get("/qr-codes", headers=auth_headers()).get_json()["data"]
    assert listing["locked_count"] == 0

    client.post("/billing/cancel", headers=auth_headers())
    status = client.get("/billing/status", headers=auth_headers()).get_json()["data"]
    assert status["subscription_status"] == "free"
    assert status["is_free_tier"] is True


def test_dashboard_stats(client, auth_headers, make_profile, make_code):
    make_profile(qr_used=2)
    make_code(short_code="dash01", name="older")
    make_code(short_code="dash02", name="newer")
    for code in ("dash01", "dash02", "dash02"):
        client.get(f"/r/{code}", headers={"User-Agent": DESKTOP_CHROME_UA})

    data = client.get("/dashboard/stats", headers=auth_headers()).get_json()["data"]

    assert data["total_qr_codes"] == 2
    assert data["total_scans"] == 3
    assert data["scans_today"] == 3
    assert [c["name"] for c in data["recent_qr_codes"]] == ["newer", "older"]
    assert data["qr_used"] == 2


def test_analytics_overview(client, auth_headers, make_profile, make_code):
    make_profile()
    make_code(short_code="ana001")
    client.get("/r/ana001", headers={"User-Agent": DESKTOP_CHROME_UA})
    client.get("/r/ana001", headers={"User-Agent": DESKTOP_CHROME_UA, "X-Forwarded-For": "192.0.2.9"})

    data = client.get("/analytics/overview?days=7", headers=auth_headers()).get_json()["data"]

    assert data["total_scans"] == 2
    assert data["unique_scans"] == 2
    assert data["scans_this_week"] == 2
    assert data["scans_by_device"] == [{"device": "desktop", "count": 2}]
    assert sum(day["scans"] for day in data["scans_over_time"]) == 2
    assert ScanEvent.query.count() == 2


def test_day_bounds_follow_the_dashboard_timezone():
    # 20:00 UTC is already the next day in India (UTC+05:30)
    now = datetime.datetime(2025, 3, 10, 20, 0)
    start, end = day_bounds_utc("Asia/Kolkata", now)

    assert start == datetime.datetime(2025, 3, 10, 18, 30)
    assert end == datetime.datetime(2025, 3, 11, 18, 30)
