"""Precomputed scan aggregates for the dashboard charts."""

import datetime

import pytz
from sqlalchemy import func

from ..extensions import db
from ..models.qr_code import QRCode
from ..models.scan_event import ScanEvent
from ..utils.clock import utcnow


def day_bounds_utc(tz_name: str, now: datetime.datetime | None = None):
    """Start/end of the current local day, as naive UTC datetimes."""
    tz = pytz.timezone(tz_name)
    now_local = pytz.utc.localize(now or utcnow()).astimezone(tz)
    today = now_local.date()

    start_local = tz.localize(datetime.datetime(today.year, today.month, today.day, 0, 0, 0))
    end_local = start_local + datetime.timedelta(days=1)

    return (
        start_local.astimezone(pytz.utc).replace(tzinfo=None),
        end_local.astimezone(pytz.utc).replace(tzinfo=None),
    )


def _count_since(code_ids, since):
    if not code_ids:
        return 0
    return ScanEvent.query.filter(
        ScanEvent.qr_code_id.in_(code_ids),
        ScanEvent.scanned_at >= since,
    ).count()


def _group_counts(column, code_ids, label):
    if not code_ids:
        return []
    rows = (
        db.session.query(column, func.count(ScanEvent.id))
        .filter(ScanEvent.qr_code_id.in_(code_ids))
        .group_by(column)
        .order_by(func.count(ScanEvent.id).desc())
        .all()
    )
    return [{label: value or "Unknown", "count": count} for value, count in rows]


def _scans_over_time(code_ids, days: int, now):
    if not code_ids:
        return []
    since = now - datetime.timedelta(days=days)
    day = func.date(ScanEvent.scanned_at)
    rows = (
        db.session.query(day, func.count(ScanEvent.id))
        .filter(ScanEvent.qr_code_id.in_(code_ids), ScanEvent.scanned_at >= since)
        .group_by(day)
        .order_by(day)
        .all()
    )
    return [{"date": str(d), "scans": count} for d, count in rows]


def _unique_visitors(code_ids):
    if not code_ids:
        return 0
    return (
        db.session.query(func.count(func.distinct(ScanEvent.visitor_fingerprint)))
        .filter(ScanEvent.qr_code_id.in_(code_ids))
        .scalar()
    ) or 0


def dashboard_stats(user_id: str, tz_name: str, recent: int = 3) -> dict:
    codes = QRCode.query.filter_by(user_id=user_id).order_by(QRCode.created_at.desc()).all()
    code_ids = [c.id for c in codes]

    start_utc, end_utc = day_bounds_utc(tz_name)
    scans_today = 0
    if code_ids:
        scans_today = ScanEvent.query.filter(
            ScanEvent.qr_code_id.in_(code_ids),
            ScanEvent.scanned_at >= start_utc,
            ScanEvent.scanned_at < end_utc,
        ).count()

    return {
        "total_qr_codes": len(codes),
        "total_scans": sum(c.current_scans or 0 for c in codes),
        "scans_today": scans_today,
        "recent_qr_codes": [
            {
                "id": c.id,
                "name": c.name,
                "scans": c.current_scans or 0,
                "created_at": c.created_at.isoformat(),
            }
            for c in codes[:recent]
        ],
    }


def overview(user_id: str, tz_name: str, days: int = 30) -> dict:
    now = utcnow()
    codes = QRCode.query.filter_by(user_id=user_id).all()
    code_ids = [c.id for c in codes]

    start_today, _ = day_bounds_utc(tz_name, now)
    top = sorted(codes, key=lambda c: c.current_scans or 0, reverse=True)[:5]

    return {
        "total_scans": ScanEvent.query.filter(ScanEvent.qr_code_id.in_(code_ids)).count() if code_ids else 0,
        "unique_scans": _unique_visitors(code_ids),
        "scans_today": _count_since(code_ids, start_today),
        "scans_this_week": _count_since(code_ids, now - datetime.timedelta(days=7)),
        "scans_this_month": _count_since(code_ids, now - datetime.timedelta(days=30)),
        "top_qr_codes": [{"id": c.id, "name": c.name, "scans": c.current_scans or 0} for c in top],
        "scans_by_device": _group_counts(ScanEvent.device_type, code_ids, "device"),
        "scans_by_country": _group_counts(ScanEvent.country, code_ids, "country"),
        "scans_over_time": _scans_over_time(code_ids, days, now),
    }


def code_stats(qr: QRCode, limit: int = 100) -> dict:
    ids = [qr.id]
    recent = (
        ScanEvent.query.filter_by(qr_code_id=qr.id)
        .order_by(ScanEvent.scanned_at.desc())
        .limit(limit)
        .all()
    )
    return {
        "short_code": qr.short_code,
        "current_scans": qr.current_scans,
        "total_events": ScanEvent.query.filter_by(qr_code_id=qr.id).count(),
        "unique_visitors": _unique_visitors(ids),
        "by_device": _group_counts(ScanEvent.device_type, ids, "device"),
        "by_os": _group_counts(ScanEvent.os, ids, "os"),
        "by_browser": _group_counts(ScanEvent.browser, ids, "browser"),
        "scans": [s.to_dict() for s in recent],
    }
