import datetime
import logging
import re

from flask import current_app
from sqlalchemy.exc import IntegrityError

from .. import extensions
from ..exceptions import NotFound, QRDashError, QuotaExceeded, ValidationError
from ..extensions import db
from ..models.qr_code import QRCode, QR_STYLES, ERROR_CORRECTION_LEVELS
from ..models.qr_purchase import QRPurchase
from ..models.scan_event import ScanEvent
from ..utils import cache
from ..utils.clock import to_naive_utc
from ..utils.passwords import hash_qr_password
from ..utils.security import is_unsafe_url
from .payload import content_to_string, original_value
from .quota import (
    add_purchased_quota, blocked_decision, check_can_create, compute_locked, increment_usage,
)
from .short_code import generate_unique_short_code

logger = logging.getLogger(__name__)

COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")
IMMUTABLE_FIELDS = ("short_code", "current_scans", "user_id", "id")
MAX_ADDON_QUANTITY = 100


def _short_code_exists(code: str) -> bool:
    return db.session.query(QRCode.id).filter_by(short_code=code).first() is not None


def _parse_datetime(value, field):
    if value in (None, ""):
        return None
    if isinstance(value, datetime.datetime):
        return to_naive_utc(value)
    try:
        parsed = datetime.datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 datetime")
    return to_naive_utc(parsed)


def _parse_max_scans(value):
    if value in (None, ""):
        return None
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise ValidationError("max_scans must be a whole number")
    if value < 1:
        raise ValidationError("max_scans must be at least 1")
    return value


def _check_destination(destination: str) -> None:
    unsafe, reason = is_unsafe_url(destination, current_app.config.get("BLOCKED_DOMAINS", ()))
    if unsafe:
        raise ValidationError(reason)


def _apply_customization(qr: QRCode, data: dict) -> None:
    for field in ("color_fg", "color_bg"):
        if field in data:
            value = data[field]
            if not isinstance(value, str) or not COLOR_RE.match(value):
                raise ValidationError(f"{field} must be a hex colour like #1F2937")
            setattr(qr, field, value.upper())

    if "style" in data:
        if data["style"] not in QR_STYLES:
            raise ValidationError(f"style must be one of {', '.join(QR_STYLES)}")
        qr.style = data["style"]

    if "error_correction" in data:
        level = str(data["error_correction"] or "").upper()
        if level not in ERROR_CORRECTION_LEVELS:
            raise ValidationError(f"error_correction must be one of {', '.join(ERROR_CORRECTION_LEVELS)}")
        qr.error_correction = level


def _apply_lifecycle(qr: QRCode, data: dict) -> None:
    if "is_active" in data:
        if not isinstance(data["is_active"], bool):
            raise ValidationError("is_active must be true or false")
        qr.is_active = data["is_active"]
    if "expires_at" in data:
        qr.expires_at = _parse_datetime(data["expires_at"], "expires_at")
    if "max_scans" in data:
        qr.max_scans = _parse_max_scans(data["max_scans"])
    if "password" in data:
        qr.password_hash = hash_qr_password(data["password"])


def create_qr_code(profile, data: dict):
    """Create a code for ``profile`` after the quota check.

    Returns ``(qr, decision)``. Raises QuotaExceeded without writing
    anything when the free quota is used up.
    """
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("Please enter a name for your QR code")

    qr_type = data.get("qr_type") or "url"
    content = data.get("content") or {}
    payload = content_to_string(qr_type, content)
    _check_destination(payload)

    decision = check_can_create(profile)
    if not decision.allowed:
        raise QuotaExceeded(decision.message, decision.to_dict())

    qr = QRCode(
        user_id=profile.id,
        name=name,
        qr_type=qr_type,
        destination_url=payload,
        original_url=original_value(qr_type, content),
        is_dynamic=bool(data.get("is_dynamic", qr_type == "url")),
        is_active=True,
        current_scans=0,
    )
    _apply_customization(qr, data)
    _apply_lifecycle(qr, data)
    qr.short_code = generate_unique_short_code(_short_code_exists)

    try:
        db.session.add(qr)
        db.session.flush()
        claimed = increment_usage(profile.id)
        if claimed:
            db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        logger.error(f"QR code insert failed for {profile.id}: {e}")
        raise QRDashError("Could not create the QR code, please try again.")

    if not claimed:
        # another create took the last free slot since the check above
        db.session.rollback()
        blocked = blocked_decision(profile)
        raise QuotaExceeded(blocked.message, blocked.to_dict())

    db.session.refresh(profile)
    return qr, decision


def get_owned_code(user_id: str, qr_id: str) -> QRCode:
    qr = QRCode.query.filter_by(id=qr_id, user_id=user_id).first()
    if not qr:
        raise NotFound()
    return qr


def update_qr_code(qr: QRCode, data: dict) -> QRCode:
    for field in IMMUTABLE_FIELDS:
        if field in data:
            raise ValidationError(f"{field} cannot be changed")

    if "name" in data:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("Please enter a name for your QR code")
        qr.name = name

    if "content" in data:
        qr_type = data.get("qr_type") or qr.qr_type
        payload = content_to_string(qr_type, data["content"])
        _check_destination(payload)
        qr.qr_type = qr_type
        qr.destination_url = payload
        qr.original_url = original_value(qr_type, data["content"])
    elif "destination_url" in data:
        destination = (data.get("destination_url") or "").strip()
        if not destination:
            raise ValidationError("destination_url cannot be empty")
        _check_destination(destination)
        qr.destination_url = destination

    _apply_customization(qr, data)
    _apply_lifecycle(qr, data)

    db.session.commit()
    cache.invalidate(extensions.redis_client, qr.short_code)
    return qr


def delete_qr_code(qr: QRCode) -> None:
    """Delete a code and its scans. Usage (qr_used) is not given back."""
    short_code = qr.short_code
    ScanEvent.query.filter_by(qr_code_id=qr.id).delete()
    db.session.delete(qr)
    db.session.commit()
    cache.invalidate(extensions.redis_client, short_code)


def list_codes(profile, search: str | None = None):
    """All of ``profile``'s codes, newest first, with the locked flag set."""
    codes = QRCode.query.filter_by(user_id=profile.id).order_by(QRCode.created_at.desc()).all()
    locked = compute_locked(codes, profile.qr_quota, profile.is_free_tier)

    if search:
        needle = search.lower()
        codes = [c for c in codes if needle in (c.name or "").lower()]

    return codes, locked


def purchase_addons(profile, quantity) -> QRPurchase:
    try:
        quantity = int(quantity)
    except (TypeError, ValueError):
        raise ValidationError("quantity must be a whole number")
    if quantity < 1 or quantity > MAX_ADDON_QUANTITY:
        raise ValidationError(f"quantity must be between 1 and {MAX_ADDON_QUANTITY}")

    price = float(current_app.config.get("ADDON_PRICE_INR", 5))
    purchase = QRPurchase(
        user_id=profile.id,
        quantity=quantity,
        amount_paid=quantity * price,
        payment_status="pending",
    )
    db.session.add(purchase)
    db.session.commit()

    # TODO: hand the pending purchase to the payment gateway and complete it from its webhook
    complete_purchase(purchase)
    return purchase


def complete_purchase(purchase: QRPurchase) -> None:
    if purchase.payment_status == "completed":
        return
    purchase.payment_status = "completed"
    add_purchased_quota(purchase.user_id, purchase.quantity)
    db.session.commit()
    logger.info(f"Added {purchase.quantity} QR codes to {purchase.user_id}")
