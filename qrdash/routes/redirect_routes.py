from functools import partial

from flask import Blueprint, current_app, redirect, request

from .. import extensions
from ..extensions import db
from ..repositories.qr_repository import QRCodeStore
from ..services.redirect_resolver import RedirectResolver
from ..utils.clock import utcnow
from ..utils.geo import get_location_from_ip
from ..utils.passwords import verify_qr_password
from ..utils.response import api_response

redirect_bp = Blueprint("redirect", __name__)


def _client_ip() -> str:
    xff = request.headers.get("X-Forwarded-For", "")
    if xff:
        return xff.split(',')[0].strip() or "unknown"
    return request.remote_addr or "unknown"


def build_resolver() -> RedirectResolver:
    """Resolver wired with the service-role store for this request."""
    config = current_app.config
    store = QRCodeStore(db.session, extensions.redis_client, int(config.get("REDIS_TTL", 3600)))

    geo_lookup = None
    if config.get("GEOIP_LOOKUP_URL"):
        geo_lookup = partial(
            get_location_from_ip,
            url_template=config["GEOIP_LOOKUP_URL"],
            timeout=config.get("GEOIP_TIMEOUT", 2),
        )

    return RedirectResolver(
        store,
        home_url=config["HOME_URL"],
        password_gate_url=config["PASSWORD_GATE_URL"],
        geo_lookup=geo_lookup,
    )


@redirect_bp.route('/r/<code>')
def resolve_code(code):
    resolution = build_resolver().resolve(
        code,
        ip=_client_ip(),
        user_agent=request.headers.get("User-Agent", ""),
        referrer=request.referrer,
    )
    if resolution.is_error:
        current_app.logger.info(f"Scan of {code} redirected with {resolution.outcome}")
    return redirect(resolution.location, code=302)


@redirect_bp.route('/r/<code>/unlock', methods=['POST'])
def unlock_code(code):
    """Password interstitial: trade the password for the destination.

    The scan was already counted when the visitor hit /r/<code>.
    """
    data = request.get_json(silent=True) or {}
    store = QRCodeStore(db.session)
    qr = store.find_by_short_code(code)

    if not qr or not qr.password_hash:
        return api_response(False, "QR code not found", None)
    if not qr.is_active:
        return api_response(False, "This QR code is inactive", None)
    if qr.expires_at and qr.expires_at < utcnow():
        return api_response(False, "This QR code has expired", None)

    if not verify_qr_password(qr.password_hash, data.get("password")):
        return api_response(False, "Incorrect password", None)

    return api_response(True, "Password accepted", {"destination_url": qr.destination_url})
