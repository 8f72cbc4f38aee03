from flask import Blueprint, Response, current_app, request

from ..routes.auth_routes import token_required
from ..services import analytics
from ..services.qr_service import (
    create_qr_code, delete_qr_code, get_owned_code, list_codes, update_qr_code,
)
from ..services.quota import compute_locked
from ..models.qr_code import QRCode
from ..utils.qr_generator import encoded_payload, render_png, render_svg
from ..utils.response import api_response

qr_bp = Blueprint("qr", __name__)


def _base_url():
    return current_app.config.get("BASE_URL", "http://127.0.0.1:5000")


def _is_locked(current_user, qr) -> bool:
    if not current_user.is_free_tier:
        return False
    codes = QRCode.query.filter_by(user_id=current_user.id).all()
    return qr.id in compute_locked(codes, current_user.qr_quota, True)


@qr_bp.route('/qr-codes', methods=['POST'])
@token_required
def create(current_user):
    data = request.get_json(silent=True) or {}
    qr, decision = create_qr_code(current_user, data)

    current_app.logger.info(f"QR code {qr.short_code} created by {current_user.id}")

    remaining = None
    if current_user.is_free_tier:
        remaining = current_user.qr_quota - current_user.qr_used
    return api_response(
        True,
        "QR code created successfully!",
        qr.to_dict(_base_url()),
        warning=decision.warning,
        quota={"remaining": remaining, "qr_used": current_user.qr_used, "qr_quota": current_user.qr_quota},
    )


@qr_bp.route('/qr-codes', methods=['GET'])
@token_required
def list_qr_codes(current_user):
    codes, locked = list_codes(current_user, request.args.get("search"))
    base_url = _base_url()
    return api_response(True, "QR codes fetched", {
        "qr_codes": [c.to_dict(base_url, is_locked=c.id in locked) for c in codes],
        "locked_count": len(locked),
        "qr_quota": current_user.qr_quota,
        "qr_used": current_user.qr_used,
    })


@qr_bp.route('/qr-codes/<qr_id>', methods=['GET'])
@token_required
def get_qr_code(current_user, qr_id):
    qr = get_owned_code(current_user.id, qr_id)
    return api_response(True, "QR code details", qr.to_dict(_base_url(), is_locked=_is_locked(current_user, qr)))


@qr_bp.route('/qr-codes/<qr_id>', methods=['PUT', 'PATCH'])
@token_required
def edit_qr_code(current_user, qr_id):
    qr = get_owned_code(current_user.id, qr_id)
    data = request.get_json(silent=True) or {}
    update_qr_code(qr, data)
    return api_response(True, "QR code updated successfully!", qr.to_dict(_base_url()))


@qr_bp.route('/qr-codes/<qr_id>', methods=['DELETE'])
@token_required
def delete(current_user, qr_id):
    qr = get_owned_code(current_user.id, qr_id)
    name = qr.name
    delete_qr_code(qr)
    current_app.logger.info(f"QR code {qr_id} deleted by {current_user.id}")
    return api_response(True, f"QR code '{name}' deleted successfully.", None)


@qr_bp.route('/qr-codes/<qr_id>/image', methods=['GET'])
@token_required
def qr_image(current_user, qr_id):
    qr = get_owned_code(current_user.id, qr_id)
    if _is_locked(current_user, qr):
        return api_response(False, "This QR code is locked. Upgrade to unlock it.", {"upgrade_required": True})

    data = encoded_payload(qr, _base_url())
    fmt = (request.args.get("format") or "png").lower()

    if fmt == "svg":
        body = render_svg(data, qr.color_fg, qr.color_bg, qr.error_correction)
        mimetype = "image/svg+xml"
    elif fmt == "png":
        body = render_png(data, qr.color_fg, qr.color_bg, qr.style, qr.error_correction)
        mimetype = "image/png"
    else:
        return api_response(False, "format must be png or svg", None)

    return Response(body, mimetype=mimetype, headers={
        "Content-Disposition": f'inline; filename="{qr.short_code}.{fmt}"'
    })


@qr_bp.route('/qr-codes/<qr_id>/scans', methods=['GET'])
@token_required
def qr_scans(current_user, qr_id):
    qr = get_owned_code(current_user.id, qr_id)
    try:
        limit = min(int(request.args.get("limit", 100)), 1000)
    except ValueError:
        limit = 100
    return api_response(True, "Scan analytics fetched", analytics.code_stats(qr, limit=limit))
