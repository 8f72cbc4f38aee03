from flask import Blueprint, current_app, request
from ..routes.auth_routes import token_required
from ..services import analytics
from ..utils.response import api_response

core_bp = Blueprint("core", __name__)


@core_bp.route("/")
def root():
    # scanners land here with ?error=<marker> when a code cannot be resolved
    return api_response(True, "Dynamic QR code service.", {"error": request.args.get("error")})


@core_bp.route("/health")
def health():
    return {"status": "ok"}, 200


@core_bp.route("/dashboard/stats", methods=["GET"])
@token_required
def dashboard_stats(current_user):
    stats = analytics.dashboard_stats(current_user.id, current_app.config.get("DASHBOARD_TIMEZONE", "UTC"))
    stats.update({
        "qr_quota": current_user.qr_quota,
        "qr_used": current_user.qr_used,
    })
    return api_response(True, "Dashboard stats", stats)


@core_bp.route("/analytics/overview", methods=["GET"])
@token_required
def analytics_overview(current_user):
    try:
        days = max(1, min(int(request.args.get("days", 30)), 365))
    except ValueError:
        days = 30
    data = analytics.overview(current_user.id, current_app.config.get("DASHBOARD_TIMEZONE", "UTC"), days=days)
    return api_response(True, "Analytics overview", data)
