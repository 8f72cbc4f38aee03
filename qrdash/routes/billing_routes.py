from flask import Blueprint, current_app, request
from ..extensions import db
from ..models.qr_purchase import QRPurchase
from ..utils.response import api_response
from ..routes.auth_routes import token_required
from ..services.qr_service import purchase_addons
from ..utils import plan_limits

billing_bp = Blueprint("billing", __name__)


@billing_bp.route("/plans", methods=["GET"])
def plans():
    return api_response(True, "Plans fetched", {
        "plans": plan_limits.PLAN_LIMITS,
        "addon_price_inr": current_app.config.get("ADDON_PRICE_INR", 5),
    })


@billing_bp.route("/status", methods=["GET"])
@token_required
def subscription_status(current_user):
    return api_response(True, "Subscription status fetched", {
        "subscription_status": current_user.subscription_status,
        "is_free_tier": current_user.is_free_tier,
        "qr_quota": current_user.qr_quota,
        "qr_used": current_user.qr_used,
    })


# Payment gateway not integrated: plan changes and purchases complete immediately.
@billing_bp.route("/activate", methods=["POST"])
@token_required
def activate_plan(current_user):
    data = request.get_json(silent=True) or {}
    plan = data.get("plan")

    if plan not in plan_limits.PAID_PLANS:
        return api_response(False, "Invalid plan selected.", None)

    current_user.subscription_status = plan
    db.session.commit()
    current_app.logger.info(f"{current_user.id} switched to {plan}")

    return api_response(True, f"{plan.capitalize()} plan activated successfully!", {
        "subscription_status": plan,
    })


@billing_bp.route("/cancel", methods=["POST"])
@token_required
def cancel_subscription(current_user):
    current_user.subscription_status = "free"
    db.session.commit()

    return api_response(True, "Subscription cancelled. You are now on Free Plan.", {
        "subscription_status": "free",
    })


@billing_bp.route("/purchases", methods=["POST"])
@token_required
def buy_qr_codes(current_user):
    data = request.get_json(silent=True) or {}
    purchase = purchase_addons(current_user, data.get("quantity", 1))
    db.session.refresh(current_user)

    return api_response(
        True,
        f"Successfully added {purchase.quantity} QR code{'s' if purchase.quantity > 1 else ''} to your account!",
        {"purchase": purchase.to_dict(), "qr_quota": current_user.qr_quota},
    )


@billing_bp.route("/purchases", methods=["GET"])
@token_required
def list_purchases(current_user):
    purchases = QRPurchase.query.filter_by(user_id=current_user.id).order_by(QRPurchase.created_at.desc()).all()
    return api_response(True, "Purchases fetched", {"purchases": [p.to_dict() for p in purchases]})
