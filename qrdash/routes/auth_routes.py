from functools import wraps

import jwt
from flask import Blueprint, current_app, request

from ..extensions import db
from ..models.profile import Profile
from ..services.quota import check_can_create
from ..utils.jwt_helper import decode_token
from ..utils.response import api_response

auth_bp = Blueprint("auth", __name__)


def _load_profile(payload: dict) -> Profile:
    """Fetch the caller's profile, creating it on first sight like the
    identity provider's sign-up hook does."""
    profile = db.session.get(Profile, payload["sub"])
    if profile:
        return profile

    profile = Profile(
        id=payload["sub"],
        email=payload.get("email"),
        subscription_status="free",
        qr_quota=current_app.config.get("FREE_QR_QUOTA", 5),
        qr_used=0,
    )
    db.session.add(profile)
    db.session.commit()
    current_app.logger.info(f"Created profile for {profile.id}")
    return profile


def token_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        token = None
        if 'Authorization' in request.headers:
            auth_header = request.headers['Authorization']
            if " " in auth_header:
                token = auth_header.split(" ")[1]
            else:
                token = auth_header

        if not token:
            return api_response(False, "Token is missing!", None)

        try:
            payload = decode_token(token)
        except jwt.ExpiredSignatureError:
            return api_response(False, "Token has expired!", None)
        except jwt.InvalidTokenError:
            return api_response(False, "Invalid token!", None)

        current_user = _load_profile(payload)
        return f(current_user, *args, **kwargs)

    return decorated


@auth_bp.route('/profile', methods=['GET'])
@token_required
def profile(current_user):
    decision = check_can_create(current_user)
    data = current_user.to_dict()
    data["quota"] = {
        "remaining": decision.remaining,
        "can_create": decision.allowed,
        "warning": decision.warning,
        "upgrade_required": decision.upgrade_required,
        "unlimited": decision.remaining is None,
    }
    return api_response(True, "Profile details", data)
