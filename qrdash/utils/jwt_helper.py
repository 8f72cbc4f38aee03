import jwt
from flask import current_app


def decode_token(token: str) -> dict:
    """Validate an access token issued by the hosted identity provider."""
    audience = current_app.config.get("AUTH_JWT_AUDIENCE") or None
    options = {"require": ["sub", "exp"]}
    if not audience:
        options["verify_aud"] = False
    return jwt.decode(
        token,
        current_app.config["AUTH_JWT_SECRET"],
        algorithms=["HS256"],
        audience=audience,
        options=options,
    )
