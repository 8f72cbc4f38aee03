from werkzeug.security import check_password_hash, generate_password_hash


def hash_qr_password(password: str | None) -> str | None:
    """Hash the access password of a protected QR code; blank clears it."""
    if not password:
        return None
    return generate_password_hash(password)


def verify_qr_password(password_hash: str | None, provided_password: str | None) -> bool:
    if not password_hash or not provided_password:
        return False
    try:
        return check_password_hash(password_hash, provided_password)
    except ValueError:
        # stored value is not a werkzeug hash
        return False
