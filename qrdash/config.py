import os
from dotenv import load_dotenv

load_dotenv()


def _require_env(key: str) -> str:
    value = os.getenv(key)
    if not value:
        raise RuntimeError(f"Missing required environment variable: {key}")
    return value


class Config:
    SECRET_KEY = _require_env("SECRET_KEY")
    SQLALCHEMY_DATABASE_URI = _require_env("DATABASE_URL")
    BASE_URL = _require_env("BASE_URL").rstrip("/")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Access tokens are issued by the hosted identity provider (HS256)
    AUTH_JWT_SECRET = os.getenv("AUTH_JWT_SECRET") or SECRET_KEY
    AUTH_JWT_AUDIENCE = os.getenv("AUTH_JWT_AUDIENCE", "authenticated")

    REDIS_URL = os.getenv("REDIS_URL")
    REDIS_TTL = int(os.getenv("REDIS_TTL", 3600))

    # Where the redirect endpoint sends scanners that cannot reach a destination
    HOME_URL = os.getenv("HOME_URL") or f"{BASE_URL}/"
    PASSWORD_GATE_URL = os.getenv("PASSWORD_GATE_URL") or f"{BASE_URL}/protected"

    DASHBOARD_TIMEZONE = os.getenv("DASHBOARD_TIMEZONE", "Asia/Kolkata")

    # e.g. "https://ipwho.is/{ip}" ; empty disables geo enrichment
    GEOIP_LOOKUP_URL = os.getenv("GEOIP_LOOKUP_URL", "")
    GEOIP_TIMEOUT = float(os.getenv("GEOIP_TIMEOUT", 2))

    FREE_QR_QUOTA = int(os.getenv("FREE_QR_QUOTA", 5))
    QUOTA_WARNING_THRESHOLD = int(os.getenv("QUOTA_WARNING_THRESHOLD", 2))
    ADDON_PRICE_INR = float(os.getenv("ADDON_PRICE_INR", 5))

    # Comma separated; destinations on these domains are refused
    BLOCKED_DOMAINS = [d for d in os.getenv("BLOCKED_DOMAINS", "").split(",") if d.strip()]
