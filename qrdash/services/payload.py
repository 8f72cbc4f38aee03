"""Build the string a QR code actually encodes for each supported type."""

import re
from urllib.parse import quote, urlparse

from ..exceptions import ValidationError
from ..models.qr_code import QR_TYPES

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[+]?[\d\s\-()]+$")
WIFI_ENCRYPTIONS = ("WPA", "WEP", "nopass")
# "host:port" with no scheme, which urlparse reads as scheme "host"
HOST_PORT_RE = re.compile(r"^[^:/?#\s]+:\d+(?:[/?#]|$)")


def normalize_url(url: str) -> str:
    url = (url or "").strip()
    if not urlparse(url).scheme or HOST_PORT_RE.match(url):
        url = "https://" + url
    return url


def is_valid_url(url: str) -> bool:
    parsed = urlparse(url or "")
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email or ""))


def is_valid_phone(phone: str) -> bool:
    phone = phone or ""
    return bool(PHONE_RE.match(phone)) and len(re.sub(r"\D", "", phone)) >= 10


def _required(content: dict, key: str, label: str) -> str:
    value = (content.get(key) or "").strip()
    if not value:
        raise ValidationError(f"{label} is required")
    return value


def _url(content):
    url = normalize_url(_required(content, "url", "url"))
    if not is_valid_url(url):
        raise ValidationError("Please enter a valid URL")
    return url


def _email(content):
    email = _required(content, "email", "email")
    if not is_valid_email(email):
        raise ValidationError("Please enter a valid email address")
    value = f"mailto:{email}"
    params = []
    if content.get("subject"):
        params.append(f"subject={quote(content['subject'], safe='')}")
    if content.get("body"):
        params.append(f"body={quote(content['body'], safe='')}")
    if params:
        value += "?" + "&".join(params)
    return value


def _phone(content):
    phone = _required(content, "phone", "phone")
    if not is_valid_phone(phone):
        raise ValidationError("Please enter a valid phone number")
    return f"tel:{phone}"


def _sms(content):
    phone = _required(content, "phone", "phone")
    if not is_valid_phone(phone):
        raise ValidationError("Please enter a valid phone number")
    value = f"sms:{phone}"
    if content.get("message"):
        value += f"?body={quote(content['message'], safe='')}"
    return value


def _wifi(content):
    ssid = _required(content, "ssid", "ssid")
    encryption = content.get("encryption") or "WPA"
    if encryption not in WIFI_ENCRYPTIONS:
        raise ValidationError(f"encryption must be one of {', '.join(WIFI_ENCRYPTIONS)}")
    password = f"P:{content['password']};" if content.get("password") else ""
    hidden = "H:true;" if content.get("hidden") else ""
    return f"WIFI:T:{encryption};S:{ssid};{password}{hidden};"


def _vcard(content):
    first_name = _required(content, "first_name", "first_name")
    last_name = content.get("last_name") or ""
    lines = [
        "BEGIN:VCARD",
        "VERSION:3.0",
        f"N:{last_name};{first_name}",
        f"FN:{first_name}{' ' + last_name if last_name else ''}",
    ]
    for key, prefix in (
        ("email", "EMAIL:"),
        ("phone", "TEL:"),
        ("company", "ORG:"),
        ("title", "TITLE:"),
        ("website", "URL:"),
        ("address", "ADR:;;"),
    ):
        if content.get(key):
            lines.append(f"{prefix}{content[key]}")
    lines.append("END:VCARD")
    return "\n".join(lines)


def _text(content):
    return _required(content, "text", "text")


_ENCODERS = {
    "url": _url,
    "email": _email,
    "phone": _phone,
    "sms": _sms,
    "wifi": _wifi,
    "vcard": _vcard,
    "text": _text,
}


def content_to_string(qr_type: str, content: dict) -> str:
    if qr_type not in QR_TYPES:
        raise ValidationError(f"qr_type must be one of {', '.join(QR_TYPES)}")
    return _ENCODERS[qr_type](content or {})


def original_value(qr_type: str, content: dict) -> str | None:
    """Human-readable source value kept next to the encoded payload."""
    content = content or {}
    key = {
        "url": "url",
        "email": "email",
        "phone": "phone",
        "sms": "phone",
        "wifi": "ssid",
        "vcard": "first_name",
        "text": "text",
    }.get(qr_type)
    return (content.get(key) or None) if key else None
