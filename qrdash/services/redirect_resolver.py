"""Resolve a scanned short code to the place the scanner should be sent.

Every outcome is a redirect target. Scanners of a printed code must never
see a raw error page, so failures become ``HOME_URL?error=<marker>``.
"""

import logging
from dataclasses import dataclass
from typing import Callable
from urllib.parse import urlencode

from ..repositories.qr_repository import GONE, LIMIT_REACHED, RECORDED
from ..utils.clock import utcnow
from .client_classifier import classify, visitor_fingerprint

logger = logging.getLogger(__name__)

# Outcomes; the error ones double as the ?error= marker
QR_NOT_FOUND = "qr_not_found"
QR_INACTIVE = "qr_inactive"
QR_EXPIRED = "qr_expired"
QR_LIMIT_REACHED = "qr_limit_reached"
SERVER_ERROR = "server_error"
PASSWORD_REQUIRED = "password_required"
REDIRECTED = "redirected"


@dataclass(frozen=True)
class Resolution:
    location: str
    outcome: str

    @property
    def is_error(self) -> bool:
        return self.outcome not in (REDIRECTED, PASSWORD_REQUIRED)


class RedirectResolver:
    def __init__(
        self,
        store,
        home_url: str,
        password_gate_url: str,
        geo_lookup: Callable[[str], dict] | None = None,
    ):
        self.store = store
        self.home_url = home_url
        self.password_gate_url = password_gate_url
        self.geo_lookup = geo_lookup

    def _error(self, marker: str) -> Resolution:
        sep = "&" if "?" in self.home_url else "?"
        return Resolution(f"{self.home_url}{sep}{urlencode({'error': marker})}", marker)

    def _password_gate(self, code: str) -> Resolution:
        sep = "&" if "?" in self.password_gate_url else "?"
        return Resolution(f"{self.password_gate_url}{sep}{urlencode({'code': code})}", PASSWORD_REQUIRED)

    def _scan_event(self, ip: str, user_agent: str, referrer: str | None) -> dict:
        client = classify(user_agent)
        event = {
            "ip_address": ip,
            "user_agent": user_agent,
            "device_type": client.device_type,
            "os": client.os,
            "browser": client.browser,
            "browser_version": client.browser_version,
            "platform": client.platform,
            "visitor_fingerprint": visitor_fingerprint(ip, user_agent),
            "referrer": referrer,
        }
        if self.geo_lookup:
            location = self.geo_lookup(ip)
            event["country"] = location.get("country")
            event["city"] = location.get("city")
        return event

    def resolve(self, code: str, ip: str, user_agent: str, referrer: str | None = None, now=None) -> Resolution:
        try:
            return self._resolve(code, ip or "unknown", user_agent or "", referrer, now or utcnow())
        except Exception:
            logger.exception("Error processing QR redirect for %s", code)
            self.store.discard()
            return self._error(SERVER_ERROR)

    def _resolve(self, code, ip, user_agent, referrer, now) -> Resolution:
        qr = self.store.find_by_short_code(code)
        if qr is None:
            return self._error(QR_NOT_FOUND)

        if not qr.is_active:
            return self._error(QR_INACTIVE)

        if qr.expires_at and qr.expires_at < now:
            return self._error(QR_EXPIRED)

        if qr.max_scans is not None and qr.current_scans >= qr.max_scans:
            return self._error(QR_LIMIT_REACHED)

        status = self.store.record_scan(qr, self._scan_event(ip, user_agent, referrer), now)
        if status == GONE:
            return self._error(QR_NOT_FOUND)
        if status == LIMIT_REACHED:
            return self._error(QR_LIMIT_REACHED)
        if status != RECORDED:
            raise RuntimeError(f"unexpected scan status {status!r}")

        # protected codes are counted before the password gate
        if qr.password_hash:
            return self._password_gate(code)

        return Resolution(qr.destination_url, REDIRECTED)
