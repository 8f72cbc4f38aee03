import datetime
import logging
from dataclasses import dataclass, asdict

from sqlalchemy import or_, update
from sqlalchemy.exc import SQLAlchemyError

from ..models.qr_code import QRCode
from ..models.scan_event import ScanEvent
from ..utils import cache

logger = logging.getLogger(__name__)

RECORDED = "recorded"
LIMIT_REACHED = "limit_reached"
GONE = "gone"


@dataclass
class CodeSnapshot:
    """The slice of a QR code the redirect path needs."""

    id: str
    short_code: str
    destination_url: str
    is_active: bool
    expires_at: datetime.datetime | None
    max_scans: int | None
    current_scans: int
    password_hash: str | None

    @classmethod
    def from_model(cls, qr: QRCode) -> "CodeSnapshot":
        return cls(
            id=qr.id,
            short_code=qr.short_code,
            destination_url=qr.destination_url,
            is_active=bool(qr.is_active),
            expires_at=qr.expires_at,
            max_scans=qr.max_scans,
            current_scans=qr.current_scans or 0,
            password_hash=qr.password_hash,
        )


class QRCodeStore:
    """Service-role access to QR codes and scans.

    Reads and writes here bypass per-owner filtering, so an instance is only
    handed to the public redirect path. ``redis_client`` may be None.
    """

    def __init__(self, session, redis_client=None, cache_ttl: int = 3600):
        self.session = session
        self.redis_client = redis_client
        self.cache_ttl = cache_ttl

    def find_by_short_code(self, short_code: str) -> CodeSnapshot | None:
        cached = cache.get_snapshot(self.redis_client, short_code)
        if cached:
            return CodeSnapshot(**cached)

        qr = self.session.query(QRCode).filter_by(short_code=short_code).first()
        if not qr:
            return None

        snapshot = CodeSnapshot.from_model(qr)
        # limited codes depend on the live counter, never serve them from cache
        if snapshot.max_scans is None:
            cache.set_snapshot(self.redis_client, short_code, asdict(snapshot), self.cache_ttl)
        return snapshot

    def record_scan(self, snapshot: CodeSnapshot, event: dict, now: datetime.datetime) -> str:
        """Count one scan and append its ScanEvent in a single transaction.

        The counter is bumped with a conditional UPDATE, so two concurrent
        scans of a ``max_scans`` code cannot both claim the last slot.
        """
        stmt = (
            update(QRCode)
            .where(QRCode.id == snapshot.id)
            .where(or_(QRCode.max_scans.is_(None), QRCode.current_scans < QRCode.max_scans))
            .values(current_scans=QRCode.current_scans + 1, last_scanned_at=now)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)

        if result.rowcount == 0:
            self.session.rollback()
            if self.session.get(QRCode, snapshot.id) is None:
                cache.invalidate(self.redis_client, snapshot.short_code)
                return GONE
            return LIMIT_REACHED

        self.session.add(ScanEvent(qr_code_id=snapshot.id, scanned_at=now, **event))
        self.session.commit()
        return RECORDED

    def discard(self) -> None:
        """Drop whatever a failed request left in the session."""
        try:
            self.session.rollback()
        except SQLAlchemyError as e:
            logger.warning(f"Session rollback failed: {e}")
