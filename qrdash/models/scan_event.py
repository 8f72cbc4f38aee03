from ..extensions import db
from ..utils.clock import utcnow, isoformat


class ScanEvent(db.Model):
    """One resolved visit to a short code. Rows are only ever appended."""

    __tablename__ = "qr_scans"

    id = db.Column(db.Integer, primary_key=True)
    qr_code_id = db.Column(db.String(36), db.ForeignKey("qr_codes.id"), nullable=False, index=True)
    scanned_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    ip_address = db.Column(db.String(64))
    user_agent = db.Column(db.String(512))
    device_type = db.Column(db.String(20))   # mobile / tablet / desktop
    os = db.Column(db.String(50))
    browser = db.Column(db.String(50))
    browser_version = db.Column(db.String(50))
    platform = db.Column(db.String(100))     # OS family + version
    visitor_fingerprint = db.Column(db.String(64), index=True)
    country = db.Column(db.String(100), nullable=True)
    city = db.Column(db.String(100), nullable=True)
    referrer = db.Column(db.String(512), nullable=True)

    qr_code = db.relationship("QRCode", backref=db.backref("scans", lazy=True))

    def to_dict(self):
        return {
            "id": self.id,
            "scanned_at": isoformat(self.scanned_at),
            "ip_address": self.ip_address,
            "device_type": self.device_type,
            "os": self.os,
            "browser": self.browser,
            "browser_version": self.browser_version,
            "platform": self.platform,
            "country": self.country,
            "city": self.city,
            "referrer": self.referrer,
        }
