import uuid
from ..extensions import db
from ..utils.clock import utcnow, isoformat


QR_TYPES = ("url", "email", "phone", "sms", "wifi", "vcard", "text")
QR_STYLES = ("classic", "rounded", "dots", "classy")
ERROR_CORRECTION_LEVELS = ("L", "M", "Q", "H")


class QRCode(db.Model):
    __tablename__ = "qr_codes"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(db.String(36), db.ForeignKey("profiles.id"), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    short_code = db.Column(db.String(16), unique=True, nullable=False, index=True)
    qr_type = db.Column(db.String(20), nullable=False, default="url")
    destination_url = db.Column(db.Text, nullable=False)  # the payload actually encoded
    original_url = db.Column(db.Text, nullable=True)

    # Customization
    color_fg = db.Column(db.String(20), default="#000000")
    color_bg = db.Column(db.String(20), default="#FFFFFF")
    style = db.Column(db.String(20), default="classic")
    error_correction = db.Column(db.String(1), default="M")

    # Lifecycle
    is_dynamic = db.Column(db.Boolean, default=True, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=True)
    expires_at = db.Column(db.DateTime, nullable=True)
    max_scans = db.Column(db.Integer, nullable=True)
    current_scans = db.Column(db.Integer, default=0, nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)
    last_scanned_at = db.Column(db.DateTime, nullable=True)

    owner = db.relationship("Profile", backref=db.backref("qr_codes", lazy=True))

    def __repr__(self):
        return f"<QRCode {self.short_code} ({self.qr_type})>"

    def to_dict(self, base_url: str | None = None, is_locked: bool = False) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "short_code": self.short_code,
            "qr_type": self.qr_type,
            "destination_url": self.destination_url,
            "original_url": self.original_url,
            "color_fg": self.color_fg,
            "color_bg": self.color_bg,
            "style": self.style,
            "error_correction": self.error_correction,
            "is_dynamic": self.is_dynamic,
            "is_active": self.is_active,
            "is_password_protected": bool(self.password_hash),
            "expires_at": isoformat(self.expires_at),
            "max_scans": self.max_scans,
            "current_scans": self.current_scans,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
            "last_scanned_at": isoformat(self.last_scanned_at),
            "is_locked": is_locked,
        }
        if base_url:
            data["short_url"] = f"{base_url}/r/{self.short_code}"
        return data
