from ..extensions import db
from ..utils.clock import utcnow, isoformat


class Profile(db.Model):
    __tablename__ = "profiles"

    # Same id as the identity provider's user (JWT "sub")
    id = db.Column(db.String(36), primary_key=True)
    email = db.Column(db.String(120), nullable=True)

    subscription_status = db.Column(db.String(20), default="free", nullable=False)  # free, monthly, yearly
    qr_quota = db.Column(db.Integer, default=5, nullable=False)
    qr_used = db.Column(db.Integer, default=0, nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    @property
    def is_free_tier(self) -> bool:
        return (self.subscription_status or "free") == "free"

    def __repr__(self):
        return f"<Profile {self.id} ({self.subscription_status})>"

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "subscription_status": self.subscription_status,
            "qr_quota": self.qr_quota,
            "qr_used": self.qr_used,
            "created_at": isoformat(self.created_at),
        }
