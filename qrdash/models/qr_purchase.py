import uuid
from ..extensions import db
from ..utils.clock import utcnow, isoformat


class QRPurchase(db.Model):
    __tablename__ = "qr_purchases"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(db.String(36), db.ForeignKey("profiles.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    amount_paid = db.Column(db.Float, default=0.0)
    payment_status = db.Column(db.String(20), default="pending", nullable=False)  # pending, completed
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<QRPurchase {self.id} x{self.quantity} {self.payment_status}>"

    def to_dict(self):
        return {
            "id": self.id,
            "quantity": self.quantity,
            "amount_paid": self.amount_paid,
            "payment_status": self.payment_status,
            "created_at": isoformat(self.created_at),
        }
