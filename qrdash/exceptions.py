class QRDashError(Exception):
    """Base class for errors surfaced to dashboard callers."""

    message = "Request failed"

    def __init__(self, message: str | None = None, data: dict | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.data = data


class ValidationError(QRDashError):
    message = "Invalid input"


class NotFound(QRDashError):
    message = "QR code not found"


class QuotaExceeded(QRDashError):
    message = "You have reached your free QR code limit. Upgrade to create more."
