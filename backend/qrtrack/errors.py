class QRServiceError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 400
    default_message = "Request failed"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotAuthenticatedError(QRServiceError):
    status_code = 401
    default_message = "Not authenticated"


class QRLinkNotFoundError(QRServiceError):
    status_code = 404
    default_message = "QR code not found"


class SlugTakenError(QRServiceError):
    status_code = 409
    default_message = "Slug already taken"


class StoreError(QRServiceError):
    """The backing store failed (connection, constraint, driver error)."""

    status_code = 500
    default_message = "Backend error"
