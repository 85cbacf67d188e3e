"""Client-facing errors raised by the tracking services.

Each carries the HTTP status and the message returned as ``{"error": ...}``.
"""


class TrackingError(Exception):
    status_code: int = 400
    message: str = "Bad request"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class UnknownActionError(TrackingError):
    message = "Unknown action"


class InvalidPayloadError(TrackingError):
    message = "Invalid payload"


class UnknownQueryTypeError(TrackingError):
    message = "Unknown type"


class InvalidQueryError(TrackingError):
    message = "Invalid query"


class NotAuthenticatedError(TrackingError):
    status_code = 401
    message = "Not authenticated"


class ForbiddenError(TrackingError):
    status_code = 403
    message = "Admin access required"
