"""Typed failures raised by the tracking service.

Every error is terminal for the request that raised it. The API layer maps
``code`` to an HTTP status in one place (see ``main.py``).
"""


class TrackingError(Exception):
    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(TrackingError):
    code = "not_found"


class NoEvents(TrackingError):
    """The shipment exists but has no tracking events yet."""
    code = "no_events"


class Conflict(TrackingError):
    code = "conflict"


class Forbidden(TrackingError):
    code = "forbidden"


class InvalidToken(TrackingError):
    code = "invalid_token"


class AlreadyBootstrapped(TrackingError):
    code = "already_bootstrapped"


class ValidationError(TrackingError):
    code = "validation_error"
