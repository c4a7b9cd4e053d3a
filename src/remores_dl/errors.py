"""Exceptions raised by the REMORES and Canvas clients."""


class RemoresDLError(Exception):
    """Base class for all errors raised by this package."""

    pass


class ConfigError(RemoresDLError):
    """Raised when required configuration is missing or invalid."""

    pass


class RemoresAPIError(RemoresDLError):
    """Raised when a request to the reservation system fails."""

    pass


class BookingParseError(RemoresDLError):
    """Raised when a reservation page does not have the expected markup.

    The reservation pages come from a fixed template, so a missing node
    means the template changed upstream.
    """

    pass


class CanvasAPIError(RemoresDLError):
    """Raised when a Canvas request fails or returns an unexpected body."""

    pass


class NoAttachmentsError(RemoresDLError):
    """Raised when a submission has nothing to download."""

    pass
