"""
Error taxonomy for the loadshedding engine.

Nothing here is meant to be fatal to the host: grid failures fall back to
demo data, device write failures roll back, validation errors are reported
to the user before anything reaches the repository.
"""


class SheddingHubError(Exception):
    """Base class for all engine errors."""
    pass


class TransientNetworkError(SheddingHubError):
    """Raised when the grid status fetch or a device write fails."""
    pass


class GridStatusParseError(TransientNetworkError):
    """Raised when the grid status body is not an integer stage in 0..8."""
    pass


class DeviceValidationError(SheddingHubError):
    """Raised when user input for a new or edited device is malformed."""

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.field = field


class NotFoundError(SheddingHubError):
    """Raised when a device id does not exist for the current owner."""
    pass
