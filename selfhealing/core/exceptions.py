class HealingError(RuntimeError):
    """Base class for failures inside the healing layer."""


class HealingTransportError(HealingError):
    """Raised when the healing service cannot be reached or answers badly."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class HealingDeclined(HealingError):
    """Raised when the healing service has no replacement selector to offer."""


class SelectorParseError(HealingError, ValueError):
    """Raised when a string is not a recognized selector."""


class CaptureError(HealingError):
    """Raised when element or page state cannot be read for fingerprinting."""
