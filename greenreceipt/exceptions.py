"""Shared exception classes for GreenReceipt."""


class GreenReceiptError(Exception):
    """Base exception for domain utilities."""

    pass


class DatabaseNotConfiguredError(GreenReceiptError):
    """Raised when the MongoDB connection is not configured.

    API layer should map this to 503 Service Unavailable.
    """

    pass


class InvalidIdError(GreenReceiptError, ValueError):
    """Raised when a string is not a valid 24-hex ObjectId."""

    pass


class ReceiptPayloadError(GreenReceiptError):
    """Raised when an incoming receipt payload cannot be normalized.

    Carries every issue found, not just the first one, so clients can
    highlight all offending fields at once.
    """

    def __init__(self, issues: list[dict]):
        self.issues = issues
        summary = "; ".join(f"{issue['path']}: {issue['message']}" for issue in issues)
        super().__init__(f"Invalid receipt payload ({summary})")


__all__ = [
    "GreenReceiptError",
    "DatabaseNotConfiguredError",
    "InvalidIdError",
    "ReceiptPayloadError",
]
