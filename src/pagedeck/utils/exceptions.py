"""
PageDeck - Custom Exceptions Module

This module defines custom exception classes for specific error cases
in the PageDeck package.
"""


class PageDeckError(Exception):
    """Base exception for all PageDeck errors.

    All custom exceptions should inherit from this class to allow
    catching any PageDeck-specific error.
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional technical details for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


class LoadFailure(PageDeckError):
    """Raised when a page manifest could not be fetched or was malformed.

    The collection stays empty and the message is shown inline.
    """

    def __init__(self, reason: str, source: str | None = None) -> None:
        """Initialize the exception.

        Args:
            reason: Why the manifest could not be loaded
            source: Optional document name or URL the fetch was for
        """
        self.reason = reason
        self.source = source
        details = f"source={source}" if source else None
        super().__init__(reason, details=details)


class ManifestError(LoadFailure):
    """Raised when a manifest response does not have the expected shape."""


class ApiError(LoadFailure):
    """Raised when the processing service answers with a non-2xx status."""

    def __init__(self, url: str, status_code: int, body: str = "") -> None:
        self.url = url
        self.status_code = status_code
        self.body = body
        reason = f"PDF API error {status_code} ({url})"
        if body:
            reason += f": {body}"
        super().__init__(reason, source=url)


class ImageLoadFailure(PageDeckError):
    """Raised when a single page thumbnail could not be loaded.

    Scoped to one cell: callers show a placeholder, never fail the view.
    """

    def __init__(self, image_reference: str, reason: str | None = None) -> None:
        self.image_reference = image_reference
        self.reason = reason
        msg = f"Failed to load thumbnail: {image_reference}"
        if reason:
            msg += f" - {reason}"
        super().__init__(msg, details=f"reference={image_reference}")


class PreconditionFailure(PageDeckError):
    """Raised before any network call when a request cannot be built.

    For example an export with every page deleted, or a blank range string.
    """


class ConfigurationError(PageDeckError):
    """Raised when there's a configuration-related error."""

    def __init__(self, setting_name: str | None = None, reason: str | None = None) -> None:
        """Initialize the exception.

        Args:
            setting_name: Optional name of the problematic setting
            reason: Optional reason for the error
        """
        self.setting_name = setting_name
        self.reason = reason

        if setting_name:
            msg = f"Configuration error for '{setting_name}'"
        else:
            msg = "Configuration error"

        if reason:
            msg += f": {reason}"

        super().__init__(msg)
