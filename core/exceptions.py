"""Custom exception classes for the catalog API."""


class CatalogServiceError(Exception):
    """Base exception for all catalog service errors."""

    status_code: int = 500

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationFailedError(CatalogServiceError):
    """Raised when input is rejected after schema validation."""

    status_code = 400


class InvalidIdError(CatalogServiceError):
    """Raised when a path or body identifier is not a valid ObjectId."""

    status_code = 400

    def __init__(self, message: str = "Invalid ID format", details: dict | None = None):
        super().__init__(message, details)


class DuplicateEntryError(CatalogServiceError):
    """Raised when a natural key (slug, catalog number) is already taken."""

    status_code = 400


class UploadRejectedError(CatalogServiceError):
    """Raised when an upload violates type, size or count constraints."""

    status_code = 400


class AuthenticationError(CatalogServiceError):
    """Raised when a credential is missing or invalid."""

    status_code = 401


class AuthorizationError(CatalogServiceError):
    """Raised when a credential lacks the required privileges."""

    status_code = 403


class NotFoundError(CatalogServiceError):
    """Raised when a referenced entity does not exist."""

    status_code = 404


class MailDeliveryError(CatalogServiceError):
    """Raised when the mail transport rejects a message."""

    pass


class ServiceInitializationError(CatalogServiceError):
    """Raised when a service fails to initialize."""

    pass
