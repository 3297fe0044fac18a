"""
Core Exceptions

Domain exceptions for the marketplace application services.
Routers translate these into HTTP responses.
"""


class MarketplaceError(Exception):
    """Base class for marketplace domain errors."""

    def __init__(self, message: str = "Marketplace error"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(MarketplaceError):
    """Raised when a referenced application does not exist."""

    def __init__(self, message: str = "Application not found"):
        super().__init__(message)


class ValidationError(MarketplaceError):
    """Raised when a request is well-formed but breaks a business rule."""


class PublishedApplicationLockedError(ValidationError):
    """
    Raised when an update touches frozen fields of a published application.

    Attributes:
        fields: Names of the frozen fields that differ from the stored values
    """

    def __init__(self, fields: list[str]):
        self.fields = fields
        super().__init__(
            "You can't update applications details while it published "
            f"(changed: {', '.join(fields)})"
        )


class ApplicationNotInstalledError(ValidationError):
    """Raised when an event targets an application the company has not installed."""


class AccessDeniedError(MarketplaceError):
    """
    Raised when a user does not have the role required for an operation.

    Usage:
        if not has_company_admin_level(role):
            raise AccessDeniedError("You don't have the rights to delete this application")
    """

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class VersionConflictError(MarketplaceError):
    """
    Raised when a conditional write finds a newer version than the one read.

    The caller may re-read the application and retry.
    """


class LegacyDisplayConfigurationError(MarketplaceError):
    """Raised when a legacy display configuration blob cannot be decoded."""

    def __init__(self, legacy_id: object, reason: str):
        self.legacy_id = legacy_id
        super().__init__(
            f"Invalid display configuration for legacy application {legacy_id}: {reason}"
        )
