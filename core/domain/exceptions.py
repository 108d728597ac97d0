"""
Domain exceptions.

Domain exceptions represent business rule violations
and domain-specific error conditions.
"""


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    def __init__(self, message: str, code: str = None):
        """
        Initialize domain exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ValidationError(DomainException, ValueError):
    """Raised when input to a lifecycle operation is invalid."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, code="VALIDATION_ERROR")


class NotFoundError(DomainException):
    """Base exception for unknown keys and records."""

    def __init__(self, message: str = "Not found", code: str = "NOT_FOUND"):
        super().__init__(message, code=code)


class LicenseNotFoundError(NotFoundError):
    """Raised when a license key is unknown."""

    def __init__(self, message: str = "License not found"):
        super().__init__(message, code="LICENSE_NOT_FOUND")


class ActivationNotFoundError(NotFoundError):
    """Raised when no active activation matches a machine."""

    def __init__(self, message: str = "Activation not found"):
        super().__init__(message, code="ACTIVATION_NOT_FOUND")


class SubscriptionNotFoundError(NotFoundError):
    """Raised when a license has no matching subscription."""

    def __init__(self, message: str = "Subscription not found"):
        super().__init__(message, code="SUBSCRIPTION_NOT_FOUND")


class ProductNotFoundError(NotFoundError):
    """Raised when a product is not found."""

    def __init__(self, message: str = "Product not found"):
        super().__init__(message, code="PRODUCT_NOT_FOUND")


class ExpiredError(DomainException):
    """Raised when a license is not usable because of time or status."""

    def __init__(self, message: str = "License has expired", code: str = "LICENSE_EXPIRED"):
        super().__init__(message, code=code)


class LicenseSuspendedError(ExpiredError):
    """Raised when a license is suspended."""

    def __init__(self, message: str = "License is suspended"):
        super().__init__(message, code="LICENSE_SUSPENDED")


class LicenseRevokedError(ExpiredError):
    """Raised when a license is revoked."""

    def __init__(self, message: str = "License is revoked"):
        super().__init__(message, code="LICENSE_REVOKED")


class ActivationLimitError(DomainException):
    """Raised when a license has no free activation slot."""

    def __init__(self, message: str = "License activation limit reached"):
        super().__init__(message, code="ACTIVATION_LIMIT_REACHED")


class InvalidTransitionError(DomainException):
    """Raised when a status change is not allowed from the current status."""

    def __init__(self, message: str = "Invalid status transition"):
        super().__init__(message, code="INVALID_TRANSITION")


class StorageError(DomainException):
    """Raised when the persistence layer fails."""

    def __init__(self, message: str = "Storage failure", code: str = "STORAGE_ERROR"):
        super().__init__(message, code=code)


class LicenseKeyConflictError(StorageError):
    """Raised by storage when a generated license key already exists."""

    def __init__(self, message: str = "License key already exists"):
        super().__init__(message, code="LICENSE_KEY_CONFLICT")


class DuplicateActivationError(DomainException):
    """Raised by storage when a machine already holds an active activation."""

    def __init__(self, message: str = "Machine already activated"):
        super().__init__(message, code="DUPLICATE_ACTIVATION")
