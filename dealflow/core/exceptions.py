"""Custom exceptions for the Dealflow CRM backend."""


class CRMException(Exception):
    """Base exception for the CRM backend."""

    error_code = "crm_error"


class ValidationError(CRMException):
    """Raised when input fails validation."""

    error_code = "validation_error"


class NotFoundError(CRMException):
    """Raised when a resource is not found."""

    error_code = "not_found"


class ConflictError(CRMException):
    """Raised when a write collides with existing or concurrent state."""

    error_code = "conflict"


class DatabaseError(CRMException):
    """Raised when a database operation fails."""

    error_code = "database_error"


class ServiceError(CRMException):
    """Raised when a service operation fails."""

    error_code = "service_error"


class ConfigurationError(CRMException):
    """Raised when configuration is invalid."""

    error_code = "configuration_error"


class AuthenticationError(CRMException):
    """Raised when authentication fails."""

    error_code = "authentication_error"


class AuthorizationError(CRMException):
    """Raised when an authenticated principal lacks permission."""

    error_code = "authorization_error"
