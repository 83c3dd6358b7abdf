"""Custom exception classes for the application"""

from typing import Optional, Dict, Any


class BaseAPIException(Exception):
    """Base exception for all API errors"""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


# Authentication Errors
class AuthenticationError(BaseAPIException):
    """Base authentication error"""
    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, status_code=401)


class InvalidCredentialsError(AuthenticationError):
    """Invalid email or password"""
    def __init__(self):
        super().__init__("Invalid credentials")


class AccountDisabledError(AuthenticationError):
    """Account has been deactivated by an administrator"""
    def __init__(self):
        super().__init__("Account is deactivated")


# Authorization Errors
class AuthorizationError(BaseAPIException):
    """Insufficient permissions"""
    def __init__(self, message: str = "Insufficient permissions", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=403, details=details)


class SelfDeletionError(AuthorizationError):
    """Administrator attempted to delete their own account"""
    def __init__(self):
        super().__init__("Cannot delete your own account")


class RoleInUseError(AuthorizationError):
    """Role is still assigned to users"""
    def __init__(self, user_count: int):
        super().__init__(
            "Cannot delete role that is assigned to users",
            details={"assigned_users": user_count}
        )


# Resource Errors
class ResourceNotFoundError(BaseAPIException):
    """Resource not found"""
    def __init__(self, resource: str):
        super().__init__(f"{resource} not found", status_code=404)


class ResourceAlreadyExistsError(BaseAPIException):
    """Resource already exists"""
    def __init__(self, resource: str):
        super().__init__(f"{resource} already exists", status_code=409)


# Validation Errors
class ValidationError(BaseAPIException):
    """Validation error"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=422, details=details)


# Business Logic Errors
class BusinessLogicError(BaseAPIException):
    """Business logic error"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=400, details=details)


class InvalidStateError(BusinessLogicError):
    """Operation not allowed in the entity's current state"""


class AssetNotAvailableError(InvalidStateError):
    """Asset cannot be assigned in its current status"""
    def __init__(self, status: str):
        super().__init__(
            "Asset is not available for assignment",
            details={"status": status}
        )


class InsufficientStockError(InvalidStateError):
    """Stock-out would drive the counter negative"""
    def __init__(self, requested: int, available: int):
        super().__init__(
            "Insufficient stock available",
            details={"requested": requested, "available": available}
        )


# System Errors
class ConcurrentModificationError(BaseAPIException):
    """Concurrent modification detected"""
    def __init__(self, message: str = "Resource was modified by another request"):
        super().__init__(message, status_code=409)


class RateLimitExceededError(BaseAPIException):
    """Rate limit exceeded"""
    def __init__(self, message: str = "Rate limit exceeded. Please try again later."):
        super().__init__(message, status_code=429)
