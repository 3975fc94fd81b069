"""
Domain error taxonomy shared by the REST gateway and the WebSocket handlers
"""

from typing import Any, Optional


class AppError(Exception):
    """Base class for errors that are reported back to the client"""

    status_code = 400
    error_code = "BAD_REQUEST"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(AppError):
    """Malformed or missing input"""

    status_code = 422
    error_code = "VALIDATION_ERROR"


class InvalidTransitionError(ValidationError):
    """Order status change rejected by the active transition policy"""

    status_code = 409
    error_code = "INVALID_TRANSITION"

    def __init__(self, current_status: str, target_status: str):
        super().__init__(
            f"Cannot change order status from '{current_status}' to '{target_status}'",
            details={"currentStatus": current_status, "targetStatus": target_status},
        )
        self.current_status = current_status
        self.target_status = target_status


class NotFoundError(AppError):
    """Referenced session, order or menu item does not exist"""

    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource", identifier: Optional[str] = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{message}: {identifier}"
        super().__init__(message)
        self.resource = resource
        self.identifier = identifier


class AuthorizationError(AppError):
    status_code = 401
    error_code = "UNAUTHORIZED"


class InternalError(AppError):
    """Store failure or unexpected fault; clients only see a generic message"""

    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
