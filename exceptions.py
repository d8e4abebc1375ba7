from typing import Any, Dict, List, Optional

from fastapi import status


class FinanceTrackerError(Exception):
    """Base class for errors raised by services and translated to HTTP at the edge."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str = "Bad request"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message}

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None


def field_error(path: str, msg: str, location: str = "body", error_type: str = "value_error") -> Dict[str, str]:
    return {"location": location, "path": path, "msg": msg, "type": error_type}


class InputValidationError(FinanceTrackerError):
    message = "Validation failed"

    def __init__(self, errors: List[Dict[str, str]]):
        super().__init__()
        self.errors = errors

    def to_dict(self) -> Dict[str, Any]:
        return {"errors": self.errors}


class DuplicateUser(FinanceTrackerError):
    message = "User already exists"


class AuthError(FinanceTrackerError):
    pass


class InvalidCredentials(AuthError):
    message = "Invalid credentials"


class Unauthorized(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Could not validate credentials"

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class NotFound(FinanceTrackerError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class CategoryInUse(FinanceTrackerError):
    message = "Cannot delete category that is being used by transactions"
