from typing import Any, Dict, Optional

from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def detail(self) -> Any:
        """Payload for HTTPException.detail."""
        return self.message


class RecordValidationError(ServiceError):
    """One or more form fields failed validation. Carries a field -> message map."""

    def __init__(self, errors: Dict[str, str], message: str = "Validation failed") -> None:
        super().__init__(message, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.errors = errors

    @property
    def detail(self) -> Any:
        return {"message": self.message, "errors": self.errors}


class DuplicateRecordError(ServiceError):
    def __init__(self, message: str = "That form already exists for this rank.") -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class NotFoundError(ServiceError):
    def __init__(self, message: str = "Form not found") -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class ForbiddenError(ServiceError):
    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or "Forbidden", status.HTTP_403_FORBIDDEN)
