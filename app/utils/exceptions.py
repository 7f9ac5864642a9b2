from fastapi import HTTPException, status
from typing import Optional


class APIException(HTTPException):
    """Flexible API Exception."""

    def __init__(self, status_code: int, code: str, message: Optional[str] = None):
        self.code = code
        self.message = message or "An error occurred"
        detail = {"code": code, "message": self.message}
        super().__init__(status_code=status_code, detail=detail)

    def __str__(self) -> str:
        return self.message


class NotFoundError(APIException):
    """404 Not Found Error."""

    def __init__(self, code: str, message: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND, code=code, message=message
        )


class BadRequestError(APIException):
    """400 Bad Request Error."""

    def __init__(self, code: str, message: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST, code=code, message=message
        )


class ValidationError(BadRequestError):
    """400 for a missing or out-of-range input; nothing was changed."""


class ForbiddenError(APIException):
    """403 Forbidden Error."""

    def __init__(self, code: str, message: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN, code=code, message=message
        )


class ConflictError(APIException):
    """409 Conflict Error."""

    def __init__(self, code: str, message: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT, code=code, message=message
        )


class AnalyzerError(APIException):
    """502 raised when the sentiment backend fails. Retryable by the worker."""

    def __init__(self, message: str, code: str = "SENTIMENT_ANALYZER_FAILED"):
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY, code=code, message=message
        )


class ServerError(APIException):
    """500 Internal Server Error."""

    def __init__(self, code: str, message: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            code=code,
            message=message,
        )
