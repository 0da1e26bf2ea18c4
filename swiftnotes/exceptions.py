from typing import Dict, Optional

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base application exception"""
    pass


class NotFoundError(AppException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class BadRequestError(AppException):
    def __init__(self, detail: str = "Bad request"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class ValidationError(BadRequestError):
    """One or more supplied preference values are outside their domain.

    ``fields`` maps each offending key to a human readable reason.
    """

    def __init__(self, fields: Dict[str, str], detail: Optional[str] = None):
        self.fields = dict(fields)
        if detail is None:
            detail = "Invalid preference value(s): " + ", ".join(sorted(self.fields))
        super().__init__(detail=detail)


class ConflictError(AppException):
    def __init__(self, detail: str = "Resource already exists"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class TransientStorageError(AppException):
    def __init__(self, detail: str = "Storage temporarily unavailable, please retry"):
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)


class InternalServerError(AppException):
    def __init__(self, detail: str = "Internal server error"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
