"""Error kinds raised by the services.

Each kind is an ``HTTPException`` so FastAPI renders it as a structured
``{"detail": ...}`` response with the matching status code.
"""
from fastapi import HTTPException, status


class InvalidArgumentError(HTTPException):
    """Empty or invalid fields, non-positive durations."""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class ForbiddenError(HTTPException):
    """A non-creator attempted an administrative action."""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class AlreadyExistsError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class NumericParseError(HTTPException):
    """A stored expiry countdown could not be read as a number."""

    def __init__(self, detail: str):
        super().__init__(status_code=422, detail=detail)
