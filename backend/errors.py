# backend/errors.py
from fastapi import status


class AppError(Exception):
    """Base for errors that map straight onto an HTTP response."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidCredential(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class ServerMisconfigured(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class InternalError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
