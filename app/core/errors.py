# app/core/errors.py
from fastapi import status


class ArchiveError(Exception):
    """Erro de domínio; a borda HTTP converte em ApiResponse com success=False."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(ArchiveError):
    status_code = 422
    code = "invalid_input"


class Unauthorized(ArchiveError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"


class NotFound(ArchiveError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ConstraintViolation(ArchiveError):
    status_code = status.HTTP_409_CONFLICT
    code = "constraint_violation"


class StorageFailure(ArchiveError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "storage_failure"
