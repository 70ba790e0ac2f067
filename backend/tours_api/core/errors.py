# backend/tours_api/core/errors.py
from __future__ import annotations

from typing import Any

from fastapi import status


class ToursApiError(Exception):
    """
    Base for errors with a stable, machine-readable code.

    Rendered by the app-level handler as:
        {"detail": {"code": <code>, "message": <message>, **extra}}
    """

    code: str = "Error"
    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str = "Request failed."

    def __init__(self, message: str | None = None, **extra: Any) -> None:
        self.message = message or self.message
        self.extra = extra
        super().__init__(self.message)

    def to_detail(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, **self.extra}


# -----------------------------
# Auth
# -----------------------------
class DuplicateIdentity(ToursApiError):
    code = "DuplicateIdentity"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "User with this email already exists"


class CredentialRejected(ToursApiError):
    code = "CredentialRejected"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Password does not satisfy the password policy"


class InvalidCredentials(ToursApiError):
    # Same message for unknown email and wrong password.
    code = "InvalidCredentials"
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid email or password"


# -----------------------------
# Query
# -----------------------------
class NotFound(ToursApiError):
    code = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Tour not found"


# -----------------------------
# Infrastructure
# -----------------------------
class StorageUnavailable(ToursApiError):
    code = "StorageUnavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    message = "Storage is temporarily unavailable"
