# backend/tours_api/core/credentials.py
from __future__ import annotations

from passlib.context import CryptContext

from tours_api.core.config import settings
from tours_api.core.errors import CredentialRejected

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# Verified against when the email is unknown so login timing does not reveal
# whether an account exists.
_DUMMY_HASH = pwd_context.hash("not-a-real-password")


def password_policy_violations(password: str) -> list[str]:
    """
    Returns the list of unmet password rules (empty when the password is acceptable).
    Rules mirror ASP.NET Identity defaults and are tunable via PASSWORD_* settings.
    """
    problems: list[str] = []
    if len(password) < settings.PASSWORD_MIN_LENGTH:
        problems.append(f"Passwords must be at least {settings.PASSWORD_MIN_LENGTH} characters.")
    if settings.PASSWORD_REQUIRE_DIGIT and not any(c.isdigit() for c in password):
        problems.append("Passwords must have at least one digit ('0'-'9').")
    if settings.PASSWORD_REQUIRE_LOWERCASE and not any(c.islower() for c in password):
        problems.append("Passwords must have at least one lowercase ('a'-'z').")
    if settings.PASSWORD_REQUIRE_UPPERCASE and not any(c.isupper() for c in password):
        problems.append("Passwords must have at least one uppercase ('A'-'Z').")
    if settings.PASSWORD_REQUIRE_NON_ALPHANUMERIC and all(c.isalnum() for c in password):
        problems.append("Passwords must have at least one non alphanumeric character.")
    return problems


def hash_password(password: str) -> str:
    problems = password_policy_violations(password)
    if problems:
        raise CredentialRejected(errors=problems)
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        pwd_context.verify(password, _DUMMY_HASH)
        return False
    return pwd_context.verify(password, password_hash)
