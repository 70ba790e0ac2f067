from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional

from fastapi import HTTPException, status
from fastapi.security import HTTPBearer
from jose import JWTError, jwt

from tours_api.core.config import settings

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class TokenClaims:
    """Identity asserted by a verified access token."""

    subject: str
    email: str
    name: str
    roles: tuple[str, ...]
    issued_at: datetime
    expires_at: datetime

    def has_role(self, role: str) -> bool:
        return role in self.roles


def _normalize_token(token: str) -> str:
    """
    Make token decoding resilient to common Swagger / copy-paste issues:
    - Leading/trailing whitespace/newlines
    - Surrounding quotes
    - Accidentally including the 'Bearer ' prefix in the token field
    """
    if token is None:
        return ""

    t = token.strip()

    if (t.startswith('"') and t.endswith('"')) or (t.startswith("'") and t.endswith("'")):
        t = t[1:-1].strip()

    if t.lower().startswith("bearer "):
        t = t[7:].strip()

    return t


def _invalid_token() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid token",
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(
    *,
    subject: str,
    email: str,
    name: str,
    roles: Iterable[str],
    expires_minutes: Optional[int] = None,
    issued_at: Optional[datetime] = None,
) -> str:
    """
    Issue a signed HS256 token carrying the account identity and every role it
    holds right now. There is no revocation list: expiry is the only way a
    token stops being valid.
    """
    iat = issued_at or datetime.now(timezone.utc)
    minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES if expires_minutes is None else expires_minutes
    expire_dt = iat + timedelta(minutes=minutes)

    # Use numeric timestamps for maximum compatibility
    to_encode: dict[str, Any] = {
        "sub": str(subject),
        "email": email,
        "name": name,
        "roles": sorted(set(roles)),
        "iat": int(iat.timestamp()),
        "exp": int(expire_dt.timestamp()),
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
    }

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_access_token(token: str) -> TokenClaims:
    token = _normalize_token(token)
    if not token:
        raise _invalid_token()

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
            options={"require_sub": True, "require_exp": True, "require_iat": True},
        )
    except JWTError:
        # Includes expired signature, bad format, bad signature, wrong algorithm, etc.
        raise _invalid_token()

    sub = payload.get("sub")
    roles = payload.get("roles")
    if not sub or not isinstance(roles, list):
        raise _invalid_token()

    return TokenClaims(
        subject=str(sub),
        email=str(payload.get("email") or ""),
        name=str(payload.get("name") or ""),
        roles=tuple(str(r) for r in roles),
        issued_at=datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc),
        expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
    )
