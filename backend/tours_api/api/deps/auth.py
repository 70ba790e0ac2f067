from __future__ import annotations

import uuid
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from tours_api.core.roles import AccountRole
from tours_api.core.security import TokenClaims, bearer_scheme, decode_access_token
from tours_api.db.session import get_db
from tours_api.models.account import Account

KNOWN_ROLES = {r.value for r in AccountRole}


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_token_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> TokenClaims:
    """
    Verifies signature + expiry of the bearer token. No DB access.
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Not authenticated")
    return decode_access_token(credentials.credentials)


async def get_current_account(
    claims: TokenClaims = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db),
) -> Account:
    """
    Dependency for protected endpoints.
    """
    try:
        account_id = uuid.UUID(claims.subject)
    except ValueError:
        raise _unauthorized("Invalid token subject")

    account = await db.get(Account, account_id)
    if not account:
        raise _unauthorized("User not found")

    if not account.is_active:
        raise _unauthorized("User inactive")

    return account


def require_roles(*allowed_roles: str):
    """
    Enforce that the token carries at least one of allowed_roles (Customer/Supplier/Admin).
    Roles are read from the token, i.e. as they were at issuance.
    """
    allowed = set(allowed_roles)
    unknown = allowed - KNOWN_ROLES
    if unknown:
        raise ValueError(f"Unknown role(s): {sorted(unknown)}. Allowed: {sorted(KNOWN_ROLES)}")

    async def _checker(claims: TokenClaims = Depends(get_token_claims)) -> TokenClaims:
        if not any(claims.has_role(r) for r in allowed):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "code": "rbac_forbidden",
                    "message": "You do not have permission to perform this action.",
                    "required": sorted(allowed),
                    "roles": list(claims.roles),
                },
            )
        return claims

    return _checker
