# backend/tours_api/api/v1/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from tours_api.api.deps.auth import get_current_account, require_roles
from tours_api.core.errors import CredentialRejected, DuplicateIdentity, InvalidCredentials
from tours_api.core.roles import AccountRole
from tours_api.core.security import TokenClaims, create_access_token
from tours_api.crud.accounts import (
    authenticate,
    get_account_roles,
    get_supplier_for_account,
    register_account,
)
from tours_api.db.session import get_db
from tours_api.models.account import Account
from tours_api.schemas.auth import (
    IdentitySummary,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    SupplierProfileOut,
)

router = APIRouter(prefix="/auth", tags=["auth"])


def _error_responses(*errors) -> dict:
    return {e.status_code: {"description": e.code} for e in errors}


def _to_identity_summary(account: Account, roles: list[str]) -> IdentitySummary:
    return IdentitySummary(
        id=str(account.id),
        email=account.email,
        first_name=account.first_name,
        last_name=account.last_name,
        role=roles[0] if roles else None,
        roles=roles,
    )


@router.post(
    "/register",
    response_model=RegisterResponse,
    responses=_error_responses(DuplicateIdentity, CredentialRejected),
)
async def register(payload: RegisterRequest, db: AsyncSession = Depends(get_db)) -> RegisterResponse:
    """
    Body: email, password, first_name, last_name, role ("Customer" | "Supplier"),
    optional business_name / business_description / phone_number for suppliers.
    """
    await register_account(
        db,
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=payload.role,
        business_name=payload.business_name,
        business_description=payload.business_description,
        phone_number=payload.phone_number,
    )
    return RegisterResponse()


@router.post("/login", response_model=LoginResponse, responses=_error_responses(InvalidCredentials))
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)) -> LoginResponse:
    """
    Returns a signed token carrying id, email, display name and every role held now.
    """
    account, roles = await authenticate(db, email=payload.email, password=payload.password)

    token = create_access_token(
        subject=str(account.id),
        email=account.email,
        name=account.display_name,
        roles=roles,
    )
    return LoginResponse(token=token, user=_to_identity_summary(account, roles))


@router.get("/me", response_model=IdentitySummary)
async def me(
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db),
) -> IdentitySummary:
    """
    Returns the current account identity (roles as stored now, not as in the token).
    """
    roles = await get_account_roles(db, account.id)
    return _to_identity_summary(account, roles)


@router.get("/me/supplier", response_model=SupplierProfileOut)
async def my_supplier_profile(
    claims: TokenClaims = Depends(require_roles(AccountRole.SUPPLIER.value)),
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db),
):
    """
    Supplier profile of the current account, including its approval status.
    """
    supplier = await get_supplier_for_account(db, account.id)
    if supplier is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supplier profile not found")
    return supplier
