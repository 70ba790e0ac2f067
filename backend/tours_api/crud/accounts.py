# backend/tours_api/crud/accounts.py
from __future__ import annotations

import uuid
from typing import Optional

import anyio
import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tours_api.core.credentials import hash_password, verify_password
from tours_api.core.errors import DuplicateIdentity, InvalidCredentials
from tours_api.core.roles import AccountRole
from tours_api.models.account import Account
from tours_api.models.account_role import AccountRoleAssignment
from tours_api.models.supplier import Supplier

logger = structlog.get_logger()


async def get_account_by_email(db: AsyncSession, email: str) -> Optional[Account]:
    stmt = select(Account).where(Account.email == Account.normalize_email(email))
    res = await db.execute(stmt)
    return res.scalar_one_or_none()


async def get_account_roles(db: AsyncSession, account_id: uuid.UUID) -> list[str]:
    """
    Roles currently held by the account, in assignment order.
    """
    stmt = (
        select(AccountRoleAssignment.role)
        .where(AccountRoleAssignment.account_id == account_id)
        .order_by(AccountRoleAssignment.created_at, AccountRoleAssignment.role)
    )
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def get_supplier_for_account(db: AsyncSession, account_id: uuid.UUID) -> Optional[Supplier]:
    res = await db.execute(select(Supplier).where(Supplier.account_id == account_id))
    return res.scalar_one_or_none()


async def register_account(
    db: AsyncSession,
    *,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    role: str = AccountRole.CUSTOMER.value,
    business_name: Optional[str] = None,
    business_description: Optional[str] = None,
    phone_number: Optional[str] = None,
) -> Account:
    """
    Create an account, its role assignment and (for suppliers) an unapproved
    supplier profile in ONE transaction.

    Raises:
      DuplicateIdentity: email already registered (checked first, so it wins
        over password policy failures).
      CredentialRejected: password policy refused the password.
    """
    email = Account.normalize_email(email)

    # Fast path for the common case. The unique index on accounts.email is the
    # real guard; see the IntegrityError branch below.
    if await get_account_by_email(db, email) is not None:
        raise DuplicateIdentity()

    # pbkdf2 is CPU-bound; keep it off the event loop so concurrent reads proceed.
    password_hash = await anyio.to_thread.run_sync(hash_password, password)

    account = Account(
        id=uuid.uuid4(),
        email=email,
        password_hash=password_hash,
        first_name=first_name,
        last_name=last_name,
        is_active=True,
    )
    db.add(account)

    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        # race: same email registered concurrently
        logger.info("registration_duplicate_race", role=role)
        raise DuplicateIdentity()
    except Exception:
        await db.rollback()
        logger.error("registration_rolled_back", role=role)
        raise

    db.add(AccountRoleAssignment(account_id=account.id, role=role))

    if role == AccountRole.SUPPLIER.value:
        db.add(
            Supplier(
                account_id=account.id,
                business_name=business_name or "",
                description=business_description or "",
                phone_number=phone_number or "",
                is_approved=False,
            )
        )

    try:
        await db.commit()
    except Exception:
        # Never leave an account without its role/profile.
        await db.rollback()
        logger.error("registration_rolled_back", account_id=str(account.id), role=role)
        raise

    logger.info("account_registered", account_id=str(account.id), role=role)
    return account


async def authenticate(db: AsyncSession, *, email: str, password: str) -> tuple[Account, list[str]]:
    """
    Resolve (account, roles) for a login attempt.

    Every failure path raises the same InvalidCredentials so callers cannot
    tell an unknown email from a wrong password.
    """
    account = await get_account_by_email(db, email)

    if account is None or not account.is_active:
        # Burn the same hashing work as a real check.
        await anyio.to_thread.run_sync(verify_password, password, None)
        logger.info("login_failed", reason="unknown_or_inactive_account")
        raise InvalidCredentials()

    if not await anyio.to_thread.run_sync(verify_password, password, account.password_hash):
        logger.info("login_failed", reason="bad_password", account_id=str(account.id))
        raise InvalidCredentials()

    roles = await get_account_roles(db, account.id)
    logger.info("login_succeeded", account_id=str(account.id), roles=roles)
    return account, roles
