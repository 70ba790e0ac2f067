# backend/tours_api/core/roles.py

import enum


class AccountRole(str, enum.Enum):
    CUSTOMER = "Customer"  # default for self-registration
    SUPPLIER = "Supplier"  # gets an (unapproved) supplier profile
    ADMIN = "Admin"        # assigned out of band, never via /auth/register
