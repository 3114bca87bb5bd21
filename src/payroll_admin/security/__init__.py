"""Authentication primitives."""

from payroll_admin.security.principal import (
    AccountantPrincipal,
    ClientPrincipal,
    Principal,
    Role,
)
from payroll_admin.security.tokens import decode_token, generate_token

__all__ = [
    "AccountantPrincipal",
    "ClientPrincipal",
    "Principal",
    "Role",
    "decode_token",
    "generate_token",
]
