"""Bearer token issuance and verification."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

from jose import ExpiredSignatureError, JWTError, jwt

from payroll_admin.errors import AccessDenied, Unauthenticated
from payroll_admin.security.principal import (
    AccountantPrincipal,
    ClientPrincipal,
    Principal,
    Role,
)

if TYPE_CHECKING:
    from payroll_admin.config import Settings
    from payroll_admin.models import User


def generate_token(
    user: User,
    settings: Settings,
    *,
    accountant_id: int | None = None,
    company_id: int | None = None,
    now: datetime | None = None,
) -> str:
    """Issue a short-lived token embedding the id that matches the user's role."""
    issued_at = now or datetime.now(timezone.utc)
    is_accountant = user.user_type == Role.ACCOUNTANT.value
    payload: dict[str, Any] = {
        "userId": user.user_id,
        "email": user.email,
        "userType": user.user_type,
        "accountantId": accountant_id if is_accountant else None,
        "companyId": company_id if not is_accountant else None,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + timedelta(minutes=settings.token_expire_minutes)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> Principal:
    """Verify a token and build the principal it describes.

    Raises Unauthenticated for bad or expired tokens and AccessDenied for
    well-signed tokens whose role claims are unusable.
    """
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError as e:
        raise Unauthenticated("Token has expired") from e
    except JWTError as e:
        raise Unauthenticated("Invalid or expired token") from e

    user_id = claims.get("userId")
    if not isinstance(user_id, int):
        raise Unauthenticated("Invalid or expired token")

    user_type = claims.get("userType")
    if user_type == Role.ACCOUNTANT.value:
        accountant_id = claims.get("accountantId")
        if not isinstance(accountant_id, int):
            raise AccessDenied("Access denied. Accountant role required.")
        return AccountantPrincipal(user_id=user_id, accountant_id=accountant_id)
    if user_type == Role.CLIENT.value:
        company_id = claims.get("companyId")
        return ClientPrincipal(
            user_id=user_id,
            company_id=company_id if isinstance(company_id, int) else None,
        )
    raise AccessDenied("Access denied. Invalid user type.")


def parse_authorization_header(value: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not value:
        raise Unauthenticated("Authentication token is required")
    scheme, _, token = value.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthenticated("Authentication token is required")
    return token.strip()
