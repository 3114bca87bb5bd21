"""Registration, login, email verification, and password resets."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from payroll_admin.database import atomic
from payroll_admin.errors import Conflict, FieldError, InvalidCredentials, ValidationError
from payroll_admin.models import Accountant, Company, User
from payroll_admin.security.passwords import hash_password, new_opaque_token, verify_password
from payroll_admin.security.principal import Role
from payroll_admin.security.tokens import generate_token

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from payroll_admin.config import Settings
    from payroll_admin.services.email import EmailSender

logger = logging.getLogger(__name__)

RESET_TOKEN_LIFETIME = timedelta(hours=1)


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AuthService:
    """Account flows for accountants and client companies."""

    def __init__(self, session: AsyncSession, settings: Settings, email: EmailSender):
        self.session = session
        self.settings = settings
        self.email = email

    async def register(
        self,
        email: str,
        password: str,
        user_type: Role,
        *,
        company_name: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> User:
        """Create a user plus its accountant profile or unassociated company.

        The verification email is sent after the commit; a delivery failure
        is logged and does not undo the registration.
        """
        email = email.lower()
        errors = []
        if user_type is Role.ACCOUNTANT:
            if not first_name:
                errors.append(FieldError("first_name", "first_name is required for accountants"))
            if not last_name:
                errors.append(FieldError("last_name", "last_name is required for accountants"))
        elif not company_name:
            errors.append(FieldError("company_name", "company_name is required for clients"))
        if errors:
            raise ValidationError(errors)

        if await self._find_by_email(email) is not None:
            raise Conflict("User already exists")

        password_hash = await asyncio.to_thread(hash_password, password)
        verification_token = new_opaque_token()
        try:
            async with atomic(self.session):
                user = User(
                    email=email,
                    password_hash=password_hash,
                    user_type=user_type.value,
                    is_verified=False,
                    verification_token=verification_token,
                )
                self.session.add(user)
                await self.session.flush()
                if user_type is Role.ACCOUNTANT:
                    self.session.add(
                        Accountant(user_id=user.user_id, first_name=first_name, last_name=last_name)
                    )
                else:
                    self.session.add(
                        Company(user_id=user.user_id, company_name=company_name, email=email)
                    )
        except IntegrityError as e:
            raise Conflict("User already exists") from e

        logger.info("Registered %s user %s", user_type.value, user.user_id)
        link = f"{self.settings.frontend_url}/verify-email?token={verification_token}"
        await self._send(
            email,
            "Verify Your Email",
            f"Please click on the following link to verify your email: {link}",
        )
        return user

    async def verify_email(self, token: str) -> None:
        user = await self.session.scalar(select(User).where(User.verification_token == token))
        if user is None:
            raise InvalidCredentials("Invalid or expired verification token")
        async with atomic(self.session):
            user.is_verified = True
            user.verification_token = None
        logger.info("User %s verified their email", user.user_id)

    async def login(self, email: str, password: str) -> str:
        """Check credentials and issue a token carrying the role's id."""
        user = await self._find_by_email(email.lower())
        if user is None:
            raise InvalidCredentials("Invalid credentials")
        if not await asyncio.to_thread(verify_password, password, user.password_hash):
            raise InvalidCredentials("Invalid credentials")
        if not user.is_verified:
            raise InvalidCredentials("Please verify your email before logging in")

        if user.user_type == Role.ACCOUNTANT.value:
            accountant_id = await self.session.scalar(
                select(Accountant.accountant_id).where(Accountant.user_id == user.user_id)
            )
            return generate_token(user, self.settings, accountant_id=accountant_id)
        company_id = await self.session.scalar(
            select(Company.company_id).where(Company.user_id == user.user_id)
        )
        return generate_token(user, self.settings, company_id=company_id)

    async def request_password_reset(self, email: str) -> None:
        email = email.lower()
        user = await self._find_by_email(email)
        if user is None:
            raise InvalidCredentials("User not found")

        reset_token = new_opaque_token()
        async with atomic(self.session):
            user.reset_token = reset_token
            user.reset_token_expiry = datetime.now(timezone.utc) + RESET_TOKEN_LIFETIME

        link = f"{self.settings.frontend_url}/reset-password?token={reset_token}"
        await self._send(
            email,
            "Password Reset Request",
            f"Please click on the following link to reset your password: {link}",
        )

    async def reset_password(self, token: str, password: str) -> None:
        user = await self.session.scalar(select(User).where(User.reset_token == token))
        if (
            user is None
            or user.reset_token_expiry is None
            or _as_aware(user.reset_token_expiry) <= datetime.now(timezone.utc)
        ):
            raise InvalidCredentials("Invalid or expired reset token")

        password_hash = await asyncio.to_thread(hash_password, password)
        async with atomic(self.session):
            user.password_hash = password_hash
            user.reset_token = None
            user.reset_token_expiry = None
        logger.info("User %s reset their password", user.user_id)

    async def _find_by_email(self, email: str) -> User | None:
        return await self.session.scalar(select(User).where(User.email == email))

    async def _send(self, to: str, subject: str, text: str) -> None:
        try:
            await self.email.send(to, subject, text)
        except Exception:
            logger.exception("Failed to send %r email to %s", subject, to)
