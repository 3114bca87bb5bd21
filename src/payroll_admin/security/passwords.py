"""Password hashing and strength rules."""

from __future__ import annotations

import re
import secrets

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

MIN_PASSWORD_LENGTH = 8
_SPECIAL_CHARS = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def password_problems(password: str) -> list[str]:
    """Return every strength rule the password breaks (empty when strong)."""
    problems = []
    if len(password) < MIN_PASSWORD_LENGTH:
        problems.append(f"must be at least {MIN_PASSWORD_LENGTH} characters")
    if not re.search(r"[A-Z]", password):
        problems.append("must contain an uppercase letter")
    if not re.search(r"[a-z]", password):
        problems.append("must contain a lowercase letter")
    if not re.search(r"\d", password):
        problems.append("must contain a digit")
    if not _SPECIAL_CHARS.search(password):
        problems.append("must contain a special character")
    return problems


def new_opaque_token() -> str:
    """Random single-use token for email verification and password resets."""
    return secrets.token_hex(20)
