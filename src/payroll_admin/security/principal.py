"""Authenticated principals attached to each request."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union


class Role(str, Enum):
    """User roles."""

    ACCOUNTANT = "accountant"
    CLIENT = "client"


@dataclass(frozen=True)
class AccountantPrincipal:
    """An accountant acting on the companies assigned to them."""

    role: ClassVar[Role] = Role.ACCOUNTANT

    user_id: int
    accountant_id: int


@dataclass(frozen=True)
class ClientPrincipal:
    """A client user acting on behalf of one company.

    ``company_id`` is None when the token carried no company; such a
    principal is denied by every ownership check.
    """

    role: ClassVar[Role] = Role.CLIENT

    user_id: int
    company_id: int | None


Principal = Union[AccountantPrincipal, ClientPrincipal]
