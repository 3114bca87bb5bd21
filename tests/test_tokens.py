"""Tests for bearer token issuance and verification."""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from payroll_admin.errors import AccessDenied, Unauthenticated
from payroll_admin.models import User
from payroll_admin.security.passwords import hash_password, password_problems, verify_password
from payroll_admin.security.principal import AccountantPrincipal, ClientPrincipal
from payroll_admin.security.tokens import (
    decode_token,
    generate_token,
    parse_authorization_header,
)


def _user(user_type: str) -> User:
    return User(user_id=7, email="someone@firm.example.com", user_type=user_type)


class TestTokenRoundTrip:
    """Tokens decode back into the principal they were issued for."""

    def test_accountant_token(self, settings):
        token = generate_token(_user("accountant"), settings, accountant_id=3)
        principal = decode_token(token, settings)
        assert principal == AccountantPrincipal(user_id=7, accountant_id=3)

    def test_client_token(self, settings):
        token = generate_token(_user("client"), settings, company_id=11)
        principal = decode_token(token, settings)
        assert principal == ClientPrincipal(user_id=7, company_id=11)

    def test_only_role_id_is_embedded(self, settings):
        """An accountant token never carries a company id and vice versa."""
        token = generate_token(_user("accountant"), settings, accountant_id=3, company_id=11)
        claims = jwt.decode(token, settings.jwt_secret, algorithms=["HS256"])
        assert claims["accountantId"] == 3
        assert claims["companyId"] is None

    def test_expiry_is_one_hour(self, settings):
        issued = datetime(2024, 1, 1, tzinfo=timezone.utc)
        token = generate_token(_user("client"), settings, company_id=1, now=issued)
        claims = jwt.get_unverified_claims(token)
        assert claims["exp"] - claims["iat"] == 3600


class TestTokenRejection:
    """Bad tokens map onto 401 or 403 errors."""

    def test_expired_token(self, settings):
        issued = datetime.now(timezone.utc) - timedelta(hours=2)
        token = generate_token(_user("client"), settings, company_id=1, now=issued)
        with pytest.raises(Unauthenticated, match="expired"):
            decode_token(token, settings)

    def test_wrong_signature(self, settings):
        token = jwt.encode({"userId": 7, "userType": "client", "companyId": 1}, "other-secret")
        with pytest.raises(Unauthenticated):
            decode_token(token, settings)

    def test_garbage_token(self, settings):
        with pytest.raises(Unauthenticated):
            decode_token("not-a-jwt", settings)

    def test_unknown_user_type_is_denied(self, settings):
        token = jwt.encode({"userId": 7, "userType": "admin"}, settings.jwt_secret)
        with pytest.raises(AccessDenied, match="Invalid user type"):
            decode_token(token, settings)

    def test_accountant_without_accountant_id_is_denied(self, settings):
        token = jwt.encode({"userId": 7, "userType": "accountant"}, settings.jwt_secret)
        with pytest.raises(AccessDenied):
            decode_token(token, settings)

    def test_client_without_company_has_no_company(self, settings):
        token = jwt.encode({"userId": 7, "userType": "client"}, settings.jwt_secret)
        assert decode_token(token, settings) == ClientPrincipal(user_id=7, company_id=None)


class TestAuthorizationHeader:
    def test_bearer_token_is_extracted(self):
        assert parse_authorization_header("Bearer abc.def") == "abc.def"

    @pytest.mark.parametrize("value", [None, "", "Bearer", "Bearer   ", "Basic abc"])
    def test_missing_or_malformed_header(self, value):
        with pytest.raises(Unauthenticated, match="required"):
            parse_authorization_header(value)


class TestPasswords:
    def test_hash_verifies(self):
        hashed = hash_password("Secret#123")
        assert verify_password("Secret#123", hashed)
        assert not verify_password("Secret#124", hashed)

    def test_strong_password_has_no_problems(self):
        assert password_problems("Secret#123") == []

    def test_weak_password_reports_every_rule(self):
        assert len(password_problems("abc")) == 4
