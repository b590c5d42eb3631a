"""Unit tests for gateway request schemas."""

import pytest
from pydantic import ValidationError

from src.bh_gateway.user.schemas import LoginRequest, RegisterRequest


def _register(**overrides: object) -> RegisterRequest:
    data = {
        "username": "alice_01",
        "email": "alice@example.com",
        "password": "Secret123",
    }
    data.update(overrides)
    return RegisterRequest(**data)


class TestRegisterRequest:
    def test_valid(self) -> None:
        req = _register()
        assert req.username == "alice_01"
        assert req.referral_code is None

    @pytest.mark.parametrize("username", ["ab", "has space", "dash-name", "x" * 51])
    def test_invalid_usernames(self, username: str) -> None:
        with pytest.raises(ValidationError):
            _register(username=username)

    @pytest.mark.parametrize("password", ["short1A", "alllower123", "ALLUPPER123", "NoDigitsHere"])
    def test_weak_passwords(self, password: str) -> None:
        with pytest.raises(ValidationError):
            _register(password=password)

    def test_invalid_email(self) -> None:
        with pytest.raises(ValidationError):
            _register(email="not-an-email")

    def test_blank_referral_code_becomes_none(self) -> None:
        assert _register(referral_code="   ").referral_code is None

    def test_referral_code_is_stripped(self) -> None:
        assert _register(referral_code=" bobABC123 ").referral_code == "bobABC123"

    def test_overlong_referral_code_is_ignored(self) -> None:
        assert _register(referral_code="ALICE" * 20).referral_code is None


class TestLoginRequest:
    def test_login_is_by_email(self) -> None:
        req = LoginRequest(email="bob@example.com", password="x")
        assert req.email == "bob@example.com"

    def test_missing_password(self) -> None:
        with pytest.raises(ValidationError):
            LoginRequest(email="bob@example.com")  # type: ignore[call-arg]
