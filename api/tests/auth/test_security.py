"""Tests for auth security functions."""

from datetime import timedelta
from uuid import uuid4

import pytest
from jose import JWTError

from src.auth.permissions import UserRole
from src.auth.security import (
    create_access_token,
    create_oauth_state,
    decode_access_token,
    decode_oauth_state,
    safe_redirect_path,
)


class TestAccessToken:
    """Tests for access token creation and decoding."""

    def test_create_and_decode(self) -> None:
        """Should round-trip the subject and add standard claims."""
        user_id = uuid4()
        token = create_access_token(
            {
                "sub": str(user_id),
                "email": "test@example.com",
                "role": UserRole.STUDENT.value,
            }
        )

        payload = decode_access_token(token)
        assert payload["sub"] == str(user_id)
        assert payload["email"] == "test@example.com"
        assert payload["role"] == "student"
        assert payload["type"] == "access"
        assert "exp" in payload
        assert "iat" in payload

    def test_expired_token_rejected(self) -> None:
        token = create_access_token(
            {"sub": str(uuid4())}, expires_delta=timedelta(seconds=-1)
        )
        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_tampered_token_rejected(self) -> None:
        """A payload swapped in from another token fails the signature check."""
        header, _, signature = create_access_token({"sub": str(uuid4())}).split(".")
        _, other_payload, _ = create_access_token({"sub": str(uuid4())}).split(".")
        with pytest.raises(JWTError):
            decode_access_token(f"{header}.{other_payload}.{signature}")

    def test_garbage_rejected(self) -> None:
        with pytest.raises(JWTError):
            decode_access_token("not-a-token")

    def test_oauth_state_is_not_an_access_token(self) -> None:
        """Token types are not interchangeable."""
        state = create_oauth_state("/shop")
        with pytest.raises(JWTError):
            decode_access_token(state)


class TestOAuthState:
    """Tests for signed OAuth state values."""

    def test_round_trip(self) -> None:
        state = create_oauth_state("/courses")
        payload = decode_oauth_state(state)
        assert payload["next"] == "/courses"
        assert payload["type"] == "oauth_state"
        assert payload["nonce"]

    def test_states_are_unique(self) -> None:
        assert create_oauth_state("/") != create_oauth_state("/")

    def test_access_token_is_not_a_state(self) -> None:
        token = create_access_token({"sub": str(uuid4())})
        with pytest.raises(JWTError):
            decode_oauth_state(token)


class TestSafeRedirectPath:
    """Tests for safe_redirect_path."""

    @pytest.mark.parametrize("path", ["/", "/shop", "/courses/community/abc?x=1"])
    def test_relative_paths_allowed(self, path: str) -> None:
        assert safe_redirect_path(path) == path

    @pytest.mark.parametrize(
        "path",
        [None, "", "https://evil.example.com", "//evil.example.com", "shop"],
    )
    def test_other_targets_use_default(self, path: str | None) -> None:
        assert safe_redirect_path(path) == "/"
        assert safe_redirect_path(path, default="/profile") == "/profile"
