"""Tests for bearer token signing and verification."""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from catalog_api.api.auth import (
    ROLE_ADMIN,
    ROLE_USER,
    InvalidTokenError,
    issue_token,
    verify_token,
)
from catalog_api.infrastructure.config import settings


class TestTokens:
    """Tests for issue_token/verify_token."""

    def test_verify_issued_token(self) -> None:
        caller = verify_token(issue_token("user-1", ROLE_ADMIN, secret="s3cret"), secret="s3cret")
        assert caller.user_id == "user-1"
        assert caller.role == ROLE_ADMIN
        assert caller.is_admin

    def test_default_role_is_user(self) -> None:
        caller = verify_token(issue_token("user-2"))
        assert caller.role == ROLE_USER
        assert not caller.is_admin

    def test_token_carries_expiry(self) -> None:
        claims = jwt.get_unverified_claims(issue_token("user-3"))
        assert claims["exp"] - claims["iat"] == settings.access_token_expire_minutes * 60

    def test_expired_token_rejected(self) -> None:
        token = issue_token("user-1", expires_delta=timedelta(seconds=-5))
        with pytest.raises(InvalidTokenError, match="expired"):
            verify_token(token)

    def test_wrong_secret_rejected(self) -> None:
        token = issue_token("user-1", secret="one")
        with pytest.raises(InvalidTokenError):
            verify_token(token, secret="two")

    def test_tampered_payload_rejected(self) -> None:
        user_token = issue_token("user-1", ROLE_USER)
        admin_token = issue_token("user-1", ROLE_ADMIN)
        header, payload, _ = admin_token.split(".")
        forged = f"{header}.{payload}.{user_token.split('.')[2]}"
        with pytest.raises(InvalidTokenError):
            verify_token(forged)

    def test_missing_subject_rejected(self) -> None:
        token = jwt.encode(
            {"role": ROLE_ADMIN}, settings.auth_secret, algorithm=settings.auth_algorithm
        )
        with pytest.raises(InvalidTokenError):
            verify_token(token)

    @pytest.mark.parametrize("token", ["", "no-dot", ".sig", "a.b.c"])
    def test_malformed_rejected(self, token: str) -> None:
        with pytest.raises(InvalidTokenError):
            verify_token(token)


class TestAuthDependencies:
    """Tests for the 401 responses."""

    def test_missing_token_message(self, client: TestClient) -> None:
        response = client.get("/products/sale")
        assert response.status_code == 401
        assert response.json()["Message"] == "You are not authenticated"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_expired_token_message(self, client: TestClient) -> None:
        token = issue_token("admin-1", ROLE_ADMIN, expires_delta=timedelta(minutes=-1))
        response = client.get(
            "/products/sale", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401
        assert response.json()["Message"] == "Token is not valid"
