# FILE: tests/test_auth.py
"""
Tests for chainpad/auth
Wallet login, session tokens, and caller resolution for contract routes.
"""

import sys
from pathlib import Path

_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from chainpad.auth import service
from chainpad.auth.models import User
from chainpad.auth.tokens import create_token, decode_token
from chainpad.auth.wallet import CallerContext, normalize_wallet_address
from chainpad.errors import AuthenticationError, ValidationFailed
from chainpad.settings import Settings

WALLET_A = "0xAbC0000000000000000000000000000000000001"
WALLET_B = "0xdef0000000000000000000000000000000000002"


class TestWalletAddress:
    """Test wallet address normalization."""

    def test_lowercases_valid_address(self):
        assert normalize_wallet_address(WALLET_A) == WALLET_A.lower()

    def test_strips_whitespace(self):
        assert normalize_wallet_address(f"  {WALLET_B} ") == WALLET_B

    @pytest.mark.parametrize("bad", ["", "   ", "0x123", "abc0000000000000000000000000000000000001", "0xZZ00000000000000000000000000000000000001"])
    def test_rejects_malformed(self, bad):
        with pytest.raises(ValidationFailed):
            normalize_wallet_address(bad)

    def test_caller_owns_is_case_insensitive(self):
        caller = CallerContext(wallet_address=WALLET_A.lower())
        assert caller.owns(WALLET_A)
        assert not caller.owns(WALLET_B)
        assert not caller.owns(None)

    def test_anonymous_owns_nothing(self):
        caller = CallerContext()
        assert caller.is_anonymous
        assert not caller.owns(WALLET_A)


class TestTokens:
    """Test signed token issue/verify."""

    def test_round_trip_claims(self):
        token = create_token(7, WALLET_A.lower())
        claims = decode_token(token)
        assert claims["id"] == 7
        assert claims["wallet_address"] == WALLET_A.lower()

    def test_expiry_is_24_hours(self):
        token = create_token(1, WALLET_A.lower())
        claims = decode_token(token)
        assert claims["exp"] - claims["iat"] == 24 * 3600

    def test_expired_token_rejected(self):
        settings = Settings(jwt_secret="test-secret")
        past = datetime.now(timezone.utc) - timedelta(hours=25)
        token = jwt.encode(
            {"id": 1, "wallet_address": WALLET_A.lower(), "iat": past, "exp": past + timedelta(hours=24)},
            settings.jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError):
            decode_token(token, settings=settings)

    def test_wrong_secret_rejected(self):
        token = create_token(1, WALLET_A.lower(), settings=Settings(jwt_secret="other"))
        with pytest.raises(AuthenticationError):
            decode_token(token, settings=Settings(jwt_secret="test-secret"))

    def test_garbage_rejected(self):
        with pytest.raises(AuthenticationError):
            decode_token("not-a-valid-jwt-at-all")

    def test_empty_rejected(self):
        with pytest.raises(AuthenticationError):
            decode_token("")


class TestLoginService:
    """Test login upsert and session validation."""

    def test_login_creates_user_with_placeholder_email(self, db_session):
        result = service.login(db_session, WALLET_A)

        user = db_session.query(User).one()
        assert user.wallet_address == WALLET_A.lower()
        assert user.email == f"{WALLET_A.lower()}@placeholder.com"
        assert user.last_login_at is not None
        assert result["user"] == {"id": user.id, "wallet_address": WALLET_A.lower()}
        assert result["token"]

    def test_login_twice_is_idempotent_across_case(self, db_session):
        first = service.login(db_session, WALLET_A)
        second = service.login(db_session, WALLET_A.lower())
        third = service.login(db_session, WALLET_A.upper().replace("0X", "0x"))

        assert first["user"]["id"] == second["user"]["id"] == third["user"]["id"]
        assert db_session.query(User).count() == 1

    def test_distinct_wallets_get_distinct_users(self, db_session):
        a = service.login(db_session, WALLET_A)
        b = service.login(db_session, WALLET_B)
        assert a["user"]["id"] != b["user"]["id"]

    def test_validate_session_returns_user(self, db_session):
        result = service.login(db_session, WALLET_A)
        user = service.validate_session(db_session, result["token"])
        assert user.id == result["user"]["id"]

    def test_validate_session_rejects_unknown_user(self, db_session):
        token = create_token(999, WALLET_A.lower())
        with pytest.raises(AuthenticationError) as exc:
            service.validate_session(db_session, token)
        assert exc.value.status_code == 401

    def test_validate_session_rejects_deleted_user(self, db_session):
        result = service.login(db_session, WALLET_A)
        db_session.query(User).delete()
        db_session.commit()
        with pytest.raises(AuthenticationError):
            service.validate_session(db_session, result["token"])


class TestAuthRoutes:
    """Test /api/login and /api/user."""

    def test_login_endpoint(self, client):
        response = client.post("/api/login", json={"wallet_address": WALLET_A})
        assert response.status_code == 200
        data = response.json()
        assert data["user"]["wallet_address"] == WALLET_A.lower()
        assert isinstance(data["token"], str)

    def test_login_endpoint_same_id_twice(self, client):
        first = client.post("/api/login", json={"wallet_address": WALLET_A}).json()
        second = client.post("/api/login", json={"wallet_address": WALLET_A.lower()}).json()
        assert first["user"]["id"] == second["user"]["id"]

    def test_login_rejects_bad_address(self, client):
        response = client.post("/api/login", json={"wallet_address": "nope"})
        assert response.status_code == 400
        assert "message" in response.json()

    def test_login_requires_address(self, client):
        response = client.post("/api/login", json={})
        assert response.status_code == 400

    def test_user_endpoint_with_token(self, client):
        token = client.post("/api/login", json={"wallet_address": WALLET_A}).json()["token"]
        response = client.get("/api/user", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["wallet_address"] == WALLET_A.lower()

    def test_user_endpoint_without_token(self, client):
        response = client.get("/api/user")
        assert response.status_code == 401
        assert response.json() == {"message": "Authentication required"}

    def test_user_endpoint_with_invalid_token(self, client):
        response = client.get("/api/user", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401


class TestCallerResolution:
    """Test require_wallet via the contracts routes."""

    def test_header_wallet_accepted_by_default(self, client):
        response = client.get("/api/contracts", headers={"x-wallet-address": WALLET_A})
        assert response.status_code == 200

    def test_missing_wallet_rejected_for_mutations(self, client):
        response = client.post("/api/contracts", json={"type": "folder", "name": "x"})
        assert response.status_code == 401

    def test_token_and_matching_header_accepted(self, client):
        token = client.post("/api/login", json={"wallet_address": WALLET_A}).json()["token"]
        response = client.post(
            "/api/contracts",
            json={"type": "file", "name": "A.sol", "sourceCode": "contract A {}"},
            headers={"Authorization": f"Bearer {token}", "x-wallet-address": WALLET_A},
        )
        assert response.status_code == 201
        assert response.json()["ownerAddress"] == WALLET_A.lower()

    def test_token_and_mismatched_header_rejected(self, client):
        token = client.post("/api/login", json={"wallet_address": WALLET_A}).json()["token"]
        response = client.post(
            "/api/contracts",
            json={"type": "file", "name": "A.sol", "sourceCode": "contract A {}"},
            headers={"Authorization": f"Bearer {token}", "x-wallet-address": WALLET_B},
        )
        assert response.status_code == 403

    def test_token_alone_identifies_wallet(self, client):
        token = client.post("/api/login", json={"wallet_address": WALLET_B}).json()["token"]
        response = client.post(
            "/api/contracts",
            json={"type": "file", "name": "B.sol", "sourceCode": "contract B {}"},
            headers={"Authorization": f"Bearer {token}"},
        )
        assert response.status_code == 201
        assert response.json()["ownerAddress"] == WALLET_B

    def test_header_only_rejected_when_disabled(self, client, monkeypatch):
        from chainpad.settings import reset_settings

        monkeypatch.setenv("CHAINPAD_ALLOW_HEADER_WALLET", "false")
        reset_settings()
        response = client.post(
            "/api/contracts",
            json={"type": "folder", "name": "x"},
            headers={"x-wallet-address": WALLET_A},
        )
        assert response.status_code == 401

    def test_package_exports_only_wired_dependencies(self):
        import chainpad.auth as auth_package

        assert {"require_auth", "require_wallet", "optional_wallet"} <= set(auth_package.__all__)
        assert not hasattr(auth_package, "optional_auth")
