import jwt
import pytest

from utils.auth_middleware import TokenError, extract_bearer_token, resolve_auth_context
from utils.jwt_utils import JWTManager
from utils.passwords import hash_password, verify_password


class TestSessionTokens:
    def test_round_trip(self):
        manager = JWTManager(secret="unit-secret")
        token = manager.create_session_token(42, "admin")

        payload = manager.verify_session_token(token)
        assert payload["sub"] == "42"
        assert payload["role"] == "admin"
        assert manager.user_id_from_token(token) == 42

    def test_wrong_secret_rejected(self):
        token = JWTManager(secret="one").create_session_token(1, "user")
        assert JWTManager(secret="two").verify_session_token(token) is None

    def test_expired_token_rejected(self):
        manager = JWTManager(secret="unit-secret")
        token = manager.create_session_token(1, "user", expires_hours=-1)
        assert manager.user_id_from_token(token) is None

    def test_foreign_audience_rejected(self):
        manager = JWTManager(secret="unit-secret")
        token = jwt.encode({"sub": "1", "aud": "other", "iss": manager.issuer}, "unit-secret", algorithm="HS256")
        assert manager.verify_session_token(token) is None


class TestBearerExtraction:
    def test_context_from_valid_header(self):
        token = JWTManager().create_session_token(7, "admin")
        context = resolve_auth_context(f"Bearer {token}")
        assert context.user_id == 7
        assert context.role == "admin"
        assert context.auth_method == "session"

    @pytest.mark.parametrize("header", [None, "Basic abc", "Bearer not-a-token"])
    def test_context_is_anonymous_otherwise(self, header):
        context = resolve_auth_context(header)
        assert not context.is_authenticated
        assert context.auth_method is None

    def test_valid_header(self):
        assert extract_bearer_token("Bearer abc.def") == "abc.def"

    @pytest.mark.parametrize("header", ["", "Basic abc", "bearer abc"])
    def test_invalid_header(self, header):
        with pytest.raises(TokenError):
            extract_bearer_token(header)


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("secret123")
        assert hashed != "secret123"
        assert verify_password("secret123", hashed)
        assert not verify_password("wrong", hashed)

    def test_unrecognized_hash(self):
        assert verify_password("secret123", "plain-text") is False
