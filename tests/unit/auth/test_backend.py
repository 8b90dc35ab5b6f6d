"""Unit tests for auth backend (JWT creation and validation)."""

from datetime import UTC, datetime, timedelta

from jose import jwt

from swan_fastapi.auth import (
    ClaimsIdentity,
    TokenValidationParameters,
    authenticate_token,
    create_token,
    decode_token,
    identity_from_claims,
)
from tests.conftest import TEST_AUDIENCE, TEST_ISSUER, TEST_SIGNING_KEY


def _identity(**claims) -> ClaimsIdentity:
    return ClaimsIdentity(name="alice", claims=claims, authentication_type="password")


class TestCreateToken:
    """Tests for create_token."""

    def test_returns_jwt(self, token_parameters):
        """create_token should return a three-part JWT string."""
        token = create_token(_identity(), "alice", token_parameters, timedelta(minutes=5))

        assert isinstance(token, str)
        assert token.count(".") == 2

    def test_registered_claims(self, token_parameters):
        """The token carries issuer, audience and lifetime claims."""
        now = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)

        token = create_token(
            _identity(), "alice", token_parameters, timedelta(minutes=20), now=now
        )
        claims = jwt.get_unverified_claims(token)

        assert claims["iss"] == TEST_ISSUER
        assert claims["aud"] == TEST_AUDIENCE
        assert claims["sub"] == "alice"
        assert claims["name"] == "alice"
        assert claims["iat"] == int(now.timestamp())
        assert claims["nbf"] == int(now.timestamp())
        assert claims["exp"] == int(now.timestamp()) + 20 * 60
        assert claims["jti"]

    def test_identity_claims_included(self, token_parameters):
        """Identity claims are embedded; a sub claim wins over the username."""
        token = create_token(
            _identity(sub="u1", role="admin"),
            "alice",
            token_parameters,
            timedelta(minutes=5),
        )
        claims = jwt.get_unverified_claims(token)

        assert claims["sub"] == "u1"
        assert claims["role"] == "admin"

    def test_numeric_subject_is_stringified(self, token_parameters):
        """Integer user ids become string subjects that decode again."""
        token = create_token(
            _identity(sub=42), "alice", token_parameters, timedelta(minutes=5)
        )

        assert jwt.get_unverified_claims(token)["sub"] == "42"
        identity = authenticate_token(token, token_parameters)
        assert identity is not None
        assert identity.user_id == "42"

    def test_identity_cannot_override_lifetime(self, token_parameters):
        """Registered claims on the identity are ignored."""
        now = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)

        token = create_token(
            _identity(exp=0, iss="someone-else"),
            "alice",
            token_parameters,
            timedelta(minutes=5),
            now=now,
        )
        claims = jwt.get_unverified_claims(token)

        assert claims["exp"] == int(now.timestamp()) + 5 * 60
        assert claims["iss"] == TEST_ISSUER

    def test_unique_token_ids(self, token_parameters):
        """Each token gets its own jti."""
        first = create_token(_identity(), "alice", token_parameters, timedelta(minutes=5))
        second = create_token(_identity(), "alice", token_parameters, timedelta(minutes=5))

        assert (
            jwt.get_unverified_claims(first)["jti"]
            != jwt.get_unverified_claims(second)["jti"]
        )

    def test_no_issuer_or_audience(self):
        """Issuer and audience are omitted when not configured."""
        parameters = TokenValidationParameters(signing_key=TEST_SIGNING_KEY)

        token = create_token(_identity(), "alice", parameters, timedelta(minutes=5))
        claims = jwt.get_unverified_claims(token)

        assert "iss" not in claims
        assert "aud" not in claims


class TestDecodeToken:
    """Tests for decode_token."""

    def test_valid_token(self, token_parameters):
        token = create_token(_identity(sub="u1"), "alice", token_parameters, timedelta(minutes=5))

        claims = decode_token(token, token_parameters)

        assert claims is not None
        assert claims["sub"] == "u1"

    def test_wrong_key(self, token_parameters):
        """Tokens signed with another key are rejected."""
        token = create_token(_identity(), "alice", token_parameters, timedelta(minutes=5))
        other = token_parameters.model_copy(update={"signing_key": "another-key"})

        assert decode_token(token, other) is None

    def test_wrong_audience(self, token_parameters):
        token = create_token(_identity(), "alice", token_parameters, timedelta(minutes=5))
        other = token_parameters.model_copy(update={"audience": "somebody-else"})

        assert decode_token(token, other) is None

    def test_wrong_issuer(self, token_parameters):
        token = create_token(_identity(), "alice", token_parameters, timedelta(minutes=5))
        other = token_parameters.model_copy(update={"issuer": "somebody-else"})

        assert decode_token(token, other) is None

    def test_expired_token(self, token_parameters):
        """Expired tokens are rejected."""
        issued = datetime.now(UTC) - timedelta(hours=1)
        token = create_token(
            _identity(), "alice", token_parameters, timedelta(minutes=5), now=issued
        )

        assert decode_token(token, token_parameters) is None

    def test_expired_token_without_lifetime_validation(self, token_parameters):
        """Lifetime checks can be turned off."""
        issued = datetime.now(UTC) - timedelta(hours=1)
        token = create_token(
            _identity(), "alice", token_parameters, timedelta(minutes=5), now=issued
        )
        lenient = token_parameters.model_copy(update={"validate_lifetime": False})

        assert decode_token(token, lenient) is not None

    def test_garbage(self, token_parameters):
        assert decode_token("not-a-token", token_parameters) is None


class TestIdentityFromClaims:
    """Tests for identity_from_claims and authenticate_token."""

    def test_builds_bearer_identity(self):
        identity = identity_from_claims({"sub": "u1", "name": "alice"})

        assert identity.is_authenticated
        assert identity.authentication_type == "Bearer"
        assert identity.name == "alice"
        assert identity.user_id == "u1"

    def test_name_falls_back_to_sub(self):
        assert identity_from_claims({"sub": "u1"}).name == "u1"

    def test_authenticate_token(self, token_parameters):
        """A valid token yields the identity it was issued for."""
        token = create_token(
            _identity(sub="u1", role="admin"),
            "alice",
            token_parameters,
            timedelta(minutes=5),
        )

        identity = authenticate_token(token, token_parameters)

        assert identity is not None
        assert identity.name == "alice"
        assert identity.user_id == "u1"
        assert identity.claims["role"] == "admin"

    def test_authenticate_invalid_token(self, token_parameters):
        assert authenticate_token("invalid", token_parameters) is None

    def test_anonymous_identity(self):
        """Identities without an authentication type are anonymous."""
        assert not ClaimsIdentity(name="guest").is_authenticated
