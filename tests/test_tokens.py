import jwt
import pytest

from tests.helpers import START_MS, TOKEN_SECRET
from walletguard.config import SessionConfig
from walletguard.exceptions import ValidationError
from walletguard.tokens import SessionTokenService
from walletguard.types import AuthUser

DAY_MS = 24 * 3_600_000


@pytest.fixture
def user():
    return AuthUser(
        address="0x" + "ab" * 20,
        is_verified=True,
        login_time=START_MS,
        last_activity=START_MS,
        session_id="auth_test",
    )


class TestUnsignedTokens:
    """Test tokens issued without a secret."""

    def test_claims(self, user):
        service = SessionTokenService()

        token = service.issue(user, START_MS, START_MS + DAY_MS)
        claims = service.inspect(token)

        assert not service.is_signed
        assert jwt.get_unverified_header(token)["alg"] == "none"
        assert claims == {
            "sub": user.address,
            "iat": START_MS // 1000,
            "exp": (START_MS + DAY_MS) // 1000,
            "sid": "auth_test",
            "login_time": START_MS,
        }

    def test_verify_requires_secret(self, user):
        service = SessionTokenService()
        token = service.issue(user, START_MS, START_MS + DAY_MS)

        with pytest.raises(ValidationError, match="requires a token secret"):
            service.verify(token)

    def test_inspect_rejects_garbage(self):
        with pytest.raises(ValidationError, match="Malformed"):
            SessionTokenService().inspect("not.a.token")


class TestSignedTokens:
    """Test HMAC-signed tokens."""

    def test_verify_round_trip(self, user):
        service = SessionTokenService(SessionConfig(token_secret=TOKEN_SECRET))

        token = service.issue(user, START_MS, START_MS + DAY_MS)

        assert service.is_signed
        assert service.verify(token)["sid"] == "auth_test"

    def test_expired_claims_still_verify(self, user):
        # Expiry is checked against the caller's clock, not the wall clock
        service = SessionTokenService(SessionConfig(token_secret=TOKEN_SECRET))
        token = service.issue(user, 1_000, 2_000)

        assert service.verify(token)["exp"] == 2

    def test_wrong_secret_is_rejected(self, user):
        issuer = SessionTokenService(SessionConfig(token_secret=TOKEN_SECRET))
        other = SessionTokenService(SessionConfig(token_secret=TOKEN_SECRET[::-1]))
        token = issuer.issue(user, START_MS, START_MS + DAY_MS)

        with pytest.raises(ValidationError, match="Invalid session token"):
            other.verify(token)

    def test_algorithm_from_config(self, user):
        service = SessionTokenService(
            SessionConfig(token_secret=TOKEN_SECRET + TOKEN_SECRET, token_algorithm="HS512")
        )

        token = service.issue(user, START_MS, START_MS + DAY_MS)

        assert jwt.get_unverified_header(token)["alg"] == "HS512"
