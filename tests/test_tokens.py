"""Unit tests for auth/tokens.py -- password hashing and the token service.

Covers:
- verify_password() accepts the right password, rejects others, fails closed
- authenticate_user() for valid, wrong-password and unknown-user logins
- issue() / verify() round trip, iat and exp claims
- tamper detection on the signature segment
- algorithm-confusion rejection (none, RS256, HS512)
- ClaimMissing / MalformedToken / TokenExpired / SigningError paths
"""

import base64
import hashlib
import hmac
import json

import pytest

from auth.errors import ClaimMissing, MalformedToken, SignatureInvalid, SigningError, TokenExpired
from auth.models import User
from auth.store import UserStore
from auth.tokens import TokenConfig, TokenService, authenticate_user, hash_password, verify_password

SECRET = "unit-test-secret-abcdefghijklmnopqrstuvwxyz"


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _segment(obj) -> str:
    return _b64(json.dumps(obj, separators=(",", ":")).encode("utf-8"))


def _hs256_token(header: dict, claims, secret: str = SECRET) -> str:
    """Hand-build an HS256-signed token with arbitrary header and claims."""
    signing_input = f"{_segment(header)}.{_segment(claims)}"
    sig = hmac.new(secret.encode(), signing_input.encode("ascii"), hashlib.sha256).digest()
    return f"{signing_input}.{_b64(sig)}"


def _claims(token: str) -> dict:
    segment = token.split(".")[1]
    return json.loads(base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4)))


class _Clock:
    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(TokenConfig(secret=SECRET))


# ---------------------------------------------------------------------------
# Credential verifier
# ---------------------------------------------------------------------------


class TestPasswords:
    def test_correct_password_verifies(self) -> None:
        hashed = hash_password("hunter2-hunter2")
        assert verify_password("hunter2-hunter2", hashed) is True

    def test_wrong_password_rejected(self) -> None:
        hashed = hash_password("hunter2-hunter2")
        assert verify_password("hunter3-hunter3", hashed) is False
        assert verify_password("", hashed) is False

    def test_hash_is_salted(self) -> None:
        assert hash_password("same-password") != hash_password("same-password")

    def test_garbage_hash_fails_closed(self) -> None:
        """A malformed stored hash is a non-match, never an exception or a success."""
        assert verify_password("anything", "not-a-bcrypt-hash") is False
        assert verify_password("anything", "") is False


class TestAuthenticateUser:
    @pytest.fixture
    def store(self):
        s = UserStore("sqlite:///:memory:")
        s.create_user(User(username="alice", level=0, hashed_password=hash_password("correct-horse")))
        yield s
        s.close()

    def test_valid_credentials_return_user(self, store: UserStore) -> None:
        user = authenticate_user(store, "alice", "correct-horse")
        assert user is not None
        assert user.username == "alice"
        assert user.level == 0

    def test_wrong_password_returns_none(self, store: UserStore) -> None:
        assert authenticate_user(store, "alice", "battery-staple") is None

    def test_unknown_user_returns_none(self, store: UserStore) -> None:
        assert authenticate_user(store, "mallory", "correct-horse") is None


# ---------------------------------------------------------------------------
# Issue / verify
# ---------------------------------------------------------------------------


class TestRoundTrip:
    @pytest.mark.parametrize("user_id", [1, 42, 2**31])
    def test_verify_returns_issued_id(self, tokens: TokenService, user_id: int) -> None:
        assert tokens.verify(tokens.issue(user_id)) == user_id

    def test_claims_without_expiry(self) -> None:
        service = TokenService(TokenConfig(secret=SECRET), clock=_Clock(1_700_000_000))
        token = service.issue(7)
        claims = _claims(token)
        assert claims == {"user_id": 7, "iat": 1_700_000_000}

    def test_claims_with_expiry(self) -> None:
        service = TokenService(TokenConfig(secret=SECRET, expire_seconds=60), clock=_Clock(1_700_000_000))
        token = service.issue(7)
        claims = _claims(token)
        assert claims["exp"] == 1_700_000_060

    def test_token_from_other_secret_rejected(self, tokens: TokenService) -> None:
        other = TokenService(TokenConfig(secret="another-secret-another-secret-xx"))
        with pytest.raises(SignatureInvalid):
            tokens.verify(other.issue(1))

    def test_hand_built_token_verifies(self, tokens: TokenService) -> None:
        """The wire format is plain JWS compact serialization."""
        token = _hs256_token({"alg": "HS256", "typ": "JWT"}, {"user_id": 9})
        assert tokens.verify(token) == 9


class TestTamperDetection:
    # 32 signature bytes encode to 43 characters; the last one holds only 4
    # signature bits, so -2 is the final character carrying a full 6.
    @pytest.mark.parametrize("position", [0, 1, 10, 21, 32, -2])
    def test_flipped_signature_character_rejected(self, tokens: TokenService, position: int) -> None:
        header, payload, signature = tokens.issue(1).split(".")
        chars = list(signature)
        chars[position] = "B" if chars[position] == "A" else "A"
        with pytest.raises(SignatureInvalid):
            tokens.verify(f"{header}.{payload}.{''.join(chars)}")

    @pytest.mark.parametrize("byte_index", [0, 15, 31])
    def test_flipped_signature_byte_rejected(self, tokens: TokenService, byte_index: int) -> None:
        header, payload, signature = tokens.issue(1).split(".")
        raw = bytearray(base64.urlsafe_b64decode(signature + "=" * (-len(signature) % 4)))
        raw[byte_index] ^= 0x01
        with pytest.raises(SignatureInvalid):
            tokens.verify(f"{header}.{payload}.{_b64(bytes(raw))}")

    def test_swapped_payload_rejected(self, tokens: TokenService) -> None:
        header, _payload, signature = tokens.issue(1).split(".")
        forged_payload = _segment({"user_id": 2})
        with pytest.raises(SignatureInvalid):
            tokens.verify(f"{header}.{forged_payload}.{signature}")


class TestAlgorithmConfusion:
    def test_alg_none_rejected(self, tokens: TokenService) -> None:
        token = f"{_segment({'alg': 'none', 'typ': 'JWT'})}.{_segment({'user_id': 1})}."
        with pytest.raises(SignatureInvalid):
            tokens.verify(token)

    def test_asymmetric_alg_rejected(self, tokens: TokenService) -> None:
        """An RS256 header is rejected even when the HMAC over it is correct."""
        token = _hs256_token({"alg": "RS256", "typ": "JWT"}, {"user_id": 1})
        with pytest.raises(SignatureInvalid):
            tokens.verify(token)

    def test_other_hmac_width_rejected(self, tokens: TokenService) -> None:
        signing_input = f"{_segment({'alg': 'HS512'})}.{_segment({'user_id': 1})}"
        sig = hmac.new(SECRET.encode(), signing_input.encode(), hashlib.sha512).digest()
        with pytest.raises(SignatureInvalid):
            tokens.verify(f"{signing_input}.{_b64(sig)}")

    def test_missing_alg_rejected(self, tokens: TokenService) -> None:
        token = _hs256_token({"typ": "JWT"}, {"user_id": 1})
        with pytest.raises(SignatureInvalid):
            tokens.verify(token)


class TestClaims:
    def test_missing_user_id(self, tokens: TokenService) -> None:
        token = _hs256_token({"alg": "HS256"}, {"sub": "alice"})
        with pytest.raises(ClaimMissing):
            tokens.verify(token)

    @pytest.mark.parametrize("bad_id", ["1", 1.5, True, None, [1]])
    def test_wrong_type_user_id(self, tokens: TokenService, bad_id) -> None:
        token = _hs256_token({"alg": "HS256"}, {"user_id": bad_id})
        with pytest.raises(ClaimMissing):
            tokens.verify(token)

    def test_payload_not_an_object(self, tokens: TokenService) -> None:
        token = _hs256_token({"alg": "HS256"}, [1, 2, 3])
        with pytest.raises(MalformedToken):
            tokens.verify(token)

    def test_non_integer_exp_is_malformed(self, tokens: TokenService) -> None:
        token = _hs256_token({"alg": "HS256"}, {"user_id": 1, "exp": "tomorrow"})
        with pytest.raises(MalformedToken):
            tokens.verify(token)

    @pytest.mark.parametrize("garbage", ["", "abc", "a.b", "!!!.???.###", "eyJhbGciOi.x.y"])
    def test_unparseable_token(self, tokens: TokenService, garbage: str) -> None:
        with pytest.raises(MalformedToken):
            tokens.verify(garbage)


class TestExpiry:
    def test_expired_token_rejected(self) -> None:
        clock = _Clock(1_700_000_000)
        service = TokenService(TokenConfig(secret=SECRET, expire_seconds=60), clock=clock)
        token = service.issue(3)
        clock.now += 59
        assert service.verify(token) == 3
        clock.now += 1
        with pytest.raises(TokenExpired):
            service.verify(token)

    def test_no_expiry_configured_never_expires(self) -> None:
        clock = _Clock(1_700_000_000)
        service = TokenService(TokenConfig(secret=SECRET), clock=clock)
        token = service.issue(3)
        clock.now += 10 * 365 * 24 * 3600
        assert service.verify(token) == 3


class TestSigningError:
    def test_empty_secret_refuses_to_sign(self) -> None:
        with pytest.raises(SigningError):
            TokenService(TokenConfig(secret="")).issue(1)

    def test_unsupported_algorithm_refuses_to_sign(self) -> None:
        with pytest.raises(SigningError):
            TokenService(TokenConfig(secret=SECRET, algorithm="XX999")).issue(1)
