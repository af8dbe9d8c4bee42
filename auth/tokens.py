"""
auth/tokens.py -- Password hashing, JWT issue/verify, and cookie utilities.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry user_id, iat and (when an expiry
       is configured) exp. TokenService is built from an immutable TokenConfig
       so the secret is injected once at startup instead of being read from
       the environment inside business logic.

  Verification order: header parsed untrusted -> alg pinned to the configured
       HMAC algorithm -> signature recomputed -> only then is the payload
       decoded and validated into TokenClaims. "alg": "none", RS256 and other
       HMAC widths are all rejected before any claim is looked at.

  Passwords: bcrypt directly. Its cost factor makes brute-force of low-entropy
       secrets expensive. The _DUMMY_HASH constant enables timing equalization
       in authenticate_user() so response time does not reveal whether a
       username exists [C1].

Layer rule: no imports from api/ or catalog/. Import from core/ is allowed --
core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import bcrypt
from jose import jws, jwt
from jose.exceptions import JOSEError
from pydantic import BaseModel, ConfigDict, StrictInt, ValidationError

from auth.errors import ClaimMissing, MalformedToken, SignatureInvalid, SigningError, TokenExpired

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore
    from core.config import Settings

logger = logging.getLogger("neonthreads.auth")

_ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Passwords longer than 72 bytes are truncated by bcrypt. The API layer caps
    password length (Pydantic field), which keeps inputs below that threshold.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    Fails closed: a malformed hash or any bcrypt error is a non-match.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except Exception:
        return False


# Timing equalization dummy hash [C1].
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("neonthreads_timing_dummy")


def authenticate_user(store: UserStore, username: str, password: str) -> User | None:
    """Authenticate a username/password login with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown username: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the User on success, None on any failure.
    """
    user = store.get_by_username(username)
    if user is None or not user.hashed_password:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


# ---------------------------------------------------------------------------
# Token claims and config
# ---------------------------------------------------------------------------


class TokenClaims(BaseModel):
    """Typed claim set, validated once right after the signature check.

    StrictInt keeps "1", 1.0 and true from passing as a user id.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    user_id: StrictInt
    iat: StrictInt | None = None
    exp: StrictInt | None = None


@dataclass(frozen=True)
class TokenConfig:
    secret: str
    algorithm: str = _ALGORITHM
    # 0 means tokens carry no exp claim.
    expire_seconds: int = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenConfig:
        return cls(secret=settings.jwt_secret, expire_seconds=settings.token_expire_seconds)


# ---------------------------------------------------------------------------
# Issue / verify
# ---------------------------------------------------------------------------


class TokenService:
    """Issues and verifies signed identity tokens.

    One instance lives on app.state for the whole process. It holds no
    mutable state, so concurrent requests share it without locking.

    Usage:
        tokens = TokenService(TokenConfig(secret=settings.jwt_secret))
        token = tokens.issue(user.id)
        user_id = tokens.verify(token)
    """

    def __init__(self, config: TokenConfig, clock: Callable[[], float] = time.time) -> None:
        self.config = config
        self._clock = clock

    @property
    def expire_seconds(self) -> int:
        return self.config.expire_seconds

    def issue(self, user_id: int) -> str:
        """Sign a token asserting user_id. Raises SigningError on failure."""
        if not self.config.secret:
            raise SigningError("signing secret is not configured")
        now = int(self._clock())
        claims: dict = {"user_id": user_id, "iat": now}
        if self.config.expire_seconds > 0:
            claims["exp"] = now + self.config.expire_seconds
        try:
            return jwt.encode(claims, self.config.secret, algorithm=self.config.algorithm)
        except JOSEError as exc:
            raise SigningError(f"failed to sign token: {exc}") from exc

    def verify(self, token: str) -> int:
        """Verify a token and return its user_id.

        Raises MalformedToken, SignatureInvalid, ClaimMissing or TokenExpired.
        No claim is read until the signature has been checked.
        """
        try:
            header = jws.get_unverified_header(token)
        except JOSEError as exc:
            raise MalformedToken(f"unparseable token: {exc}") from exc

        alg = header.get("alg")
        if alg != self.config.algorithm:
            raise SignatureInvalid(f"unexpected signing algorithm: {alg!r}")

        try:
            payload = jws.verify(token, self.config.secret, algorithms=[self.config.algorithm])
        except JOSEError as exc:
            raise SignatureInvalid(f"signature verification failed: {exc}") from exc

        try:
            raw_claims = json.loads(payload)
        except ValueError as exc:
            raise MalformedToken("payload is not valid JSON") from exc
        if not isinstance(raw_claims, dict):
            raise MalformedToken("payload is not a JSON object")

        try:
            claims = TokenClaims.model_validate(raw_claims)
        except ValidationError as exc:
            if any(err["loc"] and err["loc"][0] == "user_id" for err in exc.errors()):
                raise ClaimMissing("user_id claim is absent or not an integer") from exc
            raise MalformedToken(f"invalid registered claims: {exc.error_count()} error(s)") from exc

        if claims.exp is not None and claims.exp <= int(self._clock()):
            raise TokenExpired(f"token expired at {claims.exp}")
        return claims.user_id


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_auth_cookie(response, token: str, settings: Settings) -> None:
    """Write the token as the credential cookie on the response.

    domain / samesite / secure / httponly come from settings. max_age matches
    the token expiry so both expire together; with expiry disabled the cookie
    is a session cookie.
    """
    kwargs: dict = {}
    if settings.token_expire_seconds > 0:
        kwargs["max_age"] = settings.token_expire_seconds
    response.set_cookie(
        settings.cookie_name,
        value=token,
        domain=settings.cookie_domain or None,
        path="/",
        httponly=settings.cookie_httponly,
        samesite=settings.cookie_samesite.lower(),
        secure=settings.cookie_secure,
        **kwargs,
    )


def clear_auth_cookie(response, settings: Settings) -> None:
    response.delete_cookie(settings.cookie_name, domain=settings.cookie_domain or None, path="/")
