"""
auth/errors.py -- Exception taxonomy for the authentication gate.

Two families:
  TokenError   -- failures of the token lifecycle (issue / verify).
  AccessDenied -- the gate's verdicts on a protected call.

The gate converts every TokenError into Unauthenticated (chaining the cause)
so route code only ever sees AccessDenied subclasses. The HTTP layer maps
those to an opaque 401/403 and never echoes the message to the client; the
message exists for the audit log.

Layer rule: stdlib only. No imports from api/, catalog/ or core/.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for all authentication and authorization failures."""


# ---------------------------------------------------------------------------
# Token lifecycle
# ---------------------------------------------------------------------------


class TokenError(AuthError):
    """A token could not be issued or verified."""


class SigningError(TokenError):
    """The signing secret is unavailable or the signing library failed."""


class MalformedToken(TokenError):
    """The token is not a parseable JWS / its payload is not a JSON object."""


class SignatureInvalid(TokenError):
    """Signature mismatch, or the header names an algorithm we do not accept."""


class ClaimMissing(TokenError):
    """The user_id claim is absent or has the wrong type."""


class TokenExpired(TokenError):
    """The exp claim is in the past."""


# ---------------------------------------------------------------------------
# Gate verdicts
# ---------------------------------------------------------------------------


class AccessDenied(AuthError):
    """The gate refused a protected call."""


class Unauthenticated(AccessDenied):
    """No credential, or the credential did not verify."""


class PrincipalNotFound(AccessDenied):
    """The token verified but its user no longer exists."""


class Forbidden(AccessDenied):
    """Valid user whose privilege level is too low for the resource class."""
