"""
auth/gate.py -- The access gate in front of every protected operation.

authorize() re-derives the caller's rights from scratch on each call:

  1. no token                      -> Unauthenticated (no store lookup)
  2. token fails verification      -> Unauthenticated (TokenError chained)
  3. user_id no longer in store    -> PrincipalNotFound
  4. user.level > class min level  -> Forbidden (audited)
  5. otherwise                     -> the resolved User

There is no session object; the only state between calls is the token the
client holds. The privilege level is read from the store every time, so a
level change takes effect on the user's next request without re-login.

Layer rule: no imports from api/ or catalog/. FastAPI wiring lives in
auth/dependencies.py so this module can be tested without an app.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from auth.errors import Forbidden, PrincipalNotFound, TokenError, Unauthenticated
from auth.models import ResourceClass, User
from auth.tokens import TokenService

if TYPE_CHECKING:
    from auth.store import UserStore

audit = logging.getLogger("neonthreads.audit")


class AccessGate:
    """Resolves a token to a User and checks it against a resource class."""

    def __init__(self, tokens: TokenService, user_store: UserStore) -> None:
        self.tokens = tokens
        self.user_store = user_store

    def authenticate(self, token: str | None) -> User:
        """Steps 1-3: token -> verified user_id -> current User record."""
        if not token:
            raise Unauthenticated("no credential presented")

        try:
            user_id = self.tokens.verify(token)
        except TokenError as exc:
            raise Unauthenticated(f"token rejected: {type(exc).__name__}: {exc}") from exc

        user = self.user_store.get_by_id(user_id)
        if user is None:
            raise PrincipalNotFound(f"user {user_id} no longer exists")
        return user

    def authorize(self, token: str | None, resource_class: ResourceClass) -> User:
        """Run the full gate for one protected call and return the principal."""
        user = self.authenticate(token)
        if user.level > resource_class.min_level:
            audit.warning(
                "Denied %s (id=%s, level=%d) access to %s resources: level %d required",
                user.username,
                user.id,
                user.level,
                resource_class.label,
                resource_class.min_level,
            )
            raise Forbidden(
                f"user {user.username} level {user.level} exceeds {resource_class.label} "
                f"minimum {resource_class.min_level}"
            )
        return user
