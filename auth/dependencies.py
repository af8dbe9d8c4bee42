"""
auth/dependencies.py -- FastAPI Depends() helpers for the access gate.

require_access(resource_class) builds a dependency that:
  1. reads the credential cookie (name from Settings.cookie_name),
  2. runs AccessGate.authorize() for the given resource class,
  3. binds the resolved User to request.state.principal and returns it.

Every denial is logged with its specific cause on the audit logger, then
surfaced to the client as an opaque 401/403 with the same message -- the
client never learns which check failed.

Layer rule: no imports from api/ or catalog/.
  auth/dependencies.py may import from fastapi (for HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import HTTPException, Request

from auth.errors import AccessDenied, Forbidden
from auth.gate import AccessGate
from auth.models import ResourceClass, User

audit = logging.getLogger("neonthreads.audit")

_DENIED_MESSAGE = "Not authorized."


def require_access(resource_class: ResourceClass) -> Callable[[Request], User]:
    """Return a dependency that gates a route on resource_class.

    Use on a single route:
        @router.post("/products", status_code=201)
        def create(body: ProductIn, user: User = Depends(require_access(ResourceClass.PRODUCT))): ...

    or on a whole router:
        APIRouter(dependencies=[Depends(require_access(ResourceClass.USER))])
    """

    def dependency(request: Request) -> User:
        gate: AccessGate = request.app.state.gate
        cookie_name: str = request.app.state.settings.cookie_name
        token = request.cookies.get(cookie_name)
        try:
            user = gate.authorize(token, resource_class)
        except Forbidden:
            # authorize() already wrote the audit record with level detail.
            raise HTTPException(
                status_code=403,
                detail={"code": "forbidden", "message": _DENIED_MESSAGE},
            ) from None
        except AccessDenied as exc:
            audit.warning(
                "Unauthenticated %s %s from %s: %s: %s",
                request.method,
                request.url.path,
                request.client.host if request.client else "unknown",
                type(exc).__name__,
                exc,
            )
            raise HTTPException(
                status_code=401,
                detail={"code": "unauthorized", "message": _DENIED_MESSAGE},
            ) from None
        request.state.principal = user
        return user

    dependency.__name__ = f"require_{resource_class.label}_access"
    return dependency
