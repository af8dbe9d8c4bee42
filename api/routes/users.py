"""
api/routes/users.py -- User account management.

Routes (all require user access, i.e. level 0):
  GET    /api/users            -- list users
  POST   /api/users            -- create a user; the password is hashed here
  PUT    /api/users            -- update username / password / level, keyed by body id
  GET    /api/users/{user_id}  -- one user
  DELETE /api/users/{user_id}  -- delete a user

A level change takes effect on the affected user's next request: the gate
re-reads the level from the store on every call.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError

from api.models import CreatedResponse, MessageResponse, UserCreate, UserResponse, UserUpdate
from auth.dependencies import require_access
from auth.models import ResourceClass, User
from auth.store import UserStore
from auth.tokens import hash_password

logger = logging.getLogger("neonthreads.api.users")

# Auth policy:
# - every route: require_access(ResourceClass.USER) -- reads included, account
#   data is staff-only. Router-level dependency; handlers do not repeat it and
#   read the principal from request.state.principal when they need it.
router = APIRouter(prefix="/users", dependencies=[Depends(require_access(ResourceClass.USER))])


def _store(request: Request) -> UserStore:
    return request.app.state.user_store


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"code": "not_found", "message": "User not found."},
    )


def _username_conflict() -> HTTPException:
    return HTTPException(
        status_code=409,
        detail={"code": "conflict", "message": "A user with that username already exists."},
    )


@router.get("", response_model=list[UserResponse])
def list_users(request: Request) -> list[UserResponse]:
    return [UserResponse.from_user(u) for u in _store(request).list_users()]


@router.post("", response_model=CreatedResponse, status_code=201)
def create_user(request: Request, body: UserCreate) -> CreatedResponse:
    new_user = User(
        username=body.username,
        level=body.level,
        hashed_password=hash_password(body.password),
    )
    try:
        user_id = _store(request).create_user(new_user)
    except IntegrityError as exc:
        raise _username_conflict() from exc
    actor: User = request.state.principal
    logger.info("User %s (id=%s, level=%d) created by %s", body.username, user_id, body.level, actor.username)
    return CreatedResponse(id=user_id)


@router.put("", response_model=MessageResponse)
def update_user(request: Request, body: UserUpdate) -> MessageResponse:
    """Apply the provided fields to user body.id. Omitted fields are unchanged."""
    store = _store(request)
    if store.get_by_id(body.id) is None:
        raise _not_found()

    updates: dict = {}
    if body.username is not None:
        updates["username"] = body.username
    if body.password is not None:
        updates["hashed_password"] = hash_password(body.password)
    if body.level is not None:
        updates["level"] = body.level
    if not updates:
        raise HTTPException(
            status_code=400,
            detail={"code": "no_changes", "message": "No fields to update."},
        )

    try:
        if not store.update_user(body.id, **updates):
            raise _not_found()
    except IntegrityError as exc:
        raise _username_conflict() from exc

    actor: User = request.state.principal
    logger.info("User id=%s updated (%s) by %s", body.id, ", ".join(sorted(updates)), actor.username)
    return MessageResponse(message="user updated")


@router.get("/{user_id}", response_model=UserResponse)
def get_user(request: Request, user_id: int) -> UserResponse:
    user = _store(request).get_by_id(user_id)
    if user is None:
        raise _not_found()
    return UserResponse.from_user(user)


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(request: Request, user_id: int) -> MessageResponse:
    if not _store(request).delete_user(user_id):
        raise _not_found()
    actor: User = request.state.principal
    logger.info("User id=%s deleted by %s", user_id, actor.username)
    return MessageResponse(message="user deleted")
