"""JSON auth endpoints (/auth/register, /auth/login, /auth/logout, /auth/me).

Sign-up does not open a session: the account must be verified first, so
the client is told to check its inbox and then log in.
"""

from __future__ import annotations

import logging
import re
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel

from institute.api.dependencies import (
    COLLABORATOR_ERRORS,
    bad_gateway,
    oauth2_scheme,
    require_user,
)
from institute.models.principal import Principal
from institute.models.user import User
from institute.services.auth_service import SIGN_UP_MESSAGE, AuthError, auth_backend
from institute.services.enrollment_service import enrollment_service
from institute.services.errors import UserNotFoundError
from institute.services.users_service import ensure_profile, principal_for

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# --- Request / Response schemas -------------------------------------------


class LoginIn(BaseModel):
    email: str
    password: str


class RegisterIn(BaseModel):
    name: str
    email: str
    password: str


class AccountOut(BaseModel):
    id: str
    email: str
    name: str
    role: str


class LoginOut(BaseModel):
    accessToken: str
    user: AccountOut


class RegisterOut(BaseModel):
    message: str
    user: AccountOut


class UserOut(BaseModel):
    id: str
    name: str
    email: str
    role: str
    registered_course_ids: list[str]
    pending_course_ids: list[str]
    completed_course_ids: list[str]
    course_progress: dict[str, int]

    @classmethod
    def of(cls, user: User) -> UserOut:
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            registered_course_ids=list(user.registered_course_ids),
            pending_course_ids=list(user.pending_course_ids),
            completed_course_ids=list(user.completed_course_ids),
            course_progress=dict(user.course_progress),
        )


# --- POST /auth/register --------------------------------------------------


@router.post("/register", response_model=RegisterOut, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterIn) -> RegisterOut:
    email = payload.email.lower().strip()
    name = payload.name.strip()

    if not re.match(r"^[^@\s]+@[^@\s]+\.[^@\s]+$", email):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Invalid email address",
        )
    if not name:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Name is required",
        )

    try:
        account = await auth_backend.sign_up(email, payload.password, name)
    except AuthError as exc:
        logger.warning("Sign-up refused  email=%s: %s", email, exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from None

    try:
        profile = await ensure_profile(account)
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None

    logger.info("User registered  user_id=%s", account.id)
    return RegisterOut(
        message=SIGN_UP_MESSAGE,
        user=AccountOut(id=account.id, email=account.email, name=account.name, role=profile.role),
    )


# --- POST /auth/login -----------------------------------------------------


@router.post("/login", response_model=LoginOut)
async def login(payload: LoginIn) -> LoginOut:
    email = payload.email.lower().strip()
    try:
        session = await auth_backend.sign_in(email, payload.password)
    except AuthError as exc:
        logger.warning("Login failed  email=%s", email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)
        ) from None

    try:
        principal = await principal_for(session.user, session.access_token)
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None

    logger.info("Login succeeded  user_id=%s", principal.user_id)
    return LoginOut(
        accessToken=session.access_token,
        user=AccountOut(
            id=principal.user_id,
            email=principal.email,
            name=principal.name,
            role=principal.role,
        ),
    )


# --- POST /auth/logout ----------------------------------------------------


@router.post("/logout", status_code=204)
async def logout(raw_token: Annotated[str, Depends(oauth2_scheme)]) -> Response:
    """Close the session.  Idempotent: unknown or expired tokens also get 204."""
    try:
        await auth_backend.sign_out(raw_token)
    except AuthError as exc:
        logger.warning("Sign-out failed: %s", exc)
    return Response(status_code=204)


# --- GET /auth/me ---------------------------------------------------------


@router.get("/me", response_model=UserOut)
async def me(principal: Annotated[Principal, Depends(require_user)]) -> UserOut:
    try:
        user = await enrollment_service.load_user(principal.user_id)
    except UserNotFoundError:
        raise HTTPException(status_code=404, detail="profile not found") from None
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None
    # The stored role may lag behind the administrator address.
    return UserOut.of(user).model_copy(update={"role": principal.role})
