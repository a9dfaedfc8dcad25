"""Authentication backend: sign-up, sign-in, sign-out, session lookup.

Two implementations of AuthBackend:

  InMemoryAuthBackend   Argon2 password hashes + ES256 access tokens
  SupabaseAuthBackend   delegates to the hosted auth API

Both publish SIGNED_IN / SIGNED_OUT events to listeners registered with
``on_session_change``; main.py uses that to post welcome and goodbye
notifications.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Literal, Protocol, runtime_checkable

import httpx
import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError, VerifyMismatchError
from supabase import AuthError as SupabaseAuthError
from supabase import Client

from institute.db.supabase import new_auth_client, supabase_client
from institute.models.user import display_name
from institute.services import token_service
from institute.services.token_blacklist import (
    InMemoryTokenBlacklist,
    TokenBlacklist,
    token_blacklist,
)

logger = logging.getLogger(__name__)

SessionEvent = Literal["SIGNED_IN", "SIGNED_OUT"]

RATE_LIMIT_MESSAGE = "Too many attempts. Please wait 60 seconds before trying again."
SIGN_UP_MESSAGE = (
    "Your account has been created. Please check your email and verify your "
    "address before logging in."
)
MIN_PASSWORD_LENGTH = 6


class AuthError(Exception):
    """Sign-in or sign-up was refused.  ``str(err)`` is user-facing."""


def friendly_auth_error(message: str) -> str:
    """Rewrite throttling messages into something a person can act on."""
    lowered = message.lower()
    if "rate limit" in lowered or "security purposes" in lowered:
        return RATE_LIMIT_MESSAGE
    return message


@dataclass(frozen=True, slots=True)
class AuthUser:
    id: str
    email: str
    name: str


@dataclass(frozen=True, slots=True)
class Session:
    user: AuthUser
    access_token: str
    expires_at: float


SessionListener = Callable[[SessionEvent, Session], Awaitable[None]]


@runtime_checkable
class AuthBackend(Protocol):
    async def sign_up(self, email: str, password: str, name: str) -> AuthUser: ...
    async def sign_in(self, email: str, password: str) -> Session: ...
    async def sign_out(self, access_token: str) -> None: ...
    async def get_session(self, access_token: str) -> Session | None: ...
    def on_session_change(self, listener: SessionListener) -> None: ...


class _SessionEvents:
    def __init__(self) -> None:
        self._listeners: list[SessionListener] = []

    def on_session_change(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    async def _emit(self, event: SessionEvent, session: Session) -> None:
        for listener in self._listeners:
            try:
                await listener(event, session)
            except Exception:
                # A failing listener must not undo a completed sign-in.
                logger.exception("Session listener failed for %s", event)


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

_ph = PasswordHasher()


def hash_password(plain_password: str) -> str:
    if not plain_password:
        raise ValueError("password must be non-empty")
    return _ph.hash(plain_password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not plain_password or not password_hash:
        return False
    try:
        return _ph.verify(password_hash, plain_password)
    except (VerifyMismatchError, VerificationError, InvalidHash):
        return False


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class _Account:
    user: AuthUser
    password_hash: str


class InMemoryAuthBackend(_SessionEvents):
    def __init__(self, blacklist: TokenBlacklist | None = None) -> None:
        super().__init__()
        self._accounts: dict[str, _Account] = {}
        self._blacklist = blacklist if blacklist is not None else InMemoryTokenBlacklist()

    async def sign_up(self, email: str, password: str, name: str) -> AuthUser:
        email = email.strip().lower()
        if email in self._accounts:
            raise AuthError("User already registered")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError(
                f"Password should be at least {MIN_PASSWORD_LENGTH} characters"
            )
        user = AuthUser(
            id=str(uuid.uuid4()), email=email, name=display_name(name, email)
        )
        self._accounts[email] = _Account(user=user, password_hash=hash_password(password))
        logger.info("Account created for user=%s", user.id)
        return user

    async def sign_in(self, email: str, password: str) -> Session:
        account = self._accounts.get(email.strip().lower())
        if account is None or not verify_password(password, account.password_hash):
            raise AuthError("Invalid login credentials")

        try:
            if _ph.check_needs_rehash(account.password_hash):
                self._accounts[account.user.email] = _Account(
                    user=account.user, password_hash=_ph.hash(password)
                )
                logger.info("Rehashed password for user=%s", account.user.id)
        except InvalidHash:
            raise AuthError("Invalid login credentials") from None

        u = account.user
        token = token_service.create_access_token(sub=u.id, email=u.email, name=u.name)
        session = Session(
            user=u,
            access_token=token,
            expires_at=time.time() + token_service.ACCESS_TOKEN_TTL_MIN * 60,
        )
        await self._emit("SIGNED_IN", session)
        return session

    async def sign_out(self, access_token: str) -> None:
        session = await self.get_session(access_token)
        if session is None:
            return
        claims = token_service.decode_access_token(access_token)
        await self._blacklist.revoke(claims["jti"], float(claims["exp"]))
        await self._emit("SIGNED_OUT", session)

    async def get_session(self, access_token: str) -> Session | None:
        try:
            claims = token_service.decode_access_token(access_token)
        except jwt.InvalidTokenError:
            return None
        if await self._blacklist.is_revoked(claims["jti"]):
            return None
        return Session(
            user=AuthUser(
                id=claims["sub"],
                email=claims["email"],
                name=display_name(claims.get("name"), claims["email"]),
            ),
            access_token=access_token,
            expires_at=float(claims["exp"]),
        )


# ---------------------------------------------------------------------------
# Hosted backend
# ---------------------------------------------------------------------------


def _auth_user(user) -> AuthUser:
    email = user.email or ""
    metadata = user.user_metadata or {}
    return AuthUser(
        id=str(user.id), email=email, name=display_name(metadata.get("name"), email)
    )


class SupabaseAuthBackend(_SessionEvents):
    """Wraps the hosted auth API.  The SDK is synchronous, so each call runs
    in a worker thread.

    Sign-in and sign-up each get a fresh client from *client_factory*: a
    client that signs a user in carries that user's session from then on,
    so none is ever shared between requests or with the data client.
    Token lookups and revocation go through one long-lived client that
    never signs in.
    """

    def __init__(self, client_factory: Callable[[], Client]) -> None:
        super().__init__()
        self._new_client = client_factory
        self._lookup = client_factory()

    async def _call(self, fn):
        try:
            return await asyncio.to_thread(fn)
        except SupabaseAuthError as exc:
            logger.warning("Auth request refused: %s", exc)
            raise AuthError(friendly_auth_error(str(exc))) from exc
        except httpx.HTTPError as exc:
            logger.warning("Auth request failed: %s", exc)
            raise AuthError("Authentication service unavailable") from exc

    async def sign_up(self, email: str, password: str, name: str) -> AuthUser:
        auth = self._new_client().auth
        response = await self._call(
            lambda: auth.sign_up(
                {"email": email, "password": password, "options": {"data": {"name": name}}}
            )
        )
        if response.user is None:
            raise AuthError("Sign-up failed")
        # The hosted backend may open a session on sign-up; users must
        # verify their address first, so close it straight away.
        if response.session is not None:
            await self._call(auth.sign_out)
        return _auth_user(response.user)

    async def sign_in(self, email: str, password: str) -> Session:
        auth = self._new_client().auth
        response = await self._call(
            lambda: auth.sign_in_with_password({"email": email, "password": password})
        )
        if response.session is None or response.user is None:
            raise AuthError("Invalid login credentials")
        session = Session(
            user=_auth_user(response.user),
            access_token=response.session.access_token,
            expires_at=float(response.session.expires_at or time.time()),
        )
        await self._emit("SIGNED_IN", session)
        return session

    async def sign_out(self, access_token: str) -> None:
        session = await self.get_session(access_token)
        if session is None:
            return
        admin = self._lookup.auth.admin
        await self._call(lambda: admin.sign_out(access_token))
        await self._emit("SIGNED_OUT", session)

    async def get_session(self, access_token: str) -> Session | None:
        auth = self._lookup.auth
        try:
            response = await self._call(lambda: auth.get_user(access_token))
        except AuthError:
            return None
        if response is None or response.user is None:
            return None
        return Session(
            user=_auth_user(response.user),
            access_token=access_token,
            expires_at=0.0,
        )


if supabase_client is not None:
    auth_backend: AuthBackend = SupabaseAuthBackend(new_auth_client)
else:
    auth_backend = InMemoryAuthBackend(token_blacklist)
