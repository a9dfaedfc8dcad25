from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from institute.models.principal import Principal
from institute.repos.object_storage import StorageError
from institute.repos.table_store import StoreError
from institute.services.auth_service import auth_backend
from institute.services.users_service import principal_for

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)

# Failures of the table store or object storage; routers answer 502.
COLLABORATOR_ERRORS = (StoreError, StorageError)


def bad_gateway(exc: Exception) -> HTTPException:
    logger.warning("Collaborator failure: %s", exc)
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail="Upstream service failed, please try again.",
    )


async def _principal_from_token(raw_token: str) -> Principal | None:
    session = await auth_backend.get_session(raw_token)
    if session is None:
        return None
    try:
        return await principal_for(session.user, raw_token)
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None


async def require_user(
    raw_token: Annotated[str, Depends(oauth2_scheme)],
) -> Principal:
    """Resolve the bearer token to a Principal, else 401.

    The role is resolved here, once per request, from the stored profile
    and the configured administrator address.
    """
    principal = await _principal_from_token(raw_token)
    if principal is None:
        logger.warning("Invalid or expired token rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    logger.debug("Token validated for user=%s role=%s", principal.user_id, principal.role)
    return principal


async def optional_user(
    raw_token: Annotated[str | None, Depends(optional_oauth2_scheme)],
) -> Principal | None:
    """Like require_user, but anonymous (or invalid) callers get None."""
    if not raw_token:
        return None
    return await _principal_from_token(raw_token)


def require_capability(capability: str):
    """Dependency factory: demand a capability from the role policy.

    Usage: Depends(require_capability(MANAGE_COURSES))
    Returns the Principal if allowed, else 403.
    """

    def _guard(
        principal: Annotated[Principal, Depends(require_user)],
    ) -> Principal:
        if not principal.can(capability):
            logger.warning(
                "Access denied: user=%s role=%s missing capability=%s",
                principal.user_id,
                principal.role,
                capability,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return principal

    return _guard
