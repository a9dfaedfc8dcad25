from __future__ import annotations

import logging

from institute.core.config import SETTINGS
from institute.models.principal import Principal
from institute.models.user import Profile, resolve_role
from institute.repos.backends import profile_repo
from institute.services.auth_service import AuthUser

logger = logging.getLogger(__name__)


async def ensure_profile(user: AuthUser) -> Profile:
    """Return the stored profile, creating it from session data if absent."""
    profile = await profile_repo.get(user.id)
    if profile is not None:
        return profile
    profile = Profile(
        id=user.id,
        name=user.name,
        email=user.email,
        role=resolve_role(user.email, None, SETTINGS.admin_email),
    )
    logger.info("Created missing profile for user=%s", user.id)
    return await profile_repo.save(profile)


async def principal_for(user: AuthUser, access_token: str = "") -> Principal:
    profile = await ensure_profile(user)
    return Principal(
        user_id=user.id,
        email=user.email,
        name=profile.name or user.name,
        role=resolve_role(user.email, profile.role, SETTINGS.admin_email),
        access_token=access_token,
    )
