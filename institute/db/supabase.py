"""Supabase clients.

Same conditional pattern as engine.py and redis.py: clients exist only
when SUPABASE_URL and SUPABASE_KEY are both set.

``supabase_client`` serves the table store and object storage and always
runs with the service key.  It must never sign a user in: the SDK swaps
the client's Authorization header to the signed-in user's JWT on every
auth event, which would scope every later query to that user.  Auth calls
use ``new_auth_client()`` instead, one client per sign-in or sign-up,
with no session persistence or background token refresh.
"""

from __future__ import annotations

import logging

from supabase import Client, ClientOptions, create_client

from institute.core.config import SETTINGS

logger = logging.getLogger(__name__)


def new_auth_client() -> Client:
    return create_client(
        SETTINGS.supabase_url,  # type: ignore[arg-type]
        SETTINGS.supabase_key,  # type: ignore[arg-type]
        options=ClientOptions(persist_session=False, auto_refresh_token=False),
    )


if SETTINGS.uses_supabase:
    supabase_client: Client | None = create_client(
        SETTINGS.supabase_url,  # type: ignore[arg-type]
        SETTINGS.supabase_key,  # type: ignore[arg-type]
    )
    logger.info("Supabase client created for %s", SETTINGS.supabase_url)
else:
    supabase_client = None
