"""Collaborator selection.

Decided once at import time, in this order:

  SUPABASE_URL + SUPABASE_KEY   hosted table store and object storage
  DATABASE_URL                  PostgreSQL table store, in-memory storage
  neither                       everything in memory

Domain repos are built over whichever store was chosen.  Tests clear the
in-memory instances between cases.
"""

from __future__ import annotations

import logging

from institute.core.config import SETTINGS
from institute.db.engine import async_session_factory
from institute.db.supabase import supabase_client
from institute.repos.course_repo import CourseRepo
from institute.repos.enrollment_repo import EnrollmentRepo
from institute.repos.object_storage import (
    InMemoryObjectStorage,
    ObjectStorage,
    SupabaseObjectStorage,
)
from institute.repos.pg_table_store import PgTableStore
from institute.repos.profile_repo import ProfileRepo
from institute.repos.settings_repo import SettingsRepo
from institute.repos.supabase_table_store import SupabaseTableStore
from institute.repos.table_store import InMemoryTableStore, TableStore
from institute.repos.video_repo import VideoRepo

logger = logging.getLogger(__name__)

if supabase_client is not None:
    table_store: TableStore = SupabaseTableStore(supabase_client)
    object_storage: ObjectStorage = SupabaseObjectStorage(
        supabase_client, SETTINGS.storage_bucket
    )
elif async_session_factory is not None:
    table_store = PgTableStore(async_session_factory)
    object_storage = InMemoryObjectStorage(SETTINGS.storage_bucket)
else:
    table_store = InMemoryTableStore()
    object_storage = InMemoryObjectStorage(SETTINGS.storage_bucket)

logger.info(
    "Collaborators: table store %s, object storage %s",
    type(table_store).__name__,
    type(object_storage).__name__,
)

profile_repo = ProfileRepo(table_store)
course_repo = CourseRepo(table_store)
enrollment_repo = EnrollmentRepo(table_store)
settings_repo = SettingsRepo(table_store)
video_repo = VideoRepo(table_store)
