from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from datastore.base import ReadingStore
from datastore.memory import InMemoryReadingStore
from datastore.supabase import SupabaseReadingStore
from settings import get_settings


@lru_cache
def build_default_store(backend: Optional[str] = None) -> ReadingStore:
    settings = get_settings()
    store_backend = settings.store_backend if backend is None else backend

    if store_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_key:
            raise RuntimeError(
                "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set for the supabase store."
            )
        return SupabaseReadingStore(
            url=settings.supabase_url,
            key=settings.supabase_key,
            table=settings.table_name,
            timeout=settings.store_timeout,
        )

    persistence = Path(settings.persistence_path) if settings.persistence_path else None
    return InMemoryReadingStore(name=settings.table_name, persistence_path=persistence)
