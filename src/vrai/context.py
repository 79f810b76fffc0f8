"""
═══════════════════════════════════════════════════════════════════════════════
Vrai — Application context (explicitly constructed service handles)
═══════════════════════════════════════════════════════════════════════════════

``AppContext`` bundles the objects every handler needs: settings, the Remote
Data Service client and the per-user upload sessions. It is built once by
``create_context()`` during the application lifespan, stored on
``app.state.context`` and handed to handlers through ``vrai.dependencies``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Union

from vrai.config import VraiSettings
from vrai.memory_store import MemoryDataService, make_report_function
from vrai.remote import SupabaseClient
from vrai.services.upload_orchestrator import UploadSessions

logger = logging.getLogger(__name__)

RemoteDataService = Union[SupabaseClient, MemoryDataService]


@dataclass
class AppContext:
    settings: VraiSettings
    remote: RemoteDataService
    uploads: UploadSessions = field(init=False)

    def __post_init__(self) -> None:
        self.uploads = UploadSessions(self.remote, bucket=self.settings.photos_bucket)

    async def close(self) -> None:
        await self.remote.close()


def build_memory_store(settings: VraiSettings) -> MemoryDataService:
    store = MemoryDataService(
        jwt_secret=settings.jwt_secret_key,
        jwt_algorithm=settings.jwt_algorithm,
        token_ttl_minutes=settings.jwt_access_token_expire_minutes,
        public_base_url=f"http://localhost:{settings.api_port}",
    )
    store.register_function(
        settings.report_function_name, make_report_function(settings.reports_bucket)
    )
    return store


async def create_context(settings: VraiSettings) -> AppContext:
    """
    Initialises the backend and returns a ready AppContext.

    Order:
        1. Hosted platform when credentials are configured and it answers.
        2. Otherwise the in-memory backend (graceful degradation).
    """
    if settings.use_memory_store or not settings.has_remote_credentials:
        remote: RemoteDataService = build_memory_store(settings)
        await remote.connect()
        return AppContext(settings=settings, remote=remote)

    client = SupabaseClient(
        settings.supabase_url,
        settings.supabase_service_role_key,
        anon_key=settings.supabase_anon_key,
        timeout=settings.remote_timeout_seconds,
    )
    await client.connect()
    if await client.ping():
        logger.info("✅ Remote data service reachable")
        return AppContext(settings=settings, remote=client)

    logger.warning("⚠️  Remote data service not reachable — activating memory store")
    await client.close()
    remote = build_memory_store(settings)
    await remote.connect()
    return AppContext(settings=settings, remote=remote)


__all__ = ["AppContext", "RemoteDataService", "build_memory_store", "create_context"]
