"""
Application context.

Builds one set of collaborators (store, remote client, invalidation bus,
reconciler, services) per application. Nothing here is module-global:
tests and the service each build their own context.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional, Type

from ..common.config import Config
from ..common.namespaces import NamespaceRegistry, default_registry
from ..common.remote_api import RemoteApiClient
from ..common.stores.base import LocalStoreInterface
from ..common.stores.config import StoreConfig, create_local_store
from .application_service import ApplicationService
from .contact_service import ContactService
from .dashboard_service import DashboardService
from .followup_service import FollowupService
from .interview_stage_service import InterviewStageService
from .invalidation import InvalidationBus
from .mirrored_reader import MirroredReader
from .query_cache import QueryCache
from .reconciler import ReconcilingMutation

logger = logging.getLogger(__name__)


@dataclass
class SyncContext:
    """Everything an editor needs, wired together."""
    instance_id: str
    registry: NamespaceRegistry
    store: LocalStoreInterface
    remote: RemoteApiClient
    bus: InvalidationBus
    reconciler: ReconcilingMutation
    reader: MirroredReader
    cache: QueryCache
    applications: ApplicationService
    stages: InterviewStageService
    followups: FollowupService
    contacts: ContactService
    dashboard: DashboardService

    async def close(self) -> None:
        await self.bus.stop()
        await self.remote.close()
        logger.info(f"Sync context {self.instance_id} closed")


def build_sync_context(
    store: Optional[LocalStoreInterface] = None,
    remote: Optional[RemoteApiClient] = None,
    config: Type[Config] = Config,
    store_config: Optional[StoreConfig] = None,
    instance_id: Optional[str] = None,
) -> SyncContext:
    """
    Wire a SyncContext.

    Args:
        store: Local store; built from store_config (or the environment)
            when omitted
        remote: Remote API client; built from config when omitted
        config: Reconciliation policy and remote settings
        store_config: Store settings, defaults to StoreConfig.from_env()
        instance_id: Identity for cross-instance events, random by default

    Returns:
        SyncContext
    """
    instance_id = instance_id or uuid.uuid4().hex[:8]
    registry = default_registry()

    if store is None:
        store = create_local_store(store_config or StoreConfig.from_env(), instance_id=instance_id)
    if remote is None:
        remote = RemoteApiClient(
            base_url=config.REMOTE_API_BASE_URL,
            token=config.REMOTE_API_TOKEN or None,
            timeout=config.REMOTE_TIMEOUT_SECONDS,
        )

    bus = InvalidationBus(registry, instance_id=instance_id)
    reconciler = ReconcilingMutation(
        store,
        remote,
        bus,
        retry_attempts=config.REMOTE_RETRY_ATTEMPTS,
        retry_max_wait=config.REMOTE_RETRY_MAX_WAIT_SECONDS,
        swallow_validation_errors=config.SWALLOW_VALIDATION_ERRORS,
        notify_on_total_failure=config.NOTIFY_ON_TOTAL_FAILURE,
    )
    reader = MirroredReader(store, remote)

    logger.info(f"Built sync context {instance_id}: {config.summary()}")

    return SyncContext(
        instance_id=instance_id,
        registry=registry,
        store=store,
        remote=remote,
        bus=bus,
        reconciler=reconciler,
        reader=reader,
        cache=QueryCache(bus),
        applications=ApplicationService(reconciler, reader),
        stages=InterviewStageService(reconciler, reader),
        followups=FollowupService(reconciler, reader),
        contacts=ContactService(reconciler, reader),
        dashboard=DashboardService(store),
    )
