from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from typing import Callable, ContextManager, Tuple
from category_admin.core.config import settings
from category_admin.services.cache import CacheFront, CacheKeys
from category_admin.services.category_store import CategoryStore
from category_admin.services.content_ledger import ContentLedger
import logging

logger = logging.getLogger(__name__)

StorageFactory = Callable[[], ContextManager[Tuple[CategoryStore, ContentLedger]]]


class ContentCountReconciler:
    """
    Periodically rewrites each category's stored content_count from the ledger.

    Counts drift when content changes outside the category service; reads
    always backfill from the ledger, but the stored column is what other
    consumers of the table see.
    """

    def __init__(self, storage_factory: StorageFactory, cache: CacheFront):
        self.storage_factory = storage_factory
        self.cache = cache
        self.scheduler = AsyncIOScheduler()

    async def reconcile(self) -> int:
        """Fix stale counts; returns how many categories changed."""
        changed = 0
        try:
            with self.storage_factory() as (store, ledger):
                for category in store.find_all():
                    count = ledger.count_by_category(category.id)
                    if count != category.content_count:
                        store.set_content_count(category.id, count)
                        changed += 1
        except Exception as e:
            logger.error(f"Error reconciling content counts: {str(e)}")
            return changed

        if changed:
            await self.cache.clear_namespace(CacheKeys.CATEGORY_NAMESPACE)
        logger.info(f"Content count reconciliation updated {changed} categories")
        return changed

    def start(self):
        """Start the scheduler unless reconciliation is disabled."""
        interval = settings.CONTENT_COUNT_RECONCILE_MINUTES
        if interval <= 0:
            logger.info("Content count reconciliation disabled")
            return
        self.scheduler.add_job(
            self.reconcile,
            trigger=IntervalTrigger(minutes=interval),
            id="reconcile_content_counts",
            name="Reconcile category content counts",
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info(f"Scheduler started with interval: {interval} minutes")

    def shutdown(self):
        """Shutdown the scheduler."""
        if self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Scheduler shutdown")
