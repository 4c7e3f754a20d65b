"""
Enrichment scheduler: turns the store's staleness query into tasks.

Re-runs are resumable by construction: an entity enriched within the
threshold is simply not selected again.
"""

from typing import List

from registry_hub.domain.enrichment.models import EnrichmentSource, EnrichmentTask
from registry_hub.domain.protocols import CompanyStore
from registry_hub.domain.registry.enterprise_number import (
    EnterpriseNumberError,
    validate_enterprise_number,
)
from registry_hub.utils.logging import get_logger

logger = get_logger(__name__)


class EnrichmentScheduler:
    def __init__(self, store: CompanyStore):
        self.store = store

    def select(
        self, source: EnrichmentSource, older_than_days: int, limit: int
    ) -> List[EnrichmentTask]:
        """
        Tasks for up to ``limit`` entities never enriched from ``source`` or
        last enriched more than ``older_than_days`` days ago.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if older_than_days < 0:
            raise ValueError("older_than_days must be >= 0")

        keys = self.store.select_stale(source.stamp_column, older_than_days, limit)
        tasks = []
        for key in keys:
            try:
                tasks.append(EnrichmentTask(validate_enterprise_number(key), source))
            except EnterpriseNumberError as e:
                logger.warning(
                    "scheduler.invalid_stored_key", enterprise_number=key, error=str(e)
                )

        logger.info(
            "scheduler.tasks_planned",
            source=source.value,
            older_than_days=older_than_days,
            limit=limit,
            tasks=len(tasks),
        )
        return tasks

    @staticmethod
    def for_key(raw_key: str, source: EnrichmentSource) -> EnrichmentTask:
        """
        A single task for an explicit enterprise number.

        Raises:
            EnterpriseNumberError: If the key is malformed or fails the checksum
        """
        return EnrichmentTask(validate_enterprise_number(raw_key), source)
