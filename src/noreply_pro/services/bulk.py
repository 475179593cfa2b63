"""
Bulk Operations.

Whole-store export and purge across all collections.
"""

import json
from contextlib import ExitStack
from datetime import datetime
from typing import Callable, Iterable, Optional

from noreply_pro.core.clock import now_utc
from noreply_pro.core.exceptions import (
    PersistenceUnavailableError,
    PurgeNotConfirmedError,
    SubstrateError,
)
from noreply_pro.infrastructure.logging import get_logger, log_duration
from noreply_pro.infrastructure.storage import DocumentStore, Snapshot
from noreply_pro.services.collections import (
    AutomationRuleService,
    FollowUpService,
    TemplateService,
)


logger = get_logger(__name__)


class BulkService:
    """
    Service for operations spanning every collection.

    Responsible for:
    - Exporting a snapshot of all collections
    - Purging all collections
    """

    EXPORT_INDENT = 2

    def __init__(
        self,
        document_store: DocumentStore,
        follow_ups: FollowUpService,
        rules: AutomationRuleService,
        templates: TemplateService,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self._store = document_store
        self._follow_ups = follow_ups
        self._rules = rules
        self._templates = templates
        self._clock = clock

    @property
    def collection_keys(self) -> Iterable[str]:
        return (
            self._follow_ups.collection_key,
            self._rules.collection_key,
            self._templates.collection_key,
        )

    @log_duration("export_snapshot")
    def export_snapshot(self) -> Snapshot:
        """
        Capture every collection plus the capture time.

        Returns:
            Snapshot of the current list() of each collection.
        """
        snapshot = Snapshot(
            follow_ups=self._follow_ups.list(),
            rules=self._rules.list(),
            templates=self._templates.list(),
            exported_at=self._clock(),
        )

        logger.info(
            "Exported snapshot",
            extra={"extra_fields": {
                "follow_up_count": len(snapshot.follow_ups),
                "rule_count": len(snapshot.rules),
                "template_count": len(snapshot.templates),
            }}
        )

        return snapshot

    def export_json(self, snapshot: Optional[Snapshot] = None) -> str:
        """Pretty-printed JSON export document."""
        snapshot = snapshot or self.export_snapshot()
        return json.dumps(snapshot.to_dict(), indent=self.EXPORT_INDENT, ensure_ascii=False)

    @staticmethod
    def export_filename(snapshot: Snapshot) -> str:
        """Download file name for a snapshot, e.g. noreply-export-2024-01-15.json."""
        exported_at = snapshot.exported_at or now_utc()
        return f"noreply-export-{exported_at.date().isoformat()}.json"

    @log_duration("purge_all")
    def purge_all(self, confirm: bool = True) -> None:
        """
        Remove every collection. Irreversible.

        Rules and templates are re-seeded on their next read. Every
        collection lock is held for the duration, so no in-flight write
        can restore purged records.

        Args:
            confirm: Must be True; callers wire their confirmation gate here.

        Raises:
            PurgeNotConfirmedError: If confirm is False.
            PersistenceUnavailableError: If the substrate refused a removal.
        """
        if not confirm:
            raise PurgeNotConfirmedError()

        with ExitStack() as locks:
            # Fixed order: follow-ups, rules, templates.
            for service in (self._follow_ups, self._rules, self._templates):
                locks.enter_context(service.lock)

            for key in self.collection_keys:
                try:
                    self._store.remove(key)
                except SubstrateError as e:
                    raise PersistenceUnavailableError("all", "purge", e.message) from e

        logger.warning(
            "Purged all collections",
            extra={"extra_fields": {"collection_keys": list(self.collection_keys)}}
        )
