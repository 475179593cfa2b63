"""
Storage Container.

Builds the substrate, document store and services once and hands them
out by reference. There is no module-level store instance.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from noreply_pro.config import Settings, StorageSettings, settings as default_settings
from noreply_pro.core.clock import now_utc
from noreply_pro.core.identifiers import IdGenerator, random_id
from noreply_pro.infrastructure.logging import get_logger
from noreply_pro.infrastructure.storage import (
    DocumentStore,
    MemorySubstrate,
    Substrate,
    create_substrate,
)
from noreply_pro.services.bulk import BulkService
from noreply_pro.services.collections import (
    AutomationRuleService,
    FollowUpService,
    TemplateService,
)


logger = get_logger(__name__)


@dataclass(frozen=True)
class Storage:
    """Everything that reads or writes the local store."""
    substrate: Substrate
    document_store: DocumentStore
    follow_ups: FollowUpService
    rules: AutomationRuleService
    templates: TemplateService
    bulk: BulkService

    @classmethod
    def build(
        cls,
        substrate: Substrate,
        storage_settings: Optional[StorageSettings] = None,
        id_generator: IdGenerator = random_id,
        clock: Callable[[], datetime] = now_utc,
    ) -> "Storage":
        """
        Wire services on top of a substrate.

        Args:
            substrate: Key-value backend.
            storage_settings: Supplies the collection keys.
            id_generator: Identifier source for new entities.
            clock: Time source for createdAt and exportedAt.

        Returns:
            Storage instance.
        """
        storage_settings = storage_settings or StorageSettings()
        document_store = DocumentStore(substrate)

        follow_ups = FollowUpService(
            document_store,
            storage_settings.followups_key,
            id_generator=id_generator,
            clock=clock,
        )
        rules = AutomationRuleService(
            document_store,
            storage_settings.rules_key,
            id_generator=id_generator,
        )
        templates = TemplateService(
            document_store,
            storage_settings.templates_key,
            id_generator=id_generator,
        )

        return cls(
            substrate=substrate,
            document_store=document_store,
            follow_ups=follow_ups,
            rules=rules,
            templates=templates,
            bulk=BulkService(document_store, follow_ups, rules, templates, clock=clock),
        )

    @classmethod
    def from_settings(cls, app_settings: Optional[Settings] = None) -> "Storage":
        """Build storage with the configured substrate."""
        app_settings = app_settings or default_settings
        substrate = create_substrate(app_settings.storage)

        logger.info(
            "Storage initialized",
            extra={"extra_fields": {
                "backend": app_settings.storage.backend,
                "substrate": type(substrate).__name__,
            }}
        )

        return cls.build(substrate, app_settings.storage)

    @classmethod
    def in_memory(
        cls,
        id_generator: IdGenerator = random_id,
        clock: Callable[[], datetime] = now_utc,
    ) -> "Storage":
        """Build storage on a fresh MemorySubstrate."""
        return cls.build(MemorySubstrate(), id_generator=id_generator, clock=clock)

    def close(self) -> None:
        self.substrate.close()
