"""
Collection Services.

Typed facades over the document store, one per stored collection.
Each service owns identity assignment, insertion order and the
default records written on first access.
"""

from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from threading import RLock
from typing import Any, Callable, Generic, Iterator, List, Optional, Type, TypeVar

from noreply_pro.core.clock import now_utc
from noreply_pro.core.exceptions import (
    ConfigurationError,
    PersistenceUnavailableError,
    SubstrateError,
    ValidationError,
)
from noreply_pro.core.identifiers import IdGenerator, random_id
from noreply_pro.infrastructure.logging import get_logger, log_duration
from noreply_pro.infrastructure.storage import (
    AutomationRule,
    DocumentStore,
    FollowUp,
    Record,
    Template,
    Tone,
)


logger = get_logger(__name__)


E = TypeVar("E", FollowUp, AutomationRule, Template)

MAX_ID_ATTEMPTS = 100


DEFAULT_RULES = (
    AutomationRule(
        id="1",
        name="Standard 3-Day Ping",
        trigger_days=3,
        tone=Tone.POLITE,
        enabled=True,
    ),
    AutomationRule(
        id="2",
        name="Urgent 7-Day Push",
        trigger_days=7,
        tone=Tone.URGENT,
        enabled=False,
    ),
)

DEFAULT_TEMPLATES = (
    Template(
        id="1",
        name="Standard Follow-up",
        content="Hi [Name], just checking in on our previous conversation.",
        tone=Tone.POLITE,
    ),
)


def _record_id(record: Any) -> Optional[str]:
    """Stored id as a string, matching what from_record decodes."""
    if not isinstance(record, dict) or record.get("id") is None:
        return None
    return str(record["id"])


class CollectionService(Generic[E]):
    """
    Read-modify-write access to one stored collection.

    Mutations operate on the stored records rather than decoded
    entities, so a record that fails to decode is skipped by list()
    but never dropped by a later write.

    Subclasses set entity_type, collection_name and prepend_new, and
    may provide default_records for seed-on-first-read.
    """

    entity_type: Type[E]
    collection_name: str = "collection"
    prepend_new: bool = False
    default_records: tuple = ()

    def __init__(
        self,
        document_store: DocumentStore,
        collection_key: str,
        id_generator: IdGenerator = random_id,
    ) -> None:
        self._store = document_store
        self._key = collection_key
        self._id_generator = id_generator
        self._lock = RLock()

    @property
    def collection_key(self) -> str:
        return self._key

    @property
    def lock(self):
        """Re-entrant lock held across every read-modify-write."""
        return self._lock

    @contextmanager
    def _persistence(self, operation: str) -> Iterator[None]:
        """Translate substrate failures into PersistenceUnavailableError."""
        try:
            yield
        except SubstrateError as e:
            logger.error(
                f"Persistence unavailable for {self.collection_name}: {e}",
                extra={"extra_fields": {
                    "collection": self.collection_name,
                    "operation": operation,
                    "substrate_operation": e.operation,
                }}
            )
            raise PersistenceUnavailableError(
                self.collection_name, operation, e.message
            ) from e

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def seeds_on_first_read(self) -> bool:
        return bool(self.default_records)

    def seed_defaults(self) -> List[E]:
        """
        Persist the default records and return them.

        Called by list() the first time an unwritten collection is read.
        """
        with self._lock, self._persistence("seed"):
            records = [entity.to_record() for entity in self.default_records]
            self._store.write(self._key, records)

        logger.info(
            f"Seeded {self.collection_name} with {len(records)} default records",
            extra={"extra_fields": {
                "collection": self.collection_name,
                "record_count": len(records),
            }}
        )

        return list(self.default_records)

    def _load_records(self) -> List[Record]:
        if self.seeds_on_first_read and not self._store.contains(self._key):
            return [entity.to_record() for entity in self.seed_defaults()]
        return self._store.read(self._key)

    def _decode(self, records: List[Any]) -> List[E]:
        entities: List[E] = []
        for position, record in enumerate(records):
            try:
                entities.append(self.entity_type.from_record(record))
            except (ValidationError, TypeError) as e:
                logger.warning(
                    f"Skipping undecodable {self.collection_name} record",
                    extra={"extra_fields": {
                        "collection": self.collection_name,
                        "position": position,
                        "error": str(e),
                    }}
                )
        return entities

    def list(self) -> List[E]:
        """
        List the collection in stored order.

        Returns:
            Decoded entities. An unwritten seeded collection is seeded
            first; an unwritten unseeded collection is empty.

        Raises:
            PersistenceUnavailableError: If the substrate cannot be read.
        """
        with self._lock, self._persistence("list"):
            return self._decode(self._load_records())

    def get(self, entity_id: str) -> Optional[E]:
        """Get an entity by id, or None if absent."""
        for entity in self.list():
            if entity.id == entity_id:
                return entity
        return None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _new_id(self, records: List[Record]) -> str:
        taken = {_record_id(record) for record in records}
        for _ in range(MAX_ID_ATTEMPTS):
            candidate = self._id_generator()
            if candidate not in taken:
                return candidate
        raise ConfigurationError(
            "id_generator",
            f"No unused {self.collection_name} id after {MAX_ID_ATTEMPTS} attempts",
        )

    def _prepare_new(self, entity: E) -> E:
        """Hook applied to entities inserted for the first time."""
        return entity

    def _merge_existing(self, existing: Record, record: Record) -> Record:
        """Hook applied when a record replaces a stored one."""
        return record

    @log_duration("upsert_record")
    def upsert(self, entity: E) -> E:
        """
        Insert or replace an entity by id and persist the collection.

        An entity with an empty id is new and receives a generated id.
        A replaced entity keeps its position; a new one is prepended or
        appended depending on the collection.

        Args:
            entity: Full entity to store.

        Returns:
            The entity as stored.

        Raises:
            PersistenceUnavailableError: If the substrate refused the write.
        """
        with self._lock, self._persistence("upsert"):
            records = self._load_records()

            if not entity.id:
                entity = replace(entity, id=self._new_id(records))

            index = next(
                (
                    i for i, record in enumerate(records)
                    if _record_id(record) == entity.id
                ),
                None,
            )

            if index is not None:
                record = self._merge_existing(records[index], entity.to_record())
                records[index] = record
                action = "updated"
            else:
                record = self._prepare_new(entity).to_record()
                if self.prepend_new:
                    records.insert(0, record)
                else:
                    records.append(record)
                action = "created"

            self._store.write(self._key, records)

        logger.info(
            f"{action.capitalize()} {self.collection_name} record {entity.id}",
            extra={"extra_fields": {
                "collection": self.collection_name,
                "entity_id": entity.id,
                "action": action,
                "record_count": len(records),
            }}
        )

        return self.entity_type.from_record(record)

    def create(self, **fields: Any) -> E:
        """
        Create a new entity with a generated id.

        Args:
            **fields: Entity fields other than id.

        Returns:
            The stored entity.
        """
        if "id" in fields:
            raise ValidationError("id", "identifiers are assigned on creation")
        return self.upsert(self.entity_type(id="", **fields))

    def update(self, entity_id: str, **changes: Any) -> Optional[E]:
        """
        Replace fields of an existing entity.

        The lookup and the write happen under one lock.

        Returns:
            The stored entity, or None if no entity has that id.
        """
        with self._lock:
            current = self.get(entity_id)
            if current is None:
                return None
            return self.upsert(replace(current, **changes))

    @log_duration("delete_record")
    def delete(self, entity_id: str) -> bool:
        """
        Delete an entity by id and persist the collection.

        Deleting an absent id is a no-op.

        Args:
            entity_id: Identifier to delete.

        Returns:
            True if a record was removed.

        Raises:
            PersistenceUnavailableError: If the substrate refused the write.
        """
        with self._lock, self._persistence("delete"):
            records = self._load_records()
            remaining = [
                record for record in records
                if _record_id(record) != entity_id
            ]
            self._store.write(self._key, remaining)

        removed = len(remaining) != len(records)

        logger.info(
            f"Deleted {self.collection_name} record {entity_id}"
            if removed else f"No {self.collection_name} record {entity_id} to delete",
            extra={"extra_fields": {
                "collection": self.collection_name,
                "entity_id": entity_id,
                "removed": removed,
            }}
        )

        return removed


class FollowUpService(CollectionService[FollowUp]):
    """
    Follow-ups, newest first.

    No default records. created_at is stamped on first write and kept
    from the stored record on every replacement.
    """

    entity_type = FollowUp
    collection_name = "follow-ups"
    prepend_new = True

    def __init__(
        self,
        document_store: DocumentStore,
        collection_key: str,
        id_generator: IdGenerator = random_id,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        super().__init__(document_store, collection_key, id_generator)
        self._clock = clock

    def _prepare_new(self, entity: FollowUp) -> FollowUp:
        if entity.created_at is None:
            return replace(entity, created_at=self._clock())
        return entity

    def _merge_existing(self, existing: Record, record: Record) -> Record:
        if existing.get("createdAt"):
            return {**record, "createdAt": existing["createdAt"]}
        if not record.get("createdAt"):
            return {**record, "createdAt": self._clock().isoformat()}
        return record


class AutomationRuleService(CollectionService[AutomationRule]):
    """Automation rules, in creation order, seeded with two defaults."""

    entity_type = AutomationRule
    collection_name = "rules"
    default_records = DEFAULT_RULES


class TemplateService(CollectionService[Template]):
    """Message templates, in creation order, seeded with one default."""

    entity_type = Template
    collection_name = "templates"
    default_records = DEFAULT_TEMPLATES
