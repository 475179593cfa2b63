"""
Document Store.

Maps a collection key to an ordered list of JSON records kept under a
single substrate key. The store is the only component that touches the
substrate; everything above it works with decoded records.
"""

import json
from typing import Any, Dict, List

from noreply_pro.infrastructure.logging import get_logger
from noreply_pro.infrastructure.storage.substrate import Substrate


logger = get_logger(__name__)


Record = Dict[str, Any]


class DocumentStore:
    """
    Whole-collection JSON document store.

    Every mutation rewrites the full collection value. SubstrateError
    from the underlying substrate propagates to the caller.
    """

    def __init__(self, substrate: Substrate) -> None:
        self._substrate = substrate

    @property
    def substrate(self) -> Substrate:
        return self._substrate

    def read(self, collection_key: str) -> List[Record]:
        """
        Read a collection.

        Args:
            collection_key: Substrate key of the collection.

        Returns:
            The stored records, or an empty list if the key is absent or
            its value is not valid text holding a JSON array.
        """
        try:
            raw = self._substrate.get(collection_key)
        except UnicodeDecodeError as e:
            logger.warning(
                f"Discarding undecodable collection {collection_key}",
                extra={"extra_fields": {
                    "collection_key": collection_key,
                    "error": str(e),
                }}
            )
            return []

        if raw is None:
            return []

        try:
            records = json.loads(raw)
        except ValueError as e:
            logger.warning(
                f"Discarding malformed collection {collection_key}",
                extra={"extra_fields": {
                    "collection_key": collection_key,
                    "error": str(e),
                    "raw_length": len(raw),
                }}
            )
            return []

        if not isinstance(records, list):
            logger.warning(
                f"Discarding non-array collection {collection_key}",
                extra={"extra_fields": {
                    "collection_key": collection_key,
                    "value_type": type(records).__name__,
                }}
            )
            return []

        return records

    def write(self, collection_key: str, records: List[Record]) -> None:
        """
        Replace a collection with records.

        Args:
            collection_key: Substrate key of the collection.
            records: Full ordered list of JSON-serializable records.
        """
        payload = json.dumps(records, ensure_ascii=False)
        self._substrate.set(collection_key, payload)

        logger.debug(
            f"Wrote {len(records)} records to {collection_key}",
            extra={"extra_fields": {
                "collection_key": collection_key,
                "record_count": len(records),
            }}
        )

    def remove(self, collection_key: str) -> None:
        """Delete a collection entirely, leaving it unseeded."""
        self._substrate.remove(collection_key)

        logger.info(
            f"Removed collection {collection_key}",
            extra={"extra_fields": {"collection_key": collection_key}}
        )

    def contains(self, collection_key: str) -> bool:
        """Check whether a collection has ever been written (and not removed)."""
        return self._substrate.contains(collection_key)
