"""
Local Storage Package.

Exports:
- Data models (FollowUp, AutomationRule, Template, Snapshot, enums)
- Substrates (MemorySubstrate, FileSubstrate, SqliteSubstrate)
- DocumentStore
"""

from noreply_pro.infrastructure.storage.document_store import (
    DocumentStore,
    Record,
)
from noreply_pro.infrastructure.storage.models import (
    AutomationRule,
    Category,
    FollowUp,
    FollowUpStatus,
    Platform,
    Priority,
    Snapshot,
    Template,
    Tone,
)
from noreply_pro.infrastructure.storage.substrate import (
    FileSubstrate,
    MemorySubstrate,
    SqliteSubstrate,
    Substrate,
    create_substrate,
)


__all__ = [
    # Models
    "AutomationRule",
    "Category",
    "FollowUp",
    "FollowUpStatus",
    "Platform",
    "Priority",
    "Snapshot",
    "Template",
    "Tone",
    # Substrates
    "FileSubstrate",
    "MemorySubstrate",
    "SqliteSubstrate",
    "Substrate",
    "create_substrate",
    # Document store
    "DocumentStore",
    "Record",
]
