"""
Services Layer.

Business logic orchestration:
- Collection services (follow-ups, rules, templates)
- Bulk export and purge
- AI draft storage
- Storage container wiring all of the above
"""

from noreply_pro.services.bulk import BulkService
from noreply_pro.services.collections import (
    AutomationRuleService,
    CollectionService,
    DEFAULT_RULES,
    DEFAULT_TEMPLATES,
    FollowUpService,
    TemplateService,
)
from noreply_pro.services.drafting import DraftingService
from noreply_pro.services.storage import Storage


__all__ = [
    "AutomationRuleService",
    "BulkService",
    "CollectionService",
    "DEFAULT_RULES",
    "DEFAULT_TEMPLATES",
    "DraftingService",
    "FollowUpService",
    "Storage",
    "TemplateService",
]
