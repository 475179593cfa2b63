"""
Stored Data Models.

Domain models for the three stored collections.
Uses frozen dataclasses: records are replaced whole, never patched.
Stored records use the camelCase field names of the dashboard.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from noreply_pro.core.exceptions import ValidationError


class Tone(str, Enum):
    """Writing tone used by rules, templates and AI drafts."""
    PROFESSIONAL = "professional"
    POLITE = "polite"
    CASUAL = "casual"
    URGENT = "urgent"
    SHORT = "short"
    CREATIVE = "creative"


class Platform(str, Enum):
    """Channel a follow-up happens on."""
    EMAIL = "Email"
    LINKEDIN = "LinkedIn"
    WHATSAPP = "WhatsApp"
    OTHER = "Other"


class FollowUpStatus(str, Enum):
    """Status of a follow-up."""
    PENDING = "pending"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Category(str, Enum):
    WORK = "Work"
    SALES = "Sales"
    NETWORKING = "Networking"
    PERSONAL = "Personal"


def _require(data: Dict[str, Any], key: str) -> Any:
    """Fetch a mandatory record field."""
    if key not in data or data[key] is None:
        raise ValidationError(key, "missing from stored record")
    return data[key]


def _parse_enum(enum_type, value: Any, field_name: str):
    try:
        return enum_type(value)
    except ValueError:
        raise ValidationError(field_name, f"unknown value {value!r}") from None


def _parse_date(value: Any) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError("dueDate", f"not a calendar date: {value!r}") from None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp.

    Accepts the trailing 'Z' written by browsers' toISOString().
    """
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError("createdAt", f"not a timestamp: {value!r}") from None


def _check_record(data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ValidationError("record", f"expected an object, got {type(data).__name__}")
    return data


def _check_id(entity_id: str) -> str:
    if not entity_id:
        raise ValidationError("id", "cannot be empty when stored")
    return entity_id


@dataclass(frozen=True)
class FollowUp:
    """
    An outreach follow-up the user must act on.

    Attributes:
        id: Opaque identifier, unique within the collection. Empty for
            a follow-up that has not been stored yet.
        title: Short description of the follow-up.
        recipient: Who the follow-up is addressed to.
        platform: Channel used to reach the recipient.
        status: Current status.
        priority: User-assigned priority.
        category: User-assigned category.
        due_date: Calendar date the follow-up is due.
        notes: Free text, often an AI-generated draft.
        created_at: Set once on first write, never changed afterwards.
        media_url: Optional attachment link.
    """
    id: str
    title: str
    recipient: str
    platform: Platform = Platform.EMAIL
    status: FollowUpStatus = FollowUpStatus.PENDING
    priority: Priority = Priority.MEDIUM
    category: Category = Category.WORK
    due_date: Optional[date] = None
    notes: str = ""
    created_at: Optional[datetime] = None
    media_url: Optional[str] = None

    @classmethod
    def from_record(cls, data: Any) -> "FollowUp":
        """
        Create a FollowUp from a stored record.

        Args:
            data: Decoded JSON object.

        Returns:
            FollowUp instance.

        Raises:
            ValidationError: If the record is missing fields or has
                unknown enum values.
        """
        data = _check_record(data)
        return cls(
            id=str(_require(data, "id")),
            title=data.get("title", ""),
            recipient=data.get("recipient", ""),
            platform=_parse_enum(Platform, data.get("platform", "Email"), "platform"),
            status=_parse_enum(FollowUpStatus, data.get("status", "pending"), "status"),
            priority=_parse_enum(Priority, data.get("priority", "medium"), "priority"),
            category=_parse_enum(Category, data.get("category", "Work"), "category"),
            due_date=_parse_date(data.get("dueDate")),
            notes=data.get("notes") or "",
            created_at=parse_timestamp(data.get("createdAt")),
            media_url=data.get("mediaUrl"),
        )

    def to_record(self) -> Dict[str, Any]:
        """
        Convert to a stored record.

        Returns:
            JSON-serializable dictionary.
        """
        record = {
            "id": _check_id(self.id),
            "title": self.title,
            "recipient": self.recipient,
            "platform": self.platform.value,
            "status": self.status.value,
            "priority": self.priority.value,
            "category": self.category.value,
            "dueDate": self.due_date.isoformat() if self.due_date else "",
            "notes": self.notes,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

        if self.media_url:
            record["mediaUrl"] = self.media_url

        return record


@dataclass(frozen=True)
class AutomationRule:
    """
    A follow-up automation rule.

    Rules are stored configuration: nothing evaluates trigger_days
    against elapsed silence.
    """
    id: str
    name: str
    trigger_days: int
    tone: Tone = Tone.POLITE
    enabled: bool = True

    def __post_init__(self) -> None:
        if isinstance(self.trigger_days, bool) or not isinstance(self.trigger_days, int):
            raise ValidationError("triggerDays", "must be an integer")
        if self.trigger_days < 1:
            raise ValidationError("triggerDays", "must be a positive number of days")

    @classmethod
    def from_record(cls, data: Any) -> "AutomationRule":
        data = _check_record(data)
        return cls(
            id=str(_require(data, "id")),
            name=data.get("name", ""),
            trigger_days=_require(data, "triggerDays"),
            tone=_parse_enum(Tone, data.get("tone", "polite"), "tone"),
            enabled=bool(data.get("enabled", True)),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": _check_id(self.id),
            "name": self.name,
            "triggerDays": self.trigger_days,
            "tone": self.tone.value,
            "enabled": self.enabled,
        }


@dataclass(frozen=True)
class Template:
    """
    A reusable message template.

    The content may contain a literal [Name] placeholder; it is stored
    as-is and never substituted here.
    """
    id: str
    name: str
    content: str
    tone: Tone = Tone.POLITE

    @classmethod
    def from_record(cls, data: Any) -> "Template":
        data = _check_record(data)
        return cls(
            id=str(_require(data, "id")),
            name=data.get("name", ""),
            content=data.get("content", ""),
            tone=_parse_enum(Tone, data.get("tone", "polite"), "tone"),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": _check_id(self.id),
            "name": self.name,
            "content": self.content,
            "tone": self.tone.value,
        }


@dataclass(frozen=True)
class Snapshot:
    """Aggregate export of every collection at one instant."""
    follow_ups: List[FollowUp] = field(default_factory=list)
    rules: List[AutomationRule] = field(default_factory=list)
    templates: List[Template] = field(default_factory=list)
    exported_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Export document in the dashboard's download format."""
        return {
            "followUps": [item.to_record() for item in self.follow_ups],
            "rules": [rule.to_record() for rule in self.rules],
            "templates": [template.to_record() for template in self.templates],
            "exportedAt": self.exported_at.isoformat() if self.exported_at else None,
        }
