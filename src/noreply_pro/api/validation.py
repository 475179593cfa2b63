"""
API Request Validation.

Uses Pydantic for request payload validation. Payloads accept the
dashboard's camelCase field names as well as snake_case.
"""

from datetime import date, datetime
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from noreply_pro.core.exceptions import ValidationError
from noreply_pro.infrastructure.storage import (
    AutomationRule,
    Category,
    FollowUp,
    FollowUpStatus,
    Platform,
    Priority,
    Template,
    Tone,
)


M = TypeVar("M", bound=BaseModel)


def _strip_required(v: str, field_name: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError(f"{field_name} cannot be empty or whitespace")
    return v


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class FollowUpPayload(_Payload):
    """Request body for creating or replacing a follow-up."""

    id: Optional[str] = Field(default=None, max_length=255)
    title: str = Field(..., min_length=1, max_length=255)
    recipient: str = Field(..., min_length=1, max_length=255)
    platform: Platform = Platform.EMAIL
    status: FollowUpStatus = FollowUpStatus.PENDING
    priority: Priority = Priority.MEDIUM
    category: Category = Category.WORK
    due_date: Optional[date] = Field(default=None, alias="dueDate")
    notes: str = Field(default="", max_length=20000)
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    media_url: Optional[str] = Field(default=None, alias="mediaUrl", max_length=2048)

    @field_validator("title", "recipient")
    @classmethod
    def validate_required_text(cls, v: str, info) -> str:
        return _strip_required(v, info.field_name)

    @field_validator("due_date", mode="before")
    @classmethod
    def empty_due_date_is_none(cls, v: Any) -> Any:
        return None if v == "" else v

    def to_entity(self, entity_id: Optional[str] = None) -> FollowUp:
        return FollowUp(
            id=entity_id or self.id or "",
            title=self.title,
            recipient=self.recipient,
            platform=self.platform,
            status=self.status,
            priority=self.priority,
            category=self.category,
            due_date=self.due_date,
            notes=self.notes,
            created_at=self.created_at,
            media_url=self.media_url or None,
        )


class RulePayload(_Payload):
    """Request body for creating or replacing an automation rule."""

    id: Optional[str] = Field(default=None, max_length=255)
    name: str = Field(..., min_length=1, max_length=255)
    trigger_days: int = Field(..., ge=1, le=3650, alias="triggerDays")
    tone: Tone = Tone.POLITE
    enabled: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _strip_required(v, "name")

    def to_entity(self, entity_id: Optional[str] = None) -> AutomationRule:
        return AutomationRule(
            id=entity_id or self.id or "",
            name=self.name,
            trigger_days=self.trigger_days,
            tone=self.tone,
            enabled=self.enabled,
        )


class TemplatePayload(_Payload):
    """Request body for creating or replacing a template."""

    id: Optional[str] = Field(default=None, max_length=255)
    name: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1, max_length=20000)
    tone: Tone = Tone.POLITE

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _strip_required(v, "name")

    def to_entity(self, entity_id: Optional[str] = None) -> Template:
        return Template(
            id=entity_id or self.id or "",
            name=self.name,
            content=self.content,
            tone=self.tone,
        )


class PurgeRequest(_Payload):
    """Request body for /purge."""

    confirm: bool = Field(
        default=False,
        description="Must be true; purging is irreversible",
    )


class DraftPayload(_Payload):
    """Request body for /drafts."""

    recipient: str = Field(..., min_length=1, max_length=255)
    context: str = Field(..., min_length=1, max_length=5000)
    tone: Tone = Tone.PROFESSIONAL
    follow_up_id: Optional[str] = Field(default=None, alias="followUpId")
    save_as_template: bool = Field(default=False, alias="saveAsTemplate")
    template_name: Optional[str] = Field(default=None, alias="templateName", max_length=255)

    @field_validator("recipient", "context")
    @classmethod
    def validate_required_text(cls, v: str, info) -> str:
        return _strip_required(v, info.field_name)


def parse_payload(model: Type[M], data: Optional[Dict[str, Any]]) -> M:
    """
    Validate a JSON body against a payload model.

    Raises:
        ValidationError: With the first offending field and message.
    """
    try:
        return model.model_validate(data or {})
    except PydanticValidationError as e:
        first = e.errors()[0]
        field_name = ".".join(str(part) for part in first.get("loc", ())) or "body"
        raise ValidationError(field_name, first["msg"]) from None
