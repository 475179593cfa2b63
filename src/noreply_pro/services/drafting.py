"""
Drafting Service.

Generates AI drafts and optionally stores them on a follow-up or as a
new template. Generation always completes before anything is written,
so a failed generation leaves the store untouched.
"""

from typing import Optional

from noreply_pro.core.exceptions import ValidationError
from noreply_pro.infrastructure.http import DraftWriterClient
from noreply_pro.infrastructure.logging import get_logger
from noreply_pro.infrastructure.storage import FollowUp, Template, Tone
from noreply_pro.services.collections import FollowUpService, TemplateService


logger = get_logger(__name__)


class DraftingService:
    """Bridge between the draft writer and the collections that keep drafts."""

    def __init__(
        self,
        client: DraftWriterClient,
        follow_ups: FollowUpService,
        templates: TemplateService,
    ) -> None:
        self._client = client
        self._follow_ups = follow_ups
        self._templates = templates

    def generate(self, recipient_name: str, context: str, tone: Tone) -> str:
        """Generate a draft without storing it."""
        return self._client.generate_draft(recipient_name, context, tone)

    def attach_to_follow_up(self, follow_up_id: str, draft: str) -> FollowUp:
        """
        Store a draft as the notes of an existing follow-up.

        Args:
            follow_up_id: Target follow-up.
            draft: Generated text, stored verbatim.

        Returns:
            The updated follow-up.

        Raises:
            ValidationError: If the follow-up does not exist.
        """
        follow_up = self._follow_ups.update(follow_up_id, notes=draft)
        if follow_up is None:
            raise ValidationError("follow_up_id", f"unknown follow-up {follow_up_id}")

        logger.info(
            f"Attached draft to follow-up {follow_up_id}",
            extra={"extra_fields": {
                "follow_up_id": follow_up_id,
                "draft_length": len(draft),
            }}
        )

        return follow_up

    def save_as_template(
        self,
        draft: str,
        tone: Tone,
        name: Optional[str] = None,
        recipient_name: str = "",
    ) -> Template:
        """Store a draft as a new template."""
        name = name or f"Draft for {recipient_name or 'contact'}"
        return self._templates.create(name=name, content=draft, tone=Tone(tone))
