"""
HTTP Client Package.

External service clients:
- Gemini draft writer
"""

from noreply_pro.infrastructure.http.draft_writer_client import (
    DraftRequest,
    DraftWriterClient,
    FALLBACK_DRAFT,
    TONE_INSTRUCTIONS,
)


__all__ = [
    "DraftRequest",
    "DraftWriterClient",
    "FALLBACK_DRAFT",
    "TONE_INSTRUCTIONS",
]
