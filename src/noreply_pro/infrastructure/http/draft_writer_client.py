"""
Draft-Writer Service Client.

Handles communication with the Gemini API for generating follow-up
message drafts. The generated text is returned as-is.
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from noreply_pro.config import DraftWriterSettings, settings
from noreply_pro.core.exceptions import ConfigurationError, DraftGenerationError
from noreply_pro.infrastructure.logging import get_logger, log_duration
from noreply_pro.infrastructure.storage import Tone


logger = get_logger(__name__)


FALLBACK_DRAFT = "AI could not generate a draft."

TONE_INSTRUCTIONS: Dict[Tone, str] = {
    Tone.PROFESSIONAL: "standard business etiquette, clear and concise",
    Tone.POLITE: "extremely respectful and gentle, focusing on building a relationship",
    Tone.CASUAL: "friendly, relaxed language, as if talking to a colleague or friend",
    Tone.URGENT: "direct and time-sensitive without being rude, emphasizes importance",
    Tone.SHORT: "maximum 2 sentences, quick and punchy",
    Tone.CREATIVE: "uses a unique hook or witty remark to stand out in a busy inbox",
}


@dataclass(frozen=True)
class DraftRequest:
    """Request data for generating a follow-up draft."""
    recipient_name: str
    context: str
    tone: Tone = Tone.PROFESSIONAL

    def build_prompt(self) -> str:
        """Render the generation prompt."""
        return (
            f"Task: Write a follow-up message for {self.recipient_name}.\n"
            f"Context: {self.context}\n"
            f"Tone Style: {TONE_INSTRUCTIONS[self.tone]}\n"
            "\n"
            "Rules:\n"
            "- If the recipient name is provided, use it.\n"
            "- Focus on a clear call to action.\n"
            "- Keep it under 150 words.\n"
            "- Provide ONLY the message text. No subject lines.\n"
        )

    def to_payload(self, temperature: float, top_p: float) -> Dict[str, Any]:
        """Convert to a generateContent request body."""
        return {
            "contents": [{"parts": [{"text": self.build_prompt()}]}],
            "generationConfig": {
                "temperature": temperature,
                "topP": top_p,
            },
        }


def _expect(value: Any, kind: type, name: str) -> Any:
    if not isinstance(value, kind):
        raise ValueError(f"Malformed response: {name} is {type(value).__name__}")
    return value


def extract_text(data: Any) -> str:
    """
    Join the text parts of the first candidate.

    Returns:
        Stripped text, or an empty string if the response has none.

    Raises:
        ValueError: If the response does not have the generateContent shape.
    """
    candidates = _expect(data, dict, "body").get("candidates") or []
    if not _expect(candidates, list, "candidates"):
        return ""
    content = _expect(candidates[0], dict, "candidate").get("content") or {}
    parts = _expect(content, dict, "content").get("parts") or []
    texts = []
    for part in _expect(parts, list, "parts"):
        texts.append(_expect(_expect(part, dict, "part").get("text") or "", str, "text"))
    return "".join(texts).strip()


class DraftWriterClient:
    """
    Client for the Gemini generateContent endpoint.

    Never reads or writes the local store.
    """

    def __init__(
        self,
        config: Optional[DraftWriterSettings] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        Initialize draft-writer client.

        Args:
            config: Draft-writer settings, defaults to global settings.
            session: Pre-built HTTP session (mainly for tests).
        """
        self._config = config or settings.draft_writer
        self._session = session

    @property
    def is_configured(self) -> bool:
        return self._config.is_configured

    @property
    def session(self) -> requests.Session:
        """Get or create HTTP session with retry logic."""
        if self._session is None:
            self._session = requests.Session()

            retry_strategy = Retry(
                total=2,
                backoff_factor=1.0,
                status_forcelist=[429, 502, 503, 504],
                allowed_methods=["POST"],
            )

            adapter = HTTPAdapter(max_retries=retry_strategy)

            self._session.mount("https://", adapter)
            self._session.mount("http://", adapter)

            self._session.headers.update({
                "Content-Type": "application/json",
                "Accept": "application/json",
            })

        return self._session

    @log_duration("generate_draft")
    def generate_draft(
        self,
        recipient_name: str,
        context: str,
        tone: Tone,
    ) -> str:
        """
        Generate a follow-up message draft.

        Args:
            recipient_name: Who the message is for.
            context: Free-text description of the previous exchange.
            tone: Writing tone.

        Returns:
            Generated message text, or FALLBACK_DRAFT if the model
            returned no text.

        Raises:
            ConfigurationError: If no API key is configured.
            DraftGenerationError: If the request fails.
        """
        if not self.is_configured:
            raise ConfigurationError("GEMINI_API_KEY")

        draft_request = DraftRequest(
            recipient_name=recipient_name,
            context=context,
            tone=Tone(tone),
        )

        logger.info(
            "Requesting draft generation",
            extra={"extra_fields": {
                "model": self._config.model,
                "tone": draft_request.tone.value,
                "context_length": len(context),
            }}
        )

        start = time.time()
        try:
            response = self.session.post(
                self._config.generate_url,
                json=draft_request.to_payload(
                    self._config.temperature,
                    self._config.top_p,
                ),
                headers={"x-goog-api-key": self._config.api_key},
                timeout=self._config.timeout_seconds,
            )
            response.raise_for_status()
            text = extract_text(response.json())

        except requests.exceptions.Timeout as e:
            logger.error(
                "Draft generation timeout",
                extra={"extra_fields": {"timeout": self._config.timeout_seconds}}
            )
            raise DraftGenerationError(duration_ms=self._elapsed_ms(start)) from e

        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            logger.error(
                f"Draft generation HTTP error: {status_code}",
                extra={"extra_fields": {
                    "status_code": status_code,
                    "response_body": e.response.text[:500] if e.response is not None else None,
                }}
            )
            raise DraftGenerationError(
                status_code=status_code,
                duration_ms=self._elapsed_ms(start),
            ) from e

        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(
                f"Draft generation request failed: {e}",
                extra={"extra_fields": {"error_type": type(e).__name__}}
            )
            raise DraftGenerationError(duration_ms=self._elapsed_ms(start)) from e

        if not text:
            logger.warning("Model returned no draft text")
            return FALLBACK_DRAFT

        return text

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int((time.time() - start) * 1000)

    def close(self) -> None:
        """Close the HTTP session."""
        if self._session:
            self._session.close()
            self._session = None

    def __enter__(self) -> "DraftWriterClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
