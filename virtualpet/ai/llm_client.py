"""LLM Client — HTTP wrapper for the Gemini generative language API.

Provides a persistent multi-turn chat session and the extraction of plain
text from structured generateContent replies.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
import structlog

from virtualpet.config import Settings

logger = structlog.get_logger()

HARM_CATEGORIES = (
    "HARM_CATEGORY_DANGEROUS_CONTENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_HARASSMENT",
)

NON_TEXT_PLACEHOLDER = "Non-text part found."


def extract_response_text(data: dict[str, Any]) -> str:
    """Extract the reply text from a generateContent response body.

    Only the first candidate is read. A part without a ``text`` field
    (inline data, function calls, ...) is replaced by a placeholder, and
    several parts are joined with newlines.

    Args:
        data: Decoded JSON body returned by the API.

    Returns:
        The reply text, or an empty string if the response has no
        candidates, no content, or no parts.

    Examples:
        >>> extract_response_text({"candidates": []})
        ''
        >>> extract_response_text({"candidates": [{"content": {"parts": [{"text": "Woof"}]}}]})
        'Woof'
    """
    usage = data.get("usageMetadata") or {}
    logger.info(
        "llm_usage",
        cached_content_token_count=usage.get("cachedContentTokenCount", 0),
        prompt_token_count=usage.get("promptTokenCount", 0),
        total_token_count=usage.get("totalTokenCount", 0),
    )

    candidates = data.get("candidates") or []
    if not candidates:
        feedback = data.get("promptFeedback") or {}
        logger.info("llm_no_candidates", block_reason=feedback.get("blockReason"))
        return ""

    content = candidates[0].get("content")
    if not content:
        logger.info("llm_no_content", finish_reason=candidates[0].get("finishReason"))
        return ""

    parts = content.get("parts") or []
    if not parts:
        logger.info("llm_no_parts")
        return ""

    texts = []
    for part in parts:
        text = part.get("text")
        if isinstance(text, str):
            texts.append(text)
        else:
            logger.info("llm_non_text_part", kinds=sorted(part.keys()))
            texts.append(NON_TEXT_PLACEHOLDER)

    if len(texts) > 1:
        logger.debug("llm_multiple_parts", count=len(texts))

    return "\n".join(texts)


class ChatSession:
    """Ordered multi-turn conversation with the model.

    The history only grows: each successful exchange appends the user turn
    and the model turn. A failed request leaves it untouched.
    """

    def __init__(self, client: LLMClient, system_instruction: Optional[str] = None) -> None:
        self.client = client
        self.system_instruction = system_instruction
        self.history: list[dict[str, Any]] = []

    async def send(self, prompt: str) -> str:
        """Send a user message and return the model's reply text.

        Raises:
            httpx.HTTPError: Transport, auth or quota failures, unwrapped.
        """
        user_turn = {"role": "user", "parts": [{"text": prompt}]}

        data = await self.client.generate_content(
            [*self.history, user_turn],
            system_instruction=self.system_instruction,
        )

        candidates = data.get("candidates") or []
        model_turn = candidates[0].get("content") if candidates else None
        if model_turn:
            self.history.append(user_turn)
            self.history.append({"role": "model", **model_turn})

        return extract_response_text(data)


class LLMClient:
    """Async HTTP client for the Gemini API.

    Holds one connection pool for the lifetime of the pet; call close()
    on shutdown.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Initialize the LLM client.

        Args:
            settings: Application settings with the Gemini key, model and thresholds.
            http_client: Optional preconfigured client (used by tests).
        """
        self.settings = settings
        self.base_url = settings.gemini_base_url.rstrip("/")
        self.model = settings.gemini_model_name.removeprefix("models/")
        self.safety_settings = [
            {"category": category, "threshold": settings.gemini_safety_threshold}
            for category in HARM_CATEGORIES
        ]
        self._http = http_client or httpx.AsyncClient(timeout=settings.llm_timeout_sec)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def start_chat(self, system_instruction: Optional[str] = None) -> ChatSession:
        return ChatSession(self, system_instruction=system_instruction)

    async def generate_content(
        self,
        contents: list[dict[str, Any]],
        system_instruction: Optional[str] = None,
    ) -> dict[str, Any]:
        """Call generateContent with the given conversation.

        Args:
            contents: Conversation turns, oldest first.
            system_instruction: Optional instruction applied to the whole conversation.

        Returns:
            Decoded JSON response body.

        Raises:
            httpx.HTTPStatusError: If the API answers with an error status.
            httpx.TransportError: If the API cannot be reached.
        """
        payload: dict[str, Any] = {
            "contents": contents,
            "safetySettings": self.safety_settings,
        }

        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}

        logger.info(
            "llm_request_started",
            model=self.model,
            turns=len(contents),
        )

        response = await self._http.post(
            self.endpoint,
            json=payload,
            headers={"x-goog-api-key": self.settings.gemini_api_key},
        )
        response.raise_for_status()

        data = response.json()

        logger.info(
            "llm_request_completed",
            model=self.model,
            candidates=len(data.get("candidates") or []),
        )

        return data

    async def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._http.aclose()
