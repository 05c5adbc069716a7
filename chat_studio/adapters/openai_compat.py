"""
OpenAICompatibleAdapter - streaming chat over the /chat/completions convention.

Covers any backend speaking OpenAI's streaming JSON-over-HTTP format
(DeepSeek, Moonshot/Kimi, self-hosted gateways). Text-only: image
attachments are dropped.
"""

import logging
from typing import Optional, Sequence

import httpx

from chat_studio.adapters.base import (
    ChunkCallback,
    ChunkSemantics,
    ProviderConfigError,
    ProviderHTTPError,
    StopCheck,
    StreamCancelled,
    accumulate,
    emit,
    stop_requested,
)
from chat_studio.adapters.sse import SSELineScanner, parse_sse_line
from chat_studio.config import (
    COMPATIBLE_SYSTEM_PROMPT,
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    ConversationTurn,
    ProviderDescriptor,
    Role,
    get_timeout_seconds,
)

logger = logging.getLogger(__name__)


def build_messages(
    history: Sequence[ConversationTurn],
    new_text: str,
    system_prompt: str = COMPATIBLE_SYSTEM_PROMPT,
) -> list[dict]:
    """Convert prior turns plus the new user turn to OpenAI message format."""
    messages = [{"role": "system", "content": system_prompt}]
    for turn in history:
        role = "assistant" if turn.role == Role.ASSISTANT else "user"
        messages.append({"role": role, "content": turn.text})
    messages.append({"role": "user", "content": new_text})
    return messages


class OpenAICompatibleAdapter:
    """
    OpenAI-compatible implementation of ChatAdapter.

    Deltas are additive: each data line carries only the new fragment.
    """

    chunk_semantics = ChunkSemantics.ADDITIVE

    def __init__(self, timeout_seconds: Optional[float] = None):
        self._timeout = timeout_seconds if timeout_seconds is not None else get_timeout_seconds()

    def build_payload(
        self,
        history: Sequence[ConversationTurn],
        new_text: str,
        provider: ProviderDescriptor,
    ) -> dict:
        return {
            "model": provider.model_id,
            "messages": build_messages(history, new_text),
            "stream": True,
            "temperature": DEFAULT_TEMPERATURE,
            "max_tokens": DEFAULT_MAX_TOKENS,
        }

    async def stream(
        self,
        history: Sequence[ConversationTurn],
        new_text: str,
        new_images: Sequence[str],
        provider: ProviderDescriptor,
        on_chunk: Optional[ChunkCallback] = None,
        should_stop: Optional[StopCheck] = None,
    ) -> str:
        """Stream a completion from {base_url}/chat/completions."""
        if provider.missing_settings():
            raise ProviderConfigError(
                "API Key or Base URL missing for custom provider."
            )

        dropped = len(new_images) + sum(len(turn.images) for turn in history)
        if dropped:
            logger.debug(
                f"Dropping {dropped} image(s) for text-only provider {provider.id}"
            )

        url = f"{provider.base_url.rstrip('/')}/chat/completions"
        headers = {
            "Authorization": f"Bearer {provider.api_key}",
            "Content-Type": "application/json",
        }
        payload = self.build_payload(history, new_text, provider)

        full_text = ""
        scanner = SSELineScanner()

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                async with client.stream(
                    "POST", url, json=payload, headers=headers
                ) as response:
                    if not response.is_success:
                        error_body = (await response.aread()).decode(errors="replace")
                        raise ProviderHTTPError(
                            f"Provider Error ({response.status_code}): {error_body}",
                            status_code=response.status_code,
                            body=error_body,
                        )

                    async for raw in response.aiter_bytes():
                        for line in scanner.feed(raw):
                            content = parse_sse_line(line)
                            if content:
                                full_text = accumulate(
                                    full_text, content, self.chunk_semantics
                                )
                                await emit(on_chunk, full_text)
                        if stop_requested(should_stop):
                            raise StreamCancelled(full_text)

        except ProviderHTTPError as e:
            logger.error(f"OpenAI/Custom chat error for {provider.id}: {e}")
            raise
        except httpx.HTTPError as e:
            logger.error(f"OpenAI/Custom chat error for {provider.id}: {e}")
            raise ProviderHTTPError(
                f"Provider request failed for {provider.id}: {e}"
            ) from e

        if scanner.pending.strip():
            logger.debug(f"Discarding unterminated stream tail: {scanner.pending[:200]}")
        return full_text
