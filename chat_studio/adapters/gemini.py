"""
GeminiAdapter - managed-provider implementation of ChatAdapter.

Uses the google-genai SDK chat session API. Credentials come from the
hosting environment (GEMINI_API_KEY / API_KEY) unless the provider
carries its own key.
"""

import base64
import logging
from typing import Any, Callable, Optional, Sequence

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from chat_studio.adapters.base import (
    ChatStudioError,
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
from chat_studio.config import (
    DEFAULT_TEMPERATURE,
    IMAGE_MIME_TYPE,
    MANAGED_SYSTEM_PROMPT,
    ConversationTurn,
    ProviderDescriptor,
    Role,
    get_managed_api_key,
)

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], Any]


def make_client(api_key: str) -> genai.Client:
    return genai.Client(api_key=api_key)


def resolve_api_key(provider: Optional[ProviderDescriptor] = None) -> str:
    """
    Provider key if set, otherwise the system key from the environment.

    Only system providers (or calls with no provider, like image generation)
    may use the environment key.
    """
    own_key = ((provider.api_key if provider else None) or "").strip()
    if own_key:
        return own_key
    if provider is not None and not provider.is_system:
        raise ProviderConfigError(f"API key missing for provider '{provider.name}'.")
    api_key = get_managed_api_key()
    if not api_key:
        raise ProviderConfigError("System API key missing.")
    return api_key


def wrap_sdk_error(e: Exception, context: str) -> ProviderHTTPError:
    """Convert an SDK or transport exception to ProviderHTTPError."""
    if isinstance(e, genai_errors.APIError):
        return ProviderHTTPError(
            f"{context} ({e.code}): {e.message}",
            status_code=e.code,
            body=str(e),
        )
    if isinstance(e, httpx.TimeoutException):
        return ProviderHTTPError(f"{context}: request timed out: {e}")
    return ProviderHTTPError(f"{context}: {e}")


def build_parts(text: str, images: Sequence[str]) -> list[types.Part]:
    """Text part first, then one inline JPEG part per image."""
    parts = [types.Part(text=text)]
    for image in images:
        parts.append(
            types.Part.from_bytes(data=base64.b64decode(image), mime_type=IMAGE_MIME_TYPE)
        )
    return parts


def build_history(history: Sequence[ConversationTurn]) -> list[types.Content]:
    """Project prior turns to SDK contents. Non-user roles become 'model'."""
    return [
        types.Content(
            role="user" if turn.role == Role.USER else "model",
            parts=build_parts(turn.text, turn.images),
        )
        for turn in history
    ]


class GeminiAdapter:
    """
    Gemini implementation of ChatAdapter.

    Each streamed chunk's text is treated as the reply so far and replaces
    the running total.
    """

    chunk_semantics = ChunkSemantics.CUMULATIVE

    def __init__(
        self,
        client_factory: Optional[ClientFactory] = None,
        system_prompt: str = MANAGED_SYSTEM_PROMPT,
    ):
        self._client_factory = client_factory or make_client
        self.system_prompt = system_prompt

    async def stream(
        self,
        history: Sequence[ConversationTurn],
        new_text: str,
        new_images: Sequence[str],
        provider: ProviderDescriptor,
        on_chunk: Optional[ChunkCallback] = None,
        should_stop: Optional[StopCheck] = None,
    ) -> str:
        """Open a chat session on the prior turns and stream the reply."""
        provider.validate_for_use()
        client = self._client_factory(resolve_api_key(provider))

        parts = build_parts(new_text, new_images)
        message = new_text if len(parts) == 1 else parts

        response_text = ""
        try:
            chat = client.aio.chats.create(
                model=provider.model_id,
                history=build_history(history),
                config=types.GenerateContentConfig(
                    temperature=DEFAULT_TEMPERATURE,
                    system_instruction=self.system_prompt,
                ),
            )
            async for chunk in await chat.send_message_stream(message):
                text = chunk.text
                if text:
                    response_text = accumulate(response_text, text, self.chunk_semantics)
                    await emit(on_chunk, response_text)
                if stop_requested(should_stop):
                    raise StreamCancelled(response_text)
        except ChatStudioError:
            raise
        except Exception as e:
            # SDK APIError, httpx transport errors and anything else the SDK raises
            logger.error(f"Gemini chat error for {provider.model_id}: {e}")
            raise wrap_sdk_error(e, f"Gemini error for {provider.model_id}") from e

        return response_text
