"""
ChatAdapter Protocol - defines the contract for chat streaming backends.

This is the WHAT (interface), not the HOW (implementation).
See gemini.py and openai_compat.py for concrete implementations.
"""

import inspect
from enum import Enum
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Protocol, Sequence, Union

if TYPE_CHECKING:
    from chat_studio.config import ConversationTurn, ProviderDescriptor


ChunkCallback = Callable[[str], Union[None, Awaitable[None]]]
StopCheck = Callable[[], bool]


# ─────────────────────────────────────────────────────────────────────
# ERRORS
# ─────────────────────────────────────────────────────────────────────

class ChatStudioError(Exception):
    """Base class for chat-studio errors."""
    pass


class ProviderConfigError(ChatStudioError, ValueError):
    """Provider is missing a credential or URL. Raised before any network call."""
    pass


class ProviderHTTPError(ChatStudioError):
    """Non-success HTTP status or network failure from a provider."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class StreamCancelled(ChatStudioError):
    """Stream stopped on request. Carries the text received before stopping."""

    def __init__(self, partial_text: str = ""):
        super().__init__("Stream cancelled")
        self.partial_text = partial_text


class ImageGenerationError(ChatStudioError):
    """Image backend returned no image."""
    pass


# ─────────────────────────────────────────────────────────────────────
# CHUNK ACCUMULATION
# ─────────────────────────────────────────────────────────────────────

class ChunkSemantics(str, Enum):
    """How a provider's streamed text relates to the text already received.

    CUMULATIVE: each chunk carries the full text so far and replaces it.
    ADDITIVE: each chunk carries only the new fragment and is appended.
    """
    CUMULATIVE = "cumulative"
    ADDITIVE = "additive"


def accumulate(current: str, chunk: str, semantics: ChunkSemantics) -> str:
    """Fold one received chunk into the running text."""
    if semantics == ChunkSemantics.CUMULATIVE:
        return chunk
    return current + chunk


async def emit(on_chunk: Optional[ChunkCallback], text: str) -> None:
    """Invoke a sync or async chunk callback with the accumulated text."""
    if on_chunk is None:
        return
    result = on_chunk(text)
    if inspect.isawaitable(result):
        await result


def stop_requested(should_stop: Optional[StopCheck]) -> bool:
    return should_stop is not None and should_stop()


# ─────────────────────────────────────────────────────────────────────
# PROTOCOL
# ─────────────────────────────────────────────────────────────────────

class ChatAdapter(Protocol):
    """
    Contract for chat streaming backends.

    Implementations must provide:
    - chunk_semantics: how streamed text is folded into the result
    - stream: the streaming chat call
    """

    chunk_semantics: ChunkSemantics

    async def stream(
        self,
        history: Sequence["ConversationTurn"],
        new_text: str,
        new_images: Sequence[str],
        provider: "ProviderDescriptor",
        on_chunk: Optional[ChunkCallback] = None,
        should_stop: Optional[StopCheck] = None,
    ) -> str:
        """
        Stream a reply to new_text given the prior turns in history.

        Args:
            history: Prior turns, not including the new user turn
            new_text: Text of the new user turn
            new_images: Base64 JPEG payloads attached to the new turn
            provider: Provider to send the request to
            on_chunk: Called with the accumulated text after every chunk
            should_stop: Checked after every received chunk

        Returns:
            The final accumulated text

        Raises:
            ProviderConfigError: provider is missing settings (no network call made)
            StreamCancelled: should_stop returned True
            Exception on transport error (fail loudly, no retry)
        """
        ...
