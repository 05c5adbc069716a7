"""
Streaming facade - single entry point for chat and image requests.

Routes each request to the adapter registered for the provider's kind.
Adapters are created lazily on first use; tests and alternative
deployments inject their own with register_adapter().

Usage:
    text = await stream_chat_response(history, "Hi", [], provider, on_chunk)
    uri = await generate_image("a lighthouse at dusk", "16:9")
"""

import logging
from typing import TYPE_CHECKING, Optional, Sequence

from chat_studio.config import (
    DEFAULT_ASPECT_RATIO,
    ConversationTurn,
    ProviderDescriptor,
    ProviderKind,
)

if TYPE_CHECKING:
    from chat_studio.adapters.base import ChatAdapter, ChunkCallback, StopCheck
    from chat_studio.adapters.imagen import ImagenAdapter

logger = logging.getLogger(__name__)

_adapters: dict[ProviderKind, "ChatAdapter"] = {}
_image_adapter: Optional["ImagenAdapter"] = None


def _default_adapter(kind: ProviderKind) -> "ChatAdapter":
    if kind == ProviderKind.MANAGED:
        from chat_studio.adapters.gemini import GeminiAdapter
        return GeminiAdapter()
    from chat_studio.adapters.openai_compat import OpenAICompatibleAdapter
    return OpenAICompatibleAdapter()


def register_adapter(kind: ProviderKind, adapter: "ChatAdapter") -> None:
    """Register the adapter that serves every provider of the given kind."""
    _adapters[kind] = adapter


def get_adapter(kind: ProviderKind) -> "ChatAdapter":
    """Return the adapter for kind, creating the default one on first use."""
    if kind not in _adapters:
        _adapters[kind] = _default_adapter(kind)
    return _adapters[kind]


def register_image_adapter(adapter: "ImagenAdapter") -> None:
    global _image_adapter
    _image_adapter = adapter


def get_image_adapter() -> "ImagenAdapter":
    global _image_adapter
    if _image_adapter is None:
        from chat_studio.adapters.imagen import ImagenAdapter
        _image_adapter = ImagenAdapter()
    return _image_adapter


def clear_adapters() -> None:
    """
    Clear all registered adapters.

    Primarily useful for testing to reset state between tests.
    """
    global _image_adapter
    _adapters.clear()
    _image_adapter = None


async def stream_chat_response(
    history: Sequence[ConversationTurn],
    new_text: str,
    new_images: Sequence[str],
    provider: ProviderDescriptor,
    on_chunk: Optional["ChunkCallback"] = None,
    should_stop: Optional["StopCheck"] = None,
) -> str:
    """
    Stream a chat reply from the provider.

    history holds the prior turns only; the new user turn is passed as
    new_text/new_images. on_chunk receives the full accumulated text after
    every chunk. Images are ignored by providers that cannot accept them.

    Returns the final accumulated text.

    Raises ProviderConfigError before any adapter runs if the provider is
    missing settings.
    """
    provider.validate_for_use()
    adapter = get_adapter(provider.kind)
    logger.debug(f"Streaming from {provider.id} ({provider.kind.value}, {provider.model_id})")
    return await adapter.stream(
        history,
        new_text,
        new_images,
        provider,
        on_chunk=on_chunk,
        should_stop=should_stop,
    )


async def generate_image(prompt: str, aspect_ratio: str = DEFAULT_ASPECT_RATIO) -> str:
    """Generate one JPEG on the managed backend; returns a data URI."""
    return await get_image_adapter().generate_image(prompt, aspect_ratio)
