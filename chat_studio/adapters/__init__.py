"""
Adapters for chat and image backends.

Provider-agnostic architecture: Protocol defines WHAT, implementations define HOW.
"""

from .base import (
    ChatAdapter,
    ChatStudioError,
    ChunkSemantics,
    ImageGenerationError,
    ProviderConfigError,
    ProviderHTTPError,
    StreamCancelled,
)
from .gemini import GeminiAdapter
from .imagen import ImagenAdapter
from .openai_compat import OpenAICompatibleAdapter

__all__ = [
    "ChatAdapter",
    "ChatStudioError",
    "ChunkSemantics",
    "GeminiAdapter",
    "ImageGenerationError",
    "ImagenAdapter",
    "OpenAICompatibleAdapter",
    "ProviderConfigError",
    "ProviderHTTPError",
    "StreamCancelled",
]
