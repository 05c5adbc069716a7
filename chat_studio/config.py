"""
Configuration constants and Pydantic models for chat-studio.
"""

import os
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ─────────────────────────────────────────────────────────────────────
# DEFAULTS
# ─────────────────────────────────────────────────────────────────────

DEFAULT_TEMPERATURE: float = 0.7
DEFAULT_MAX_TOKENS: int = 4000
DEFAULT_TIMEOUT_SECONDS: int = 120

MANAGED_SYSTEM_PROMPT: str = (
    "You are a helpful, professional AI assistant in a studio application. "
    "Use Markdown for formatting."
)
COMPATIBLE_SYSTEM_PROMPT: str = (
    "You are a helpful, professional AI assistant. Output in Markdown."
)


# ─────────────────────────────────────────────────────────────────────
# IMAGE GENERATION
# ─────────────────────────────────────────────────────────────────────

IMAGEN_MODEL: str = "imagen-4.0-generate-001"
IMAGE_MIME_TYPE: str = "image/jpeg"

# Label -> aspect ratio passed through to the backend as-is
ASPECT_RATIOS: dict[str, str] = {
    "Square (1:1)": "1:1",
    "Landscape (16:9)": "16:9",
    "Portrait (9:16)": "9:16",
    "Frame (3:4)": "3:4",
}
DEFAULT_ASPECT_RATIO: str = "1:1"


# ─────────────────────────────────────────────────────────────────────
# ENVIRONMENT LOADING
# ─────────────────────────────────────────────────────────────────────

def get_managed_api_key() -> Optional[str]:
    """
    Get the Gemini API key for system-managed providers.

    Reads GEMINI_API_KEY, falling back to API_KEY. Empty values count as unset.
    """
    for key in ("GEMINI_API_KEY", "API_KEY"):
        value = os.environ.get(key, "").strip()
        if value:
            return value
    return None


def get_timeout_seconds() -> int:
    """
    Get HTTP timeout for OpenAI-compatible providers.

    Set CHAT_STUDIO_TIMEOUT in .env (default: 120).
    """
    try:
        return int(os.environ.get("CHAT_STUDIO_TIMEOUT", str(DEFAULT_TIMEOUT_SECONDS)))
    except ValueError:
        return DEFAULT_TIMEOUT_SECONDS


def get_providers_file() -> Path:
    """
    Get the path of the persisted provider list.

    Returns CHAT_STUDIO_PROVIDERS_FILE if set, else ~/.chat-studio/providers.json.
    """
    path = os.environ.get("CHAT_STUDIO_PROVIDERS_FILE")
    if path:
        return Path(path)
    return Path.home() / ".chat-studio" / "providers.json"


def get_gradio_port() -> int:
    """
    Get Gradio server port from environment or default.

    Returns port from GRADIO_PORT env var, or 7860 as default.
    """
    port_str = os.environ.get("GRADIO_PORT", "7860")
    try:
        return int(port_str)
    except ValueError:
        return 7860


# ─────────────────────────────────────────────────────────────────────
# DATA MODELS
# ─────────────────────────────────────────────────────────────────────

class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ConversationTurn(BaseModel):
    """A single turn in a conversation.

    Images are base64-encoded JPEG payloads without a data-URI prefix.
    Turns are frozen once created; the in-progress assistant reply lives
    on the ChatSession until it completes.
    """
    model_config = ConfigDict(frozen=True)

    role: Role
    text: str = ""
    images: list[str] = Field(default_factory=list)
    is_error: bool = False

    def has_images(self) -> bool:
        return bool(self.images)


class ProviderKind(str, Enum):
    MANAGED = "managed"
    OPENAI_COMPATIBLE = "openai-compatible"


class ProviderDescriptor(BaseModel):
    """A configured chat backend.

    System-managed providers take their credentials from the environment;
    every other provider needs its own api_key. OpenAI-compatible providers
    also need a base_url.
    """
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    id: str
    name: str
    kind: ProviderKind
    model_id: str
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    is_system: bool = False

    @property
    def supports_images(self) -> bool:
        return self.kind == ProviderKind.MANAGED

    def missing_settings(self) -> list[str]:
        """Return the names of settings that must be filled in before use."""
        missing = []
        if not self.is_system and not (self.api_key or "").strip():
            missing.append("api_key")
        if self.kind == ProviderKind.OPENAI_COMPATIBLE and not (self.base_url or "").strip():
            missing.append("base_url")
        return missing

    def is_configured(self) -> bool:
        return not self.missing_settings()

    def validate_for_use(self) -> None:
        """Raise ProviderConfigError if the provider cannot be used yet."""
        missing = self.missing_settings()
        if missing:
            from chat_studio.adapters.base import ProviderConfigError
            raise ProviderConfigError(
                f"Provider '{self.name}' is missing {', '.join(missing)}. "
                "Configure it in Settings."
            )
