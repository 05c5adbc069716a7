"""
UI helper constants and functions for chat-studio.

Separates CSS and rendering utilities from ui.py for cleaner organization.
"""

import base64
import io
from typing import Iterable, Optional, Union

from PIL import Image

from chat_studio.config import ConversationTurn, ProviderDescriptor, Role

# ─────────────────────────────────────────────────────────────────────
# CSS
# ─────────────────────────────────────────────────────────────────────

CUSTOM_CSS = """
/* Chat transcript */
#chat-transcript {
    min-height: 480px;
}
#chat-transcript .message.error {
    border-left: 4px solid #ef4444 !important;
}

/* Settings table */
#providers-table table {
    font-size: 14px;
}

/* Generated image */
#generated-image img {
    max-height: 640px;
    object-fit: contain;
}
"""

ERROR_MARKER = "⚠️"
IMAGE_MARKER = "🖼️"
STREAMING_PLACEHOLDER = "..."


# ─────────────────────────────────────────────────────────────────────
# IMAGES
# ─────────────────────────────────────────────────────────────────────

def encode_image_to_base64(source: Union[str, Image.Image], quality: int = 90) -> str:
    """Encode an image file or PIL image as a base64 JPEG payload (no data-URI prefix)."""
    image = Image.open(source) if isinstance(source, str) else source
    if image.mode != "RGB":
        image = image.convert("RGB")
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=quality)
    return base64.b64encode(buffer.getvalue()).decode("ascii")


def decode_data_uri(data_uri: str) -> bytes:
    """Return the raw bytes of a base64 data URI."""
    _, _, payload = data_uri.partition(",")
    return base64.b64decode(payload)


def data_uri_to_image(data_uri: str) -> Image.Image:
    return Image.open(io.BytesIO(decode_data_uri(data_uri)))


# ─────────────────────────────────────────────────────────────────────
# CHAT RENDERING
# ─────────────────────────────────────────────────────────────────────

def format_turn(turn: ConversationTurn) -> dict:
    """Convert a turn to a Gradio messages-format chat entry."""
    text = turn.text
    if turn.role == Role.USER:
        if turn.images:
            text = f"{IMAGE_MARKER} ×{len(turn.images)}\n\n{text}".rstrip()
        return {"role": "user", "content": text}
    if turn.is_error:
        text = f"{ERROR_MARKER} {text}"
    return {"role": "assistant", "content": text}


def to_chatbot_messages(
    history: Iterable[ConversationTurn],
    in_progress: Optional[str] = None,
) -> list[dict]:
    """Render history, plus the streaming reply when one is in progress."""
    messages = [format_turn(turn) for turn in history if turn.role != Role.SYSTEM]
    if in_progress is not None:
        messages.append({
            "role": "assistant",
            "content": in_progress or STREAMING_PLACEHOLDER,
        })
    return messages


def message_placeholder(provider: ProviderDescriptor) -> str:
    if provider.supports_images:
        return "Type a message..."
    return "Type a message (images not supported by this provider)..."


def providers_table(providers: Iterable[ProviderDescriptor]) -> list[list[str]]:
    """Rows for the Settings tab provider table."""
    rows = []
    for p in providers:
        if p.is_system:
            key_status = "System key"
        elif p.api_key:
            key_status = "✅ Configured"
        else:
            key_status = "❌ Missing key"
        rows.append([p.id, p.name, p.kind.value, p.model_id, p.base_url or "", key_status])
    return rows


PROVIDERS_TABLE_HEADERS = ["ID", "Name", "Kind", "Model", "Base URL", "Key"]
