"""
Gradio event handlers for chat-studio.

Handlers read and replace the shared state in chat_studio.state and talk
to backends only through ChatSession and the streaming facade.
"""

import asyncio
import logging
from typing import Optional

import gradio as gr

from chat_studio import state
from chat_studio.config import ASPECT_RATIOS, DEFAULT_ASPECT_RATIO, ProviderDescriptor, ProviderKind
from chat_studio.providers import save_providers
from chat_studio.streaming import generate_image
from chat_studio.ui_helpers import (
    data_uri_to_image,
    encode_image_to_base64,
    message_placeholder,
    providers_table,
    to_chatbot_messages,
)

logger = logging.getLogger(__name__)

IMAGE_FAILED_NOTICE = "❌ Image generation failed, please try again later."


def _active_provider() -> ProviderDescriptor:
    return state.registry.resolve(state.active_provider_id)


def _render_chat() -> list[dict]:
    return to_chatbot_messages(state.session.history, state.session.in_progress)


# ─────────────────────────────────────────────────────────────────────
# CHAT TAB
# ─────────────────────────────────────────────────────────────────────

def handle_stop():
    """Handle Stop button click - signal cancellation."""
    state.request_stop()
    return "🛑 Stop requested..."


def select_provider(provider_id: str):
    """Switch the active provider. Image upload is only offered where supported."""
    provider = state.registry.resolve(provider_id)
    state.active_provider_id = provider.id

    status = f"Using {provider.name}"
    if not provider.is_configured():
        status = f"⚠️ {provider.name} needs an API key. Configure it in the Settings tab."

    return (
        status,
        gr.update(placeholder=message_placeholder(provider)),
        gr.update(interactive=provider.supports_images, value=None),
    )


def clear_chat():
    """Clear the conversation. Returns (status, chatbot)."""
    state.session.clear()
    return "🗑️ Conversation cleared.", []


async def send_message(message: str, image_files: Optional[list] = None):
    """Send a message to the active provider with streaming output.

    Yields (status, chatbot_messages, message_box, image_files).
    """
    provider = _active_provider()
    message = message or ""
    image_files = image_files or []

    if not message.strip() and not image_files:
        yield "❌ Empty message", _render_chat(), gr.update(), gr.update()
        return

    if not provider.is_configured():
        yield (
            f"❌ {provider.name} is missing {', '.join(provider.missing_settings())}. "
            "Configure it in the Settings tab.",
            _render_chat(),
            gr.update(),
            gr.update(),
        )
        return

    images = []
    if provider.supports_images:
        try:
            images = [encode_image_to_base64(getattr(f, "name", f)) for f in image_files]
        except OSError as e:
            yield f"❌ Could not read image: {e}", _render_chat(), gr.update(), gr.update()
            return

    state.clear_stop()
    task = asyncio.create_task(
        state.session.send(message, images, provider, should_stop=state.should_stop)
    )

    # Clear the inputs right away, then poll the in-progress reply
    yield f"⏳ {provider.name} is responding...", _render_chat(), "", None
    while not task.done():
        await asyncio.wait({task}, timeout=0.1)
        yield f"⏳ {provider.name} is responding...", _render_chat(), gr.update(), gr.update()

    turn = task.result()
    if turn.is_error:
        status = f"⚠️ {provider.name} failed"
    elif state.should_stop():
        status = "🛑 Stopped"
    else:
        status = "✅ Done"
    yield status, _render_chat(), gr.update(), gr.update()


# ─────────────────────────────────────────────────────────────────────
# IMAGE TAB
# ─────────────────────────────────────────────────────────────────────

async def generate_image_handler(prompt: str, aspect_label: str):
    """Generate an image. Returns (image, status)."""
    if not prompt or not prompt.strip():
        return None, "❌ Describe the image you want first"

    aspect_ratio = ASPECT_RATIOS.get(aspect_label, aspect_label or DEFAULT_ASPECT_RATIO)
    try:
        data_uri = await generate_image(prompt.strip(), aspect_ratio)
    except Exception as e:
        logger.error(f"Image generation failed: {e}")
        return None, IMAGE_FAILED_NOTICE

    return data_uri_to_image(data_uri), "✅ Image generated"


# ─────────────────────────────────────────────────────────────────────
# SETTINGS TAB
# ─────────────────────────────────────────────────────────────────────

def _settings_outputs(status: str, selected_id: Optional[str] = None):
    """(status, providers_table, settings_dropdown, chat_dropdown)"""
    choices = state.registry.choices()
    active = _active_provider()
    return (
        status,
        providers_table(state.registry),
        gr.update(choices=choices, value=selected_id),
        gr.update(choices=choices, value=active.id),
    )


def load_provider(provider_id: str):
    """Fill the editor from a provider. Returns (id, name, base_url, api_key, model_id)."""
    provider = state.registry.get(provider_id) if provider_id else None
    if provider is None:
        return "", "", "", "", ""
    return (
        provider.id,
        provider.name,
        provider.base_url or "",
        provider.api_key or "",
        provider.model_id,
    )


def save_provider(provider_id: str, name: str, base_url: str, api_key: str, model_id: str):
    """Create or update an OpenAI-compatible provider and persist the list."""
    provider_id = (provider_id or "").strip()
    name = (name or "").strip() or provider_id
    model_id = (model_id or "").strip()

    if not provider_id or not model_id:
        return _settings_outputs("❌ ID and model are required", provider_id or None)

    existing = state.registry.get(provider_id)
    if existing is not None and existing.is_system:
        return _settings_outputs(
            f"❌ Built-in provider '{existing.name}' cannot be edited", provider_id
        )

    provider = ProviderDescriptor(
        id=provider_id,
        name=name,
        kind=ProviderKind.OPENAI_COMPATIBLE,
        base_url=(base_url or "").strip() or None,
        api_key=(api_key or "").strip() or None,
        model_id=model_id,
    )
    state.registry = state.registry.upsert(provider)

    try:
        path = save_providers(state.registry)
    except OSError as e:
        logger.error(f"Could not save providers: {e}")
        return _settings_outputs(f"⚠️ Saved for this session only: {e}", provider_id)

    missing = provider.missing_settings()
    status = f"✅ Saved {provider.name} to {path}"
    if missing:
        status += f" (still missing {', '.join(missing)})"
    return _settings_outputs(status, provider_id)


def delete_provider(provider_id: str):
    """Remove a user provider and persist the list."""
    if not provider_id:
        return _settings_outputs("❌ Select a provider to delete")
    try:
        state.registry = state.registry.remove(provider_id)
    except KeyError:
        return _settings_outputs(f"❌ Unknown provider: {provider_id}")
    except ValueError as e:
        return _settings_outputs(f"❌ {e}", provider_id)

    if state.active_provider_id == provider_id:
        state.active_provider_id = None

    try:
        save_providers(state.registry)
    except OSError as e:
        logger.error(f"Could not save providers: {e}")
        return _settings_outputs(f"⚠️ Deleted for this session only: {e}")
    return _settings_outputs(f"🗑️ Deleted {provider_id}")
