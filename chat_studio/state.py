"""
Global state for the chat-studio application.

This module holds mutable state that is shared across handlers and UI.
Keeping it separate avoids circular import issues.
"""

from typing import Optional

from chat_studio.providers import ProviderRegistry
from chat_studio.session import ChatSession


# These will be initialized when the app starts
registry: ProviderRegistry = ProviderRegistry()
active_provider_id: Optional[str] = None
session: ChatSession = ChatSession()

# Cancellation flag - checked by streaming adapters after every chunk
stop_requested: bool = False


def request_stop():
    """Signal that the current operation should stop."""
    global stop_requested
    stop_requested = True


def clear_stop():
    """Clear the stop flag (call at start of new operation)."""
    global stop_requested
    stop_requested = False


def should_stop() -> bool:
    """Check if stop was requested."""
    return stop_requested
