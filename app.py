"""HuggingFace Spaces entry point for chat-studio."""

import logging

from dotenv import load_dotenv

load_dotenv()

from chat_studio import state
from chat_studio.config import get_managed_api_key
from chat_studio.providers import load_providers
from chat_studio.ui import create_app

logging.basicConfig(level=logging.INFO, format="%(name)s %(message)s")
logging.getLogger(__name__).info(f"[startup] managed API key set: {bool(get_managed_api_key())}")

state.registry = load_providers()
demo = create_app()

if __name__ == "__main__":
    demo.launch()
