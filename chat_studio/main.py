"""
Gradio application entry point for chat-studio.

CLI commands:
    chat-studio          - Launch the Gradio UI
    chat-studio-cli      - Headless chat / image commands (see cli.py)
"""

import logging

import gradio as gr
from dotenv import load_dotenv

from chat_studio import state
from chat_studio.config import get_gradio_port
from chat_studio.providers import load_providers
from chat_studio.ui import create_app
from chat_studio.ui_helpers import CUSTOM_CSS

logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()


def run():
    """Entry point for the application."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    state.registry = load_providers()
    logger.info(f"Loaded {len(state.registry)} providers")

    app = create_app()
    port = get_gradio_port()

    # Gradio 6.x moved theme/css from Blocks() to launch()
    # Gradio 5.x had them on Blocks() - detect and adapt
    import inspect
    launch_params = inspect.signature(gr.Blocks.launch).parameters

    launch_kwargs = {
        "server_name": "0.0.0.0",  # Allow external connections
        "server_port": port,
        "share": False,
    }

    # Add theme/css only if launch() accepts them (Gradio 6+)
    if "theme" in launch_params:
        launch_kwargs["theme"] = gr.themes.Soft()
        launch_kwargs["css"] = CUSTOM_CSS

    app.launch(**launch_kwargs)


if __name__ == "__main__":
    run()
