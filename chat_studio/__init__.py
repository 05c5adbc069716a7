"""chat-studio: streaming multi-provider chat and image generation."""

__version__ = "0.1.0"
