"""
ImagenAdapter - image generation on the managed backend.

Always routed to Gemini Imagen regardless of the active chat provider.
"""

import base64
import logging
from typing import Optional

from google.genai import types

from chat_studio.adapters.base import ChatStudioError, ImageGenerationError
from chat_studio.adapters.gemini import ClientFactory, make_client, resolve_api_key, wrap_sdk_error
from chat_studio.config import DEFAULT_ASPECT_RATIO, IMAGE_MIME_TYPE, IMAGEN_MODEL

logger = logging.getLogger(__name__)


def to_data_uri(image_bytes: bytes, mime_type: str = IMAGE_MIME_TYPE) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(image_bytes).decode('ascii')}"


class ImagenAdapter:
    """Generates a single JPEG per prompt and returns it as a data URI."""

    def __init__(
        self,
        client_factory: Optional[ClientFactory] = None,
        model: str = IMAGEN_MODEL,
    ):
        self._client_factory = client_factory or make_client
        self.model = model

    async def generate_image(self, prompt: str, aspect_ratio: str = DEFAULT_ASPECT_RATIO) -> str:
        """
        Generate one image for prompt.

        The aspect ratio is passed through uninterpreted; an invalid value
        is reported by the backend.

        Raises:
            ValueError: empty prompt
            ProviderConfigError: no system API key
            ProviderHTTPError: the backend call failed
            ImageGenerationError: backend returned no image
        """
        if not prompt or not prompt.strip():
            raise ValueError("Image prompt is empty")

        client = self._client_factory(resolve_api_key())
        try:
            response = await client.aio.models.generate_images(
                model=self.model,
                prompt=prompt,
                config=types.GenerateImagesConfig(
                    number_of_images=1,
                    output_mime_type=IMAGE_MIME_TYPE,
                    aspect_ratio=aspect_ratio,
                ),
            )
        except ChatStudioError:
            raise
        except Exception as e:
            logger.error(f"Image generation error: {e}")
            raise wrap_sdk_error(e, "Image generation failed") from e

        image_bytes = None
        if response.generated_images:
            image = response.generated_images[0].image
            image_bytes = image.image_bytes if image else None
        if not image_bytes:
            logger.error(f"Image generation returned no image for prompt: {prompt[:80]}")
            raise ImageGenerationError("No image generated")

        return to_data_uri(image_bytes)
