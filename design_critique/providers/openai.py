"""
OpenAI Vision Provider

Implements design critique using OpenAI's vision-capable chat models.
Requests JSON mode, so the message content must be a single JSON object.
"""

from typing import Optional

import openai

from ..errors import CritiqueError
from ..models import MAX_PAYLOAD_BYTES, CompressionSettings, CritiqueResult, PreparedImage
from .base import VisionProvider

OPENAI_PROFILE = CompressionSettings(
    max_width=1200,
    max_height=1600,
    quality=0.8,
    max_size_bytes=MAX_PAYLOAD_BYTES,
    force_opaque_format=False
)


class OpenAIProvider(VisionProvider):
    """
    Vision provider using OpenAI's gpt-4o family.

    OpenAI accepts PNG with transparency, so its profile keeps the source
    format and allows larger dimensions.

    Example:
        provider = OpenAIProvider(api_key="sk-...")
        result = await provider.critique(prepared, context)
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o"
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key (get from https://platform.openai.com/api-keys)
            model: OpenAI model to use (default: gpt-4o)
                   Must be a vision-capable model
        """
        self.client = openai.OpenAI(api_key=api_key)
        self.model = model
        self._api_key = api_key

    @property
    def name(self) -> str:
        """Provider name for identification"""
        return "openai"

    @property
    def compression_profile(self) -> CompressionSettings:
        return OPENAI_PROFILE

    def is_available(self) -> bool:
        """
        Check if OpenAI provider is configured.

        Returns:
            True if API key is set, False otherwise
        """
        return self._api_key is not None and len(self._api_key) > 0

    async def critique(
        self,
        image: PreparedImage,
        context: Optional[dict] = None
    ) -> CritiqueResult:
        """
        Analyze a prepared image using an OpenAI vision model.

        Raises:
            CritiqueError: If the API call fails or the response is invalid
        """
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                max_tokens=2048,
                response_format={"type": "json_object"},
                messages=[{
                    "role": "user",
                    "content": [
                        {
                            "type": "text",
                            "text": self._build_critique_prompt(context)
                        },
                        {
                            "type": "image_url",
                            "image_url": {"url": self._image_url(image)}
                        }
                    ]
                }]
            )
        except openai.OpenAIError as e:
            raise CritiqueError(f"OpenAI API error: {str(e)}") from e

        content = response.choices[0].message.content
        if not content:
            raise CritiqueError("OpenAI response contained no content")

        data = self._loads(content, "OpenAI")
        return self._build_result(data, image, context)

    def _image_url(self, image: PreparedImage) -> str:
        """Public URL when uploaded remotely, otherwise an inline data URL."""
        if image.locator and image.locator.startswith(("http://", "https://")):
            return image.locator
        return image.payload.to_data_url()
