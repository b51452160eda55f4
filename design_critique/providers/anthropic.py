"""
Anthropic Claude Vision Provider

Implements design critique using Claude's vision capabilities.
Claude answers in free text, so the JSON object is extracted from the
message (optionally fenced in a markdown code block).
"""

from typing import Optional

import anthropic

from ..errors import CritiqueError
from ..models import MIB, CompressionSettings, CritiqueResult, PreparedImage
from .base import VisionProvider

ANTHROPIC_PROFILE = CompressionSettings(
    max_width=800,
    max_height=1000,
    quality=0.65,
    max_size_bytes=4 * MIB,
    force_opaque_format=True
)


class AnthropicProvider(VisionProvider):
    """
    Vision provider using Anthropic's Claude models.

    Claude rejects transparent images inconsistently, so its profile always
    flattens onto white and sends JPEG, with headroom under the 5MB limit.

    Example:
        provider = AnthropicProvider(api_key="sk-ant-...")
        result = await provider.critique(prepared, context)
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-sonnet-20241022"
    ):
        """
        Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key (get from https://console.anthropic.com/)
            model: Claude model to use (default: claude-3-5-sonnet-20241022)
                   Must be a vision-capable model (Claude 3+)
        """
        self.client = anthropic.Anthropic(api_key=api_key)
        self.model = model
        self._api_key = api_key

    @property
    def name(self) -> str:
        """Provider name for identification"""
        return "anthropic"

    @property
    def compression_profile(self) -> CompressionSettings:
        return ANTHROPIC_PROFILE

    def is_available(self) -> bool:
        """
        Check if Anthropic provider is configured.

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
        Analyze a prepared image using a Claude vision model.

        Raises:
            CritiqueError: If the API call fails or the response is invalid
        """
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=2048,
                messages=[{
                    "role": "user",
                    "content": [
                        self._image_block(image),
                        {
                            "type": "text",
                            "text": self._build_critique_prompt(context)
                        }
                    ]
                }]
            )
        except anthropic.APIError as e:
            raise CritiqueError(f"Anthropic API error: {str(e)}") from e

        text_blocks = [block.text for block in response.content if block.type == "text"]
        if not text_blocks:
            raise CritiqueError("Anthropic response contained no text")

        data = self._loads(self._extract_json(text_blocks[0]), "Claude")
        return self._build_result(data, image, context)

    def _image_block(self, image: PreparedImage) -> dict:
        """Image content block: public URL when uploaded remotely, else base64."""
        if image.locator and image.locator.startswith(("http://", "https://")):
            return {
                "type": "image",
                "source": {"type": "url", "url": image.locator}
            }
        return {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": image.payload.mime,
                "data": image.payload.to_base64()
            }
        }

    def _extract_json(self, response_text: str) -> str:
        """
        Extract the JSON text from a Claude answer.

        Handles both direct JSON and JSON embedded in markdown code blocks.
        """
        if "```json" in response_text:
            start = response_text.find("```json") + 7
            end = response_text.find("```", start)
            return response_text[start:end].strip()
        elif "```" in response_text:
            start = response_text.find("```") + 3
            end = response_text.find("```", start)
            return response_text[start:end].strip()
        return response_text.strip()
