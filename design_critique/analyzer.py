"""
Design Analyzer Orchestrator

Coordinates image preparation, the final boundary check and the vision
provider call to produce a critique of one design image.
"""

import asyncio
import logging
from typing import Optional

from .capture import ScreenshotCapturer
from .models import Config, CompressionSettings, CritiqueResult, PreparedImage
from .preparation import ImageReference, prepare_image
from .providers.base import VisionProvider
from .storage import ObjectStore, TransientObjectStore
from .validation import validate_payload, verify_locator

logger = logging.getLogger(__name__)


class DesignAnalyzer:
    """
    Orchestrates the complete design critique workflow.

    Coordinates:
    1. Image preparation (compression under the provider's budget)
    2. Optional upload to an object store
    3. Final size/format check right before hand-off
    4. Vision model analysis

    Example:
        config = load_config()
        provider = get_provider("anthropic", config)
        analyzer = DesignAnalyzer(provider, config)

        result = await analyzer.analyze(Path("design.png"))
        print(result.summary())
    """

    def __init__(
        self,
        provider: VisionProvider,
        config: Config,
        store: Optional[ObjectStore] = None,
        transient_store: Optional[TransientObjectStore] = None
    ):
        """
        Initialize design analyzer.

        Args:
            provider: Configured vision provider (Anthropic/OpenAI)
            config: Configuration with timeouts, limits and viewport
            store: Object store for durable payload locators (optional)
            transient_store: Store that issued blob: references (optional)
        """
        self.provider = provider
        self.config = config
        self.store = store
        self.transient_store = transient_store
        self.capturer = ScreenshotCapturer(
            viewport={
                "width": config.viewport_width,
                "height": config.viewport_height
            }
        )

    async def prepare(
        self,
        reference: ImageReference,
        settings: Optional[CompressionSettings] = None,
        release_reference: bool = False
    ) -> PreparedImage:
        """
        Compress and validate an image under the provider's profile.

        Compression is CPU-bound, so it runs in a worker thread.
        """
        return await asyncio.to_thread(
            prepare_image,
            reference,
            settings or self.provider.compression_profile,
            store=self.store,
            transient_store=self.transient_store,
            timeout=self.config.fetch_timeout,
            max_input_bytes=self.config.max_input_bytes,
            max_payload_bytes=self.provider.max_payload_bytes,
            release_reference=release_reference
        )

    def ensure_deliverable(self, image: PreparedImage) -> None:
        """
        Final boundary check performed immediately before the provider call.

        Raises:
            PayloadTooLarge, UnsupportedFormat, PayloadFetchError
        """
        limit = self.provider.max_payload_bytes
        validate_payload(image.payload, max_size_bytes=limit)
        if image.locator:
            verify_locator(
                image.locator,
                max_size_bytes=limit,
                timeout=self.config.fetch_timeout,
                transient_store=self.store if isinstance(self.store, TransientObjectStore) else None
            )

    async def analyze(
        self,
        reference: ImageReference,
        context: Optional[dict] = None,
        settings: Optional[CompressionSettings] = None,
        release_reference: bool = False
    ) -> CritiqueResult:
        """
        Perform a complete critique of one design image.

        Args:
            reference: Bytes, Path or locator of the design
            context: Optional context passed to the vision model
            settings: Compression budget overriding the provider profile
            release_reference: Revoke a blob: reference once read

        Returns:
            CritiqueResult with strengths and prioritized issues

        Raises:
            ImagePipelineError subclasses for preparation and delivery
            failures, CritiqueError for provider failures
        """
        image = await self.prepare(reference, settings, release_reference)
        try:
            await asyncio.to_thread(self.ensure_deliverable, image)
            logger.info(
                "Sending %dKB %s to %s",
                round(image.payload.size / 1024), image.payload.mime, self.provider.name
            )
            return await self.provider.critique(image, context)
        finally:
            # a blob: locator only exists for this hand-off
            if image.locator and isinstance(self.store, TransientObjectStore):
                self.store.release(image.locator)

    async def analyze_url(
        self,
        url: str,
        wait_for: Optional[str] = None,
        context: Optional[dict] = None
    ) -> CritiqueResult:
        """
        Capture a web page and critique the screenshot.

        Example:
            result = await analyzer.analyze_url("https://example.com")
        """
        png = await self.capturer.capture(url, wait_for=wait_for)
        ctx = {"project_name": url, **(context or {})}
        return await self.analyze(png, ctx)
