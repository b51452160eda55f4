"""
Data Models for Design Critique

Type-safe Pydantic models for the compression pipeline, configuration and
the critique returned by vision providers.
"""

import base64
from datetime import datetime
from pathlib import Path
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field

MIB = 1024 * 1024

JPEG = "image/jpeg"
PNG = "image/png"
ACCEPTED_MIME_TYPES = (JPEG, PNG)

# Hard ceiling documented by the vision APIs
MAX_PAYLOAD_BYTES = 5 * MIB


class CompressionSettings(BaseModel):
    """
    Immutable budget for one compression run.

    Attributes:
        max_width: Largest output width in pixels
        max_height: Largest output height in pixels
        quality: Starting lossy quality in (0, 1]
        max_size_bytes: Size ceiling the payload must meet
        force_opaque_format: Always produce an opaque JPEG, flattening any
                             detected transparency onto white
        remove_transparency: Flatten onto white without checking for alpha
        max_attempts: Regular attempts before the emergency pass
    """

    model_config = ConfigDict(frozen=True)

    max_width: int = Field(default=800, ge=1)
    max_height: int = Field(default=1000, ge=1)
    quality: float = Field(default=0.65, gt=0, le=1)
    max_size_bytes: int = Field(default=4 * MIB, gt=0)
    force_opaque_format: bool = True
    remove_transparency: bool = False
    max_attempts: int = Field(default=4, ge=1, le=10)


DEFAULT_SETTINGS = CompressionSettings()


def merge_settings(defaults: CompressionSettings = DEFAULT_SETTINGS, **overrides) -> CompressionSettings:
    """
    Merge caller overrides onto documented defaults.

    Overrides set to None are ignored. The merged settings are validated
    again, so an out-of-range override raises pydantic.ValidationError.

    Example:
        settings = merge_settings(ANTHROPIC_PROFILE, quality=0.5)
    """
    values = defaults.model_dump()
    values.update({key: value for key, value in overrides.items() if value is not None})
    return CompressionSettings(**values)


class CompressionAttempt(BaseModel):
    """One encode inside the convergence loop (reported, never retained)."""

    number: int
    width: int
    height: int
    quality: float
    size: Optional[int] = None
    emergency: bool = False


class EncodedPayload(BaseModel):
    """
    Encoded image ready for transmission.

    Attributes:
        data: Encoded image bytes
        mime: image/jpeg or image/png
        width: Pixel width of the encoded image
        height: Pixel height of the encoded image
        quality: Quality the payload was encoded at
        attempts: Encode attempts it took to produce this payload
    """

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(repr=False)
    mime: str
    width: int = Field(ge=1)
    height: int = Field(ge=1)
    quality: float = 1.0
    attempts: int = 1

    @computed_field
    @property
    def size(self) -> int:
        return len(self.data)

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_data_url(self) -> str:
        from .locators import to_data_url

        return to_data_url(self.data, self.mime)


class PreparedImage(BaseModel):
    """Validated payload plus the durable locator it was uploaded to, if any."""

    payload: EncodedPayload
    locator: Optional[str] = None


class Config(BaseModel):
    """
    Configuration for the design critique tool.

    Loaded from .env file and environment variables.

    Attributes:
        anthropic_api_key: Anthropic API key (optional)
        openai_api_key: OpenAI API key (optional)
        vision_provider: Which provider to use by default
        fetch_timeout: Seconds to wait when fetching a remote locator
        upload_dir: Directory used as durable object store (optional)
        max_input_bytes: Largest source file accepted before decoding
        log_level: Logging level name for the CLI
        viewport_width: Screenshot viewport width
        viewport_height: Screenshot viewport height
    """

    anthropic_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    vision_provider: Literal["anthropic", "openai"] = "anthropic"
    fetch_timeout: float = Field(default=30.0, gt=0)
    upload_dir: Optional[Path] = None
    max_input_bytes: int = Field(default=15 * MIB, gt=0)
    log_level: str = "INFO"
    viewport_width: int = Field(default=1920, ge=320, le=3840)
    viewport_height: int = Field(default=1080, ge=480, le=2160)

    def has_anthropic(self) -> bool:
        """Check if Anthropic is configured"""
        return self.anthropic_api_key is not None and len(self.anthropic_api_key) > 0

    def has_openai(self) -> bool:
        """Check if OpenAI is configured"""
        return self.openai_api_key is not None and len(self.openai_api_key) > 0


class Location(BaseModel):
    """Point on the analyzed image, in percent of width and height."""

    x: float = Field(ge=0, le=100)
    y: float = Field(ge=0, le=100)


class Strength(BaseModel):
    """Something the design does well."""

    type: Literal["positive"] = "positive"
    id: int = 0
    title: str
    description: str
    location: Optional[Location] = None


class Improvement(BaseModel):
    """
    A prioritized design issue with an actionable recommendation.

    Attributes:
        title: Short name of the issue
        priority: How important this issue is to fix
        description: Recommended fix
        location: Where on the image the issue is (optional)
        principle: Design principle the issue violates (optional)
        technical_details: Implementation hint, e.g. CSS (optional)
    """

    type: Literal["improvement"] = "improvement"
    id: int = 0
    title: str
    priority: Literal["high", "medium", "low"] = "medium"
    description: str
    location: Optional[Location] = None
    principle: Optional[str] = None
    technical_details: Optional[str] = None

    def __str__(self) -> str:
        return f"[{self.priority}] {self.title}"


FeedbackItem = Annotated[Union[Strength, Improvement], Field(discriminator="type")]


class CritiqueResult(BaseModel):
    """
    Complete critique of one design image.

    Attributes:
        feedback: Numbered strengths and improvements
        overall_feedback: Summary paragraph from the model
        provider: Which vision provider produced the critique
        timestamp: When this critique was generated
        payload_size: Size in bytes of the image that was sent
        context: Additional context about what was analyzed
    """

    feedback: list[FeedbackItem] = Field(default_factory=list)
    overall_feedback: str = ""
    provider: str = "unknown"
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())
    payload_size: int = 0
    context: dict = Field(default_factory=dict)

    @property
    def strengths(self) -> list[Strength]:
        return [item for item in self.feedback if item.type == "positive"]

    @property
    def improvements(self) -> list[Improvement]:
        return [item for item in self.feedback if item.type == "improvement"]

    @property
    def high_priority(self) -> list[Improvement]:
        """Get only high-priority improvements"""
        return [item for item in self.improvements if item.priority == "high"]

    def summary(self) -> str:
        """Generate a human-readable summary"""
        summary = f"Strengths: {len(self.strengths)}\n"
        summary += f"Issues: {len(self.improvements)} total ({len(self.high_priority)} high priority)\n"
        if self.overall_feedback:
            summary += f"\n{self.overall_feedback}\n"
        return summary
