"""
Base Vision Provider Interface

Abstract base class defining the contract for vision model providers.
Providers only ever receive payloads that passed the final size/format
check, and parse their model's answer into a CritiqueResult at the
API boundary.
"""

import json
from abc import ABC, abstractmethod
from typing import Literal, Optional

from pydantic import BaseModel, ValidationError

from ..errors import CritiqueError
from ..models import (
    MAX_PAYLOAD_BYTES,
    CompressionSettings,
    CritiqueResult,
    Improvement,
    Location,
    PreparedImage,
    Strength,
)


class StrengthResponse(BaseModel):
    title: str
    description: str
    location: Optional[Location] = None


class IssueResponse(BaseModel):
    issue: str
    priority: Literal["high", "medium", "low"] = "medium"
    recommendation: str
    location: Optional[Location] = None
    principle: Optional[str] = None
    technical_details: Optional[str] = None


class CritiqueResponse(BaseModel):
    """JSON object every provider is asked to answer with."""

    strengths: list[StrengthResponse] = []
    issues: list[IssueResponse] = []
    overall_feedback: str = ""


class VisionProvider(ABC):
    """
    Abstract base class for vision model providers.

    All vision providers (Anthropic, OpenAI) must implement this interface
    to ensure consistent behavior and easy swapping.

    Subclasses must implement:
    - critique(): Analyze a prepared image and return structured feedback
    - is_available(): Check if provider is configured and ready
    - name: Property returning provider name
    - compression_profile: Compression budget suited to this provider
    """

    # Byte ceiling the provider's API enforces
    max_payload_bytes: int = MAX_PAYLOAD_BYTES

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Provider name for logging and identification.

        Returns:
            Provider name (e.g., "anthropic", "openai")
        """
        pass

    @property
    @abstractmethod
    def compression_profile(self) -> CompressionSettings:
        """Default compression budget for images sent to this provider."""
        pass

    @abstractmethod
    async def critique(
        self,
        image: PreparedImage,
        context: Optional[dict] = None
    ) -> CritiqueResult:
        """
        Analyze a prepared design image and return a structured critique.

        Args:
            image: Payload (and optional durable locator) that already
                   passed the final boundary check
            context: Optional context about what's being analyzed:
                    - project_name: Name of the product
                    - description: Purpose of the design
                    - user_goals: What users are trying to accomplish

        Returns:
            CritiqueResult with strengths and prioritized issues

        Raises:
            CritiqueError: If the API call fails or the response is invalid
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """
        Check if provider is configured and ready to use.

        Returns:
            True if provider can be used, False otherwise
        """
        pass

    def _build_critique_prompt(self, context: Optional[dict] = None) -> str:
        """
        Build standardized design critique prompt.

        Args:
            context: Optional context dictionary

        Returns:
            Structured prompt text optimized for vision models
        """
        ctx = context or {}
        project_name = ctx.get("project_name", "this design")
        description = ctx.get("description", "")
        user_goals = ctx.get("user_goals", "")

        prompt = f"You are an expert UI/UX designer reviewing {project_name}.\n"

        if description:
            prompt += f"**Purpose:** {description}\n"

        if user_goals:
            prompt += f"**User Goals:** {user_goals}\n"

        prompt += """
**Your Task:** Critique this design image. Identify what works well and
what should be improved, ordered by impact.

**Output Format:**

Respond with a single JSON object:

```json
{
  "strengths": [
    {
      "title": "<short name>",
      "description": "<why this works>",
      "location": {"x": <0-100>, "y": <0-100>}
    }
  ],
  "issues": [
    {
      "issue": "<short name of the problem>",
      "priority": "<high|medium|low>",
      "recommendation": "<actionable fix>",
      "location": {"x": <0-100>, "y": <0-100>},
      "principle": "<design principle involved>",
      "technical_details": "<implementation hint, e.g. CSS>"
    }
  ],
  "overall_feedback": "<one paragraph summary>"
}
```

Locations are percentages of the image width (x) and height (y).
Analyze the design now:"""

        return prompt

    def _build_result(
        self,
        data: object,
        image: PreparedImage,
        context: Optional[dict] = None
    ) -> CritiqueResult:
        """
        Validate a decoded response object and number its feedback items.

        Raises:
            CritiqueError: If the response is not a critique object or has
                           no feedback items
        """
        if not isinstance(data, dict):
            raise CritiqueError(
                f"{self.name} returned {type(data).__name__} instead of a critique object"
            )

        try:
            response = CritiqueResponse.model_validate(data)
        except ValidationError as e:
            raise CritiqueError(f"Invalid {self.name} response format: {e}") from e

        feedback = [
            Strength(title=s.title, description=s.description, location=s.location)
            for s in response.strengths
        ] + [
            Improvement(
                title=i.issue,
                priority=i.priority,
                description=i.recommendation,
                location=i.location,
                principle=i.principle,
                technical_details=i.technical_details
            )
            for i in response.issues
        ]
        if not feedback:
            raise CritiqueError("No feedback items found in the analysis results")

        for number, item in enumerate(feedback, 1):
            item.id = number

        return CritiqueResult(
            feedback=feedback,
            overall_feedback=response.overall_feedback,
            provider=self.name,
            payload_size=image.payload.size,
            context=context or {}
        )

    @staticmethod
    def _loads(json_text: str, provider: str) -> object:
        try:
            return json.loads(json_text)
        except json.JSONDecodeError as e:
            raise CritiqueError(
                f"Failed to parse {provider} response as JSON: {str(e)}\n"
                f"Response text: {json_text[:500]}"
            ) from e
