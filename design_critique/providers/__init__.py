"""
Vision Provider Implementations

Providers share the VisionProvider interface and each carries the
compression profile its API is happiest with.
"""

from .base import VisionProvider
from .anthropic import ANTHROPIC_PROFILE, AnthropicProvider
from .openai import OPENAI_PROFILE, OpenAIProvider

__all__ = [
    "VisionProvider",
    "AnthropicProvider",
    "OpenAIProvider",
    "ANTHROPIC_PROFILE",
    "OPENAI_PROFILE",
    "PROVIDERS",
    "get_provider",
]

# name -> (provider class, Config attribute holding its key, env variable)
PROVIDERS = {
    "anthropic": (AnthropicProvider, "anthropic_api_key", "ANTHROPIC_API_KEY"),
    "openai": (OpenAIProvider, "openai_api_key", "OPENAI_API_KEY"),
}


def get_provider(provider_name: str, config) -> VisionProvider:
    """
    Build the named provider from configured credentials.

    Raises:
        ValueError: If the name is unknown or its API key is missing

    Example:
        provider = get_provider(config.vision_provider, config)
        prepared = prepare_image(path, provider.compression_profile)
    """
    try:
        provider_class, key_field, env_var = PROVIDERS[provider_name]
    except KeyError:
        raise ValueError(
            f"Unknown provider: {provider_name}. "
            f"Choose from: {', '.join(PROVIDERS)}"
        ) from None

    api_key = getattr(config, key_field)
    if not api_key:
        raise ValueError(
            f"{provider_class.__name__.replace('Provider', '')} API key not configured. "
            f"Set {env_var} in .env file"
        )
    return provider_class(api_key=api_key)
