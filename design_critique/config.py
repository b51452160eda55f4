"""
Configuration Management

Resolves the .env file, reads the pipeline's environment variables and
builds a validated Config. Handles API keys, the default provider, fetch
timeouts, upload limits and logging.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .models import MIB, Config


def _find_env_file(env_file: Optional[Path]) -> Optional[Path]:
    candidates = [env_file] if env_file else []
    candidates += [Path(".env"), Path.home() / ".env"]
    return next((path for path in candidates if path.exists()), None)


def _number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def load_config(env_file: Optional[Path] = None) -> Config:
    """
    Load configuration from the first .env file found and the environment.

    Lookup order for the .env file is env_file, ./.env, then ~/.env. Only
    the first match is loaded, and variables already set in the
    environment win over its values.

    Recognized variables:
        ANTHROPIC_API_KEY, OPENAI_API_KEY: Provider credentials
        VISION_PROVIDER: anthropic (default) or openai
        FETCH_TIMEOUT: Seconds to wait on remote locators (default 30)
        UPLOAD_DIR: Directory used as durable object store (optional)
        MAX_INPUT_BYTES: Largest accepted source file (default 15MB)
        LOG_LEVEL: Logging level name (default INFO)
        VIEWPORT_WIDTH, VIEWPORT_HEIGHT: Screenshot viewport

    Raises:
        ValueError: If a variable holds an invalid value (pydantic's
                    ValidationError is a ValueError)

    Example:
        config = load_config(Path("staging.env"))
        provider = get_provider(config.vision_provider, config)
    """
    found = _find_env_file(env_file)
    if found is not None:
        load_dotenv(found)

    upload_dir = os.getenv("UPLOAD_DIR")

    return Config(
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY") or None,
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        vision_provider=(os.getenv("VISION_PROVIDER") or "anthropic").lower(),
        fetch_timeout=_number("FETCH_TIMEOUT", 30.0, float),
        upload_dir=Path(upload_dir) if upload_dir else None,
        max_input_bytes=_number("MAX_INPUT_BYTES", 15 * MIB, int),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        viewport_width=_number("VIEWPORT_WIDTH", 1920, int),
        viewport_height=_number("VIEWPORT_HEIGHT", 1080, int)
    )
