"""Runtime settings read from the environment (and a local .env file)."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_VISION_MODEL = "gpt-4o"
DEFAULT_MAX_TOKENS = 3000
DEFAULT_TEMPERATURE = 0.1


@dataclass(frozen=True)
class Settings:
    """Settings for the vision extraction step."""
    openai_api_key: Optional[str] = None
    vision_model: str = DEFAULT_VISION_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Build Settings from environment variables.

    Variables:
        OPENAI_API_KEY: API key for the vision model.
        PAYMENT_MATCHER_VISION_MODEL: Model name (default: gpt-4o).
        PAYMENT_MATCHER_MAX_TOKENS: Reply token limit (default: 3000).

    Raises:
        ValueError: If PAYMENT_MATCHER_MAX_TOKENS isn't a positive integer.
    """
    load_dotenv(env_file)

    raw_max_tokens = os.getenv("PAYMENT_MATCHER_MAX_TOKENS", str(DEFAULT_MAX_TOKENS))
    try:
        max_tokens = int(raw_max_tokens)
    except ValueError as e:
        raise ValueError(f"PAYMENT_MATCHER_MAX_TOKENS must be an integer, got {raw_max_tokens!r}") from e
    if max_tokens <= 0:
        raise ValueError(f"PAYMENT_MATCHER_MAX_TOKENS must be positive, got {max_tokens}")

    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        vision_model=os.getenv("PAYMENT_MATCHER_VISION_MODEL", DEFAULT_VISION_MODEL),
        max_tokens=max_tokens,
    )
