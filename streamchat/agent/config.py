"""Settings for the model behind the streaming relay.

Values come from the environment (a ``.env`` file is loaded on import) and
can be overridden per instance in tests. Any OpenAI-compatible endpoint works
through ``LLM_BASE_URL``.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

load_dotenv()

# Hard ceiling for one streamed reply, in seconds
DEFAULT_MAX_DURATION = 30.0

DEFAULT_SYSTEM_PROMPT = "A helpful assistant that can read text and images."


def _first_env(*names: str, default: str = "") -> str:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return default


class RelayConfig(BaseModel):
    """Model and execution settings for one relay instance.

    Attributes:
        api_key: Provider API key.
        base_url: OpenAI-compatible endpoint, ``None`` for api.openai.com.
        model_name: Provider model id.
        system_prompt: Agent description sent with every conversation.
        temperature: Sampling temperature.
        max_tokens: Upper bound on reply length.
        max_duration: Wall-clock ceiling for one streamed reply, in seconds.
    """

    api_key: str = Field(
        default_factory=lambda: _first_env("LLM_API_KEY", "OPENAI_API_KEY"),
        description="Provider API key",
    )
    base_url: str | None = Field(
        default_factory=lambda: _first_env("LLM_BASE_URL") or None,
        description="OpenAI-compatible endpoint",
    )
    model_name: str = Field(
        default_factory=lambda: _first_env("LLM_MODEL", default="gpt-4o-mini"),
        description="Provider model id",
    )
    system_prompt: str = Field(
        default_factory=lambda: _first_env("RELAY_SYSTEM_PROMPT", default=DEFAULT_SYSTEM_PROMPT),
        description="Agent description",
    )
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1024, ge=1, le=128000)
    max_duration: float = Field(
        default_factory=lambda: float(
            _first_env("RELAY_MAX_DURATION", default=str(DEFAULT_MAX_DURATION))
        ),
        gt=0.0,
        description="Execution ceiling of one streamed reply in seconds",
    )

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Reject a missing key up front instead of on the first request."""
        if not v or not v.strip():
            raise ValueError("API key required. Set LLM_API_KEY or OPENAI_API_KEY in .env")
        return v.strip()

    @field_validator("base_url")
    @classmethod
    def normalize_base_url(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip().rstrip("/")


def get_relay_config() -> RelayConfig:
    """Build the relay configuration from the environment.

    Raises:
        pydantic.ValidationError: If no API key is set.
    """
    return RelayConfig()
