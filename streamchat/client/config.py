"""Client configuration with environment variable loading."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


class ClientConfig(BaseModel):
    """Configuration for talking to the streaming relay.

    Attributes:
        api_base_url: Base URL of the relay API.
        stream_path: Path of the streaming endpoint.
        connect_timeout: Seconds allowed to establish the connection.
        read_timeout: Seconds allowed between two received chunks.
    """

    api_base_url: str = Field(
        default_factory=lambda: os.getenv("API_BASE_URL", "http://localhost:8000"),
        description="Relay API base URL",
    )
    stream_path: str = Field(default="/chat/stream")
    connect_timeout: float = Field(default=10.0, gt=0.0)
    read_timeout: float = Field(
        default_factory=lambda: float(os.getenv("CLIENT_READ_TIMEOUT", "120")),
        gt=0.0,
    )


def get_client_config() -> ClientConfig:
    """Create client configuration from environment."""
    return ClientConfig()
