"""Client side of the chat: session controller and relay client.

Responsibilities:
    - Driving the session state machine from user actions
    - Owning the single active stream task and its cancellation
    - Consuming the relay's SSE stream over HTTP
    - Resolving transport, provider and timeout errors into failed streams
"""

from streamchat.client.chat_session import ChatSession, StreamOutcome
from streamchat.client.config import ClientConfig, get_client_config
from streamchat.client.relay_client import FragmentSource, HttpRelayClient, to_conversation

__all__ = [
    "ChatSession",
    "ClientConfig",
    "FragmentSource",
    "HttpRelayClient",
    "StreamOutcome",
    "get_client_config",
    "to_conversation",
]
