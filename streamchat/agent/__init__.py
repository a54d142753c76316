"""Agno-backed relay between conversations and the model provider.

Responsibilities:
    - Model initialization with OpenAI-compatible providers
    - Conversion of wire messages and attachments into agno media
    - Streaming token pass-through with an execution ceiling
    - Mapping provider failures and timeouts onto relay errors

Keeps no session state: every call is a pure forward of the conversation.
"""

from streamchat.agent.config import RelayConfig, get_relay_config
from streamchat.agent.relay import StreamingRelay, get_relay, to_agno_message

__all__ = ["RelayConfig", "StreamingRelay", "get_relay", "get_relay_config", "to_agno_message"]
