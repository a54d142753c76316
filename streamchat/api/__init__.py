"""FastAPI endpoints for the streaming chat relay.

Endpoints:
    - GET /health: Service health status
    - POST /chat/stream: Relay a conversation and stream the reply as SSE
"""

from streamchat.api.app import app, create_app

__all__ = ["app", "create_app"]
