"""Stream Chat - text and image chat with incrementally streamed model replies.

Combines FastAPI for the SSE relay, Agno for model access,
NiceGUI for the chat surface, and Pydantic for state and validation.

Components:
    - session: Chat state machine (state, events, reducer)
    - attachments: Draft attachment handling and image previews
    - client: Session controller and relay HTTP client
    - agent: Stateless model relay with an execution ceiling
    - api: HTTP endpoints and streaming responses
    - ui: Web interface rendering the session
    - models: Wire schemas
"""

__version__ = "0.1.0"
