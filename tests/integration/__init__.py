"""Integration tests for components working together over HTTP.

Coverage:
    - POST /chat/stream with real SSE framing through ASGITransport
    - HttpRelayClient against the app and against failing transports
    - Full ChatSession round trips from submit to finalized reply

Only the model relay is faked; no API keys are needed.
"""
