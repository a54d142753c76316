"""Test package for the streaming chat session.

Structure:
    - unit/: Reducer, attachment pipeline, relay and controller tests
    - integration/: SSE endpoint and client-over-HTTP workflows

The model provider is never called; relays are scripted fakes or a patched
agno Agent.
"""
