"""Unit tests for individual components in isolation.

Coverage:
    - session/: State machine transitions
    - attachments/: Selection, previews and wire descriptors
    - agent/: Relay configuration, message conversion and the time ceiling
    - client/: ChatSession submit, cancel and error handling
"""
