"""NiceGUI interface - thin rendering layer over a chat session.

Responsibilities:
    - Message log display with incrementally streamed replies
    - Single-file attachment picker with image previews
    - Send and stop controls gated by the session status

Holds no chat state. Every user action is a ChatSession call and every
render reads the session state.
"""
