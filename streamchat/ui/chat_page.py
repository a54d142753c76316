"""NiceGUI chat page rendering a ChatSession.

The page keeps no chat state of its own: it renders ``session.state`` and
turns user input into session calls. Clearing the draft after a send happens
in the session, so the attachment area simply re-renders empty.
"""

import logging

from nicegui import events, ui

from streamchat.attachments.pipeline import SelectedFile
from streamchat.client.chat_session import ChatSession
from streamchat.errors import ChatError, ValidationError
from streamchat.models.encoding import encode_data_url
from streamchat.models.schemas import MessageRole
from streamchat.session.state import AttachmentRef, Message, SessionState

logger = logging.getLogger(__name__)

CUSTOM_CSS = """
<style>
    body { background: #f5f5f5; min-height: 100vh; }

    .app-container {
        background: white;
        border-radius: 12px;
        box-shadow: 0 2px 8px rgba(0, 0, 0, 0.1);
        overflow: hidden;
    }

    .header { background: linear-gradient(135deg, #ea580c 0%, #fdba74 100%); }

    .message-user { background: #fed7aa; color: #1f2937; border-radius: 18px 18px 4px 18px; }
    .message-assistant { background: #f3f4f6; color: #1f2937; border-radius: 18px 18px 18px 4px; }

    .typing-dot {
        width: 8px; height: 8px;
        background: #9ca3af;
        border-radius: 50%;
        animation: bounce 1.4s infinite ease-in-out;
    }
    .typing-dot:nth-child(2) { animation-delay: 0.1s; }
    .typing-dot:nth-child(3) { animation-delay: 0.2s; }

    @keyframes bounce {
        0%, 60%, 100% { transform: translateY(0); }
        30% { transform: translateY(-6px); }
    }
</style>
"""


def format_size(size_bytes: int) -> str:
    """Human readable size in megabytes, as shown next to attachments."""
    return f"{size_bytes / 1024 / 1024:.2f} MB"


def image_source(attachment: AttachmentRef) -> str | None:
    """Return something an <img> can display, or None for non-images."""
    if not attachment.is_previewable:
        return None
    if attachment.preview:
        return attachment.preview
    if attachment.content_locator.startswith(("http://", "https://", "data:")):
        return attachment.content_locator
    if attachment.payload is not None:
        return encode_data_url(attachment.payload, attachment.mime_type)
    return None


def render_attachment(attachment: AttachmentRef, *, thumbnail: bool = False) -> None:
    src = image_source(attachment)
    if src is not None:
        size = "w-16 h-16" if thumbnail else "max-w-[300px]"
        ui.image(src).classes(f"{size} rounded-lg object-cover")
        return
    with ui.row().classes("items-center gap-2"):
        ui.icon("attach_file").classes("text-gray-500")
        ui.label(attachment.name).classes("text-sm font-medium")
        ui.label(format_size(attachment.size_bytes)).classes("text-xs text-gray-500")


def render_message(message: Message) -> None:
    is_user = message.role is MessageRole.USER
    align = "justify-end" if is_user else "justify-start"
    bubble = "message-user" if is_user else "message-assistant"

    with ui.row().classes(f"w-full {align} gap-3 items-end"):
        with ui.column().classes(f"max-w-[80%] gap-1 px-4 py-3 {bubble}"):
            if not message.final and not message.content:
                with ui.row().classes("gap-1"):
                    for _ in range(3):
                        ui.element("div").classes("typing-dot")
            elif is_user:
                ui.label(message.content).classes("whitespace-pre-wrap text-sm")
            else:
                ui.markdown(message.content).classes("text-sm")
            for attachment in message.attachments:
                render_attachment(attachment)
        ui.label(message.created_at.strftime("%I:%M %p")).classes("text-[10px] text-gray-400")


@ui.page("/")
def chat_page() -> None:
    """Main chat page."""
    ui.add_head_html(CUSTOM_CSS)

    input_field: ui.textarea
    send_btn: ui.button
    stop_btn: ui.button

    @ui.refreshable
    def messages_view(state: SessionState) -> None:
        if not state.messages:
            with ui.column().classes("w-full h-64 items-center justify-center gap-3"):
                ui.icon("smart_toy").classes("text-5xl text-gray-300")
                ui.label("Send text or images to start").classes("text-lg text-gray-400")
            return
        for message in state.messages:
            render_message(message)

    @ui.refreshable
    def draft_view(state: SessionState) -> None:
        attachment = state.draft_attachment
        if attachment is None:
            return
        with ui.row().classes("w-full items-center gap-3 p-3 bg-orange-50 rounded-lg"):
            render_attachment(attachment, thumbnail=True)
            if attachment.is_previewable:
                with ui.column().classes("flex-1 gap-0"):
                    ui.label(attachment.name).classes("text-sm font-medium")
                    ui.label(format_size(attachment.size_bytes)).classes("text-xs")
            ui.button("✕", on_click=session.clear_draft).props("flat dense")

    def on_change(state: SessionState) -> None:
        messages_view.refresh(state)
        draft_view.refresh(state)
        if input_field.value != state.draft_text:
            input_field.value = state.draft_text
        send_btn.set_enabled(state.can_submit)
        stop_btn.set_visibility(state.is_streaming)
        input_field.set_enabled(not state.is_streaming)

    def on_error(error: ChatError) -> None:
        ui.notify(str(error), type="negative")

    session = ChatSession(on_change=on_change, on_error=on_error)

    async def handle_upload(e: events.UploadEventArguments) -> None:
        data = await e.file.read()
        try:
            session.select_file(
                SelectedFile(name=e.file.name, data=data, mime_type=e.file.content_type or None)
            )
        except ValidationError as err:
            ui.notify(str(err), type="warning")
        upload.reset()

    def send_message() -> None:
        if not session.submit():
            logger.debug("Nothing sent")

    # === UI Layout ===
    with (
        ui.element("div").classes("w-full min-h-screen p-4 md:p-8"),
        ui.column().classes("w-full max-w-3xl mx-auto app-container").style(
            "height: calc(100vh - 4rem)"
        ),
    ):
        with ui.row().classes("w-full header px-5 py-4 items-center justify-between"):
            with ui.row().classes("items-center gap-3"):
                ui.icon("smart_toy").classes("text-3xl")
                ui.label("Stream Chat").classes("text-lg font-semibold")
            ui.button(icon="add", on_click=session.reset).props("flat round")

        with (
            ui.scroll_area().classes("flex-grow w-full bg-gray-50"),
            ui.column().classes("w-full p-5 gap-4"),
        ):
            messages_view(session.state)

        with ui.column().classes("w-full p-4 gap-3 bg-white border-t"):
            draft_view(session.state)
            with ui.row().classes("w-full gap-3 items-end"):
                upload = (
                    ui.upload(on_upload=handle_upload, auto_upload=True, max_files=1)
                    .props("flat dense hide-upload-btn")
                    .classes("w-12")
                )
                input_field = (
                    ui.textarea(
                        placeholder="Type a message...",
                        on_change=lambda e: session.set_draft_text(e.value or ""),
                    )
                    .props("autogrow borderless dense rows=1")
                    .classes("flex-grow")
                    .on("keydown.enter.prevent", send_message)
                )
                stop_btn = ui.button(icon="stop", on_click=session.cancel).props("round flat")
                stop_btn.set_visibility(False)
                send_btn = ui.button(icon="send", on_click=send_message).props("round unelevated")
                send_btn.set_enabled(False)


def main() -> None:
    ui.run(title="Stream Chat", port=8080, reload=False)


if __name__ == "__main__":
    main()
