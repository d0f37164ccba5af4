"""NiceGUI chat interface with document selection and SSE streaming."""

import os
from datetime import datetime

from nicegui import app, events, ui

from docchat.context import budget
from docchat.models.schemas import ChatSummary, ChatTurn, DocumentEntry
from docchat.ui.api_client import ApiError, DocChatClient
from docchat.ui.theme import CUSTOM_CSS, USAGE_COLORS

ACCEPTED_UPLOADS = "image/*,.pdf,.doc,.docx,.txt,.md,.csv"


class ChatSession:
    """Manages chat state for a browser tab."""

    def __init__(self) -> None:
        self.turns: list[dict] = []
        self.chat_id: str | None = None
        self.documents: list[DocumentEntry] = []
        self.chats: list[ChatSummary] = []
        self.selected_ids: list[str] = []
        self.token_limit: int = budget.DEFAULT_TOKEN_LIMIT
        self.is_streaming: bool = False

    def add_turn(self, role: str, content: str) -> None:
        self.turns.append({
            "role": role,
            "content": content,
            "time": datetime.now().strftime("%I:%M %p"),
        })

    def load_turns(self, turns: list[ChatTurn]) -> None:
        self.turns.clear()
        for turn in turns:
            self.add_turn(turn.role, turn.content)

    def reset(self) -> None:
        self.turns.clear()
        self.chat_id = None
        self.selected_ids = []

    def usage(self) -> budget.BudgetUsage:
        return budget.usage(self.selected_ids, self.documents, self.token_limit)

    def can_select(self, document_id: str) -> bool:
        return budget.can_select(document_id, self.selected_ids, self.documents, self.token_limit)


async def confirm(message: str) -> bool:
    """Ask the user to confirm a destructive action."""
    with ui.dialog() as dialog, ui.card():
        ui.label(message)
        with ui.row().classes("w-full justify-end"):
            ui.button("Cancel", on_click=lambda: dialog.submit(False)).props("flat")
            ui.button("Delete", on_click=lambda: dialog.submit(True)).props("color=negative")
    result = await dialog
    dialog.delete()
    return bool(result)


@ui.page("/")
async def chat_page() -> None:
    """Main chat page."""
    token = app.storage.user.get("token")
    if not token:
        ui.navigate.to("/login")
        return

    ui.add_head_html(CUSTOM_CSS)
    session = ChatSession()
    client = DocChatClient(token=token)

    messages_container: ui.column
    input_field: ui.textarea
    send_btn: ui.button
    upload_status: ui.label

    def sign_in_again() -> None:
        app.storage.user.clear()
        ui.navigate.to("/login")

    def report(error: ApiError) -> None:
        if error.is_unauthorized:
            sign_in_again()
            return
        ui.notify(str(error), type="negative")

    async def load_documents() -> None:
        try:
            listing = await client.list_documents()
        except ApiError as e:
            report(e)
            return
        session.documents = listing.documents
        session.token_limit = listing.token_limit
        known = {doc.id for doc in session.documents}
        session.selected_ids = [i for i in session.selected_ids if i in known]
        render_documents.refresh()
        render_topbar.refresh()

    async def load_chats() -> None:
        try:
            session.chats = await client.list_chats()
        except ApiError as e:
            report(e)
            return
        render_chats.refresh()

    # --- Sidebar: chats ---

    async def open_chat(chat_id: str) -> None:
        if session.is_streaming:
            return
        try:
            detail = await client.get_chat(chat_id)
        except ApiError as e:
            report(e)
            return
        session.chat_id = detail.id
        session.load_turns(detail.turns)
        known = {doc.id for doc in session.documents}
        session.selected_ids = [i for i in detail.document_ids if i in known]
        refresh_all()

    async def remove_chat(chat: ChatSummary) -> None:
        if not await confirm("Delete this chat?"):
            return
        try:
            await client.delete_chat(chat.id)
        except ApiError as e:
            report(e)
            return
        if session.chat_id == chat.id:
            new_chat()
        await load_chats()

    @ui.refreshable
    def render_chats() -> None:
        if not session.chats:
            ui.label("No chat history yet").classes("text-sm text-gray-400")
            return
        for chat in session.chats:
            active = "bg-indigo-50" if chat.id == session.chat_id else ""
            with ui.row().classes(f"w-full items-center no-wrap rounded px-2 py-1 {active}"):
                with ui.column().classes("flex-grow gap-0 cursor-pointer").on(
                    "click", lambda _, c=chat: open_chat(c.id)
                ):
                    ui.label(chat.title).classes("text-sm truncate")
                    if chat.updated_at:
                        ui.label(chat.updated_at[:10]).classes("text-[10px] text-gray-400")
                ui.button(icon="close", on_click=lambda _, c=chat: remove_chat(c)).props(
                    "flat round dense size=sm"
                )

    # --- Sidebar: documents ---

    async def toggle_document(document_id: str) -> None:
        try:
            result = await client.toggle_selection(document_id, session.selected_ids)
        except ApiError as e:
            report(e)
            return
        if not result.accepted and result.message:
            ui.notify(result.message, type="warning")
        session.selected_ids = result.selected_ids
        render_documents.refresh()
        render_topbar.refresh()

    async def remove_document(document: DocumentEntry) -> None:
        if not await confirm(f"Delete {document.name}?"):
            return
        try:
            await client.delete_document(document.id)
        except ApiError as e:
            report(e)
            return
        session.selected_ids = [i for i in session.selected_ids if i != document.id]
        await load_documents()

    async def handle_upload(e: events.UploadEventArguments) -> None:
        upload_status.set_text("Analyzing with AI...")
        try:
            content = await e.file.read()
            document = await client.upload_document(
                e.file.name, content, e.file.content_type or "application/octet-stream"
            )
        except ApiError as err:
            upload_status.set_text(f"Error: {err}")
            report(err)
            return
        finally:
            uploader.reset()
        upload_status.set_text(f"Uploaded {document.name}")
        await load_documents()

    @ui.refreshable
    def render_documents() -> None:
        if not session.documents:
            ui.label("No files uploaded yet").classes("text-sm text-gray-400")
            return
        for doc in session.documents:
            selected = doc.id in session.selected_ids
            selectable = selected or session.can_select(doc.id)
            css = "selected" if selected else ("disabled" if not selectable else "")
            with ui.row().classes(f"w-full items-center no-wrap file-item px-1 {css}"):
                checkbox = ui.checkbox(value=selected)
                checkbox.on("click", lambda _, d=doc: toggle_document(d.id))
                if not selectable:
                    checkbox.disable()
                with ui.column().classes("flex-grow gap-0"):
                    ui.label(doc.name).classes("text-sm truncate")
                    ui.label(f"{doc.size / 1024:.1f} KB · {doc.tokens:,} tokens").classes(
                        "text-[10px] text-gray-400"
                    )
                ui.button(icon="close", on_click=lambda _, d=doc: remove_document(d)).props(
                    "flat round dense size=sm"
                )

        usage = session.usage()
        with ui.column().classes("w-full gap-1 pt-2"):
            ui.linear_progress(value=usage.ratio, show_value=False).props(
                f"color={USAGE_COLORS[usage.level.value]} rounded"
            )
            ui.label(f"{usage.used:,} / {usage.limit:,} tokens").classes("text-xs text-gray-500")
            if usage.level is budget.UsageLevel.CRITICAL:
                ui.label("Approaching token limit").classes("text-xs text-red-500")

    @ui.refreshable
    def render_topbar() -> None:
        if not session.selected_ids:
            return
        count = len(session.selected_ids)
        usage = session.usage()
        ui.badge(f"{count} document{'s' if count != 1 else ''} selected").props("color=indigo")
        ui.badge(f"{usage.used:,} / {usage.limit:,} tokens").props("outline color=grey")

    # --- Messages ---

    def render_avatar(is_user: bool) -> None:
        color = "bg-indigo-500" if is_user else "bg-gray-500"
        with ui.element("div").classes(f"w-9 h-9 rounded-full flex items-center justify-center {color}"):
            ui.icon("person" if is_user else "smart_toy").classes("text-white text-lg")

    def render_message(msg: dict) -> None:
        is_user = msg["role"] == "user"
        align = "justify-end" if is_user else "justify-start"
        bubble = "message-user" if is_user else "message-assistant"
        if not is_user and msg["content"].startswith("Error: "):
            bubble += " message-error"

        with ui.row().classes(f"w-full {align} gap-3 items-end"):
            if not is_user:
                render_avatar(False)
            with ui.column().classes("max-w-[70%] gap-1"):
                with ui.element("div").classes(f"px-4 py-3 {bubble}"):
                    if is_user:
                        ui.label(msg["content"]).classes("text-sm whitespace-pre-wrap")
                    else:
                        ui.markdown(msg["content"]).classes("text-sm")
                ui.label(msg["time"]).classes(
                    f"text-[10px] text-gray-400 {'self-end' if is_user else 'self-start'}"
                )
            if is_user:
                render_avatar(True)

    def refresh_messages() -> None:
        messages_container.clear()
        with messages_container:
            if not session.turns:
                with ui.column().classes("w-full h-64 items-center justify-center gap-3"):
                    ui.label("Ready when you are.").classes("text-2xl text-gray-500")
                    ui.label("Select documents from the sidebar and ask me anything").classes(
                        "text-sm text-gray-400"
                    )
            else:
                for msg in session.turns:
                    render_message(msg)

    def refresh_all() -> None:
        refresh_messages()
        render_chats.refresh()
        render_documents.refresh()
        render_topbar.refresh()

    def render_status_indicator(status_text: str = "Thinking...") -> tuple[ui.row, ui.label]:
        """Render status indicator with animated dots and status text."""
        with ui.row().classes("w-full justify-start gap-3 items-end") as row:
            render_avatar(False)
            with ui.element("div").classes("message-assistant px-4 py-3"):
                with ui.row().classes("items-center gap-2"):
                    with ui.row().classes("gap-1"):
                        for _ in range(3):
                            ui.element("div").classes("typing-dot")
                    status_label = ui.label(status_text).classes("text-sm text-gray-500 italic")
        return row, status_label

    def set_streaming(streaming: bool) -> None:
        session.is_streaming = streaming
        if streaming:
            send_btn.disable()
            input_field.disable()
        else:
            send_btn.enable()
            input_field.enable()

    async def send_message() -> None:
        text = (input_field.value or "").strip()
        if not text or session.is_streaming:
            return

        input_field.value = ""
        set_streaming(True)

        session.add_turn("user", text)
        refresh_messages()

        with messages_container:
            status_row, status_label = render_status_indicator()

        accumulated = ""
        response_view: ui.markdown | None = None
        msg_time = datetime.now().strftime("%I:%M %p")

        status_messages = {
            "sending": "Thinking...",
            "streaming": "Generating response...",
        }

        def on_status(status: str) -> None:
            if status in status_messages:
                status_label.set_text(status_messages[status])

        def on_chunk(content: str) -> None:
            nonlocal accumulated, response_view
            if response_view is None:
                status_row.delete()
                with (
                    messages_container,
                    ui.row().classes("w-full justify-start gap-3 items-end"),
                ):
                    render_avatar(False)
                    with ui.column().classes("max-w-[70%] gap-1"):
                        with ui.element("div").classes("message-assistant px-4 py-3"):
                            response_view = ui.markdown("").classes("text-sm")
                        ui.label(msg_time).classes("text-[10px] text-gray-400")
            accumulated += content
            response_view.set_content(accumulated)

        def on_complete(chat_id: str | None, warning: str | None) -> None:
            session.chat_id = chat_id or session.chat_id
            session.add_turn("assistant", accumulated)
            set_streaming(False)
            refresh_messages()
            if warning:
                ui.notify(warning, type="warning")

        def on_error(error: str) -> None:
            # The partial reply is replaced by a single error turn
            session.add_turn("assistant", f"Error: {error}")
            set_streaming(False)
            refresh_messages()
            ui.notify(error, type="negative")

        await client.stream_chat(
            text,
            session.chat_id,
            session.selected_ids,
            on_chunk,
            on_status,
            on_complete,
            on_error,
        )
        await load_chats()

    def new_chat() -> None:
        if session.is_streaming:
            return
        session.reset()
        refresh_all()

    async def sign_out() -> None:
        try:
            await client.sign_out()
        except ApiError as e:
            # The token is dropped locally either way
            ui.notify(f"Sign out failed: {e}", type="warning")
        sign_in_again()

    # === UI Layout ===
    with ui.left_drawer(value=True).classes("bg-white p-4 gap-4") as drawer:
        ui.button("New chat", icon="add", on_click=new_chat).classes("w-full send-btn text-white")

        ui.label("Recent Chats").classes("text-xs font-semibold text-gray-500 uppercase")
        with ui.column().classes("w-full gap-1"):
            render_chats()

        ui.separator()
        ui.label("Your Documents").classes("text-xs font-semibold text-gray-500 uppercase")
        uploader = (
            ui.upload(on_upload=handle_upload, auto_upload=True, label="Upload File")
            .props(f'accept="{ACCEPTED_UPLOADS}" flat bordered')
            .classes("w-full")
        )
        upload_status = ui.label("").classes("text-xs text-gray-500")
        with ui.column().classes("w-full gap-1"):
            render_documents()

        ui.space()
        ui.separator()
        with ui.row().classes("w-full items-center justify-between"):
            ui.label(app.storage.user.get("email", "")).classes("text-xs text-gray-500 truncate")
            ui.button("Logout", on_click=sign_out).props("flat dense no-caps")

    with ui.column().classes("w-full max-w-3xl mx-auto app-container").style(
        "height: calc(100vh - 2rem)"
    ):
        with ui.row().classes("w-full px-4 py-3 items-center gap-3 border-b"):
            ui.button(icon="menu", on_click=drawer.toggle).props("flat round dense")
            with ui.row().classes("items-center gap-2"):
                render_topbar()

        with (
            ui.scroll_area().classes("flex-grow w-full bg-gray-50"),
            ui.column().classes("w-full p-5"),
        ):
            messages_container = ui.column().classes("w-full gap-4")
            refresh_messages()

        with ui.row().classes("w-full p-4 gap-3 items-end bg-white border-t"):
            with ui.element("div").classes("flex-grow input-box px-3 py-2"):
                input_field = (
                    ui.textarea(placeholder="Ask me anything about your documents...")
                    .props("autogrow borderless dense rows=1")
                    .classes("w-full")
                    .on("keydown.enter.prevent", send_message)
                )
            send_btn = (
                ui.button(icon="send", on_click=send_message)
                .props("round unelevated")
                .classes("send-btn")
            )

    await load_documents()
    await load_chats()


def main() -> None:
    """Run the UI on its own server, talking to the API at API_BASE_URL."""
    from docchat.ui import login_page  # noqa: F401 - Registers the page

    ui.run(
        title="DocChat",
        port=int(os.getenv("UI_PORT", "8080")),
        reload=False,
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "docchat-secret"),
    )


if __name__ == "__main__":
    main()
