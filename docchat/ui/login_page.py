"""Sign in / sign up page."""

from nicegui import app, ui

from docchat.ui.api_client import ApiError, DocChatClient
from docchat.ui.theme import CUSTOM_CSS


@ui.page("/login")
def login_page() -> None:
    ui.add_head_html(CUSTOM_CSS)
    state = {"is_login": True}

    async def submit() -> None:
        email = email_input.value.strip()
        password = password_input.value
        if not email or not password:
            message.set_text("Please fill in all fields.")
            return
        if len(password) < 6:
            message.set_text("Password must be at least 6 characters.")
            return

        submit_btn.disable()
        message.set_text("")
        client = DocChatClient()
        try:
            if state["is_login"]:
                result = await client.sign_in(email, password)
            else:
                result = await client.sign_up(email, password)
        except ApiError as e:
            message.set_text(str(e))
            return
        finally:
            submit_btn.enable()

        if result.access_token:
            app.storage.user.update(token=result.access_token, email=result.email or email)
            ui.navigate.to("/")
        else:
            ui.notify(result.message, type="positive")
            set_mode(True)

    def set_mode(is_login: bool) -> None:
        state["is_login"] = is_login
        title.set_text("Welcome Back" if is_login else "Create Account")
        subtitle.set_text(
            "Sign in to continue to your documents"
            if is_login
            else "Sign up to start analyzing your documents"
        )
        submit_btn.set_text("Sign In" if is_login else "Create Account")
        toggle_label.set_text("Don't have an account?" if is_login else "Already have an account?")
        toggle_btn.set_text("Sign Up" if is_login else "Sign In")
        message.set_text("")

    with ui.column().classes("w-full min-h-screen items-center justify-center p-4"):
        with ui.card().classes("w-full max-w-sm app-container p-6 gap-4"):
            with ui.row().classes("items-center gap-2"):
                ui.icon("description").classes("text-3xl text-indigo-500")
                ui.label("DocChat").classes("text-xl font-semibold")
            title = ui.label("Welcome Back").classes("text-2xl font-semibold")
            subtitle = ui.label("Sign in to continue to your documents").classes(
                "text-sm text-gray-500"
            )

            email_input = ui.input("Email Address", placeholder="you@example.com").classes("w-full")
            password_input = (
                ui.input("Password", password=True, password_toggle_button=True)
                .classes("w-full")
                .on("keydown.enter", submit)
            )
            message = ui.label("").classes("text-sm text-red-500")
            submit_btn = ui.button("Sign In", on_click=submit).classes("w-full send-btn text-white")

            with ui.row().classes("w-full justify-center items-center gap-1"):
                toggle_label = ui.label("Don't have an account?").classes("text-sm text-gray-500")
                toggle_btn = ui.button(
                    "Sign Up", on_click=lambda: set_mode(not state["is_login"])
                ).props("flat dense no-caps")
