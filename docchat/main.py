"""Main application entry point.

Runs FastAPI (port 8000) with NiceGUI mounted for the chat interface.
Environment variables are loaded from .env file.
"""

import logging
import os
import sys

from dotenv import load_dotenv

# Load environment variables before any other imports that might need them
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def run_integrated() -> None:
    """Run FastAPI with NiceGUI mounted on the same server.

    FastAPI handles API routes, NiceGUI handles the UI.
    Both accessible on the same port.
    """
    import uvicorn
    from nicegui import ui

    port = int(os.getenv("PORT", "8000"))

    # The UI calls the API over HTTP; default to this same server.
    # Must be set before the UI modules read it at import.
    os.environ.setdefault("API_BASE_URL", f"http://localhost:{port}")

    from docchat.api.app import create_app
    from docchat.ui import chat_page, login_page  # noqa: F401 - Registers the pages

    app = create_app()

    ui.run_with(
        app,
        title="DocChat",
        favicon="📄",
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "docchat-secret"),
    )

    logger.info(f"Starting integrated server on http://localhost:{port}")
    logger.info(f"API docs available at http://localhost:{port}/docs")
    logger.info(f"Chat UI available at http://localhost:{port}/")

    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


def run_separate() -> None:
    """Run FastAPI and NiceGUI as separate servers.

    FastAPI on port 8000, NiceGUI on port 8080.
    """
    import asyncio
    import subprocess

    async def run_servers() -> None:
        logger.info("Starting FastAPI on http://localhost:8000")
        logger.info("Starting NiceGUI on http://localhost:8080")

        fastapi_proc = subprocess.Popen(
            [
                sys.executable,
                "-m",
                "uvicorn",
                "docchat.api.app:app",
                "--host",
                os.getenv("HOST", "0.0.0.0"),
                "--port",
                "8000",
            ]
        )

        nicegui_proc = subprocess.Popen(
            [sys.executable, "-c", "from docchat.ui.chat_page import main; main()"]
        )

        try:
            while True:
                await asyncio.sleep(1)
                if fastapi_proc.poll() is not None or nicegui_proc.poll() is not None:
                    break
        except KeyboardInterrupt:
            logger.info("Shutting down servers...")
        finally:
            fastapi_proc.terminate()
            nicegui_proc.terminate()
            fastapi_proc.wait()
            nicegui_proc.wait()

    asyncio.run(run_servers())


def main() -> None:
    """Application entry point.

    Set RUN_MODE=separate to run FastAPI and NiceGUI on different ports.
    Default is integrated mode (both on one port).
    """
    mode = os.getenv("RUN_MODE", "integrated").lower()

    logger.info(f"Starting DocChat in {mode} mode")

    if mode == "separate":
        run_separate()
    else:
        run_integrated()


if __name__ == "__main__":
    main()
