"""Application entry point.

Serves the streaming relay and the chat page. By default both share one
uvicorn server; RUN_MODE=separate starts them as two processes.
Environment variables are loaded from .env file.
"""

import logging
import os
import subprocess
import sys

from dotenv import load_dotenv

# Load environment variables before any other imports that might need them
load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def run_integrated() -> None:
    """Mount the NiceGUI page onto the relay app and serve both on one port."""
    import uvicorn
    from nicegui import ui

    from streamchat.api.app import create_app
    from streamchat.ui.chat_page import chat_page  # noqa: F401 - Registers the page

    app = create_app()
    ui.run_with(
        app,
        title="Stream Chat",
        favicon="💬",
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "streamchat-secret"),
    )

    port = int(os.getenv("PORT", "8000"))
    logger.info(f"Relay and chat UI on http://localhost:{port}/ (docs at /docs)")

    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


def run_separate() -> None:
    """Run the relay (port 8000) and the chat UI (port 8080) as two processes."""
    relay_cmd = [
        sys.executable,
        "-m",
        "uvicorn",
        "streamchat.api.app:app",
        "--host",
        os.getenv("HOST", "0.0.0.0"),
        "--port",
        "8000",
    ]
    ui_cmd = [sys.executable, "-c", "from streamchat.ui.chat_page import main; main()"]

    logger.info("Starting relay on http://localhost:8000")
    logger.info("Starting chat UI on http://localhost:8080")
    processes = [subprocess.Popen(relay_cmd), subprocess.Popen(ui_cmd)]

    try:
        # Stop both as soon as either exits
        while all(p.poll() is None for p in processes):
            try:
                processes[0].wait(timeout=1)
            except subprocess.TimeoutExpired:
                continue
    except KeyboardInterrupt:
        logger.info("Shutting down servers...")
    finally:
        for process in processes:
            process.terminate()
        for process in processes:
            process.wait()


def main() -> None:
    """Start the application in the mode chosen by RUN_MODE."""
    mode = os.getenv("RUN_MODE", "integrated").lower()
    logger.info(f"Starting Stream Chat in {mode} mode")

    if mode == "separate":
        run_separate()
    else:
        run_integrated()


if __name__ == "__main__":
    main()
