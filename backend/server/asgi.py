"""
ASGI entry point.

    uvicorn server.asgi:app --app-dir backend

Running this module directly serves the app on HOST:PORT for local
development.
"""

import os

import uvicorn
from dotenv import load_dotenv

load_dotenv()

# pylint: disable=wrong-import-position
from config import AppConfig
from server.app import create_app

config = AppConfig.load_from_env()
app = create_app(config)


if __name__ == "__main__":
    uvicorn.run(
        app,
        host=os.environ.get("HOST", "127.0.0.1"),
        port=int(os.environ.get("PORT", "8000")),
        log_level=config.log_level.lower(),
    )
