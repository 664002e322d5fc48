"""
FastAPI app factory.

Responsibilities:
- Create and configure FastAPI app
- Set up middleware and logging
- Initialize shared resources (OpenAI client, credential provider)
- Register routes
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from openai import AsyncOpenAI

from config import AppConfig
from observability import logger
from session.credentials import OpenAIEphemeralKeyProvider

from server.routes import register_routes


def create_app(
    config: AppConfig | None = None,
    *,
    openai_client: Any | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    config and openai_client are injectable for tests; by default both
    are built from the environment.
    """
    config = config or AppConfig.load_from_env()
    logger.configure(config.log_level)

    app = FastAPI(title="Realtime Coach API")

    app.state.config = config

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # tighten later
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Create OpenAI client ONCE per process
    if openai_client is None:
        if not config.openai_api_key:
            raise RuntimeError("OPENAI_API_KEY environment variable not set")
        openai_client = AsyncOpenAI(api_key=config.openai_api_key)

    app.state.openai_client = openai_client
    app.state.credential_provider = OpenAIEphemeralKeyProvider(
        client=openai_client,
        model=config.realtime_model,
    )

    # Routes
    register_routes(app)

    return app
