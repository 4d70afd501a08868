"""Ciku — vocabulary matching and practice sentence service."""
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from log import get_logger

logger = get_logger("ciku.backend")

from llm import OllamaClient
from generator import SentenceGenerator
from routes import router

USE_MOCK_AI = os.environ.get("CIKU_USE_MOCK_AI", "false").lower() == "true"


def create_app(llm: Optional[OllamaClient] = None, use_mock: bool = USE_MOCK_AI) -> FastAPI:
    """Build the app. The LLM client is created at startup unless one is passed in."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = llm if llm is not None else OllamaClient()
        app.state.llm = client
        app.state.generator = SentenceGenerator(client, use_mock=use_mock)
        logger.info("Ciku started", extra={"component": "startup", "model": client.model})
        try:
            yield
        finally:
            await client.aclose()
            logger.info("Ciku stopped", extra={"component": "shutdown"})

    app = FastAPI(title="Ciku", lifespan=lifespan)
    app.include_router(router)
    return app


app = create_app()
