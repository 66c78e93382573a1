"""
FastAPI application entrypoint.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

import api.routes as routes
from api.routes import router
from core.context import EngineContext
from core.session import SessionController

logging.basicConfig(level=getattr(logging, routes.settings.LOG_LEVEL.upper(), logging.INFO))


@asynccontextmanager
async def lifespan(app: FastAPI):
    routes.controller = SessionController(EngineContext.from_settings(routes.settings))
    routes.controller.startup()
    try:
        yield
    finally:
        if routes.controller is not None:
            routes.controller.close_app()
            routes.controller = None


app = FastAPI(title="Emo Insight Session Engine", version="1.0.0", lifespan=lifespan)
app.include_router(router)

@app.get("/health")
def health() -> dict:
    """
    Health check endpoint.

    Returns:
        dict: Simple status payload.
    """
    return {"status": "ok"}
