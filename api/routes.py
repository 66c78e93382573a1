"""
Endpoints the overlay window uses to drive the session engine.
"""
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from fastapi.concurrency import run_in_threadpool

from core.config import Settings
from core.emotion import AVAILABLE_EMOTIONS, DEFAULT_EMOTIONS
from core.models import EngineStatus, HealthReport, SessionConfig
from core.session import SessionController, SessionError


router = APIRouter()
settings = Settings()
controller: Optional[SessionController] = None
logger = logging.getLogger(__name__)


def get_controller() -> SessionController:
    if controller is None:
        raise HTTPException(status_code=503, detail="Session engine not running")
    return controller


@router.get("/emotions")
async def emotions() -> dict:
    """Catalogue of selectable emotions and the default monitored set."""
    return {"available": AVAILABLE_EMOTIONS, "default": DEFAULT_EMOTIONS}


@router.get("/backend/health", response_model=HealthReport)
async def backend_health():
    return await run_in_threadpool(get_controller().check_health)


@router.get("/session/status", response_model=EngineStatus)
async def session_status():
    return get_controller().snapshot()


@router.post("/session/start", response_model=EngineStatus)
async def session_start(config: SessionConfig):
    """
    Start a monitored meeting session.

    Args:
        config: Display name, meeting URL, objective and monitored emotions.

    Returns:
        EngineStatus: Engine state after the backend answered.
    """
    ctl = get_controller()
    logger.debug(f"[api] /session/start emotions={config.selected_emotions}")
    try:
        ok = await run_in_threadpool(ctl.start, config)
    except SessionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not ok:
        raise HTTPException(status_code=502, detail=ctl.snapshot().status)
    return ctl.snapshot()


@router.post("/session/stop", response_model=EngineStatus)
async def session_stop():
    ctl = get_controller()
    await run_in_threadpool(ctl.stop)
    return ctl.snapshot()


@router.post("/ipc/close-app")
async def close_app():
    """Host window is closing: stop any session and tear the engine down."""
    global controller
    ctl = get_controller()
    await run_in_threadpool(ctl.close_app)
    controller = None
    return {"status": "closed"}
