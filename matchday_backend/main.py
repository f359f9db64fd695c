import asyncio
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlmodel import Session

from matchday_backend.core.config import settings, TEST_MODE
from matchday_backend.core.database import init_db, sync_engine, async_session_maker
from matchday_backend.core.errors import MatchdayError
from matchday_backend.core.event_bus import event_bus
from matchday_backend.core.logging_config import setup_logging
from matchday_backend.seed.seed_all import seed_all, needs_seeding
from matchday_backend.services.match_tick_service import process_match_tick

# --- Routers ---
from matchday_backend.routes.club_routes import router as club_router
from matchday_backend.routes.fixture_routes import router as fixture_router
from matchday_backend.routes.table_routes import router as table_router
from matchday_backend.routes.league_config_routes import router as league_config_router
from matchday_backend.routes.match_report_routes import router as match_report_router
from matchday_backend.routes.ws_routes import router as ws_router, hub

logger = logging.getLogger(__name__)

app = FastAPI(title="Matchday Backend")


# =========================================
# ERROR RESPONSES
# =========================================
@app.exception_handler(MatchdayError)
async def matchday_error_handler(request: Request, exc: MatchdayError):
    logger.warning("⚠️ %s %s -> %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    content = {"success": False, "message": message}
    if settings.debug:
        content["detail"] = [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors]
    return JSONResponse(status_code=400, content=content)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    content = {"success": False, "message": "Internal server error"}
    if settings.debug:
        content["detail"] = repr(exc)
    return JSONResponse(status_code=500, content=content)


# =========================================
# STARTUP
# =========================================
@app.on_event("startup")
async def on_startup():
    setup_logging()

    # 1️⃣ Init DB tables async
    await init_db()

    # 2️⃣ Auto-seed DB in sync mode (development only)
    with Session(sync_engine) as session:
        if TEST_MODE and needs_seeding(session):
            logger.info("🌱 No clubs found. Auto-seeding database...")
            seed_all(session)
        else:
            logger.info("✅ Database already seeded. Skipping auto-seed.")

    # 3️⃣ Forward bus events to WebSocket clients
    hub.attach(event_bus, asyncio.get_running_loop())


@app.on_event("startup")
async def start_background_tasks():
    """
    Start the match tick: kickoffs, clock transitions and auto-simulation.
    """
    async def match_tick_loop():
        while True:
            await asyncio.sleep(settings.tick_interval_seconds)
            try:
                async with async_session_maker() as session:
                    await session.run_sync(process_match_tick, event_bus)
            except Exception:
                # One bad pass must not stop the loop
                logger.exception("Match tick failed")

    app.state.match_tick_task = asyncio.create_task(match_tick_loop())
    logger.info("🔄 Background tasks started: Match tick every %ss", settings.tick_interval_seconds)


@app.on_event("shutdown")
async def stop_background_tasks():
    task = getattr(app.state, "match_tick_task", None)
    if task:
        task.cancel()
    hub.detach(event_bus)


# Routers
app.include_router(club_router, prefix="/clubs", tags=["Clubs"])
app.include_router(fixture_router, prefix="/fixtures", tags=["Fixtures"])
app.include_router(table_router, prefix="/table", tags=["Table"])
app.include_router(league_config_router, prefix="/league-config", tags=["League Config"])
app.include_router(match_report_router, prefix="/match-data", tags=["Match Data"])
app.include_router(ws_router, tags=["Realtime"])
