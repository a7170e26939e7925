import logging
import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tournament_hub.api.routes.auth import router as auth_router
from tournament_hub.api.routes.categories import router as categories_router
from tournament_hub.api.routes.events import router as events_router
from tournament_hub.api.routes.matches import router as matches_router
from tournament_hub.api.routes.me import router as me_router
from tournament_hub.api.routes.players import router as players_router
from tournament_hub.api.routes.statistics import router as statistics_router
from tournament_hub.api.routes.teams import router as teams_router
from tournament_hub.api.routes.tournaments import router as tournaments_router
from tournament_hub.core.config import settings
from tournament_hub.core.errors import AppError
from tournament_hub.core.logging import setup_logging
from tournament_hub.db.init_db import init_db

setup_logging()
logger = logging.getLogger("tournament_hub.http")

app = FastAPI(title="Tournament Hub")
app.include_router(auth_router)
app.include_router(me_router)
app.include_router(categories_router)
app.include_router(tournaments_router)
app.include_router(teams_router)
app.include_router(players_router)
app.include_router(matches_router)
app.include_router(events_router)
app.include_router(statistics_router)


@app.on_event("startup")
def on_startup():
    init_db()


@app.middleware("http")
async def log_requests(request: Request, call_next):
    # Method, path, status and timing only: headers (Authorization) are never logged
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info("%s %s -> %s (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
    return response


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "error": "An unexpected error occurred"})


@app.get("/health")
def health():
    return {"ok": True, "realtime_mirror": bool(settings.FIREBASE_DATABASE_URL)}
