# music_combinators/main.py
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from music_combinators.core.config import get_settings
from music_combinators.core.errors import first_error_message
from music_combinators.database import create_db_and_tables

# Import models so SQLModel metadata is populated before create_all()
from music_combinators.models import account as _account_models  # noqa: F401
from music_combinators.models import application as _application_models  # noqa: F401
from music_combinators.models import content as _content_models  # noqa: F401
from music_combinators.models import engagement as _engagement_models  # noqa: F401
from music_combinators.models import setting as _setting_models  # noqa: F401

# Routers
from music_combinators.routers.admin import router as admin_router
from music_combinators.routers.applications import router as applications_router
from music_combinators.routers.auth import router as auth_router
from music_combinators.routers.reels import router as reels_router
from music_combinators.routers.tracks import router as tracks_router
from music_combinators.routers.users import router as users_router

settings = get_settings()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create any missing tables before the first request is served."""
    logger.info("Startup: preparing database schema")
    try:
        create_db_and_tables()
    except Exception:
        logger.exception("Startup: database unavailable")
        raise
    logger.info("Startup: database ready")
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Error envelope: {"success": false, "error": {"message": ...}} ---


def _error_response(status_code: int, message: str, detail: str | None = None):
    error = {"message": message}
    if detail is not None:
        error["detail"] = detail
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # AppError subclasses and unknown routes land here too
    return _error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        first_error_message(exc.errors()),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        detail=repr(exc) if settings.is_development else None,
    )


# Versioned API prefix, e.g. /api/v1
app.include_router(auth_router, prefix=settings.API_V1_STR)
app.include_router(users_router, prefix=settings.API_V1_STR)
app.include_router(tracks_router, prefix=settings.API_V1_STR)
app.include_router(reels_router, prefix=settings.API_V1_STR)
app.include_router(applications_router, prefix=settings.API_V1_STR)
app.include_router(admin_router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "music-combinators-backend"}
