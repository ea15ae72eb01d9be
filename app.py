"""
MediTrack Backend
Main FastAPI application: medication schedules, dose logging and care teams
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Configuration and database
from config import settings
from database import SessionLocal, init_db, DatabaseHealthCheck

from actions.reminder_engine import ReminderScanner
from api import include_routers
from exceptions import MediTrackError
from services.llm_service import llm_service

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)


# ==================== LIFESPAN ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown"""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENV}")

    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    scanner = None
    if settings.REMINDER_SCAN_ENABLED:
        scanner = ReminderScanner(
            SessionLocal,
            interval_seconds=settings.REMINDER_INTERVAL_SECONDS,
            lead_minutes=settings.REMINDER_LEAD_MINUTES,
        )
        scanner.start()
    app.state.reminder_scanner = scanner

    yield

    if scanner:
        await scanner.stop()
    logger.info(f"Shutting down {settings.APP_NAME}")


# ==================== APP INITIALIZATION ====================

app = FastAPI(
    title=settings.APP_NAME,
    description="""
    ## MediTrack API

    Medication adherence tracking for patients, providers and administrators.

    ### Features
    - **Medications**: schedules with weekday dose times and reminders
    - **Adherence**: dose logging, statistics, daily trends and a missed-dose forecast
    - **Care teams**: provider rosters and admin assignment
    - **Assistant**: medication Q&A grounded in the patient's own list
    """,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

include_routers(app, prefix=settings.API_PREFIX)


# ==================== EXCEPTION HANDLERS ====================

def error_response(status_code: int, message: str, error=None) -> JSONResponse:
    content = {"message": message}
    if error is not None:
        content["error"] = error
    return JSONResponse(status_code=status_code, content=content)


def validation_message(exc: RequestValidationError) -> str:
    """First validation problem as a single readable sentence"""
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    first = errors[0]
    msg = str(first.get("msg", "Invalid value")).replace("Value error, ", "")
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    if loc:
        return f"{'.'.join(loc)}: {msg}"
    return msg


@app.exception_handler(MediTrackError)
async def meditrack_exception_handler(request, exc: MediTrackError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc: RequestValidationError):
    return error_response(400, validation_message(exc), "validation_error")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return error_response(
        500,
        "An unexpected error occurred" if not settings.DEBUG else str(exc),
        "server_error",
    )


# ==================== HEALTH ENDPOINTS ====================

@app.get("/", tags=["Health"])
async def root():
    """Root endpoint - basic health check"""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat()
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check endpoint"""
    db_connected = DatabaseHealthCheck.is_connected()
    scanner = getattr(app.state, "reminder_scanner", None)

    return {
        "status": "healthy" if db_connected else "degraded",
        "timestamp": datetime.utcnow().isoformat(),
        "checks": {
            "database": {
                "status": "up" if db_connected else "down",
                "type": "sqlite" if "sqlite" in settings.DATABASE_URL else "postgresql"
            },
            "reminders": {
                "enabled": settings.REMINDER_SCAN_ENABLED,
                "running": bool(scanner and scanner.running),
                "interval_seconds": settings.REMINDER_INTERVAL_SECONDS,
            },
            "llm": {
                "configured": llm_service.configured,
                **llm_service.get_usage_stats(),
            },
        },
        "version": settings.APP_VERSION,
        "environment": settings.ENV
    }


# ==================== MAIN ====================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
