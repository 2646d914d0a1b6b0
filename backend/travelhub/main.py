"""
TravelHub application entry point
Travel catalog browsing and hotel/trip reservations
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from travelhub import __version__
from travelhub.config import settings
from travelhub.database import init_db
from travelhub.errors import Busy, TravelHubError
from travelhub.routers import auth, browse, catalog, dashboard, hotels, reservations, trip_reservations

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle"""
    init_db()

    from travelhub.services.event_handlers import register_event_handlers
    register_event_handlers()

    logger.info(f"{settings.APP_NAME} {__version__} started")
    yield


app = FastAPI(
    title=settings.APP_NAME,
    description="Travel catalog and reservation service",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============== Error mapping ==============

@app.exception_handler(TravelHubError)
async def travelhub_error_handler(request: Request, exc: TravelHubError):
    if exc.status_code >= 500:
        logger.warning(f"{request.method} {request.url.path}: {exc.message}")
    headers = {"Retry-After": str(settings.BUSY_RETRY_AFTER_SECONDS)} if isinstance(exc, Busy) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg", ""))
    return JSONResponse(
        status_code=400,
        content={"detail": "; ".join(messages) or "Invalid request", "code": "invalid_request"},
    )


# ============== Routers ==============

app.include_router(auth.router)
app.include_router(browse.router)
app.include_router(hotels.router)
app.include_router(catalog.router)
app.include_router(reservations.router)
app.include_router(trip_reservations.router)
app.include_router(dashboard.router)


@app.get("/")
def root():
    return {
        "name": settings.APP_NAME,
        "version": __version__,
    }


@app.get("/health")
def health_check():
    return {"status": "healthy"}
