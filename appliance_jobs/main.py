import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import models, models_google_calendar  # noqa: F401 - register tables
from .config import CORS_ORIGINS
from .database import Base, SessionLocal, engine
from .domain.jobs import router as jobs_router
from .domain.jobs.repository import JobRepository
from .routes.drive_time import router as drive_time_router
from .routes.google_calendar import router as google_calendar_router
from .routes.nominatim_geocoding import router as nominatim_geocoding_router
from .routes.settings import router as settings_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Another worker may have created them first
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    db = SessionLocal()
    try:
        backfilled = JobRepository.backfill_completion_flags(db)
        if backfilled:
            logger.info(f"🔄 Backfilled completion flag on {backfilled} legacy job(s)")
    except Exception as e:
        logger.error(f"❌ Completion flag backfill failed: {e}")
        db.rollback()
    finally:
        db.close()

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Appliance Jobs API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": jsonable_errors(exc)})


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold the raw ValueError, which is not JSON serializable
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        errors.append(error)
    return errors


@app.middleware("http")
async def log_requests(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise


logger.info(f"CORS allowed origins: {CORS_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(jobs_router)
app.include_router(drive_time_router)
app.include_router(settings_router)
app.include_router(nominatim_geocoding_router)
app.include_router(google_calendar_router)


@app.get("/")
def root():
    return {"message": "Appliance Jobs API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
