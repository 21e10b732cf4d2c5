import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from app.config import get_settings
from app.database import SessionLocal, ping_database
from app.errors import register_exception_handlers
from app.routers import auth, organizations, videos
from app.services.pipeline import recover_interrupted_jobs
from app.services.roles import ensure_default_roles

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def startup_maintenance() -> None:
    """Seed roles and fail pipeline runs a previous process left unfinished."""
    db = SessionLocal()
    try:
        ensure_default_roles(db)
        recovered = recover_interrupted_jobs(db)
        if recovered:
            logger.warning("Marked %s interrupted processing job(s) as failed", recovered)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Video Processing API (%s)", settings.environment)
    try:
        startup_maintenance()
    except SQLAlchemyError:
        # Schema not migrated yet; /health reports the database state
        logger.exception("Startup maintenance skipped: database not ready (run alembic upgrade head)")
    yield
    logger.info("Shutting down Video Processing API")


app = FastAPI(title="Video Processing API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth.router)
app.include_router(videos.router)
app.include_router(organizations.router)


@app.get("/")
def root():
    return {"success": True, "message": "Video Processing API", "version": "1.0.0"}


@app.get("/health")
def health():
    try:
        ping_database()
    except SQLAlchemyError:
        logger.exception("Health check: database unreachable")
        return {"success": False, "message": "Database unreachable"}
    return {"success": True, "message": "ok"}
