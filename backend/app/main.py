"""FastAPI application entry point."""
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.config import settings
from app.database import Base, SessionLocal, engine

# Import routers
from app.routers import users, groups, messages, realtime
from app.services.expiry_scheduler import ExpiryScheduler

# Import all models so Base.metadata knows about them
from app.models.user import User                        # noqa: F401
from app.models.group import ChatGroup, GroupMember     # noqa: F401
from app.models.message import ChatMessage              # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Cheap Chats",
    description="Disposable group chat - time-limited groups that delete themselves",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(users.router, prefix="/api", tags=["Users"])
app.include_router(groups.router, prefix="/api/groups", tags=["Groups"])
app.include_router(messages.router, prefix="/api/messages", tags=["Messages"])
app.include_router(realtime.router, tags=["Realtime"])


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.on_event("startup")
async def start_expiry_scheduler():
    if not settings.EXPIRY_SCHEDULER_ENABLED:
        logger.info("Expiry scheduler disabled")
        return
    scheduler = ExpiryScheduler(
        SessionLocal,
        tick_seconds=settings.EXPIRY_TICK_SECONDS,
        sweep_seconds=settings.EXPIRY_SWEEP_SECONDS,
    )
    scheduler.start()
    app.state.expiry_scheduler = scheduler


@app.on_event("shutdown")
async def stop_expiry_scheduler():
    scheduler = getattr(app.state, "expiry_scheduler", None)
    if scheduler is not None:
        await scheduler.stop()
        app.state.expiry_scheduler = None


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
