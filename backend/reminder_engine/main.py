"""
FastAPI Main Application Entry Point for Pending Note Reminders.

This service reminds organization managers about doctors' notes that
have been waiting for approval longer than the configured interval:
- Staleness scan over pending notes (Supabase)
- Per-organization digest with urgency tiers
- WhatsApp delivery to opted-in managers
- Background job scheduling
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from reminder_engine.core.config import settings
from reminder_engine.core.exceptions import ReminderException
from reminder_engine.api.routes import reminder_router
from reminder_engine.api.routes.reminder_routes import CORS_ALLOWED_HEADERS


# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
    - Log configuration
    - Start background scheduler (only on the designated worker)

    Shutdown:
    - Stop scheduler gracefully
    """
    logger.info(f"🚀 Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"Notification transport: {settings.notification_transport}")
    logger.info(f"Scheduler enabled: {settings.enable_scheduler}")
    logger.info(f"Run scheduler (this instance): {settings.run_scheduler}")

    if not settings.supabase_configured:
        logger.warning("⚠️ SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not set; reminder runs will fail")

    app.state.scheduler = None

    # Only one worker may run the scheduler, otherwise managers get duplicate digests
    if settings.enable_scheduler and settings.run_scheduler:
        try:
            from reminder_engine.services.scheduler import get_scheduler
            app.state.scheduler = get_scheduler()
            app.state.scheduler.start()
            logger.info("✅ Background scheduler started")
        except Exception as e:
            logger.error(f"❌ Failed to start scheduler: {e}")

    yield

    if app.state.scheduler and app.state.scheduler.is_running:
        app.state.scheduler.stop()
        logger.info("✅ Scheduler stopped")

    logger.info("👋 Shutting down...")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    # Pending Note Reminders

    Periodically reminds organization managers about doctors' notes that are
    still waiting for approval.

    ## Run
    1. **Select**: pending notes older than the configured interval (default 24h)
    2. **Group**: by organization, with total amount
    3. **Classify**: 🔴 critical (>= 72h), 🟡 urgent (>= 48h)
    4. **Notify**: one WhatsApp digest per organization, sent to every opted-in manager

    ## API Response Structure
    ```json
    {
      "success": true,
      "notasPendentes": 7,
      "lembretesEnviados": 2,
      "erros": 0
    }
    ```
    """,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=CORS_ALLOWED_HEADERS,
)


@app.exception_handler(ReminderException)
async def reminder_exception_handler(request, exc: ReminderException):
    """Handle all ReminderException subclasses."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, **exc.to_dict()},
    )


app.include_router(reminder_router)


@app.get("/health", tags=["System"])
async def health_check():
    """
    Health check endpoint for monitoring.

    Returns service status and scheduler health.
    """
    scheduler = getattr(app.state, "scheduler", None)
    scheduler_status = scheduler.get_health_status() if scheduler else {"is_running": False}

    return {
        "status": scheduler_status.get("status", "healthy"),
        "service": settings.app_name,
        "version": settings.app_version,
        "scheduler": scheduler_status,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@app.get("/", tags=["System"])
async def root():
    """Root endpoint with API information."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/docs" if settings.debug else "Docs disabled in production",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "reminder_engine.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
