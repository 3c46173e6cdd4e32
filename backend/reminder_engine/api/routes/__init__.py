# API Routes
from .reminder_routes import router as reminder_router

__all__ = [
    "reminder_router",
]
