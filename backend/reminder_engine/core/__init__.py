# Core modules - Database, Config, Exceptions
from .database import get_supabase_client, SupabaseClient
from .config import settings
from .exceptions import (
    ReminderException,
    DatabaseError,
    DataIntegrityError,
    ConfigurationError,
    SchedulerJobError,
)

__all__ = [
    "get_supabase_client",
    "SupabaseClient",
    "settings",
    "ReminderException",
    "DatabaseError",
    "DataIntegrityError",
    "ConfigurationError",
    "SchedulerJobError",
]
