# Models - Pydantic schemas and Enums
from .enums import (
    NoteStatus,
    UrgencyTier,
    LinkAction,
)
from .schemas import (
    Submitter,
    Payment,
    PendingNote,
    Manager,
)

__all__ = [
    # Enums
    "NoteStatus",
    "UrgencyTier",
    "LinkAction",
    # Schemas
    "Submitter",
    "Payment",
    "PendingNote",
    "Manager",
]
