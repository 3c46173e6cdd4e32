"""
Enum types for pending note reminders.
Status values must stay in sync with the database schema.
"""
from enum import Enum


class NoteStatus(str, Enum):
    """
    Approval status of a doctor's note (notas_medicos.status).
    Only PENDENTE notes are considered by the reminder run.
    """
    PENDENTE = "pendente"
    APROVADA = "aprovada"
    REJEITADA = "rejeitada"


class UrgencyTier(str, Enum):
    """
    Urgency of a pending note by hours elapsed since creation.
    Derived on every run, never stored.
    """
    NORMAL = "NORMAL"  # < 48h
    URGENT = "URGENT"  # 48h to 72h
    CRITICAL = "CRITICAL"  # >= 72h


class LinkAction(str, Enum):
    """Actions carried by the links embedded in a digest."""
    APPROVE = "approve"
    REJECT = "reject"
