"""
Aggregator: groups stale notes by organization and classifies urgency.

Tier boundaries (hours since the note was created):
- CRITICAL: >= 72
- URGENT:   48 to < 72
- NORMAL:   < 48 (only reachable when the interval is under 48h)
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List

from reminder_engine.models.enums import UrgencyTier
from reminder_engine.models.schemas import PendingNote


CRITICAL_HOURS = 72
URGENT_HOURS = 48


def elapsed_hours(created_at: datetime, now: datetime) -> float:
    """Fractional hours between creation and now."""
    return (now - created_at).total_seconds() / 3600


def classify_urgency(created_at: datetime, now: datetime) -> UrgencyTier:
    """Classify a note into exactly one urgency tier."""
    hours = elapsed_hours(created_at, now)
    if hours >= CRITICAL_HOURS:
        return UrgencyTier.CRITICAL
    if hours >= URGENT_HOURS:
        return UrgencyTier.URGENT
    return UrgencyTier.NORMAL


@dataclass
class OrganizationGroup:
    """Stale notes of one organization, in selection (oldest-first) order."""
    empresa_id: str
    notes: List[PendingNote] = field(default_factory=list)
    total_amount: Decimal = Decimal("0")

    def add(self, note: PendingNote) -> None:
        self.notes.append(note)
        self.total_amount += note.amount

    @property
    def count(self) -> int:
        return len(self.notes)

    def tier_counts(self, now: datetime) -> Dict[UrgencyTier, int]:
        """Number of notes in each tier (every tier present, possibly zero)."""
        counts = {tier: 0 for tier in UrgencyTier}
        for note in self.notes:
            counts[classify_urgency(note.created_at, now)] += 1
        return counts

    def critical_count(self, now: datetime) -> int:
        return self.tier_counts(now)[UrgencyTier.CRITICAL]

    def urgent_count(self, now: datetime) -> int:
        return self.tier_counts(now)[UrgencyTier.URGENT]


def group_by_organization(notes: List[PendingNote]) -> Dict[str, OrganizationGroup]:
    """
    Partition notes by payment organization.

    Each group keeps the input order of its notes. Amounts are already
    Decimal (validated on read), so the sum never coerces silently.
    """
    groups: Dict[str, OrganizationGroup] = {}
    for note in notes:
        empresa_id = note.empresa_id
        if empresa_id not in groups:
            groups[empresa_id] = OrganizationGroup(empresa_id=empresa_id)
        groups[empresa_id].add(note)
    return groups
