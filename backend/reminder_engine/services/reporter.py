"""
Run Reporter: accumulates counters across organizations.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List

from reminder_engine.services.dispatcher import DispatchOutcome


NO_PENDING_NOTES_MESSAGE = "Nenhuma nota pendente antiga"


@dataclass
class SkippedOrganization:
    """Organization that received no digest, and why."""
    empresa_id: str
    reason: str


@dataclass
class RunReport:
    """
    Result of one reminder run.

    A run that reaches reporting is always successful; send failures
    only show up in `errors`.
    """
    notes_found: int = 0
    reminders_sent: int = 0
    errors: int = 0
    organizations: int = 0
    skipped: List[SkippedOrganization] = field(default_factory=list)

    def merge(self, outcome: DispatchOutcome) -> None:
        """Fold one organization's send counters into the run totals."""
        self.reminders_sent += outcome.sent
        self.errors += outcome.errors

    def skip_organization(self, empresa_id: str, reason: str) -> None:
        """Record a skipped organization; never counted as an error."""
        self.skipped.append(SkippedOrganization(empresa_id=empresa_id, reason=reason))

    @property
    def success(self) -> bool:
        return True

    def to_response(self) -> Dict[str, Any]:
        """JSON payload returned to the caller."""
        if self.notes_found == 0:
            return {"success": True, "message": NO_PENDING_NOTES_MESSAGE}

        return {
            "success": self.success,
            "notasPendentes": self.notes_found,
            "lembretesEnviados": self.reminders_sent,
            "erros": self.errors,
        }
