"""
Digest Formatter for pending note reminders.

Renders the single WhatsApp message sent to every manager of an
organization. Formatting is pt-BR:
- Currency: "R$ 1.234,56" (non-breaking space after the symbol)
- Competency: "janeiro de 2025"
- Waiting time: "3 dia(s) e 8h"

The detail block is capped (5 notes by default) to bound message length.
"""
import base64
import math
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from reminder_engine.core.config import settings
from reminder_engine.core.exceptions import DataIntegrityError
from reminder_engine.models.enums import LinkAction, UrgencyTier
from reminder_engine.models.schemas import PendingNote
from reminder_engine.services.aggregation import (
    OrganizationGroup,
    classify_urgency,
    elapsed_hours,
)


MONTH_NAMES = [
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
]

URGENCY_MARKERS = {
    UrgencyTier.CRITICAL: "🔴",
    UrgencyTier.URGENT: "🟡",
    UrgencyTier.NORMAL: "⚠️",
}

SEPARATOR = "━━━━━━━━━━━━━━━━━━━━━━"
CALL_TO_ACTION = "⚡ Por favor, revise e aprove as notas pendentes para liberar os pagamentos."

TOKEN_LENGTH = 30
_CENTS = Decimal("0.01")
_PT_BR_SEPARATORS = str.maketrans({",": ".", ".": ","})


# ==========================================
# FORMATTING HELPERS
# ==========================================

def format_brl(amount: Decimal) -> str:
    """Format an amount as Brazilian reais: Decimal("1234.5") -> "R$ 1.234,50" (NBSP)."""
    value = Decimal(amount).quantize(_CENTS, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    digits = f"{abs(value):,.2f}".translate(_PT_BR_SEPARATORS)
    return f"{sign}R$\u00a0{digits}"


def format_mes_competencia(mes_competencia: str) -> str:
    """
    Human label for a YYYY-MM competency key.

    "2025-03" -> "março de 2025"

    Raises:
        DataIntegrityError: If the key is malformed or the month is not 1-12
    """
    parts = mes_competencia.split("-")
    if len(parts) < 2 or not parts[1].isdigit():
        raise DataIntegrityError(
            f"Invalid competency month: {mes_competencia!r}",
            entity="pagamentos",
            field="mes_competencia",
            value=mes_competencia
        )

    ano, mes = parts[0], int(parts[1])
    if not 1 <= mes <= 12:
        raise DataIntegrityError(
            f"Invalid competency month: {mes_competencia!r}",
            entity="pagamentos",
            field="mes_competencia",
            value=mes_competencia
        )

    return f"{MONTH_NAMES[mes - 1]} de {ano}"


def format_elapsed(total_hours: int) -> str:
    """Whole days plus remaining hours: 80 -> "3 dia(s) e 8h"."""
    return f"{total_hours // 24} dia(s) e {total_hours % 24}h"


def build_action_token(note: PendingNote, action: LinkAction) -> str:
    """
    Opaque token for an approve/reject link.

    This is a truncated base64 of "<id>-<created_at>-<action>", NOT a
    signed credential. Anyone who knows the note id can forge it.
    """
    payload = f"{note.id}-{note.created_at_raw}-{action.value}"
    return base64.b64encode(payload.encode("utf-8")).decode("ascii")[:TOKEN_LENGTH]


def build_action_link(note: PendingNote, action: LinkAction, portal_url: str) -> str:
    """Approve or reject link for a single note."""
    path = "aprovar" if action == LinkAction.APPROVE else "rejeitar"
    token = build_action_token(note, action)
    return f"{portal_url}/{path}?i={note.id}&t={token}"


# ==========================================
# DIGEST
# ==========================================

def _format_note_entry(note: PendingNote, now: datetime, portal_url: str) -> str:
    """Detail block for one note."""
    hours = math.floor(elapsed_hours(note.created_at, now))
    marker = URGENCY_MARKERS[classify_urgency(note.created_at, now)]
    payment = note.pagamento

    entry = f"{marker} *{payment.medico.nome}*\n"
    entry += f"   💰 {format_brl(payment.valor)} • {format_mes_competencia(payment.mes_competencia)}\n"
    entry += f"   ⏱️ Aguardando há {format_elapsed(hours)}\n\n"
    entry += f"   ✅ Aprovar: {build_action_link(note, LinkAction.APPROVE, portal_url)}\n"
    entry += f"   ❌ Rejeitar: {build_action_link(note, LinkAction.REJECT, portal_url)}\n\n"
    return entry


def build_digest(
    group: OrganizationGroup,
    now: datetime,
    portal_url: Optional[str] = None,
    max_items: Optional[int] = None
) -> str:
    """
    Render the reminder digest for one organization.

    The same text goes to every eligible manager of the organization.

    Args:
        group: Organization's stale notes, oldest first
        now: The run's captured instant
        portal_url: Base URL of the approval portal
        max_items: Detail entries to render before truncating

    Returns:
        WhatsApp-formatted message text
    """
    portal_url = (portal_url or settings.portal_url).rstrip("/")
    max_items = max_items if max_items is not None else settings.digest_max_items

    tiers = group.tier_counts(now)
    critical = tiers[UrgencyTier.CRITICAL]
    urgent = tiers[UrgencyTier.URGENT]

    message = "⚠️ *LEMBRETE - Notas Pendentes de Aprovação*\n\n"
    message += "📊 *RESUMO URGENTE*\n"
    message += f"   • Total: {group.count} nota(s)\n"
    message += f"   • Valor: {format_brl(group.total_amount)}\n"
    if critical > 0:
        message += f"   • 🔴 Críticas (>72h): {critical}\n"
    if urgent > 0:
        message += f"   • 🟡 Urgentes (>48h): {urgent}\n"
    message += f"\n{SEPARATOR}\n\n"

    message += "📋 *NOTAS MAIS ANTIGAS*\n\n"
    for note in group.notes[:max_items]:
        message += _format_note_entry(note, now, portal_url)

    remaining = group.count - max_items
    if remaining > 0:
        message += f"_...e mais {remaining} nota(s)_\n\n"

    message += f"{SEPARATOR}\n\n"
    message += f"🔗 *Portal:* {portal_url}/aprovar-nota\n\n"
    message += CALL_TO_ACTION

    return message
