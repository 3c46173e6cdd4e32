"""
Supabase database client management.

Read-only gateway over the tables the reminder run needs:
- configuracoes: stored reminder interval
- notas_medicos (+ pagamentos, medicos): pending notes with their payment and doctor
- profiles: organization managers and their WhatsApp opt-in

Also exposes edge function invocation, used by the default notification channel.
"""
from datetime import datetime
from functools import lru_cache
from typing import Any, Optional

from supabase import create_client, Client

from .config import settings
from .exceptions import DatabaseError


PENDING_STATUS = "pendente"
MANAGER_ROLE = "gestor"

PENDING_NOTE_SELECT = """
    id,
    status,
    created_at,
    arquivo_url,
    pagamento_id,
    pagamentos (
        id,
        mes_competencia,
        valor,
        empresa_id,
        medicos (
            nome,
            documento,
            especialidade,
            numero_whatsapp
        )
    )
"""


class SupabaseClient:
    """
    Wrapper for the Supabase client.
    Provides methods for the queries used by a reminder run.

    Every read failure is re-raised as DatabaseError carrying the
    driver's message, so the caller decides whether it is fatal.
    """

    def __init__(self, client: Optional[Client] = None):
        if client is None:
            client = create_client(
                settings.supabase_url,
                settings.supabase_service_role_key
            )
        self._client = client

    @property
    def client(self) -> Client:
        """Get the Supabase client instance."""
        if self._client is None:
            raise RuntimeError("Supabase client not initialized")
        return self._client

    # ==========================================
    # CONFIGURATION
    # ==========================================

    def get_reminder_interval_hours(self) -> Optional[Any]:
        """
        Fetch the stored reminder interval (raw value, may be None).

        Validation and defaulting happen in the staleness selector.
        """
        try:
            response = (
                self.client.table("configuracoes")
                .select("intervalo_cobranca_nota_horas")
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(
                str(e),
                table="configuracoes",
                operation="select",
                original_error=repr(e)
            ) from e

        if not response.data:
            return None
        return response.data[0].get("intervalo_cobranca_nota_horas")

    # ==========================================
    # PENDING NOTES
    # ==========================================

    def get_pending_notes_before(self, created_before: datetime) -> list[dict]:
        """
        Fetch pending notes created before the cutoff, oldest first.

        Rows carry the joined payment (pagamentos) and doctor (medicos).
        """
        try:
            response = (
                self.client.table("notas_medicos")
                .select(PENDING_NOTE_SELECT)
                .eq("status", PENDING_STATUS)
                .lt("created_at", created_before.isoformat())
                .order("created_at", desc=False)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(
                str(e),
                table="notas_medicos",
                operation="select",
                original_error=repr(e)
            ) from e

        return response.data or []

    # ==========================================
    # MANAGERS
    # ==========================================

    def get_notifiable_managers(self, empresa_id: str) -> list[dict]:
        """Fetch managers of an organization who opted in to WhatsApp notifications."""
        try:
            response = (
                self.client.table("profiles")
                .select("id, name, numero_whatsapp, empresa_id, whatsapp_notifications_enabled")
                .eq("role", MANAGER_ROLE)
                .eq("empresa_id", empresa_id)
                .eq("whatsapp_notifications_enabled", True)
                .not_.is_("numero_whatsapp", "null")
                .execute()
            )
        except Exception as e:
            raise DatabaseError(
                str(e),
                table="profiles",
                operation="select",
                original_error=repr(e)
            ) from e

        return response.data or []

    # ==========================================
    # EDGE FUNCTIONS
    # ==========================================

    def invoke_function(self, function_name: str, body: dict) -> Any:
        """Invoke a Supabase edge function; raises on transport or HTTP errors."""
        return self.client.functions.invoke(
            function_name,
            invoke_options={"body": body}
        )


@lru_cache
def get_supabase_client() -> SupabaseClient:
    """Get the shared Supabase client instance."""
    return SupabaseClient()
