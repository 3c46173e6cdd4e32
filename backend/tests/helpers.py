"""
Test helper functions for the reminder service.

Build rows shaped like the Supabase join results.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, Optional
from uuid import uuid4


def note_row(
    created_at: datetime,
    *,
    empresa_id: str = "empresa-1",
    valor: Any = 100,
    nome: str = "Dra. Ana Souza",
    mes_competencia: str = "2025-03",
    status: str = "pendente",
    note_id: Optional[str] = None,
    medicos_as_list: bool = False,
) -> Dict[str, Any]:
    """A notas_medicos row with its joined pagamentos and medicos."""
    medico = {
        "nome": nome,
        "documento": "123.456.789-00",
        "especialidade": "Clínica Geral",
        "numero_whatsapp": "5511999990000",
    }
    pagamento_id = str(uuid4())
    return {
        "id": note_id or str(uuid4()),
        "status": status,
        "created_at": created_at.isoformat(),
        "arquivo_url": "https://storage.example.com/nota.pdf",
        "pagamento_id": pagamento_id,
        "pagamentos": {
            "id": pagamento_id,
            "mes_competencia": mes_competencia,
            "valor": valor,
            "empresa_id": empresa_id,
            "medicos": [medico] if medicos_as_list else medico,
        },
    }


def aged_note_row(now: datetime, hours: float, **kwargs) -> Dict[str, Any]:
    """A note created `hours` before `now`."""
    return note_row(now - timedelta(hours=hours), **kwargs)


def manager_row(
    numero_whatsapp: Optional[str],
    *,
    empresa_id: str = "empresa-1",
    name: str = "Gestor",
    enabled: bool = True,
    role: str = "gestor",
) -> Dict[str, Any]:
    """A profiles row."""
    return {
        "id": str(uuid4()),
        "name": name,
        "numero_whatsapp": numero_whatsapp,
        "empresa_id": empresa_id,
        "whatsapp_notifications_enabled": enabled,
        "role": role,
    }
