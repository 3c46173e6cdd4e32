"""
Pydantic schemas for the records read by a reminder run.

Rows come from PostgREST joins and are validated into typed models
right after retrieval. Shape problems surface as DataIntegrityError.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from reminder_engine.core.exceptions import DataIntegrityError


def _first_error(exc: ValidationError) -> tuple[str, str]:
    """Return (field path, message) of the first validation error."""
    error = exc.errors()[0]
    path = ".".join(str(part) for part in error.get("loc", ()))
    return path, error.get("msg", str(exc))


# ==========================================
# JOINED ENTITIES
# ==========================================

class Submitter(BaseModel):
    """Doctor who submitted the note (medicos)."""
    nome: str = Field(..., min_length=1)
    documento: Optional[str] = None
    especialidade: Optional[str] = None
    numero_whatsapp: Optional[str] = None


class Payment(BaseModel):
    """Payment the note refers to (pagamentos)."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    mes_competencia: str = Field(..., pattern=r"^\d{4}-\d{2}")
    valor: Decimal
    empresa_id: str
    medico: Submitter = Field(..., alias="medicos")

    @field_validator("id", "empresa_id", mode="before")
    @classmethod
    def coerce_identifier(cls, value: Any) -> Any:
        """Identifiers may arrive as UUID strings or integers."""
        if value is None or value == "":
            raise ValueError("identifier is required")
        return str(value)

    @field_validator("mes_competencia")
    @classmethod
    def check_month_range(cls, value: str) -> str:
        """YYYY-MM with a month between 01 and 12."""
        if not 1 <= int(value[5:7]) <= 12:
            raise ValueError(f"month out of range in {value!r}")
        return value

    @field_validator("valor", mode="before")
    @classmethod
    def reject_non_numeric_amount(cls, value: Any) -> Any:
        """Booleans and blanks are not amounts."""
        if isinstance(value, bool) or value is None or value == "":
            raise ValueError("amount must be numeric")
        return value

    @field_validator("medico", mode="before")
    @classmethod
    def unwrap_single_submitter(cls, value: Any) -> Any:
        """
        The join may return the doctor as an object or as an array.
        Only a single-element array is unambiguous.
        """
        if isinstance(value, list):
            if len(value) != 1:
                raise ValueError(
                    f"expected exactly one doctor record, got {len(value)}"
                )
            return value[0]
        return value


class PendingNote(BaseModel):
    """A note awaiting manager approval (notas_medicos)."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    status: str
    created_at: datetime
    created_at_raw: str
    arquivo_url: Optional[str] = None
    pagamento_id: Optional[str] = None
    pagamento: Payment = Field(..., alias="pagamentos")

    @model_validator(mode="before")
    @classmethod
    def keep_raw_timestamp(cls, data: Any) -> Any:
        """Keep the timestamp exactly as stored; link tokens are derived from it."""
        if isinstance(data, dict) and "created_at_raw" not in data:
            created_at = data.get("created_at")
            data = dict(data)
            data["created_at_raw"] = (
                created_at.isoformat() if isinstance(created_at, datetime) else str(created_at)
            )
        return data

    @field_validator("id", "pagamento_id", mode="before")
    @classmethod
    def coerce_identifier(cls, value: Any) -> Any:
        return None if value is None else str(value)

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        """Naive timestamps from the store are UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def empresa_id(self) -> str:
        return self.pagamento.empresa_id

    @property
    def amount(self) -> Decimal:
        return self.pagamento.valor

    @property
    def doctor_name(self) -> str:
        return self.pagamento.medico.nome

    @classmethod
    def from_row(cls, row: dict) -> "PendingNote":
        """
        Validate a joined notas_medicos row.

        Raises:
            DataIntegrityError: If the row (or its payment/doctor) is malformed
        """
        try:
            return cls.model_validate(row)
        except ValidationError as e:
            field, msg = _first_error(e)
            raise DataIntegrityError(
                f"Invalid pending note {row.get('id')}: {field}: {msg}",
                entity="notas_medicos",
                entity_id=str(row.get("id")),
                field=field
            ) from e


class Manager(BaseModel):
    """Organization manager who may receive digests (profiles)."""
    id: str
    name: Optional[str] = None
    numero_whatsapp: Optional[str] = None
    empresa_id: Optional[str] = None
    whatsapp_notifications_enabled: bool = True

    @field_validator("id", "empresa_id", mode="before")
    @classmethod
    def coerce_identifier(cls, value: Any) -> Any:
        return None if value is None else str(value)

    @property
    def is_eligible(self) -> bool:
        """Opted in and has a non-blank WhatsApp number."""
        return bool(
            self.whatsapp_notifications_enabled
            and self.numero_whatsapp
            and self.numero_whatsapp.strip()
        )

    @property
    def display_name(self) -> str:
        return self.name or self.id

    @classmethod
    def from_row(cls, row: dict) -> "Manager":
        try:
            return cls.model_validate(row)
        except ValidationError as e:
            field, msg = _first_error(e)
            raise DataIntegrityError(
                f"Invalid manager profile {row.get('id')}: {field}: {msg}",
                entity="profiles",
                entity_id=str(row.get("id")),
                field=field
            ) from e
