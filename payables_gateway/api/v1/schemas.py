"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from payables_gateway.config import settings
from payables_gateway.domain.models import InstallmentStatus, RecurrenceMode, UndoAction


class Notice(BaseModel):
    """Message handed to the notification layer"""

    severity: str  # info | warning | error
    title: str
    description: str


class ObligationRequestSchema(BaseModel):
    """Request body for POST /v1/obligations and /v1/obligations/preview"""

    description: str = Field(..., description="What is being paid")
    counterparty: Optional[str] = Field(None, description="Supplier name")
    category: Optional[str] = settings.default_category
    entity_id: Optional[str] = Field(None, description="Linked entity")
    start_date: Optional[date] = Field(None, description="First due date")
    mode: RecurrenceMode = RecurrenceMode.SINGLE
    value: Optional[Decimal] = Field(None, description="Total (single/installments) or per-period value (recurring)")
    installments: int = 1
    end_date: Optional[date] = None
    due_day: Optional[int] = Field(None, description="Force due dates onto this day of the month")
    fixed_value: bool = True
    document_number: Optional[str] = None
    payment_method: Optional[str] = None
    bank: Optional[str] = None
    notes: Optional[str] = None
    series_key: Optional[str] = Field(None, max_length=64, description="Idempotency key for retries")


class DraftSchema(BaseModel):
    """Installment produced by the scheduler, not yet persisted"""

    model_config = ConfigDict(from_attributes=True)

    description: str
    counterparty: str
    category: str
    entity_id: str
    due_date: date
    amount: Optional[Decimal]
    document_number: Optional[str] = None
    installment_number: Optional[int] = None
    total_installments: Optional[int] = None
    total_value: Optional[Decimal] = None
    is_recurring: bool = False
    recurrence_kind: Optional[str] = None
    fixed_value: Optional[bool] = None


class InstallmentSchema(DraftSchema):
    """Persisted installment"""

    id: str
    status: InstallmentStatus
    payment_date: Optional[date] = None
    payment_method: Optional[str] = None
    bank: Optional[str] = None
    attachment_path: Optional[str] = None
    notes: Optional[str] = None
    series_key: Optional[str] = None

    @classmethod
    def from_domain(cls, installment) -> "InstallmentSchema":
        data = {key: getattr(installment, key) for key in cls.model_fields if key != "id"}
        return cls(id=str(installment.id), **data)


class PreviewResponse(BaseModel):
    """Response for POST /v1/obligations/preview"""

    count: int
    total: Optional[Decimal]
    installments: List[DraftSchema]


class UndoActionSchema(BaseModel):
    """Journal entry as shown to the operator"""

    id: str
    kind: str
    table: str
    row_id: str
    description: str
    label: str
    warning: str
    timestamp: datetime

    @classmethod
    def from_action(cls, action: UndoAction) -> "UndoActionSchema":
        return cls(
            id=action.id,
            kind=action.kind.value,
            table=action.table,
            row_id=str(action.data["id"]),
            description=action.description,
            label=action.label,
            warning=action.warning,
            timestamp=action.timestamp,
        )


class ObligationResponse(BaseModel):
    """Response for POST /v1/obligations"""

    series_key: Optional[str]
    installments: List[InstallmentSchema]
    undo_actions: List[UndoActionSchema]
    notice: Notice


class InstallmentUpdate(BaseModel):
    """Editable fields for PATCH /v1/installments/{id}"""

    description: Optional[str] = None
    counterparty: Optional[str] = None
    amount: Optional[Decimal] = None
    due_date: Optional[date] = None
    category: Optional[str] = None
    notes: Optional[str] = None
    entity_id: Optional[str] = None
    payment_method: Optional[str] = None
    bank: Optional[str] = None
    document_number: Optional[str] = None
    attachment_path: Optional[str] = None


class PaymentRequest(BaseModel):
    """Request body for POST /v1/installments/{id}/payment"""

    payment_date: date
    amount: Optional[Decimal] = Field(None, gt=0)
    discount: Optional[Decimal] = Field(None, ge=0)
    payment_method: Optional[str] = None
    bank: Optional[str] = None
    document_number: Optional[str] = None


class MutationResponse(BaseModel):
    """Installment after a mutation with the undo action that reverts it"""

    installment: Optional[InstallmentSchema] = None
    undo_action: UndoActionSchema
    notice: Notice


class SummaryResponse(BaseModel):
    open: int
    overdue: int
    paid: int
    total: int


class StatementImportRequest(BaseModel):
    """Raw statement text read from the uploaded file"""

    content: str
    threshold: Optional[float] = Field(None, ge=0, le=1)


class BankTransactionSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    description: str
    value: Decimal
    kind: str


class MatchCandidateSchema(BaseModel):
    id: str
    score: float
    transaction: BankTransactionSchema
    installment: InstallmentSchema

    @classmethod
    def from_candidate(cls, candidate) -> "MatchCandidateSchema":
        return cls(
            id=candidate.id,
            score=round(candidate.score, 3),
            transaction=BankTransactionSchema.model_validate(candidate.transaction),
            installment=InstallmentSchema.from_domain(candidate.installment),
        )


class ReconciliationResponse(BaseModel):
    """Pending candidates of a statement import"""

    session_id: str
    transactions: int
    candidates: List[MatchCandidateSchema]
    notice: Optional[Notice] = None


class UndoRequest(BaseModel):
    """Operator confirmation for POST /v1/undo/{action_id}"""

    confirm: bool = False


class UndoResponse(BaseModel):
    undone: UndoActionSchema
    remaining: List[UndoActionSchema]
    notice: Notice


class SupplierCreate(BaseModel):
    name: str = Field(..., min_length=1)
    document: Optional[str] = None


class SupplierSchema(BaseModel):
    id: str
    name: str
    document: Optional[str] = None
    active: bool

    @classmethod
    def from_row(cls, row: Any) -> "SupplierSchema":
        if isinstance(row, dict):
            return cls(id=str(row["id"]), name=row["name"], document=row["document"], active=row["active"])
        return cls(id=str(row.id), name=row.name, document=row.document, active=row.active)


class SupplierResponse(BaseModel):
    supplier: SupplierSchema
    undo_action: UndoActionSchema
