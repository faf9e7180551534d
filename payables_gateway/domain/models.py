"""Domain models - pure Python dataclasses representing business entities"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional


class InstallmentStatus(str, Enum):
    OPEN = "open"
    OVERDUE = "overdue"
    PAID = "paid"


class RecurrenceMode(str, Enum):
    """How a declared obligation expands into installments"""

    SINGLE = "single"
    INSTALLMENTS = "installments"
    RECURRING = "recurring"


class UndoKind(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class ObligationRequest:
    """A single declared payable intent, as entered by the operator"""

    description: str
    counterparty: Optional[str]
    category: Optional[str]
    entity_id: Optional[str]
    start_date: Optional[date]
    mode: RecurrenceMode = RecurrenceMode.SINGLE
    value: Optional[Decimal] = None  # Total for single/installments, per-period for recurring
    installments: int = 1
    end_date: Optional[date] = None
    due_day: Optional[int] = None
    fixed_value: bool = True  # Recurring only: False leaves amounts for manual entry
    document_number: Optional[str] = None
    payment_method: Optional[str] = None
    bank: Optional[str] = None
    notes: Optional[str] = None
    series_key: Optional[str] = None


@dataclass
class InstallmentDraft:
    """Installment ready for persistence, produced by the scheduler"""

    description: str
    counterparty: str
    category: str
    entity_id: str
    due_date: date
    amount: Optional[Decimal]
    series_key: str
    document_number: Optional[str] = None
    payment_method: Optional[str] = None
    bank: Optional[str] = None
    notes: Optional[str] = None
    installment_number: Optional[int] = None
    total_installments: Optional[int] = None
    total_value: Optional[Decimal] = None
    is_recurring: bool = False
    recurrence_kind: Optional[str] = None
    fixed_value: Optional[bool] = None


@dataclass
class Installment:
    """Single payable due on a date"""

    id: uuid.UUID
    description: str
    counterparty: str
    amount: Optional[Decimal]
    due_date: date
    status: InstallmentStatus
    entity_id: str
    category: str = "Geral"
    payment_date: Optional[date] = None
    payment_method: Optional[str] = None
    bank: Optional[str] = None
    document_number: Optional[str] = None
    attachment_path: Optional[str] = None
    notes: Optional[str] = None
    installment_number: Optional[int] = None
    total_installments: Optional[int] = None
    total_value: Optional[Decimal] = None
    is_recurring: bool = False
    recurrence_kind: Optional[str] = None
    fixed_value: Optional[bool] = None
    series_key: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class BankTransaction:
    """One debit line parsed from an imported statement"""

    date: date
    description: str
    value: Decimal  # Absolute debit value
    kind: str = "debit"


@dataclass
class MatchCandidate:
    """Scored pairing of a bank transaction with an open installment"""

    transaction: BankTransaction
    installment: Installment
    score: float
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass
class UndoAction:
    """Compensating action for one recorded mutation"""

    kind: UndoKind
    table: str
    data: Dict[str, Any]
    description: str
    original_data: Optional[Dict[str, Any]] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def warning(self) -> str:
        """Text shown by the confirmation gate before the undo runs"""
        if self.kind == UndoKind.DELETE:
            return "O item será restaurado no sistema."
        if self.kind == UndoKind.UPDATE:
            return "Os dados serão revertidos para o estado anterior."
        return "O item será removido permanentemente."

    @property
    def label(self) -> str:
        return f"{self.description} ({self.timestamp.strftime('%H:%M')})"
