"""Obligation scheduling: expand a declared payable into installments"""

import uuid
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from payables_gateway.config import settings
from payables_gateway.domain.exceptions import ValidationError
from payables_gateway.domain.models import (
    InstallmentDraft,
    InstallmentStatus,
    ObligationRequest,
    RecurrenceMode,
)
from payables_gateway.utils.date_utils import add_months

CENT = Decimal("0.01")
MONTHLY = "monthly"


def derive_status(due_date: date, payment_date: Optional[date], today: Optional[date] = None) -> InstallmentStatus:
    """paid iff a payment date is set; overdue iff due before today and unpaid; open otherwise"""
    if payment_date is not None:
        return InstallmentStatus.PAID
    today = today or date.today()
    if due_date < today:
        return InstallmentStatus.OVERDUE
    return InstallmentStatus.OPEN


def to_cents(value: Decimal) -> int:
    """Whole cents of a money value, rounded half up"""
    return int((value.quantize(CENT, rounding=ROUND_HALF_UP) * 100).to_integral_value())


def split_amount(total: Decimal, count: int) -> List[Decimal]:
    """
    Split a total into `count` per-period amounts.

    Works in integer cents; the last amount absorbs the rounding remainder so
    the parts always add up to the total to the cent.

    Example:
        100.00 / 3 -> [33.33, 33.33, 33.34]
    """
    total_cents = to_cents(total)
    base_cents, remainder = divmod(total_cents, count)

    amounts = []
    for i in range(count):
        cents = base_cents + (remainder if i == count - 1 else 0)
        amounts.append((Decimal(cents) / 100).quantize(CENT))
    return amounts


def validate_request(request: ObligationRequest) -> None:
    """Raise ValidationError describing the first problem found in the request"""
    if not request.description or not request.description.strip():
        raise ValidationError("Informe a descrição da despesa")
    if not request.counterparty or not request.counterparty.strip():
        raise ValidationError("Informe o fornecedor")
    if not request.category or not request.category.strip():
        raise ValidationError("Informe a categoria")
    if not request.entity_id:
        raise ValidationError("Informe a entidade vinculada")
    if request.start_date is None:
        raise ValidationError("Informe a data de início / vencimento")

    if not request.fixed_value and request.mode != RecurrenceMode.RECURRING:
        raise ValidationError("Valor variável só é permitido para despesas recorrentes")
    if request.fixed_value and (request.value is None or to_cents(request.value) <= 0):
        raise ValidationError("Informe um valor maior que zero")

    if request.mode == RecurrenceMode.INSTALLMENTS:
        if not 1 <= request.installments <= settings.max_installments:
            raise ValidationError(
                f"Número de parcelas deve estar entre 1 e {settings.max_installments}"
            )
        if to_cents(request.value) < request.installments:
            raise ValidationError("Valor insuficiente para o número de parcelas")

    if request.due_day is not None and not 1 <= request.due_day <= 31:
        raise ValidationError("Dia de vencimento deve estar entre 1 e 31")
    if request.end_date is not None and request.end_date < request.start_date:
        raise ValidationError("Data final anterior à data inicial")


def generate_schedule(request: ObligationRequest, horizon: Optional[int] = None) -> List[InstallmentDraft]:
    """
    Turn an obligation request into ordered installment drafts.

    Modes:
    - single: one draft due on the start date
    - installments: N drafts one month apart, total split evenly, last absorbs rounding
    - recurring: one draft per month until end_date is passed, or `horizon`
      periods (default settings.recurring_horizon_months) without an end date

    A due_day override forces every installment/recurring due date onto that
    day of its month, clamped to the month's last day.

    Raises:
        ValidationError: On missing fields, non-positive value, or N out of range
    """
    validate_request(request)
    series_key = request.series_key or str(uuid.uuid4())

    if request.mode == RecurrenceMode.SINGLE:
        return [
            _draft(
                request,
                series_key,
                due_date=request.start_date,
                amount=request.value.quantize(CENT, rounding=ROUND_HALF_UP),
                document_number=request.document_number,
            )
        ]

    if request.mode == RecurrenceMode.INSTALLMENTS:
        count = request.installments
        total = request.value.quantize(CENT, rounding=ROUND_HALF_UP)
        drafts = []
        for i, amount in enumerate(split_amount(total, count)):
            document_number = (
                f"{request.document_number}-{i + 1}/{count}" if request.document_number else None
            )
            drafts.append(
                _draft(
                    request,
                    series_key,
                    due_date=add_months(request.start_date, i, request.due_day),
                    amount=amount,
                    document_number=document_number,
                    installment_number=i + 1,
                    total_installments=count,
                    total_value=total,
                )
            )
        return drafts

    horizon = horizon or settings.recurring_horizon_months
    amount = request.value.quantize(CENT, rounding=ROUND_HALF_UP) if request.fixed_value else None
    drafts = []
    for i in range(horizon):
        due_date = add_months(request.start_date, i, request.due_day)
        if request.end_date is not None and due_date > request.end_date:
            break
        drafts.append(
            _draft(
                request,
                series_key,
                due_date=due_date,
                amount=amount,
                document_number=f"REC-{due_date:%Y%m%d}-{i + 1:03d}",
                total_value=amount,
                is_recurring=True,
                recurrence_kind=MONTHLY,
                fixed_value=request.fixed_value,
            )
        )
    if not drafts:
        raise ValidationError("Nenhum vencimento cai dentro do período informado")
    return drafts


def _draft(request: ObligationRequest, series_key: str, **fields) -> InstallmentDraft:
    return InstallmentDraft(
        description=request.description.strip(),
        counterparty=request.counterparty.strip(),
        category=request.category.strip(),
        entity_id=request.entity_id,
        series_key=series_key,
        payment_method=request.payment_method,
        bank=request.bank,
        notes=request.notes,
        **fields,
    )
