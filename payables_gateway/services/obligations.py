"""Obligation lifecycle: scheduling, payment entry, edits and deletion"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from payables_gateway.domain.exceptions import ValidationError
from payables_gateway.domain.installments import derive_status, generate_schedule, to_cents
from payables_gateway.domain.models import (
    Installment,
    InstallmentDraft,
    InstallmentStatus,
    ObligationRequest,
    UndoAction,
    UndoKind,
)
from payables_gateway.infrastructure.database.repositories import (
    INSTALLMENT_TABLE,
    InstallmentRepository,
    snapshot,
    to_domain,
)
from payables_gateway.infrastructure.observability.logging import log_obligation_created, log_payment
from payables_gateway.infrastructure.observability.metrics import payment_counter, record_obligation
from payables_gateway.services.undo import UndoJournal

EDITABLE_FIELDS = (
    "description",
    "counterparty",
    "amount",
    "due_date",
    "category",
    "notes",
    "entity_id",
    "payment_method",
    "bank",
    "document_number",
    "attachment_path",
)


def append_note(notes: Optional[str], note: str) -> str:
    return f"{notes} | {note}" if notes else note


class ObligationService:
    """
    Creates and mutates installments, recording every committed change in
    the undo journal with the snapshot taken before the write.
    """

    def __init__(self, db: Session, journal: UndoJournal, today: Optional[date] = None):
        self.repo = InstallmentRepository(db)
        self.store = self.repo.store
        self.journal = journal
        self.today = today

    def preview(self, request: ObligationRequest) -> List[InstallmentDraft]:
        return generate_schedule(request)

    def create(self, request: ObligationRequest) -> Tuple[List[Installment], List[UndoAction]]:
        """
        Generate and persist an obligation series in a single transaction.

        Re-submitting with a series key that is already stored returns the
        stored rows and records nothing.
        """
        if request.series_key:
            existing = self.repo.get_series(request.series_key)
            if existing:
                return [to_domain(row, self.today) for row in existing], []

        drafts = generate_schedule(request)
        rows = self.repo.create_series(drafts, self.today)
        self.store.commit()

        total = len(rows)
        actions = []
        for position, row in enumerate(rows, start=1):
            label = f"{row.description} - {row.counterparty}"
            if total > 1:
                label = f"{label} ({row.installment_number or position}/{total})"
            actions.append(
                self.journal.record(UndoKind.INSERT, INSTALLMENT_TABLE, snapshot(row), f"Cadastro de {label}")
            )

        record_obligation(request.mode.value, total)
        log_obligation_created(drafts[0].series_key, request.mode.value, drafts[0].counterparty, total)
        return [to_domain(row, self.today) for row in rows], actions

    def get(self, installment_id: Any) -> Installment:
        self.repo.refresh_overdue(self.today)
        return to_domain(self.repo.get(installment_id), self.today)

    def list(self, **filters) -> List[Installment]:
        self.repo.refresh_overdue(self.today)
        return [to_domain(row, self.today) for row in self.repo.list_installments(**filters)]

    def summary(self) -> Dict[str, int]:
        self.repo.refresh_overdue(self.today)
        return self.repo.count_by_status()

    def pay(
        self,
        installment_id: Any,
        payment_date: date,
        amount: Optional[Decimal] = None,
        discount: Optional[Decimal] = None,
        payment_method: Optional[str] = None,
        bank: Optional[str] = None,
        document_number: Optional[str] = None,
    ) -> Tuple[Installment, UndoAction]:
        """Register a direct payment; the final amount is amount minus discount"""
        prior = snapshot(self.repo.get(installment_id))
        if prior["payment_date"] is not None:
            raise ValidationError("Esta parcela já está paga")

        base = amount if amount is not None else prior["amount"]
        if base is None:
            raise ValidationError("Informe o valor pago")
        final = base - (discount or Decimal("0"))
        if final <= 0:
            raise ValidationError("O valor pago deve ser maior que zero")

        changes = {
            "payment_date": payment_date,
            "status": InstallmentStatus.PAID.value,
            "amount": final,
            "payment_method": payment_method,
            "bank": bank,
            "document_number": document_number or prior["document_number"],
        }
        if discount:
            changes["notes"] = append_note(prior["notes"], f"Desconto: R$ {discount}")

        installment, action = self._update(prior, changes, f"Pagamento de {prior['counterparty']}")
        payment_counter.labels(action="registered").inc()
        log_payment(str(installment.id), "registered", payment_date.isoformat())
        return installment, action

    def cancel_payment(self, installment_id: Any) -> Tuple[Installment, UndoAction]:
        """Revert a paid installment to open or overdue"""
        prior = snapshot(self.repo.get(installment_id))
        if prior["payment_date"] is None:
            raise ValidationError("Esta parcela não possui pagamento registrado")

        changes = {
            "payment_date": None,
            "payment_method": None,
            "bank": None,
            "status": derive_status(prior["due_date"], None, self.today).value,
        }
        installment, action = self._update(
            prior, changes, f"Cancelamento do pagamento de {prior['counterparty']}"
        )
        payment_counter.labels(action="cancelled").inc()
        log_payment(str(installment.id), "cancelled", None)
        return installment, action

    def edit(self, installment_id: Any, changes: Dict[str, Any]) -> Tuple[Installment, UndoAction]:
        prior = snapshot(self.repo.get(installment_id))
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Campos não editáveis: {', '.join(sorted(unknown))}")
        for required in ("description", "counterparty", "category", "entity_id", "due_date"):
            if required in changes and not changes[required]:
                raise ValidationError(f"O campo {required} é obrigatório")
        if "amount" in changes:
            if changes["amount"] is None and prior["fixed_value"] is not False:
                raise ValidationError("Informe o valor da parcela")
            if changes["amount"] is not None and to_cents(changes["amount"]) <= 0:
                raise ValidationError("Informe um valor maior que zero")

        changes = dict(changes)
        changes["status"] = derive_status(
            changes.get("due_date", prior["due_date"]), prior["payment_date"], self.today
        ).value
        return self._update(prior, changes, f"Edição de {prior['description']} - {prior['counterparty']}")

    def delete(self, installment_id: Any) -> UndoAction:
        prior = self.store.delete(INSTALLMENT_TABLE, installment_id)
        self.store.commit()
        return self.journal.record(
            UndoKind.DELETE,
            INSTALLMENT_TABLE,
            prior,
            f"Exclusão de {prior['description']} - {prior['counterparty']}",
        )

    def _update(self, prior: Dict[str, Any], changes: Dict[str, Any], description: str) -> Tuple[Installment, UndoAction]:
        self.store.update(INSTALLMENT_TABLE, prior["id"], changes)
        self.store.commit()
        row = self.repo.get(prior["id"])
        action = self.journal.record(
            UndoKind.UPDATE, INSTALLMENT_TABLE, snapshot(row), description, original_data=prior
        )
        return to_domain(row, self.today), action
