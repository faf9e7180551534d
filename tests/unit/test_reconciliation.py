"""Unit tests for statement reconciliation"""

import pytest
from dataclasses import replace
from datetime import date
from decimal import Decimal
from sqlalchemy.orm import Session
from payables_gateway.domain.exceptions import NotFoundError, ParseError, PersistenceError, ValidationError
from payables_gateway.domain.models import InstallmentStatus, RecurrenceMode, UndoKind
from payables_gateway.infrastructure.database.repositories import RowStore
from payables_gateway.services.obligations import ObligationService
from payables_gateway.services.reconciliation import (
    STATEMENT_NOTE,
    ReconciliationRegistry,
    Reconciler,
)
from payables_gateway.services.undo import UndoJournal


STATEMENT = """Data,Descrição,Valor,Tipo
2024-01-05,"PAGAMENTO FORNECEDOR ABC LTDA",-100.00,debito
2024-01-06,"TED RECEBIDA CLIENTE XYZ",2300.00,credito
2024-01-07,"ALUGUEL IMOBILIARIA CENTRAL",-2500.00,debito
"""


@pytest.fixture
def reconciler(db: Session, journal: UndoJournal, today: date) -> Reconciler:
    return Reconciler(db, journal, today=today)


@pytest.fixture
def stored(db: Session, journal: UndoJournal, today: date, obligation_request):
    """Three ABC installments of 100.00 and one rent payable of 2500.00"""
    service = ObligationService(db, journal, today=today)
    abc, _ = service.create(obligation_request)
    rent, _ = service.create(
        replace(
            obligation_request,
            mode=RecurrenceMode.SINGLE,
            description="Aluguel",
            counterparty="Imobiliária Central",
            value=Decimal("2500.00"),
            start_date=date(2024, 1, 10),
        )
    )
    return abc, rent[0]


def test_import_ranks_debits_against_unpaid(reconciler: Reconciler, stored):
    session = reconciler.import_statement(STATEMENT)

    assert len(session.transactions) == 2
    scores = [c.score for c in session.candidates]
    assert scores == sorted(scores, reverse=True)
    assert session.candidates[0].score == pytest.approx(1.0)
    assert session.candidates[0].installment.counterparty == "Fornecedor ABC Ltda"
    assert all(c.score > 0.3 for c in session.candidates)


def test_import_skips_paid_installments(reconciler: Reconciler, db, journal, today, stored):
    abc, rent = stored
    service = ObligationService(db, journal, today=today)
    for installment in abc:
        service.pay(installment.id, payment_date=today)

    session = reconciler.import_statement(STATEMENT)

    assert {c.installment.id for c in session.candidates} == {rent.id}


def test_import_invalid_statement_raises(reconciler: Reconciler):
    with pytest.raises(ParseError):
        reconciler.import_statement("Data,Descrição,Valor,Tipo")


def test_confirm_marks_installment_paid(reconciler: Reconciler, journal, stored):
    session = reconciler.import_statement(STATEMENT)
    best = session.candidates[0]
    target = best.installment.id
    pending_for_target = [c for c in session.candidates if c.installment.id == target]
    assert len(pending_for_target) >= 1

    installment, action = reconciler.confirm(session, best.id)

    assert installment.status == InstallmentStatus.PAID
    assert installment.payment_date == date(2024, 1, 5)
    assert installment.notes == f"{STATEMENT_NOTE} - PAGAMENTO FORNECEDOR ABC LTDA"
    assert action.kind == UndoKind.UPDATE
    assert action.original_data["status"] == "open"
    assert journal.list()[0] is action
    assert all(c.installment.id != target for c in session.candidates)


def test_confirm_then_undo_reopens_installment(reconciler: Reconciler, journal, db, stored):
    session = reconciler.import_statement(STATEMENT)
    installment, action = reconciler.confirm(session, session.candidates[0].id)

    journal.undo(action.id, RowStore(db))

    restored = RowStore(db).get("ap_installment", installment.id)
    assert restored["payment_date"] is None
    assert restored["status"] == "open"
    assert restored["notes"] is None


def test_reject_has_no_side_effects(reconciler: Reconciler, journal, stored):
    session = reconciler.import_statement(STATEMENT)
    journal_size = len(journal)
    candidate = session.candidates[0]

    reconciler.reject(session, candidate.id)

    assert candidate not in session.candidates
    assert len(journal) == journal_size
    with pytest.raises(NotFoundError):
        reconciler.confirm(session, candidate.id)


def test_registry_lookup():
    registry = ReconciliationRegistry()
    with pytest.raises(NotFoundError):
        registry.get("missing")

    registry.close("missing")


def test_confirm_refuses_installment_paid_after_import(reconciler: Reconciler, db, journal, today, stored):
    session = reconciler.import_statement(STATEMENT)
    best = session.candidates[0]
    target = best.installment.id
    service = ObligationService(db, journal, today=today)
    service.pay(target, payment_date=date(2024, 1, 2), amount=Decimal("90.00"))
    journal_size = len(journal)

    with pytest.raises(ValidationError):
        reconciler.confirm(session, best.id)

    row = RowStore(db).get("ap_installment", target)
    assert row["payment_date"] == date(2024, 1, 2)
    assert row["notes"] is None
    assert len(journal) == journal_size
    assert all(c.installment.id != target for c in session.candidates)


def test_failed_confirmation_keeps_candidate_pending(reconciler: Reconciler, journal, stored, monkeypatch):
    session = reconciler.import_statement(STATEMENT)
    candidate = session.candidates[0]
    journal_size = len(journal)

    def reject_commit():
        reconciler.store.db.rollback()
        raise PersistenceError("Falha ao executar commit: OperationalError")

    monkeypatch.setattr(reconciler.store, "commit", reject_commit)

    with pytest.raises(PersistenceError):
        reconciler.confirm(session, candidate.id)

    assert session.get(candidate.id) is candidate
    assert len(journal) == journal_size
    monkeypatch.undo()
    assert reconciler.repo.get(candidate.installment.id).payment_date is None
