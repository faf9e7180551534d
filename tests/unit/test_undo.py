"""Unit tests for the undo journal"""

import pytest
from unittest.mock import MagicMock
from sqlalchemy.orm import Session
from payables_gateway.domain.exceptions import NotFoundError, PersistenceError, ValidationError
from payables_gateway.domain.models import ObligationRequest, UndoKind
from payables_gateway.infrastructure.database.repositories import INSTALLMENT_TABLE, SUPPLIER_TABLE, RowStore
from payables_gateway.services.obligations import ObligationService
from payables_gateway.services.undo import UndoJournal


def test_record_keeps_newest_first_and_caps_at_capacity():
    journal = UndoJournal(capacity=10)
    actions = [
        journal.record(UndoKind.INSERT, SUPPLIER_TABLE, {"id": str(i)}, f"Ação {i}") for i in range(15)
    ]

    assert len(journal) == 10
    assert journal.list()[0] is actions[-1]
    assert journal.list()[-1] is actions[5]
    with pytest.raises(NotFoundError):
        journal.get(actions[0].id)


def test_update_requires_original_data():
    journal = UndoJournal()
    with pytest.raises(ValidationError):
        journal.record(UndoKind.UPDATE, INSTALLMENT_TABLE, {"id": "1"}, "Edição")


def test_undo_delete_restores_snapshot(db: Session, journal: UndoJournal, obligation_request: ObligationRequest, today):
    service = ObligationService(db, journal, today=today)
    installments, _ = service.create(obligation_request)
    target = installments[1]
    store = RowStore(db)
    before = store.get(INSTALLMENT_TABLE, target.id)

    action = service.delete(target.id)
    assert store.get(INSTALLMENT_TABLE, target.id) is None

    journal.undo(action.id, store)

    assert store.get(INSTALLMENT_TABLE, target.id) == before
    assert action not in journal.list()


def test_undo_insert_removes_exactly_that_row(db: Session, journal: UndoJournal, obligation_request: ObligationRequest, today):
    service = ObligationService(db, journal, today=today)
    installments, actions = service.create(obligation_request)
    store = RowStore(db)

    # actions are recorded in series order; the newest is the last installment
    newest = journal.list()[0]
    assert newest is actions[-1]

    journal.undo(newest.id, store)

    assert store.get(INSTALLMENT_TABLE, installments[2].id) is None
    assert store.get(INSTALLMENT_TABLE, installments[0].id) is not None
    assert store.get(INSTALLMENT_TABLE, installments[1].id) is not None


def test_undo_update_overwrites_with_prior_payload(db: Session, journal: UndoJournal, obligation_request: ObligationRequest, today):
    service = ObligationService(db, journal, today=today)
    installments, _ = service.create(obligation_request)
    store = RowStore(db)
    before = store.get(INSTALLMENT_TABLE, installments[0].id)

    _, action = service.pay(installments[0].id, payment_date=today, payment_method="PIX")
    journal.undo(action.id, store)

    restored = store.get(INSTALLMENT_TABLE, installments[0].id)
    assert restored["payment_date"] is None
    assert restored["status"] == "open"
    assert restored["payment_method"] is None
    assert restored["amount"] == before["amount"]


def test_action_can_only_be_undone_once(db: Session, journal: UndoJournal, obligation_request: ObligationRequest, today):
    service = ObligationService(db, journal, today=today)
    installments, _ = service.create(obligation_request)
    action = service.delete(installments[0].id)
    store = RowStore(db)

    journal.undo(action.id, store)
    with pytest.raises(NotFoundError):
        journal.undo(action.id, store)


def test_missing_target_keeps_action_for_retry(db: Session, journal: UndoJournal, obligation_request: ObligationRequest, today):
    service = ObligationService(db, journal, today=today)
    installments, _ = service.create(obligation_request)
    _, action = service.pay(installments[0].id, payment_date=today)
    service.delete(installments[0].id)

    with pytest.raises(NotFoundError):
        journal.undo(action.id, RowStore(db))

    assert journal.get(action.id) is action


def test_store_failure_keeps_action_for_retry():
    journal = UndoJournal()
    action = journal.record(UndoKind.INSERT, INSTALLMENT_TABLE, {"id": "abc"}, "Cadastro")
    store = MagicMock(spec=RowStore)
    store.delete.side_effect = PersistenceError("banco indisponível")

    with pytest.raises(PersistenceError):
        journal.undo(action.id, store)

    assert journal.list() == [action]
    store.commit.assert_not_called()
