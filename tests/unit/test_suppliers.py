"""Unit tests for the supplier registry"""

import pytest
from unittest.mock import MagicMock
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from payables_gateway.domain.exceptions import PersistenceError, ValidationError
from payables_gateway.domain.models import UndoKind
from payables_gateway.infrastructure.database.repositories import SupplierRepository
from payables_gateway.services.suppliers import SupplierService
from payables_gateway.services.undo import UndoJournal


def test_create_list_and_delete(db: Session, journal: UndoJournal):
    service = SupplierService(db, journal)

    supplier, created = service.create("  Fornecedor ABC Ltda ", "12.345.678/0001-90")
    assert supplier["name"] == "Fornecedor ABC Ltda"
    assert created.kind == UndoKind.INSERT
    assert [s.name for s in service.list()] == ["Fornecedor ABC Ltda"]

    deleted = service.delete(supplier["id"])
    assert deleted.kind == UndoKind.DELETE
    assert service.list() == []


def test_blank_name_is_rejected(db: Session, journal: UndoJournal):
    with pytest.raises(ValidationError):
        SupplierService(db, journal).create("   ")


def test_list_failure_becomes_persistence_error():
    db = MagicMock(spec=Session)
    query = db.query.return_value.filter.return_value.order_by.return_value
    query.all.side_effect = OperationalError("SELECT", {}, Exception("connection lost"))

    with pytest.raises(PersistenceError):
        SupplierRepository(db).list_suppliers()

    db.rollback.assert_called_once()
