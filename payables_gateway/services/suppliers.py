"""Supplier registry writes captured by the undo journal"""

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from payables_gateway.domain.exceptions import ValidationError
from payables_gateway.domain.models import UndoAction, UndoKind
from payables_gateway.infrastructure.database.models import Supplier
from payables_gateway.infrastructure.database.repositories import (
    SUPPLIER_TABLE,
    SupplierRepository,
)
from payables_gateway.services.undo import UndoJournal


class SupplierService:
    def __init__(self, db: Session, journal: UndoJournal):
        self.repo = SupplierRepository(db)
        self.store = self.repo.store
        self.journal = journal

    def list(self, active_only: bool = True) -> List[Supplier]:
        return self.repo.list_suppliers(active_only)

    def create(self, name: str, document: Optional[str] = None) -> Tuple[Dict[str, Any], UndoAction]:
        if not name or not name.strip():
            raise ValidationError("Informe o nome do fornecedor")
        row = self.store.insert(SUPPLIER_TABLE, {"name": name.strip(), "document": document, "active": True})
        self.store.commit()
        row = self.store.get(SUPPLIER_TABLE, row["id"])
        action = self.journal.record(UndoKind.INSERT, SUPPLIER_TABLE, row, f"Cadastro do fornecedor {row['name']}")
        return row, action

    def delete(self, supplier_id: Any) -> UndoAction:
        prior = self.store.delete(SUPPLIER_TABLE, supplier_id)
        self.store.commit()
        return self.journal.record(UndoKind.DELETE, SUPPLIER_TABLE, prior, f"Exclusão do fornecedor {prior['name']}")
