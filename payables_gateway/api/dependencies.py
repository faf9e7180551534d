"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from payables_gateway.infrastructure.database.session import get_db
from payables_gateway.services.obligations import ObligationService
from payables_gateway.services.reconciliation import Reconciler, ReconciliationRegistry
from payables_gateway.services.suppliers import SupplierService
from payables_gateway.services.undo import UndoJournal


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_undo_journal(request: Request) -> UndoJournal:
    """Journal owned by the running application instance"""
    return request.app.state.undo_journal


def get_reconciliation_registry(request: Request) -> ReconciliationRegistry:
    return request.app.state.reconciliations


def get_obligation_service(
    db: Session = Depends(get_db),
    journal: UndoJournal = Depends(get_undo_journal),
) -> ObligationService:
    return ObligationService(db, journal)


def get_reconciler(
    db: Session = Depends(get_db),
    journal: UndoJournal = Depends(get_undo_journal),
) -> Reconciler:
    return Reconciler(db, journal)


def get_supplier_service(
    db: Session = Depends(get_db),
    journal: UndoJournal = Depends(get_undo_journal),
) -> SupplierService:
    return SupplierService(db, journal)
