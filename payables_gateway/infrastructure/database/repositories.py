"""Data access layer for payables entities"""

import uuid
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import func, inspect, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from payables_gateway.domain.exceptions import NotFoundError, PersistenceError, ValidationError
from payables_gateway.domain.installments import derive_status
from payables_gateway.domain.models import Installment, InstallmentDraft, InstallmentStatus
from payables_gateway.infrastructure.database.models import APInstallment, Base, Supplier
from payables_gateway.infrastructure.observability.metrics import store_failures_counter

INSTALLMENT_TABLE = APInstallment.__tablename__
SUPPLIER_TABLE = Supplier.__tablename__

TABLES = {
    INSTALLMENT_TABLE: APInstallment,
    SUPPLIER_TABLE: Supplier,
}


def snapshot(row: Base) -> Dict[str, Any]:
    """Full column payload of a mapped row"""
    return {attr.key: getattr(row, attr.key) for attr in inspect(row).mapper.column_attrs}


def to_domain(row: APInstallment, today: Optional[date] = None) -> Installment:
    """Map an installment row to its domain dataclass, status derived from its dates as of `today`"""
    return Installment(
        id=row.id,
        description=row.description,
        counterparty=row.counterparty,
        amount=row.amount,
        due_date=row.due_date,
        status=derive_status(row.due_date, row.payment_date, today),
        entity_id=row.entity_id,
        category=row.category,
        payment_date=row.payment_date,
        payment_method=row.payment_method,
        bank=row.bank,
        document_number=row.document_number,
        attachment_path=row.attachment_path,
        notes=row.notes,
        installment_number=row.installment_number,
        total_installments=row.total_installments,
        total_value=row.total_value,
        is_recurring=bool(row.is_recurring),
        recurrence_kind=row.recurrence_kind,
        fixed_value=row.fixed_value,
        series_key=row.series_key,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_id(row_id: Any) -> uuid.UUID:
    if isinstance(row_id, uuid.UUID):
        return row_id
    try:
        return uuid.UUID(str(row_id))
    except ValueError:
        raise NotFoundError(f"Registro {row_id!r} não encontrado")


class RowStore:
    """
    Row-level CRUD keyed by table name and id.

    Writes are flushed, not committed; call commit() to end the unit of work.
    Any SQLAlchemy failure rolls the session back and surfaces as PersistenceError.
    """

    def __init__(self, db: Session):
        self.db = db

    def _model(self, table: str):
        try:
            return TABLES[table]
        except KeyError:
            raise ValidationError(f"Tabela desconhecida: {table}")

    def fail(self, operation: str, error: SQLAlchemyError) -> PersistenceError:
        self.db.rollback()
        store_failures_counter.labels(operation=operation).inc()
        return PersistenceError(f"Falha ao executar {operation}: {error.__class__.__name__}")

    def load(self, table: str, row_id: Any) -> Base:
        model = self._model(table)
        try:
            row = self.db.get(model, _row_id(row_id))
        except SQLAlchemyError as e:
            raise self.fail("read", e) from e
        if row is None:
            raise NotFoundError(f"Registro {row_id} não encontrado em {table}")
        return row

    def get(self, table: str, row_id: Any) -> Optional[Dict[str, Any]]:
        try:
            return snapshot(self.load(table, row_id))
        except NotFoundError:
            return None

    def insert(self, table: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        row = self._model(table)(**payload)
        try:
            self.db.add(row)
            self.db.flush()
            return snapshot(row)
        except SQLAlchemyError as e:
            raise self.fail("insert", e) from e

    def update(self, table: str, row_id: Any, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Write every given column except the id; a full payload overwrites the row"""
        row = self.load(table, row_id)
        try:
            for key, value in payload.items():
                if key != "id":
                    setattr(row, key, value)
            self.db.flush()
            return snapshot(row)
        except SQLAlchemyError as e:
            raise self.fail("update", e) from e

    def delete(self, table: str, row_id: Any) -> Dict[str, Any]:
        """Delete a row and return its last snapshot"""
        row = self.load(table, row_id)
        try:
            payload = snapshot(row)
            self.db.delete(row)
            self.db.flush()
            return payload
        except SQLAlchemyError as e:
            raise self.fail("delete", e) from e

    def commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            raise self.fail("commit", e) from e


class InstallmentRepository:
    """Repository for payable installments"""

    def __init__(self, db: Session):
        self.db = db
        self.store = RowStore(db)

    def create_series(self, drafts: List[InstallmentDraft], today: Optional[date] = None) -> List[APInstallment]:
        """
        Persist all drafts of one obligation in the current transaction.

        Callers check get_series() first when retrying with a known series key.
        """
        if not drafts:
            return []

        rows = [
            APInstallment(
                description=draft.description,
                counterparty=draft.counterparty,
                amount=draft.amount,
                due_date=draft.due_date,
                status=derive_status(draft.due_date, None, today).value,
                category=draft.category,
                payment_method=draft.payment_method,
                bank=draft.bank,
                document_number=draft.document_number,
                entity_id=draft.entity_id,
                notes=draft.notes,
                installment_number=draft.installment_number,
                total_installments=draft.total_installments,
                total_value=draft.total_value,
                is_recurring=draft.is_recurring,
                recurrence_kind=draft.recurrence_kind,
                fixed_value=draft.fixed_value,
                series_key=draft.series_key,
            )
            for draft in drafts
        ]
        try:
            self.db.add_all(rows)
            self.db.flush()
        except SQLAlchemyError as e:
            raise self.store.fail("insert", e) from e
        return rows

    def get_series(self, series_key: str) -> List[APInstallment]:
        try:
            return (
                self.db.query(APInstallment)
                .filter(APInstallment.series_key == series_key)
                .order_by(APInstallment.due_date)
                .all()
            )
        except SQLAlchemyError as e:
            raise self.store.fail("read", e) from e

    def get(self, installment_id: Any) -> APInstallment:
        return self.store.load(INSTALLMENT_TABLE, installment_id)

    def list_installments(
        self,
        status: Optional[InstallmentStatus] = None,
        due_from: Optional[date] = None,
        due_to: Optional[date] = None,
        category: Optional[str] = None,
        counterparty: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[APInstallment]:
        """Fetch installments ordered by due date with optional filters"""
        query = self.db.query(APInstallment)
        if status is not None:
            query = query.filter(APInstallment.status == status.value)
        if due_from is not None:
            query = query.filter(APInstallment.due_date >= due_from)
        if due_to is not None:
            query = query.filter(APInstallment.due_date <= due_to)
        if category:
            query = query.filter(APInstallment.category == category)
        if counterparty:
            query = query.filter(APInstallment.counterparty.ilike(f"%{counterparty}%"))
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    APInstallment.description.ilike(pattern),
                    APInstallment.counterparty.ilike(pattern),
                    APInstallment.document_number.ilike(pattern),
                )
            )
        try:
            return (
                query.order_by(APInstallment.due_date, APInstallment.installment_number)
                .offset(offset)
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            raise self.store.fail("read", e) from e

    def list_unpaid(self) -> List[APInstallment]:
        """Installments in open or overdue status"""
        try:
            return (
                self.db.query(APInstallment)
                .filter(APInstallment.status.in_([InstallmentStatus.OPEN.value, InstallmentStatus.OVERDUE.value]))
                .order_by(APInstallment.due_date)
                .all()
            )
        except SQLAlchemyError as e:
            raise self.store.fail("read", e) from e

    def refresh_overdue(self, today: Optional[date] = None) -> int:
        """Flip open rows whose due date has passed to overdue; returns rows changed"""
        today = today or date.today()
        try:
            changed = (
                self.db.query(APInstallment)
                .filter(
                    APInstallment.status == InstallmentStatus.OPEN.value,
                    APInstallment.payment_date.is_(None),
                    APInstallment.due_date < today,
                )
                .update({APInstallment.status: InstallmentStatus.OVERDUE.value}, synchronize_session="fetch")
            )
            self.db.commit()
            return changed
        except SQLAlchemyError as e:
            raise self.store.fail("update", e) from e

    def count_by_status(self) -> Dict[str, int]:
        try:
            rows = (
                self.db.query(APInstallment.status, func.count(APInstallment.id))
                .group_by(APInstallment.status)
                .all()
            )
        except SQLAlchemyError as e:
            raise self.store.fail("read", e) from e
        counts = {status.value: 0 for status in InstallmentStatus}
        counts.update({status: count for status, count in rows})
        return counts


class SupplierRepository:
    """Repository for suppliers"""

    def __init__(self, db: Session):
        self.db = db
        self.store = RowStore(db)

    def list_suppliers(self, active_only: bool = True) -> List[Supplier]:
        query = self.db.query(Supplier)
        if active_only:
            query = query.filter(Supplier.active.is_(True))
        try:
            return query.order_by(Supplier.name).all()
        except SQLAlchemyError as e:
            raise self.store.fail("read", e) from e
