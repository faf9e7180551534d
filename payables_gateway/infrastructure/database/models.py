"""SQLAlchemy ORM models for payables and related rows"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Date, Integer, Numeric, Text, Uuid
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class APInstallment(Base):
    """Accounts-payable installment"""

    __tablename__ = "ap_installment"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    description = Column(Text, nullable=False)
    counterparty = Column(Text, nullable=False, index=True)
    amount = Column(Numeric(14, 2), nullable=True)
    due_date = Column(Date, nullable=False, index=True)
    payment_date = Column(Date, nullable=True)
    status = Column(String(16), nullable=False, default="open", index=True)
    category = Column(Text, nullable=False, default="Geral", index=True)
    payment_method = Column(Text, nullable=True)
    bank = Column(Text, nullable=True)
    document_number = Column(Text, nullable=True)
    entity_id = Column(Text, nullable=False)
    attachment_path = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    # Series attributes
    installment_number = Column(Integer, nullable=True)
    total_installments = Column(Integer, nullable=True)
    total_value = Column(Numeric(14, 2), nullable=True)
    is_recurring = Column(Boolean, nullable=False, default=False)
    recurrence_kind = Column(String(16), nullable=True)
    fixed_value = Column(Boolean, nullable=True)
    series_key = Column(String(64), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class Supplier(Base):
    """Supplier registry row"""

    __tablename__ = "supplier"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    document = Column(Text, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
