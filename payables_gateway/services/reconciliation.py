"""Reconciliation of imported bank statements against open installments"""

import uuid
from datetime import date
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from payables_gateway.config import settings
from payables_gateway.domain.exceptions import NotFoundError, ValidationError
from payables_gateway.domain.matching import rank_candidates
from payables_gateway.domain.models import (
    BankTransaction,
    Installment,
    InstallmentStatus,
    MatchCandidate,
    UndoAction,
    UndoKind,
)
from payables_gateway.domain.statement import parse_statement
from payables_gateway.infrastructure.database.repositories import (
    INSTALLMENT_TABLE,
    InstallmentRepository,
    snapshot,
    to_domain,
)
from payables_gateway.infrastructure.observability.logging import log_match_decision
from payables_gateway.infrastructure.observability.metrics import match_decision_counter, record_statement
from payables_gateway.services.obligations import append_note
from payables_gateway.services.undo import UndoJournal

STATEMENT_NOTE = "Pagamento associado via extrato bancário"


class ReconciliationSession:
    """Pending match candidates of one statement import"""

    def __init__(self, transactions: List[BankTransaction], candidates: List[MatchCandidate]):
        self.id = str(uuid.uuid4())
        self.transactions = transactions
        self.candidates = candidates

    def get(self, candidate_id: str) -> MatchCandidate:
        for candidate in self.candidates:
            if candidate.id == candidate_id:
                return candidate
        raise NotFoundError(f"Correspondência {candidate_id} não está pendente")

    def discard(self, candidate: MatchCandidate) -> None:
        self.candidates = [c for c in self.candidates if c.id != candidate.id]


class ReconciliationRegistry:
    """Statement import sessions of the running process"""

    def __init__(self):
        self._sessions: Dict[str, ReconciliationSession] = {}

    def add(self, session: ReconciliationSession) -> ReconciliationSession:
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> ReconciliationSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise NotFoundError(f"Importação {session_id} não encontrada")
        return session

    def close(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)


class Reconciler:
    """Parses statements, ranks candidates and applies operator decisions"""

    def __init__(self, db: Session, journal: UndoJournal, today: Optional[date] = None):
        self.repo = InstallmentRepository(db)
        self.store = self.repo.store
        self.journal = journal
        self.today = today

    def import_statement(self, content: str, threshold: Optional[float] = None) -> ReconciliationSession:
        """
        Parse statement text and score every debit against open and overdue installments.

        Raises:
            ParseError: Statement has no data rows or an unreadable debit date
            ValidationError: Statement has no debit rows
            PersistenceError: Installments could not be read
        """
        transactions = parse_statement(content)

        self.repo.refresh_overdue(self.today)
        installments = [to_domain(row, self.today) for row in self.repo.list_unpaid()]

        if threshold is None:
            threshold = settings.match_threshold
        candidates = rank_candidates(transactions, installments, threshold)
        record_statement(len(transactions), len(candidates))
        return ReconciliationSession(transactions, candidates)

    def confirm(self, session: ReconciliationSession, candidate_id: str) -> Tuple[Installment, UndoAction]:
        """
        Mark the candidate's installment as paid on the transaction date.

        The candidate stays pending if the write fails. After success, every
        other pending candidate for the same installment is dropped as well.

        Raises:
            NotFoundError: Candidate not pending, or installment deleted
            ValidationError: Installment was paid after the import; its candidates are dropped
            PersistenceError: Store rejected the write
        """
        candidate = session.get(candidate_id)
        txn = candidate.transaction

        prior = snapshot(self.repo.get(candidate.installment.id))
        if prior["payment_date"] is not None:
            session.candidates = [c for c in session.candidates if c.installment.id != prior["id"]]
            raise ValidationError("Esta parcela já foi paga após a importação do extrato")

        changes = {
            "payment_date": txn.date,
            "status": InstallmentStatus.PAID.value,
            "notes": append_note(prior["notes"], f"{STATEMENT_NOTE} - {txn.description}"),
        }
        self.store.update(INSTALLMENT_TABLE, prior["id"], changes)
        self.store.commit()

        row = self.repo.get(prior["id"])
        action = self.journal.record(
            UndoKind.UPDATE,
            INSTALLMENT_TABLE,
            snapshot(row),
            f"Conciliação de {prior['counterparty']} com extrato",
            original_data=prior,
        )

        session.candidates = [c for c in session.candidates if c.installment.id != prior["id"]]
        match_decision_counter.labels(outcome="confirmed").inc()
        log_match_decision(session.id, candidate.id, str(prior["id"]), "confirmed", candidate.score)
        return to_domain(row, self.today), action

    def reject(self, session: ReconciliationSession, candidate_id: str) -> MatchCandidate:
        candidate = session.get(candidate_id)
        session.discard(candidate)
        match_decision_counter.labels(outcome="rejected").inc()
        log_match_decision(session.id, candidate.id, str(candidate.installment.id), "rejected", candidate.score)
        return candidate
