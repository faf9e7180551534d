"""/v1/reconciliations - match an imported bank statement against open payables"""

from fastapi import APIRouter, Depends, Request

from payables_gateway.api.dependencies import get_reconciler, get_reconciliation_registry, get_request_id
from payables_gateway.api.errors import http_error, notice
from payables_gateway.api.v1.schemas import (
    InstallmentSchema,
    MatchCandidateSchema,
    MutationResponse,
    ReconciliationResponse,
    StatementImportRequest,
    UndoActionSchema,
)
from payables_gateway.domain.exceptions import DomainException
from payables_gateway.services.reconciliation import (
    ReconciliationRegistry,
    ReconciliationSession,
    Reconciler,
)

router = APIRouter()


def session_response(session: ReconciliationSession, message: dict | None = None) -> ReconciliationResponse:
    return ReconciliationResponse(
        session_id=session.id,
        transactions=len(session.transactions),
        candidates=[MatchCandidateSchema.from_candidate(c) for c in session.candidates],
        notice=message,
    )


@router.post("/reconciliations", response_model=ReconciliationResponse, status_code=201)
async def import_statement(
    body: StatementImportRequest,
    request: Request,
    reconciler: Reconciler = Depends(get_reconciler),
    registry: ReconciliationRegistry = Depends(get_reconciliation_registry),
):
    """
    Parse statement text and rank match candidates.

    Expected CSV columns: date, description, value, type. Only negative
    values (debits) are considered.
    """
    try:
        session = registry.add(reconciler.import_statement(body.content, body.threshold))
    except DomainException as e:
        raise http_error(e, get_request_id(request))

    return session_response(
        session,
        notice("Arquivo processado", f"{len(session.transactions)} transações encontradas"),
    )


@router.get("/reconciliations/{session_id}", response_model=ReconciliationResponse)
async def get_reconciliation(
    session_id: str,
    request: Request,
    registry: ReconciliationRegistry = Depends(get_reconciliation_registry),
):
    try:
        return session_response(registry.get(session_id))
    except DomainException as e:
        raise http_error(e, get_request_id(request))


@router.delete("/reconciliations/{session_id}", status_code=204)
async def close_reconciliation(
    session_id: str,
    registry: ReconciliationRegistry = Depends(get_reconciliation_registry),
):
    registry.close(session_id)


@router.post("/reconciliations/{session_id}/candidates/{candidate_id}/confirm", response_model=MutationResponse)
async def confirm_candidate(
    session_id: str,
    candidate_id: str,
    request: Request,
    reconciler: Reconciler = Depends(get_reconciler),
    registry: ReconciliationRegistry = Depends(get_reconciliation_registry),
):
    """Mark the matched installment as paid on the transaction date"""
    try:
        installment, action = reconciler.confirm(registry.get(session_id), candidate_id)
    except DomainException as e:
        raise http_error(e, get_request_id(request))
    return MutationResponse(
        installment=InstallmentSchema.from_domain(installment),
        undo_action=UndoActionSchema.from_action(action),
        notice=notice("Pagamento confirmado", f"Pagamento de {installment.counterparty} foi registrado"),
    )


@router.post("/reconciliations/{session_id}/candidates/{candidate_id}/reject", response_model=ReconciliationResponse)
async def reject_candidate(
    session_id: str,
    candidate_id: str,
    request: Request,
    reconciler: Reconciler = Depends(get_reconciler),
    registry: ReconciliationRegistry = Depends(get_reconciliation_registry),
):
    try:
        session = registry.get(session_id)
        reconciler.reject(session, candidate_id)
    except DomainException as e:
        raise http_error(e, get_request_id(request))
    return session_response(session)
