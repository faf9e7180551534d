"""/v1/installments - listing, edits, payments and deletion"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request

from payables_gateway.api.dependencies import get_obligation_service, get_request_id
from payables_gateway.api.errors import http_error, notice
from payables_gateway.api.v1.schemas import (
    InstallmentSchema,
    InstallmentUpdate,
    MutationResponse,
    PaymentRequest,
    SummaryResponse,
    UndoActionSchema,
)
from payables_gateway.domain.exceptions import DomainException
from payables_gateway.domain.models import InstallmentStatus
from payables_gateway.services.obligations import ObligationService

router = APIRouter()


@router.get("/installments", response_model=List[InstallmentSchema])
async def list_installments(
    request: Request,
    status: Optional[InstallmentStatus] = Query(None),
    due_from: Optional[date] = Query(None),
    due_to: Optional[date] = Query(None),
    category: Optional[str] = Query(None),
    counterparty: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    service: ObligationService = Depends(get_obligation_service),
):
    """Installments ordered by due date; overdue status is refreshed first"""
    try:
        installments = service.list(
            status=status,
            due_from=due_from,
            due_to=due_to,
            category=category,
            counterparty=counterparty,
            search=search,
            limit=limit,
            offset=offset,
        )
    except DomainException as e:
        raise http_error(e, get_request_id(request))
    return [InstallmentSchema.from_domain(i) for i in installments]


@router.get("/installments/summary", response_model=SummaryResponse)
async def installment_summary(request: Request, service: ObligationService = Depends(get_obligation_service)):
    try:
        counts = service.summary()
    except DomainException as e:
        raise http_error(e, get_request_id(request))
    return SummaryResponse(total=sum(counts.values()), **counts)


@router.get("/installments/{installment_id}", response_model=InstallmentSchema)
async def get_installment(
    installment_id: str,
    request: Request,
    service: ObligationService = Depends(get_obligation_service),
):
    try:
        return InstallmentSchema.from_domain(service.get(installment_id))
    except DomainException as e:
        raise http_error(e, get_request_id(request))


@router.patch("/installments/{installment_id}", response_model=MutationResponse)
async def edit_installment(
    installment_id: str,
    body: InstallmentUpdate,
    request: Request,
    service: ObligationService = Depends(get_obligation_service),
):
    try:
        installment, action = service.edit(installment_id, body.model_dump(exclude_unset=True))
    except DomainException as e:
        raise http_error(e, get_request_id(request))
    return MutationResponse(
        installment=InstallmentSchema.from_domain(installment),
        undo_action=UndoActionSchema.from_action(action),
        notice=notice("Parcela atualizada", "As informações da parcela foram atualizadas com sucesso"),
    )


@router.post("/installments/{installment_id}/payment", response_model=MutationResponse)
async def register_payment(
    installment_id: str,
    body: PaymentRequest,
    request: Request,
    service: ObligationService = Depends(get_obligation_service),
):
    """Mark an installment as paid, optionally with a different amount or a discount"""
    try:
        installment, action = service.pay(installment_id, **body.model_dump())
    except DomainException as e:
        raise http_error(e, get_request_id(request))
    return MutationResponse(
        installment=InstallmentSchema.from_domain(installment),
        undo_action=UndoActionSchema.from_action(action),
        notice=notice("Pagamento registrado", f"Parcela de {installment.counterparty} foi marcada como paga"),
    )


@router.delete("/installments/{installment_id}/payment", response_model=MutationResponse)
async def cancel_payment(
    installment_id: str,
    request: Request,
    service: ObligationService = Depends(get_obligation_service),
):
    try:
        installment, action = service.cancel_payment(installment_id)
    except DomainException as e:
        raise http_error(e, get_request_id(request))
    return MutationResponse(
        installment=InstallmentSchema.from_domain(installment),
        undo_action=UndoActionSchema.from_action(action),
        notice=notice("Pagamento cancelado", f"Pagamento de {installment.counterparty} foi cancelado"),
    )


@router.delete("/installments/{installment_id}", response_model=MutationResponse)
async def delete_installment(
    installment_id: str,
    request: Request,
    service: ObligationService = Depends(get_obligation_service),
):
    try:
        action = service.delete(installment_id)
    except DomainException as e:
        raise http_error(e, get_request_id(request))
    return MutationResponse(
        undo_action=UndoActionSchema.from_action(action),
        notice=notice("Parcela excluída", action.description),
    )
