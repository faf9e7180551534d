"""POST /v1/obligations - declare payables and expand them into installments"""

from fastapi import APIRouter, Depends, Request

from payables_gateway.api.dependencies import get_obligation_service, get_request_id
from payables_gateway.api.errors import http_error, notice
from payables_gateway.api.v1.schemas import (
    DraftSchema,
    InstallmentSchema,
    ObligationRequestSchema,
    ObligationResponse,
    PreviewResponse,
    UndoActionSchema,
)
from payables_gateway.domain.exceptions import DomainException
from payables_gateway.domain.models import ObligationRequest
from payables_gateway.services.obligations import ObligationService

router = APIRouter()


def to_request(body: ObligationRequestSchema) -> ObligationRequest:
    return ObligationRequest(**body.model_dump())


@router.post("/obligations/preview", response_model=PreviewResponse)
async def preview_obligation(
    body: ObligationRequestSchema,
    request: Request,
    service: ObligationService = Depends(get_obligation_service),
):
    """Show the installments an obligation would generate, without saving them"""
    try:
        drafts = service.preview(to_request(body))
    except DomainException as e:
        raise http_error(e, get_request_id(request))

    amounts = [d.amount for d in drafts]
    return PreviewResponse(
        count=len(drafts),
        total=sum(amounts) if all(a is not None for a in amounts) else None,
        installments=[DraftSchema.model_validate(d) for d in drafts],
    )


@router.post("/obligations", response_model=ObligationResponse, status_code=201)
async def create_obligation(
    body: ObligationRequestSchema,
    request: Request,
    service: ObligationService = Depends(get_obligation_service),
):
    """
    Declare a payable and persist its installments.

    Flow:
    1. Expand the request into drafts (single, fixed installments or monthly recurring)
    2. Insert the whole series in one transaction
    3. Record one insert action per row in the undo journal
    """
    try:
        installments, actions = service.create(to_request(body))
    except DomainException as e:
        raise http_error(e, get_request_id(request))

    if actions:
        message = notice(
            "Despesa cadastrada",
            f"{len(installments)} parcela(s) de {body.description} cadastrada(s)",
        )
    else:
        message = notice("Despesa já cadastrada", "Nenhuma parcela nova foi criada", severity="warning")

    return ObligationResponse(
        series_key=installments[0].series_key if installments else None,
        installments=[InstallmentSchema.from_domain(i) for i in installments],
        undo_actions=[UndoActionSchema.from_action(a) for a in actions],
        notice=message,
    )
