"""/v1/undo - list and revert recent mutations"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from payables_gateway.api.dependencies import get_request_id, get_undo_journal
from payables_gateway.api.errors import http_error, notice
from payables_gateway.api.v1.schemas import UndoActionSchema, UndoRequest, UndoResponse
from payables_gateway.domain.exceptions import DomainException
from payables_gateway.infrastructure.database.repositories import RowStore
from payables_gateway.infrastructure.database.session import get_db
from payables_gateway.services.undo import UndoJournal

router = APIRouter()


@router.get("/undo", response_model=List[UndoActionSchema])
async def list_undo_actions(journal: UndoJournal = Depends(get_undo_journal)):
    """Most recent actions first"""
    return [UndoActionSchema.from_action(a) for a in journal.list()]


@router.post("/undo/{action_id}", response_model=UndoResponse)
async def undo_action(
    action_id: str,
    body: UndoRequest,
    request: Request,
    db: Session = Depends(get_db),
    journal: UndoJournal = Depends(get_undo_journal),
):
    """
    Revert one journal action after explicit confirmation.

    Without `confirm: true` nothing is written and the response (409) carries
    the warning the operator must accept first.
    """
    request_id = get_request_id(request)
    try:
        action = journal.get(action_id)
        if not body.confirm:
            raise HTTPException(
                status_code=409,
                detail=notice("Confirmar desfazer", f'{action.label}: {action.warning}', severity="warning"),
            )
        journal.undo(action_id, RowStore(db))
    except DomainException as e:
        raise http_error(e, request_id)

    return UndoResponse(
        undone=UndoActionSchema.from_action(action),
        remaining=[UndoActionSchema.from_action(a) for a in journal.list()],
        notice=notice("Operação desfeita", f"{action.description} foi desfeito com sucesso"),
    )
