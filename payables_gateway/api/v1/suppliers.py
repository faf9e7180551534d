"""/v1/suppliers - supplier registry"""

from typing import List

from fastapi import APIRouter, Depends, Query, Request

from payables_gateway.api.dependencies import get_request_id, get_supplier_service
from payables_gateway.api.errors import http_error
from payables_gateway.api.v1.schemas import SupplierCreate, SupplierResponse, SupplierSchema, UndoActionSchema
from payables_gateway.domain.exceptions import DomainException
from payables_gateway.services.suppliers import SupplierService

router = APIRouter()


@router.get("/suppliers", response_model=List[SupplierSchema])
async def list_suppliers(
    request: Request,
    active_only: bool = Query(True),
    service: SupplierService = Depends(get_supplier_service),
):
    try:
        suppliers = service.list(active_only)
    except DomainException as e:
        raise http_error(e, get_request_id(request))
    return [SupplierSchema.from_row(s) for s in suppliers]


@router.post("/suppliers", response_model=SupplierResponse, status_code=201)
async def create_supplier(
    body: SupplierCreate,
    request: Request,
    service: SupplierService = Depends(get_supplier_service),
):
    try:
        supplier, action = service.create(body.name, body.document)
    except DomainException as e:
        raise http_error(e, get_request_id(request))
    return SupplierResponse(
        supplier=SupplierSchema.from_row(supplier),
        undo_action=UndoActionSchema.from_action(action),
    )


@router.delete("/suppliers/{supplier_id}", response_model=UndoActionSchema)
async def delete_supplier(
    supplier_id: str,
    request: Request,
    service: SupplierService = Depends(get_supplier_service),
):
    try:
        action = service.delete(supplier_id)
    except DomainException as e:
        raise http_error(e, get_request_id(request))
    return UndoActionSchema.from_action(action)
