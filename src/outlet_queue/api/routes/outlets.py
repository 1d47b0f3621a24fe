"""Outlet directory and service catalog endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query, status

from ...errors import QueueError
from ...schemas.outlets import OutletModel, ServiceTypeModel
from ...services.queue.service import QueueService
from ..dependencies import get_queue_service, to_http_exception

router = APIRouter(tags=["outlets"])


@router.get("/outlets", response_model=List[OutletModel], status_code=status.HTTP_200_OK)
def list_outlets(
    active_only: bool = Query(default=True, description="Hide outlets that are not accepting customers"),
    service: QueueService = Depends(get_queue_service),
) -> List[OutletModel]:
    try:
        outlets = service.directory.list_outlets(active_only=active_only)
    except QueueError as exc:
        raise to_http_exception(exc) from exc
    return [OutletModel.from_outlet(outlet) for outlet in outlets]


@router.get("/outlets/{outlet_id}", response_model=OutletModel, status_code=status.HTTP_200_OK)
def get_outlet(outlet_id: str, service: QueueService = Depends(get_queue_service)) -> OutletModel:
    try:
        return OutletModel.from_outlet(service.directory.get_outlet(outlet_id))
    except QueueError as exc:
        raise to_http_exception(exc) from exc


@router.get("/services/types", response_model=List[ServiceTypeModel], status_code=status.HTTP_200_OK)
def list_service_types(service: QueueService = Depends(get_queue_service)) -> List[ServiceTypeModel]:
    try:
        service_types = service.directory.list_service_types()
    except QueueError as exc:
        raise to_http_exception(exc) from exc
    return [ServiceTypeModel.from_service_type(item) for item in service_types]


@router.get("/services/types/{service_type_id}", response_model=ServiceTypeModel, status_code=status.HTTP_200_OK)
def get_service_type(service_type_id: str, service: QueueService = Depends(get_queue_service)) -> ServiceTypeModel:
    try:
        return ServiceTypeModel.from_service_type(service.directory.get_service_type(service_type_id))
    except QueueError as exc:
        raise to_http_exception(exc) from exc
