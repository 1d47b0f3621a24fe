"""Queue status and service-transition endpoints."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, status

from ...errors import QueueError
from ...schemas.queue import (
    QueueAggregateResponse,
    QueueEntryModel,
    QueueSnapshotResponse,
    TransitionRequest,
)
from ...services.queue.service import QueueService
from ..dependencies import get_queue_service, to_http_exception

router = APIRouter(prefix="/queue", tags=["queue"])


@router.get("/outlet/{outlet_id}", response_model=QueueSnapshotResponse, status_code=status.HTTP_200_OK)
def get_outlet_queue(
    outlet_id: str,
    day: date | None = Query(default=None, description="Business day (defaults to today)"),
    service: QueueService = Depends(get_queue_service),
) -> QueueSnapshotResponse:
    try:
        return QueueSnapshotResponse.from_snapshot(service.get_queue_snapshot(outlet_id, day))
    except QueueError as exc:
        raise to_http_exception(exc) from exc


@router.get(
    "/outlet/{outlet_id}/tokens/{token}",
    response_model=QueueEntryModel,
    status_code=status.HTTP_200_OK,
)
def get_token_status(
    outlet_id: str,
    token: str,
    day: date | None = Query(default=None, description="Business day (defaults to today)"),
    service: QueueService = Depends(get_queue_service),
) -> QueueEntryModel:
    try:
        return QueueEntryModel.from_entry(service.get_entry(token, outlet_id, day))
    except QueueError as exc:
        raise to_http_exception(exc) from exc


@router.put("/entries/{entry_id}/status", response_model=QueueEntryModel, status_code=status.HTTP_200_OK)
def update_entry_status(
    entry_id: str,
    payload: TransitionRequest,
    service: QueueService = Depends(get_queue_service),
) -> QueueEntryModel:
    try:
        entry = service.transition(entry_id, payload.status, payload.officerId)
    except QueueError as exc:
        raise to_http_exception(exc) from exc
    return QueueEntryModel.from_entry(entry)


@router.post(
    "/outlet/{outlet_id}/reconcile",
    response_model=QueueAggregateResponse,
    status_code=status.HTTP_200_OK,
)
def reconcile_outlet_queue(
    outlet_id: str,
    day: date | None = Query(default=None, description="Business day (defaults to today)"),
    service: QueueService = Depends(get_queue_service),
) -> QueueAggregateResponse:
    """Recompute positions, estimates and the daily aggregate from the ledger."""
    try:
        return QueueAggregateResponse.from_aggregate(service.reconcile(outlet_id, day))
    except QueueError as exc:
        raise to_http_exception(exc) from exc
