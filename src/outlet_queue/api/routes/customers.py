"""Customer registration and visit endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...errors import QueueError
from ...schemas.queue import FeedbackRequest, QueueEntryModel, RegistrationRequest, RegistrationResponse
from ...services.queue.service import QueueService
from ..dependencies import get_queue_service, to_http_exception

router = APIRouter(prefix="/customers", tags=["customers"])


@router.post("/register", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED)
def register_customer(
    payload: RegistrationRequest,
    service: QueueService = Depends(get_queue_service),
) -> RegistrationResponse:
    """Register a customer and issue a token.

    Returns 409 with the existing token when the phone number already holds an
    active registration at this outlet today.
    """
    try:
        entry = service.register(
            name=payload.name,
            contact=payload.phoneNumber,
            service_type=payload.serviceType,
            outlet_id=payload.outletId,
            priority=payload.priority,
            email=payload.email,
        )
    except QueueError as exc:
        raise to_http_exception(exc) from exc
    return RegistrationResponse(
        tokenNumber=entry.token,
        queuePosition=entry.queue_position,
        estimatedWaitTime=entry.estimated_wait_seconds,
        entry=QueueEntryModel.from_entry(entry),
    )


@router.get("/{entry_id}", response_model=QueueEntryModel, status_code=status.HTTP_200_OK)
def get_customer(entry_id: str, service: QueueService = Depends(get_queue_service)) -> QueueEntryModel:
    try:
        return QueueEntryModel.from_entry(service.get_entry_by_id(entry_id))
    except QueueError as exc:
        raise to_http_exception(exc) from exc


@router.post("/{entry_id}/feedback", response_model=QueueEntryModel, status_code=status.HTTP_200_OK)
def submit_feedback(
    entry_id: str,
    payload: FeedbackRequest,
    service: QueueService = Depends(get_queue_service),
) -> QueueEntryModel:
    try:
        entry = service.submit_feedback(entry_id, payload.rating, payload.comment)
    except QueueError as exc:
        raise to_http_exception(exc) from exc
    return QueueEntryModel.from_entry(entry)
