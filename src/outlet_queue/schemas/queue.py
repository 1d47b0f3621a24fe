"""Pydantic request/response models for registration and queue endpoints.

Durations are expressed in seconds throughout.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import QueueAggregate, QueueEntry
from ..services.queue.service import QueueSnapshot


class RegistrationRequest(BaseModel):
    name: str = Field(..., description="Customer display name.")
    phoneNumber: str = Field(..., description="Contact number used for duplicate detection.")
    email: Optional[str] = None
    serviceType: str = Field(..., description="Requested service-type identifier.")
    outletId: str
    priority: str = Field(default="normal", description="normal, vip, senior or disabled.")


class TransitionRequest(BaseModel):
    status: str = Field(..., description="Target status: being_served, completed or cancelled.")
    officerId: Optional[str] = Field(default=None, description="Required when service begins.")


class FeedbackRequest(BaseModel):
    rating: int = Field(..., description="Rating from 1 to 5.")
    comment: Optional[str] = None


class FeedbackModel(BaseModel):
    rating: int
    comment: Optional[str] = None
    submittedAt: datetime


class QueueEntryModel(BaseModel):
    id: str
    outletId: str
    businessDay: date
    tokenNumber: str
    name: str
    phoneNumber: str
    email: Optional[str] = None
    serviceType: str
    priority: str
    status: str
    queuePosition: Optional[int] = None
    estimatedWaitTime: int
    actualWaitTime: Optional[int] = None
    registrationTime: datetime
    serviceStartTime: Optional[datetime] = None
    serviceEndTime: Optional[datetime] = None
    assignedOfficerId: Optional[str] = None
    feedback: Optional[FeedbackModel] = None

    @classmethod
    def from_entry(cls, entry: QueueEntry) -> "QueueEntryModel":
        feedback = None
        if entry.feedback is not None:
            feedback = FeedbackModel(
                rating=entry.feedback.rating,
                comment=entry.feedback.comment,
                submittedAt=entry.feedback.submitted_at,
            )
        return cls(
            id=entry.id,
            outletId=entry.outlet_id,
            businessDay=entry.business_day,
            tokenNumber=entry.token,
            name=entry.name,
            phoneNumber=entry.contact,
            email=entry.email,
            serviceType=entry.service_type,
            priority=entry.priority.value,
            status=entry.status.value,
            queuePosition=entry.queue_position,
            estimatedWaitTime=entry.estimated_wait_seconds,
            actualWaitTime=entry.actual_wait_seconds,
            registrationTime=entry.registered_at,
            serviceStartTime=entry.service_started_at,
            serviceEndTime=entry.service_ended_at,
            assignedOfficerId=entry.officer_id,
            feedback=feedback,
        )


class RegistrationResponse(BaseModel):
    tokenNumber: str
    queuePosition: int
    estimatedWaitTime: int
    entry: QueueEntryModel


class PeakHourModel(BaseModel):
    hour: int
    count: int


class QueueSnapshotResponse(BaseModel):
    outletId: str
    day: date
    currentlyServing: Optional[str] = None
    totalWaiting: int
    totalServed: int
    averageWaitTime: int
    nextTokens: List[str]
    peakHours: List[PeakHourModel]

    @classmethod
    def from_snapshot(cls, snapshot: QueueSnapshot) -> "QueueSnapshotResponse":
        return cls(
            outletId=snapshot.outlet_id,
            day=snapshot.business_day,
            currentlyServing=snapshot.currently_serving,
            totalWaiting=snapshot.total_waiting,
            totalServed=snapshot.total_served,
            averageWaitTime=snapshot.average_wait_seconds,
            nextTokens=snapshot.next_tokens,
            peakHours=[PeakHourModel(hour=h, count=c) for h, c in snapshot.peak_hours.items()],
        )


class QueueAggregateResponse(BaseModel):
    outletId: str
    day: date
    currentlyServing: Optional[str] = None
    totalWaiting: int
    totalServed: int
    averageWaitTime: int
    peakHours: List[PeakHourModel]
    lastUpdated: Optional[datetime] = None

    @classmethod
    def from_aggregate(cls, aggregate: QueueAggregate) -> "QueueAggregateResponse":
        return cls(
            outletId=aggregate.outlet_id,
            day=aggregate.business_day,
            currentlyServing=aggregate.currently_serving,
            totalWaiting=aggregate.total_waiting,
            totalServed=aggregate.total_served,
            averageWaitTime=aggregate.average_wait_seconds,
            peakHours=[PeakHourModel(hour=h, count=c) for h, c in sorted(aggregate.peak_hours.items())],
            lastUpdated=aggregate.last_updated,
        )
