"""Outlet directory API schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel

from ..models.domain import Outlet, ServiceType


class OperatingHoursModel(BaseModel):
    open: str
    close: str
    days: List[str]


class OutletConfigurationModel(BaseModel):
    averageServiceTime: float
    minimumWaitTime: float
    maxQueueLength: int
    priorityMultipliers: dict[str, float]


class OutletModel(BaseModel):
    id: str
    name: str
    location: str
    address: str
    capacity: int
    serviceTypes: List[str]
    operatingHours: Optional[OperatingHoursModel] = None
    configuration: OutletConfigurationModel
    isActive: bool

    @classmethod
    def from_outlet(cls, outlet: Outlet) -> "OutletModel":
        hours = None
        if outlet.operating_hours is not None:
            hours = OperatingHoursModel(
                open=outlet.operating_hours.open.strftime("%H:%M"),
                close=outlet.operating_hours.close.strftime("%H:%M"),
                days=list(outlet.operating_hours.days),
            )
        configuration = outlet.configuration
        return cls(
            id=outlet.id,
            name=outlet.name,
            location=outlet.location,
            address=outlet.address,
            capacity=outlet.capacity,
            serviceTypes=list(outlet.service_types),
            operatingHours=hours,
            configuration=OutletConfigurationModel(
                averageServiceTime=configuration.average_service_minutes,
                minimumWaitTime=configuration.minimum_wait_minutes,
                maxQueueLength=configuration.max_queue_length,
                priorityMultipliers=dict(configuration.priority_multipliers),
            ),
            isActive=outlet.is_active,
        )


class ServiceTypeModel(BaseModel):
    id: str
    name: str
    category: str
    estimatedTime: float

    @classmethod
    def from_service_type(cls, service_type: ServiceType) -> "ServiceTypeModel":
        return cls(
            id=service_type.id,
            name=service_type.name,
            category=service_type.category,
            estimatedTime=service_type.estimated_minutes,
        )
