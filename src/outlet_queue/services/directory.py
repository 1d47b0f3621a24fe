"""Read-only access to outlet configuration and the service catalog."""

from __future__ import annotations

from ..errors import NotFound, OutletNotFound
from ..models.domain import Outlet, ServiceType
from ..persistence.base import QueueRepository


class OutletDirectory:
    def __init__(self, repository: QueueRepository) -> None:
        self._repository = repository

    def get_outlet(self, outlet_id: str) -> Outlet:
        outlet = self._repository.get_outlet(outlet_id)
        if outlet is None:
            raise OutletNotFound(outlet_id)
        return outlet

    def list_outlets(self, *, active_only: bool = False) -> list[Outlet]:
        outlets = self._repository.list_outlets()
        if active_only:
            outlets = [outlet for outlet in outlets if outlet.is_active]
        return sorted(outlets, key=lambda outlet: outlet.name)

    def list_service_types(self, *, active_only: bool = True) -> list[ServiceType]:
        service_types = self._repository.list_service_types()
        if active_only:
            service_types = [item for item in service_types if item.is_active]
        return service_types

    def get_service_type(self, service_type_id: str) -> ServiceType:
        for item in self._repository.list_service_types():
            if item.id == service_type_id:
                return item
        raise NotFound(f"Service type '{service_type_id}' not found.", data={"serviceTypeId": service_type_id})

    @staticmethod
    def accepts_service(outlet: Outlet, service_type: str) -> bool:
        """An outlet without an enumerated catalog accepts any service type."""
        if not outlet.service_types:
            return True
        return service_type in outlet.service_types
