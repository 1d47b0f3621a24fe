"""Outlet directory loading from JSON files and database rows."""

from __future__ import annotations

import json
from datetime import time
from pathlib import Path
from typing import Any, Mapping, Optional

from ..config import Settings, settings
from ..models.domain import WEEKDAYS, OperatingHours, Outlet, OutletConfiguration, ServiceType


def _pick(record: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key; files use camelCase, database rows snake_case."""
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return default


def _parse_time(value: Any) -> time:
    if isinstance(value, time):
        return value
    text = str(value).strip()
    try:
        return time.fromisoformat(text)
    except ValueError as exc:
        raise ValueError(f"Unable to parse time from value '{value}'") from exc


def _operating_hours_from_record(record: Optional[Mapping[str, Any]]) -> Optional[OperatingHours]:
    if not record:
        return None
    days = tuple(str(day).strip().lower() for day in (record.get("days") or WEEKDAYS))
    unknown = set(days) - set(WEEKDAYS)
    if unknown:
        raise ValueError(f"Unknown weekday(s) in operating hours: {', '.join(sorted(unknown))}")
    return OperatingHours(open=_parse_time(record["open"]), close=_parse_time(record["close"]), days=days)


def configuration_from_record(
    record: Optional[Mapping[str, Any]], config: Settings | None = None
) -> OutletConfiguration:
    config = config or settings
    record = record or {}
    multipliers = _pick(record, "priorityMultipliers", "priority_multipliers", default={})
    configuration = OutletConfiguration(
        average_service_minutes=float(
            _pick(record, "averageServiceTime", "average_service_minutes",
                  default=config.default_average_service_minutes)
        ),
        minimum_wait_minutes=float(
            _pick(record, "minimumWaitTime", "minimum_wait_minutes",
                  default=config.default_minimum_wait_minutes)
        ),
        max_queue_length=int(_pick(record, "maxQueueLength", "max_queue_length", default=100)),
    )
    configuration.priority_multipliers.update({str(k): float(v) for k, v in multipliers.items()})
    return configuration


def outlet_from_record(record: Mapping[str, Any], config: Settings | None = None) -> Outlet:
    capacity = int(_pick(record, "capacity", default=0))
    if capacity < 1:
        raise ValueError(f"Outlet '{record.get('id')}' must have a capacity of at least 1.")
    return Outlet(
        id=str(record["id"]),
        name=str(record["name"]).strip(),
        location=str(_pick(record, "location", default="")).strip(),
        address=str(_pick(record, "address", default="")).strip(),
        capacity=capacity,
        service_types=tuple(_pick(record, "serviceTypes", "service_types", default=())),
        configuration=configuration_from_record(record.get("configuration"), config),
        operating_hours=_operating_hours_from_record(_pick(record, "operatingHours", "operating_hours")),
        is_active=bool(_pick(record, "isActive", "is_active", default=True)),
    )


def service_type_from_record(record: Mapping[str, Any]) -> ServiceType:
    return ServiceType(
        id=str(record["id"]),
        name=str(record["name"]).strip(),
        category=str(_pick(record, "category", default="")).strip(),
        estimated_minutes=float(_pick(record, "estimatedTime", "estimated_minutes", default=0)),
        is_active=bool(_pick(record, "isActive", "is_active", default=True)),
    )


def load_directory_file(
    source: Path | None = None, config: Settings | None = None
) -> tuple[tuple[Outlet, ...], tuple[ServiceType, ...]]:
    """Load outlets and the service catalog from the configured JSON file."""
    config = config or settings
    path = source or config.outlets_file
    if not path.exists():
        raise FileNotFoundError(f"Outlet directory file not found: {path}")

    with path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"Outlet directory file '{path}' must contain a JSON object.")

    outlets = tuple(outlet_from_record(item, config) for item in payload.get("outlets", []))
    service_types = tuple(service_type_from_record(item) for item in payload.get("serviceTypes", []))
    return outlets, service_types
