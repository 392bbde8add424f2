"""Status events delivered to notification channels.

``NotificationEvent`` is a closed union discriminated on ``type``. Each
variant carries exactly one payload field (``incident``, ``maintenance``,
``system`` or ``slo``) holding only the data relevant to that variant.

Producers usually hand us JSON with camelCase keys (``affectedEntities``,
``lastCheck``); snake_case field names are accepted as well.
"""

import datetime
from typing import Annotated, Any, Literal, Mapping, Optional, Union, get_args

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

Severity = Literal["critical", "major", "minor", "maintenance"]
SystemKind = Literal["system", "process"]

SEVERITY_RANK = {"maintenance": 0, "minor": 1, "major": 2, "critical": 3}


class _Model(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------

class SeverityChange(_Model):
    from_: str = Field(alias="from")
    to: str


class EntityChange(_Model):
    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)


class IncidentChanges(_Model):
    severity: Optional[SeverityChange] = None
    entities: Optional[EntityChange] = None


class OpenedIncident(_Model):
    id: int
    title: str
    severity: Severity
    affected_entities: list[str] = Field(default_factory=list)
    url: str
    body: Optional[str] = None


class ClosedIncident(_Model):
    id: int
    title: str
    affected_entities: list[str] = Field(default_factory=list)
    url: str
    severity: Optional[Severity] = None
    duration: Optional[int] = None  # ms


class UpdatedIncident(_Model):
    id: int
    title: str
    severity: Severity
    affected_entities: list[str] = Field(default_factory=list)
    url: str
    changes: IncidentChanges = Field(default_factory=IncidentChanges)


class ScheduledMaintenance(_Model):
    id: int
    title: str
    start: datetime.datetime
    end: datetime.datetime
    affected_entities: list[str] = Field(default_factory=list)
    url: str


class StartedMaintenance(_Model):
    id: int
    title: str
    start: Optional[datetime.datetime] = None
    end: datetime.datetime
    affected_entities: list[str] = Field(default_factory=list)
    url: str


class CompletedMaintenance(_Model):
    id: int
    title: str
    affected_entities: list[str] = Field(default_factory=list)
    url: str
    duration: Optional[int] = None  # ms


class SystemDown(_Model):
    name: str
    type: SystemKind = "system"
    last_check: datetime.datetime
    status_code: Optional[int] = None
    error: Optional[str] = None
    response_time: Optional[int] = None  # ms


class SystemDegraded(_Model):
    name: str
    type: SystemKind = "system"
    last_check: datetime.datetime
    reason: str
    response_time: Optional[int] = None  # ms
    status_code: Optional[int] = None


class SystemRecovered(_Model):
    name: str
    type: SystemKind = "system"
    last_check: datetime.datetime
    downtime: int  # ms


class SloBreach(_Model):
    entity: str
    metric: str
    target: float
    actual: float
    period: str


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

class IncidentOpened(_Model):
    type: Literal["incident.opened"] = "incident.opened"
    timestamp: datetime.datetime
    incident: OpenedIncident


class IncidentClosed(_Model):
    type: Literal["incident.closed"] = "incident.closed"
    timestamp: datetime.datetime
    incident: ClosedIncident


class IncidentUpdated(_Model):
    type: Literal["incident.updated"] = "incident.updated"
    timestamp: datetime.datetime
    incident: UpdatedIncident


class MaintenanceScheduled(_Model):
    type: Literal["maintenance.scheduled"] = "maintenance.scheduled"
    timestamp: datetime.datetime
    maintenance: ScheduledMaintenance


class MaintenanceStarted(_Model):
    type: Literal["maintenance.started"] = "maintenance.started"
    timestamp: datetime.datetime
    maintenance: StartedMaintenance


class MaintenanceCompleted(_Model):
    type: Literal["maintenance.completed"] = "maintenance.completed"
    timestamp: datetime.datetime
    maintenance: CompletedMaintenance


class SystemDownEvent(_Model):
    type: Literal["system.down"] = "system.down"
    timestamp: datetime.datetime
    system: SystemDown


class SystemDegradedEvent(_Model):
    type: Literal["system.degraded"] = "system.degraded"
    timestamp: datetime.datetime
    system: SystemDegraded


class SystemRecoveredEvent(_Model):
    type: Literal["system.recovered"] = "system.recovered"
    timestamp: datetime.datetime
    system: SystemRecovered


class SloBreached(_Model):
    type: Literal["slo.breached"] = "slo.breached"
    timestamp: datetime.datetime
    slo: SloBreach


_VARIANTS = (
    IncidentOpened,
    IncidentClosed,
    IncidentUpdated,
    MaintenanceScheduled,
    MaintenanceStarted,
    MaintenanceCompleted,
    SystemDownEvent,
    SystemDegradedEvent,
    SystemRecoveredEvent,
    SloBreached,
)

NotificationEvent = Annotated[
    Union[_VARIANTS],
    Field(discriminator="type"),
]

EVENT_TYPES: tuple[str, ...] = tuple(
    get_args(variant.model_fields["type"].annotation)[0] for variant in _VARIANTS
)

INCIDENT_EVENTS = (IncidentOpened, IncidentClosed, IncidentUpdated)
MAINTENANCE_EVENTS = (MaintenanceScheduled, MaintenanceStarted, MaintenanceCompleted)
SYSTEM_EVENTS = (SystemDownEvent, SystemDegradedEvent, SystemRecoveredEvent)

_adapter: TypeAdapter = TypeAdapter(NotificationEvent)


def parse_event(data: Mapping[str, Any]) -> NotificationEvent:
    """Validate a raw mapping into the matching event variant."""
    return _adapter.validate_python(data)


def affected_entities(event: NotificationEvent) -> list[str]:
    if isinstance(event, INCIDENT_EVENTS):
        return list(event.incident.affected_entities)
    if isinstance(event, MAINTENANCE_EVENTS):
        return list(event.maintenance.affected_entities)
    if isinstance(event, SYSTEM_EVENTS):
        return [event.system.name]
    return [event.slo.entity]


def event_url(event: NotificationEvent) -> Optional[str]:
    if isinstance(event, INCIDENT_EVENTS):
        return event.incident.url
    if isinstance(event, MAINTENANCE_EVENTS):
        return event.maintenance.url
    return None


def event_severity(event: NotificationEvent) -> Optional[str]:
    if isinstance(event, INCIDENT_EVENTS):
        return event.incident.severity
    return None
