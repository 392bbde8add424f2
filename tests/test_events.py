from typing import get_args

import pytest
from pydantic import ValidationError

from statuscast.channels.formatting import (
    EVENT_COLORS,
    EVENT_EMOJI,
    EVENT_FIELDS,
    EVENT_ICONS,
    EVENT_TITLES,
)
from statuscast.events import (
    EVENT_TYPES,
    IncidentOpened,
    NotificationEvent,
    SystemDownEvent,
    affected_entities,
    event_severity,
    event_url,
    parse_event,
)


def test_event_types_are_closed_set():
    assert set(EVENT_TYPES) == {
        "incident.opened",
        "incident.closed",
        "incident.updated",
        "maintenance.scheduled",
        "maintenance.started",
        "maintenance.completed",
        "system.down",
        "system.degraded",
        "system.recovered",
        "slo.breached",
    }
    assert len(EVENT_TYPES) == 10


def test_parse_camel_case_payload(make_event):
    event = make_event("incident.opened")

    assert isinstance(event, IncidentOpened)
    assert event.incident.affected_entities == ["api"]
    assert event.timestamp.year == 2024


def test_parse_snake_case_payload():
    event = parse_event({
        "type": "system.down",
        "timestamp": "2024-05-01T12:00:00Z",
        "system": {"name": "api", "last_check": "2024-05-01T12:00:00Z", "status_code": 502},
    })

    assert isinstance(event, SystemDownEvent)
    assert event.system.status_code == 502
    assert event.system.type == "system"


def test_unknown_event_type_rejected():
    with pytest.raises(ValidationError):
        parse_event({"type": "incident.deleted", "timestamp": "2024-05-01T12:00:00Z"})


def test_payload_must_match_variant():
    with pytest.raises(ValidationError):
        parse_event({
            "type": "incident.opened",
            "timestamp": "2024-05-01T12:00:00Z",
            "system": {"name": "api", "lastCheck": "2024-05-01T12:00:00Z"},
        })


def test_events_are_immutable(make_event):
    event = make_event("incident.opened")
    with pytest.raises(ValidationError):
        event.type = "incident.closed"


def test_severity_change_uses_from_key(make_event):
    event = make_event("incident.updated")

    assert event.incident.changes.severity.from_ == "critical"
    dumped = event.model_dump(mode="json", by_alias=True)
    assert dumped["incident"]["changes"]["severity"]["from"] == "critical"


@pytest.mark.parametrize("event_type", EVENT_TYPES)
def test_formatting_tables_cover_every_event(make_event, event_type):
    event = make_event(event_type)

    for table in (EVENT_TITLES, EVENT_ICONS, EVENT_EMOJI, EVENT_COLORS, EVENT_FIELDS):
        assert event_type in table
    assert EVENT_TITLES[event_type](event)
    assert EVENT_FIELDS[event_type](event)


def test_helpers(make_event):
    assert affected_entities(make_event("maintenance.started")) == ["db"]
    assert affected_entities(make_event("system.down")) == ["api"]
    assert affected_entities(make_event("slo.breached")) == ["api"]
    assert event_url(make_event("incident.closed")) == "https://status.example.com/incidents/1"
    assert event_url(make_event("system.recovered")) is None
    assert event_severity(make_event("incident.opened")) == "critical"
    assert event_severity(make_event("slo.breached")) is None


def test_union_members_match_event_types():
    members = get_args(get_args(NotificationEvent)[0])

    assert tuple(get_args(m.model_fields["type"].annotation)[0] for m in members) == EVENT_TYPES
