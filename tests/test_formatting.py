import datetime

import pytest

from statuscast.channels.formatting import (
    event_color,
    event_fields,
    event_title,
    format_duration,
    format_timestamp,
)


@pytest.mark.parametrize(
    "ms, expected",
    [
        (0, "0s"),
        (None, "0s"),
        (500, "0s"),
        (45_000, "45s"),
        (61_000, "1m 1s"),
        (3_600_000, "1h"),
        (7_200_000, "2h"),
        (5_400_000, "1h 30m"),
        (90_061_000, "1d 1h"),
        (172_800_000, "2d"),
    ],
)
def test_format_duration(ms, expected):
    assert format_duration(ms) == expected


def test_format_timestamp_normalises_to_utc():
    value = datetime.datetime(2024, 5, 1, 14, 30, tzinfo=datetime.timezone(datetime.timedelta(hours=2)))

    assert format_timestamp(value) == "2024-05-01 12:30 UTC"
    assert format_timestamp(None) == "unknown"


def test_titles(make_event):
    assert event_title(make_event("incident.opened")) == "API outage"
    assert event_title(make_event("incident.closed")) == "Incident Resolved: API outage"
    assert event_title(make_event("maintenance.scheduled")) == "Maintenance Scheduled: Database upgrade"
    assert event_title(make_event("system.down")) == "api Down"
    assert event_title(make_event("slo.breached")) == "SLO Breached: api"


def test_closed_incident_shows_duration(make_event):
    fields = dict(event_fields(make_event("incident.closed")))

    assert fields["Duration"] == "2h"
    assert fields["Affected"] == "api"


def test_slo_values_carry_units(make_event):
    fields = dict(event_fields(make_event("slo.breached")))
    assert fields["Target"] == "99.9%"
    assert fields["Actual"] == "98.5%"

    fields = dict(event_fields(make_event("slo.breached", metric="responseTime", target=300, actual=450)))
    assert fields["Target"] == "300ms"


def test_incident_colour_follows_severity(make_event):
    assert event_color(make_event("incident.opened")) == "#d32f2f"
    assert event_color(make_event("incident.opened", severity="minor")) == "#fbc02d"
    assert event_color(make_event("system.recovered")) == "#388e3c"
