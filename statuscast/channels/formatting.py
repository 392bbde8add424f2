"""
Channel-neutral rendering of status events.

Every table here is keyed by event type and must cover all of
``statuscast.events.EVENT_TYPES``; channels build their native payloads
from the title, icon, colour and labelled fields produced here.
"""

import datetime
from typing import Callable, Optional

from statuscast.events import NotificationEvent

Field = tuple[str, str]

_UNITS = (
    ("d", 86_400_000),
    ("h", 3_600_000),
    ("m", 60_000),
    ("s", 1_000),
)


def format_duration(ms: Optional[int]) -> str:
    """
    Render milliseconds as at most two adjacent units, largest first.

    7_200_000 -> "2h", 90_061_000 -> "1d 1h", 61_000 -> "1m 1s".
    A zero second unit is dropped.
    """
    if not ms or ms < 0:
        return "0s"
    remaining = int(ms)
    parts = []
    for suffix, size in _UNITS:
        value, remaining = divmod(remaining, size)
        if parts:
            if value:
                parts.append(f"{value}{suffix}")
            break
        if value:
            parts.append(f"{value}{suffix}")
    return " ".join(parts) or "0s"


def format_timestamp(value: Optional[datetime.datetime]) -> str:
    if value is None:
        return "unknown"
    if value.tzinfo is None:
        value = value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def _entities(names: list[str]) -> str:
    return ", ".join(names) if names else "none"


def _slo_value(metric: str, value: float) -> str:
    text = f"{value:g}"
    if metric == "uptime":
        return f"{text}%"
    if metric in ("responseTime", "response_time"):
        return f"{text}ms"
    return text


# ---------------------------------------------------------------------------
# Per-type tables
# ---------------------------------------------------------------------------

EVENT_TITLES: dict[str, Callable[[NotificationEvent], str]] = {
    "incident.opened": lambda e: e.incident.title or "New Incident",
    "incident.closed": lambda e: f"Incident Resolved: {e.incident.title}",
    "incident.updated": lambda e: f"Incident Updated: {e.incident.title}",
    "maintenance.scheduled": lambda e: f"Maintenance Scheduled: {e.maintenance.title}",
    "maintenance.started": lambda e: f"Maintenance Started: {e.maintenance.title}",
    "maintenance.completed": lambda e: f"Maintenance Completed: {e.maintenance.title}",
    "system.down": lambda e: f"{e.system.name} Down",
    "system.degraded": lambda e: f"{e.system.name} Degraded",
    "system.recovered": lambda e: f"{e.system.name} Recovered",
    "slo.breached": lambda e: f"SLO Breached: {e.slo.entity}",
}

# Unicode icons (Telegram, Discord, e-mail subjects)
EVENT_ICONS: dict[str, str] = {
    "incident.opened": "🔴",
    "incident.closed": "✅",
    "incident.updated": "🟡",
    "maintenance.scheduled": "🔧",
    "maintenance.started": "⚙️",
    "maintenance.completed": "✅",
    "system.down": "🔴",
    "system.degraded": "🟡",
    "system.recovered": "✅",
    "slo.breached": "⚠️",
}

# Slack shortcodes
EVENT_EMOJI: dict[str, str] = {
    "incident.opened": ":red_circle:",
    "incident.closed": ":white_check_mark:",
    "incident.updated": ":large_yellow_circle:",
    "maintenance.scheduled": ":wrench:",
    "maintenance.started": ":gear:",
    "maintenance.completed": ":white_check_mark:",
    "system.down": ":red_circle:",
    "system.degraded": ":large_yellow_circle:",
    "system.recovered": ":white_check_mark:",
    "slo.breached": ":warning:",
}

EVENT_COLORS: dict[str, str] = {
    "incident.opened": "#d32f2f",
    "incident.closed": "#388e3c",
    "incident.updated": "#f57c00",
    "maintenance.scheduled": "#1976d2",
    "maintenance.started": "#1976d2",
    "maintenance.completed": "#388e3c",
    "system.down": "#d32f2f",
    "system.degraded": "#f57c00",
    "system.recovered": "#388e3c",
    "slo.breached": "#f57c00",
}

SEVERITY_COLORS: dict[str, str] = {
    "critical": "#d32f2f",
    "major": "#f57c00",
    "minor": "#fbc02d",
    "maintenance": "#1976d2",
}


def _incident_opened(e) -> list[Field]:
    return [
        ("Severity", e.incident.severity.upper()),
        ("Affected", _entities(e.incident.affected_entities)),
        ("Time", format_timestamp(e.timestamp)),
    ]


def _incident_closed(e) -> list[Field]:
    fields = []
    if e.incident.duration is not None:
        fields.append(("Duration", format_duration(e.incident.duration)))
    fields.append(("Affected", _entities(e.incident.affected_entities)))
    fields.append(("Time", format_timestamp(e.timestamp)))
    return fields


def _incident_updated(e) -> list[Field]:
    fields = [("Severity", e.incident.severity.upper())]
    changes = e.incident.changes
    if changes.severity is not None:
        fields.append(("Severity Change", f"{changes.severity.from_} → {changes.severity.to}"))
    if changes.entities is not None:
        if changes.entities.added:
            fields.append(("Added", ", ".join(changes.entities.added)))
        if changes.entities.removed:
            fields.append(("Removed", ", ".join(changes.entities.removed)))
    fields.append(("Affected", _entities(e.incident.affected_entities)))
    return fields


def _maintenance_scheduled(e) -> list[Field]:
    return [
        ("Start", format_timestamp(e.maintenance.start)),
        ("End", format_timestamp(e.maintenance.end)),
        ("Affected", _entities(e.maintenance.affected_entities)),
    ]


def _maintenance_started(e) -> list[Field]:
    return [
        ("Expected End", format_timestamp(e.maintenance.end)),
        ("Affected", _entities(e.maintenance.affected_entities)),
    ]


def _maintenance_completed(e) -> list[Field]:
    fields = []
    if e.maintenance.duration is not None:
        fields.append(("Duration", format_duration(e.maintenance.duration)))
    fields.append(("Affected", _entities(e.maintenance.affected_entities)))
    return fields


def _system_down(e) -> list[Field]:
    fields = [("System", e.system.name), ("Type", e.system.type)]
    if e.system.status_code is not None:
        fields.append(("Status Code", str(e.system.status_code)))
    fields.append(("Error", e.system.error or "No response"))
    if e.system.response_time is not None:
        fields.append(("Response Time", f"{e.system.response_time}ms"))
    return fields


def _system_degraded(e) -> list[Field]:
    fields = [
        ("System", e.system.name),
        ("Type", e.system.type),
        ("Reason", e.system.reason),
    ]
    if e.system.response_time is not None:
        fields.append(("Response Time", f"{e.system.response_time}ms"))
    return fields


def _system_recovered(e) -> list[Field]:
    return [
        ("System", e.system.name),
        ("Type", e.system.type),
        ("Downtime", format_duration(e.system.downtime)),
    ]


def _slo_breached(e) -> list[Field]:
    return [
        ("Entity", e.slo.entity),
        ("Metric", e.slo.metric),
        ("Target", _slo_value(e.slo.metric, e.slo.target)),
        ("Actual", _slo_value(e.slo.metric, e.slo.actual)),
        ("Period", e.slo.period),
    ]


EVENT_FIELDS: dict[str, Callable[[NotificationEvent], list[Field]]] = {
    "incident.opened": _incident_opened,
    "incident.closed": _incident_closed,
    "incident.updated": _incident_updated,
    "maintenance.scheduled": _maintenance_scheduled,
    "maintenance.started": _maintenance_started,
    "maintenance.completed": _maintenance_completed,
    "system.down": _system_down,
    "system.degraded": _system_degraded,
    "system.recovered": _system_recovered,
    "slo.breached": _slo_breached,
}


def event_title(event: NotificationEvent) -> str:
    return EVENT_TITLES[event.type](event)


def event_fields(event: NotificationEvent) -> list[Field]:
    return EVENT_FIELDS[event.type](event)


def event_color(event: NotificationEvent) -> str:
    severity = getattr(getattr(event, "incident", None), "severity", None)
    if event.type in ("incident.opened", "incident.updated") and severity:
        return SEVERITY_COLORS[severity]
    return EVENT_COLORS[event.type]
