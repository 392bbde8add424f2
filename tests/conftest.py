import copy

import httpx
import pytest

from statuscast.channels import ChannelContext
from statuscast.config import Settings
from statuscast.events import parse_event
from statuscast.policy import DEFAULT_EVENT_POLICY

TIMESTAMP = "2024-05-01T12:00:00Z"

SAMPLE_EVENTS = {
    "incident.opened": {
        "incident": {
            "id": 1,
            "title": "API outage",
            "severity": "critical",
            "affectedEntities": ["api"],
            "url": "https://status.example.com/incidents/1",
            "body": "We are investigating elevated error rates.",
        }
    },
    "incident.closed": {
        "incident": {
            "id": 1,
            "title": "API outage",
            "affectedEntities": ["api"],
            "url": "https://status.example.com/incidents/1",
            "duration": 7_200_000,
        }
    },
    "incident.updated": {
        "incident": {
            "id": 1,
            "title": "API outage",
            "severity": "major",
            "affectedEntities": ["api", "web"],
            "url": "https://status.example.com/incidents/1",
            "changes": {
                "severity": {"from": "critical", "to": "major"},
                "entities": {"added": ["web"], "removed": []},
            },
        }
    },
    "maintenance.scheduled": {
        "maintenance": {
            "id": 7,
            "title": "Database upgrade",
            "start": "2024-05-02T01:00:00Z",
            "end": "2024-05-02T03:00:00Z",
            "affectedEntities": ["db"],
            "url": "https://status.example.com/maintenance/7",
        }
    },
    "maintenance.started": {
        "maintenance": {
            "id": 7,
            "title": "Database upgrade",
            "end": "2024-05-02T03:00:00Z",
            "affectedEntities": ["db"],
            "url": "https://status.example.com/maintenance/7",
        }
    },
    "maintenance.completed": {
        "maintenance": {
            "id": 7,
            "title": "Database upgrade",
            "affectedEntities": ["db"],
            "url": "https://status.example.com/maintenance/7",
            "duration": 5_400_000,
        }
    },
    "system.down": {
        "system": {
            "name": "api",
            "lastCheck": TIMESTAMP,
            "statusCode": 503,
            "error": "Service Unavailable",
            "responseTime": 1200,
        }
    },
    "system.degraded": {
        "system": {
            "name": "api",
            "lastCheck": TIMESTAMP,
            "reason": "Slow responses",
            "responseTime": 2500,
        }
    },
    "system.recovered": {
        "system": {"name": "api", "lastCheck": TIMESTAMP, "downtime": 90_061_000}
    },
    "slo.breached": {
        "slo": {"entity": "api", "metric": "uptime", "target": 99.9, "actual": 98.5, "period": "30d"}
    },
}


def _build_event(event_type, **payload_overrides):
    body = copy.deepcopy(SAMPLE_EVENTS[event_type])
    family = next(iter(body))
    body[family].update(payload_overrides)
    return parse_event({"type": event_type, "timestamp": TIMESTAMP, **body})


@pytest.fixture
def make_event():
    """Build a sample event of ``event_type``; keyword args patch its payload."""
    return _build_event


@pytest.fixture
def settings():
    return Settings(
        max_concurrency=5,
        default_max_retries=2,
        default_retry_delay_ms=10,
        default_timeout_ms=1000,
        block_private_networks=True,
    )


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def sleep(seconds):
        sleeps.append(seconds)

    return sleep


@pytest.fixture
def mock_client():
    """``mock_client(handler)`` -> AsyncClient answering through ``handler``."""

    def build(handler):
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return build


@pytest.fixture
def make_ctx(settings, fake_sleep, mock_client):
    def build(handler=None):
        handler = handler or (lambda request: httpx.Response(200))
        return ChannelContext(
            client=mock_client(handler),
            settings=settings,
            event_policy=dict(DEFAULT_EVENT_POLICY),
            sleep=fake_sleep,
        )

    return build
