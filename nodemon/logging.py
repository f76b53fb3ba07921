"""
nodemon.logging
AUTHOR: carter-vin

Structured JSON event logging for ops ingestion

Contract:
- One JSON object per line to stdout
- Stable event vocabulary (allowlist)
- Every event keyed by subsystem and severity
- UTC timestamps only
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

# Event types
VALID_EVENT_TYPES = {
    "monitor_start",
    "monitor_tick",
    "probe_failed",
    "refresh_failed",
    "snapshot_published",
    "monitor_shutdown",
}

VALID_SEVERITIES = {"debug", "info", "warn", "error"}

DEFAULT_SUBSYSTEM = "node/local_monitor"


def _truncate_message(value: str, *, limit: int = 200) -> str:
    """
    Cap message length to keep events compact
    """
    if len(value) <= limit:
        return value
    return value[:limit] + f"...[truncated {len(value) - limit} chars]"


# Time: current in UTC ISO 8601
def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def emit_event(
    event_type: str,
    *,
    severity: str = "info",
    subsystem: str = DEFAULT_SUBSYSTEM,
    **fields: Any,
) -> None:
    """
    Emit structured event line to stdout

    Rules:
    - event_type in VALID_EVENT_TYPES, severity in VALID_SEVERITIES
    - event_type, severity, subsystem, timestamp always present
    - sort_keys + compact separators for format
    """
    if event_type not in VALID_EVENT_TYPES:
        raise ValueError(f"invalid event_type: {event_type}")

    if severity not in VALID_SEVERITIES:
        raise ValueError(f"invalid severity: {severity}")

    if "message" in fields and isinstance(fields["message"], str):
        # Avoid emitting long strings in event fields
        fields["message"] = _truncate_message(fields["message"])

    payload: dict[str, Any] = {
        "event_type": event_type,
        "utc_now": utc_now_iso(),
        "severity": severity,
        "subsystem": subsystem,
        **fields,
    }

    print(
        json.dumps(
            payload,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
        )
    )
