"""
History event logging utilities for VITAE (Tier 2 logging).

Provides uniform interfaces for recording history events (resume creation,
branch lifecycle, commits) to a JSON Lines event log. Each line is one JSON
object, which keeps the log streamable and easy to filter by event_type or
resume_id.

For detailed within-context logging (Tier 1), use vitae.utils.logger instead.

The log is written only when VITAE_EVENTS_FILE is set (or an explicit path is
passed), so library users that never configure it get no files on disk.

Usage:
    from vitae.utils.event_logging import log_history_event, get_recent_events

    log_history_event(
        event_type="commit_created",
        resume_id="5f0c...",
        source="service",
        branch="google-swe",
        commit="a1b2c3d",
    )
"""

import json
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from loguru import logger

from vitae.utils.timestamp import now_exact

load_dotenv()
_events_env = os.getenv("VITAE_EVENTS_FILE")
EVENTS_FILE: Optional[Path] = Path(_events_env) if _events_env else None

# Event types emitted by the versioning service
HISTORY_EVENT_TYPES = {
    "resume_created",
    "resume_deleted",
    "branch_created",
    "branch_deleted",
    "commit_created",
}


def log_history_event(
    event_type: str,
    resume_id: str,
    source: str,
    events_file: Optional[Path] = None,
    **extra_fields,
) -> bool:
    """
    Append an event to the history event log.

    Args:
        event_type: Type of event (e.g., "commit_created", "branch_deleted")
        resume_id: Resume identifier
        source: Event source (e.g., "service", "cli")
        events_file: Log path override (defaults to VITAE_EVENTS_FILE)
        **extra_fields: Additional event-specific fields

    Returns:
        True if the event was written, False if no event log is configured
        or it could not be written (a warning is logged)
    """
    target = events_file or EVENTS_FILE
    if target is None:
        return False
    target = Path(target)

    event = {
        "timestamp": now_exact(),
        "event_type": event_type,
        "resume_id": resume_id,
        "source": source,
        **extra_fields,
    }

    # Best-effort: the operation being recorded has already happened
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "a", encoding="utf-8") as f:
            f.write(json.dumps(event) + "\n")
    except OSError as e:
        logger.warning(f"[events] Could not record {event_type} for {resume_id} in {target}: {e}")
        return False
    return True


def get_recent_events(
    n: int = 10,
    resume_id: Optional[str] = None,
    event_type: Optional[str] = None,
    events_file: Optional[Path] = None,
) -> List[dict]:
    """
    Get the last n events from the history log, optionally filtered.

    Args:
        n: Number of recent events to return (default: 10)
        resume_id: Filter to only events for this resume (optional)
        event_type: Filter to only events of this type (optional)
        events_file: Log path override (defaults to VITAE_EVENTS_FILE)

    Returns:
        List of event dicts (most recent last)

    Example:
        # Last 20 commits for one resume
        events = get_recent_events(20, resume_id=resume.resume_id, event_type="commit_created")
    """
    target = events_file or EVENTS_FILE
    if target is None or not target.exists():
        return []

    events = []
    with open(target, "r", encoding="utf-8") as f:
        for line in f:
            try:
                events.append(json.loads(line.strip()))
            except json.JSONDecodeError:
                # Skip malformed lines
                continue

    if resume_id:
        events = [e for e in events if e.get("resume_id") == resume_id]

    if event_type:
        events = [e for e in events if e.get("event_type") == event_type]

    return events[-n:] if len(events) > n else events
