"""Rendering the activity history of a process instance.

The engine returns activities ordered by end time. An end event often finishes
within the same clock tick as the steps before it and can then sort ahead of
them, so the end events are always reported last.
"""

from __future__ import annotations

from collections.abc import Iterable

from onboarding_console.engine.models import (
    END_EVENT,
    START_EVENT,
    HistoricActivityInstance,
    ProcessDefinition,
    ProcessInstance,
)


def order_activity_history(
    activities: Iterable[HistoricActivityInstance],
) -> list[HistoricActivityInstance]:
    """Start events first, other activities in supplied order, end events last."""
    starts: list[HistoricActivityInstance] = []
    middle: list[HistoricActivityInstance] = []
    ends: list[HistoricActivityInstance] = []
    for activity in activities:
        if activity.activity_type == START_EVENT:
            starts.append(activity)
        elif activity.activity_type == END_EVENT:
            ends.append(activity)
        else:
            middle.append(activity)
    return starts + middle + ends


def _activity_line(activity: HistoricActivityInstance) -> str:
    return f"-- {activity.activity_name} [{activity.activity_id}] {activity.duration_ms} ms"


def format_activity_history(
    definition: ProcessDefinition,
    instance: ProcessInstance,
    activities: Iterable[HistoricActivityInstance],
) -> list[str]:
    """Render the report lines for a process instance's activities."""
    lines: list[str] = []
    last_end: HistoricActivityInstance | None = None
    for activity in order_activity_history(activities):
        if activity.activity_type == START_EVENT:
            lines.append(
                f"BEGIN {definition.name} [{instance.process_definition_key}] "
                f"{activity.start_time}"
            )
        if activity.activity_type == END_EVENT:
            last_end = activity
        lines.append(_activity_line(activity))

    if last_end is not None:
        lines.append(
            f"COMPLETE {definition.name} [{instance.process_definition_key}] {last_end.end_time}"
        )
    return lines
