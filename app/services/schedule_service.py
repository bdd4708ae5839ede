"""Which chores apply to which day."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from app.schemas.chore import ChoreDefinition


def is_due(definition: ChoreDefinition, on_date: date) -> bool:
    """Return True when the chore can be logged on ``on_date``.

    Weekly-frequency chores use ``active_days`` as the days they may be done on.
    """
    if not definition.is_active:
        return False
    if not definition.is_within_window(on_date):
        return False
    return on_date.weekday() in definition.active_days


def due_chores(definitions: Iterable[ChoreDefinition], on_date: date) -> list[ChoreDefinition]:
    return [definition for definition in definitions if is_due(definition, on_date)]
