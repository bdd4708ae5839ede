"""Chore occurrence status lifecycle.

Pure functions only: deciding whether a move is legal for an actor, and
stamping the log fields that go with entering or leaving a status.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from app.schemas.chore import ChoreDefinition, ChoreLog, ChoreStatus
from app.utils.errors import InvalidInputError, InvalidTransitionError, NotAuthorizedError

SYSTEM_ACTOR = "SYSTEM"


class ActorRole(str, Enum):
    """Relationship of the requesting user to a chore."""

    PRIVILEGED = "privileged"
    ASSIGNEE = "assignee"
    OTHER = "other"


ANY_ACTOR = frozenset(ActorRole)
PRIVILEGED_ONLY = frozenset({ActorRole.PRIVILEGED})
ASSIGNEE_OR_PRIVILEGED = frozenset({ActorRole.ASSIGNEE, ActorRole.PRIVILEGED})

S = ChoreStatus

TRANSITIONS: dict[tuple[ChoreStatus, ChoreStatus], frozenset[ActorRole]] = {
    (S.PENDING, S.COMPLETED): ANY_ACTOR,
    (S.PENDING, S.APPROVED): ANY_ACTOR,
    (S.PENDING, S.HELP): ASSIGNEE_OR_PRIVILEGED,
    (S.PENDING, S.MISSED): PRIVILEGED_ONLY,
    (S.PENDING, S.SKIPPED): PRIVILEGED_ONLY,
    (S.COMPLETED, S.APPROVED): PRIVILEGED_ONLY,
    (S.COMPLETED, S.PENDING): ASSIGNEE_OR_PRIVILEGED,
    (S.APPROVED, S.PENDING): PRIVILEGED_ONLY,
    (S.APPROVED, S.COMPLETED): PRIVILEGED_ONLY,
    (S.HELP, S.APPROVED): PRIVILEGED_ONLY,
    (S.HELP, S.SKIPPED): PRIVILEGED_ONLY,
    (S.HELP, S.PENDING): PRIVILEGED_ONLY,
    (S.MISSED, S.PENDING): PRIVILEGED_ONLY,
    (S.SKIPPED, S.PENDING): PRIVILEGED_ONLY,
}


def actor_role(actor_id: str, definition: ChoreDefinition, is_privileged: bool) -> ActorRole:
    """Classify an actor against a chore; privilege wins over assignment."""
    if is_privileged:
        return ActorRole.PRIVILEGED
    if definition.assigned_person_id is not None and definition.assigned_person_id == actor_id:
        return ActorRole.ASSIGNEE
    return ActorRole.OTHER


def _allowed_roles(
    current: ChoreStatus, desired: ChoreStatus, auto_approve: bool
) -> frozenset[ActorRole] | None:
    allowed = TRANSITIONS.get((current, desired))
    # The assignee may also undo an auto-approved completion.
    if allowed is not None and (current, desired) == (S.APPROVED, S.PENDING) and auto_approve:
        return ASSIGNEE_OR_PRIVILEGED
    return allowed


def resolve_transition(
    current: ChoreStatus,
    desired: ChoreStatus,
    role: ActorRole,
    auto_approve: bool = False,
) -> ChoreStatus:
    """Return the status a log ends up in when ``desired`` is requested.

    A result equal to ``current`` means nothing changes. Raises
    ``InvalidTransitionError`` for pairs outside the lifecycle and
    ``NotAuthorizedError`` when the pair is legal but not for this role.
    """
    if current == desired:
        return current
    if current == S.APPROVED and desired == S.COMPLETED and auto_approve:
        return current

    allowed = _allowed_roles(current, desired, auto_approve)
    if allowed is None:
        raise InvalidTransitionError(current.value, desired.value)
    if role not in allowed:
        raise NotAuthorizedError(
            f"You are not allowed to move this chore from {current.value} to {desired.value}"
        )

    if current == S.PENDING and desired == S.COMPLETED:
        return S.APPROVED if auto_approve else S.COMPLETED
    if current == S.PENDING and desired == S.APPROVED:
        if auto_approve or role == ActorRole.PRIVILEGED:
            return S.APPROVED
        return S.COMPLETED
    return desired


def apply_transition(
    log: ChoreLog,
    target: ChoreStatus,
    actor_id: str,
    role: ActorRole,
    now: datetime,
    notes: str | None = None,
    help_reason: str | None = None,
) -> ChoreLog:
    """Return a copy of ``log`` moved to ``target`` with its audit fields stamped."""
    update: dict[str, object] = {"status": target}

    if log.status == S.HELP and target != S.HELP:
        update.update(help_reason=None, help_requested_at=None)

    if target == S.COMPLETED:
        update.update(
            completed_by=actor_id,
            completed_at=now,
            approved_by=None,
            approved_at=None,
        )
    elif target == S.APPROVED:
        update.update(
            approved_by=actor_id if role == ActorRole.PRIVILEGED else SYSTEM_ACTOR,
            approved_at=now,
        )
        if log.completed_by is None:
            update["completed_by"] = actor_id
        if log.completed_at is None:
            update["completed_at"] = now
    elif target == S.SKIPPED:
        update.update(approved_by=actor_id, approved_at=now)
    elif target == S.PENDING:
        update.update(
            completed_by=None,
            completed_at=None,
            approved_by=None,
            approved_at=None,
            help_reason=None,
            help_requested_at=None,
        )
    elif target == S.HELP:
        if not help_reason or not help_reason.strip():
            raise InvalidInputError("A reason is required when asking for help")
        update.update(help_reason=help_reason.strip(), help_requested_at=now)

    if notes is not None:
        update["notes"] = notes
    return log.model_copy(update=update)
