"""Candidate status state machine.

The ``(candidate_status, blacklist, hired)`` triple only ever takes one of
three composite shapes:

* hired       -> ``hired=True,  blacklist=False, status=Not Available``
* blacklisted -> ``hired=False, blacklist=True,  status=Not Available``
* neither     -> ``hired=False, blacklist=False, status=<any>``

``plan_transition`` is pure and computes the column update for an action;
``apply_transition`` reads the row, plans and writes.  Concurrent transitions
on one candidate are last-write-wins.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, NamedTuple

from supabase import AsyncClient

from app.core.constants import CANDIDATES_TABLE
from app.models.candidate import Candidate, candidate_from_row
from app.models.enums import CandidateStatus, StatusAction

logger = logging.getLogger(__name__)


class StatusTransitionError(ValueError):
    """The requested action is not allowed from the current state."""


class StatusState(NamedTuple):
    status: CandidateStatus | None
    blacklist: bool
    hired: bool

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "StatusState":
        raw_status = row.get("candidate_status")
        try:
            status = CandidateStatus(raw_status) if raw_status else None
        except ValueError:
            status = None
        return cls(status=status, blacklist=bool(row.get("blacklist")), hired=bool(row.get("hired")))


def _as_status(target: Any) -> CandidateStatus:
    if isinstance(target, CandidateStatus):
        return target
    try:
        return CandidateStatus(target)
    except ValueError as exc:
        raise StatusTransitionError(f"Unknown status: {target!r}") from exc


def plan_transition(
    current: StatusState,
    action: StatusAction,
    target: bool | CandidateStatus | str,
) -> dict[str, Any]:
    """Return the column update for *action* applied to *current*.

    Raises:
        StatusTransitionError: when the action is not allowed from *current*.
    """
    if action == StatusAction.hired:
        if target:
            return {
                "hired": True,
                "blacklist": False,
                "candidate_status": CandidateStatus.not_available.value,
            }
        return {"hired": False}

    if action == StatusAction.blacklist:
        if current.hired:
            raise StatusTransitionError("Cannot change blacklist while the candidate is hired")
        if target:
            return {
                "blacklist": True,
                "hired": False,
                "candidate_status": CandidateStatus.not_available.value,
            }
        return {"blacklist": False}

    if action == StatusAction.availability:
        if current.blacklist:
            raise StatusTransitionError("Cannot change availability of a blacklisted candidate")
        if current.hired:
            raise StatusTransitionError("Cannot change availability of a hired candidate")
        return {"candidate_status": _as_status(target).value}

    raise StatusTransitionError(f"Unknown action: {action!r}")


async def apply_transition(
    client: AsyncClient,
    candidate_id: int | str,
    action: StatusAction,
    target: bool | CandidateStatus | str,
    user_id: str | None,
    now: datetime | None = None,
) -> Candidate:
    """Apply *action* to one candidate and return the updated record.

    Raises:
        LookupError: the candidate does not exist.
        StatusTransitionError: the action is rejected from the current state.
    """
    result = (
        await client.table(CANDIDATES_TABLE)
        .select("id, candidate_status, blacklist, hired")
        .eq("id", candidate_id)
        .limit(1)
        .execute()
    )
    if not result.data:
        raise LookupError(f"Candidate {candidate_id} not found")

    current = StatusState.from_row(result.data[0])
    update = plan_transition(current, action, target)
    update["last_updated_by"] = user_id
    update["updated_at"] = (now or datetime.now(timezone.utc)).isoformat()

    written = (
        await client.table(CANDIDATES_TABLE)
        .update(update)
        .eq("id", candidate_id)
        .execute()
    )
    if not written.data:
        raise LookupError(f"Candidate {candidate_id} not found")

    logger.info(
        "candidate_status_changed",
        extra={
            "candidate_id": candidate_id,
            "action": action.value,
            "user_id": user_id,
        },
    )
    return candidate_from_row(written.data[0])
