# guestlist/core/statuses.py
#
# Closed status sets and their allowed transitions. Rows store the plain
# string value. Commission updates build their expected-current-status
# guard from these tables (see guestlist.core.commissions).

from __future__ import annotations

import enum
from typing import Mapping, FrozenSet


class EventStatus(str, enum.Enum):
    UPCOMING = "upcoming"
    LIVE = "live"
    PAST = "past"


class CommissionStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"


class CommissionAction(str, enum.Enum):
    APPROVE = "approve"
    PAY = "pay"
    REVOKE = "revoke"


EVENT_TRANSITIONS: Mapping[EventStatus, FrozenSet[EventStatus]] = {
    EventStatus.UPCOMING: frozenset({EventStatus.LIVE, EventStatus.PAST}),
    EventStatus.LIVE: frozenset({EventStatus.PAST}),
    EventStatus.PAST: frozenset(),
}

COMMISSION_TRANSITIONS: Mapping[CommissionStatus, FrozenSet[CommissionStatus]] = {
    CommissionStatus.PENDING: frozenset({CommissionStatus.APPROVED}),
    CommissionStatus.APPROVED: frozenset({CommissionStatus.PAID}),
    CommissionStatus.PAID: frozenset(),
}

# Which action an entry in a given status exposes. Revoke deletes the row, so
# it is not a transition and lives only here.
COMMISSION_ACTIONS: Mapping[CommissionStatus, tuple[CommissionAction, ...]] = {
    CommissionStatus.PENDING: (CommissionAction.APPROVE, CommissionAction.REVOKE),
    CommissionStatus.APPROVED: (CommissionAction.PAY,),
    CommissionStatus.PAID: (),
}


def can_transition_event(current: EventStatus | str, target: EventStatus | str) -> bool:
    cur = EventStatus(current)
    tgt = EventStatus(target)
    return tgt in EVENT_TRANSITIONS[cur]


def can_transition_commission(current: CommissionStatus | str, target: CommissionStatus | str) -> bool:
    cur = CommissionStatus(current)
    tgt = CommissionStatus(target)
    return tgt in COMMISSION_TRANSITIONS[cur]


def available_commission_actions(status: CommissionStatus | str) -> list[str]:
    return [a.value for a in COMMISSION_ACTIONS[CommissionStatus(status)]]


def source_statuses_for(target: CommissionStatus | str) -> list[str]:
    """Statuses an entry may be in when it moves to ``target``."""
    tgt = CommissionStatus(target)
    return [cur.value for cur in CommissionStatus if can_transition_commission(cur, tgt)]


def statuses_allowing(action: CommissionAction | str) -> list[str]:
    act = CommissionAction(action)
    return [cur.value for cur, actions in COMMISSION_ACTIONS.items() if act in actions]
