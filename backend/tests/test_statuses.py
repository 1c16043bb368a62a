# tests/test_statuses.py
from __future__ import annotations

import itertools

import pytest

from guestlist.core.statuses import (
    CommissionStatus,
    EventStatus,
    available_commission_actions,
    can_transition_commission,
    can_transition_event,
    source_statuses_for,
    statuses_allowing,
)


def test_commission_transitions_only_move_forward():
    allowed = {
        (CommissionStatus.PENDING, CommissionStatus.APPROVED),
        (CommissionStatus.APPROVED, CommissionStatus.PAID),
    }
    for cur, tgt in itertools.product(CommissionStatus, repeat=2):
        assert can_transition_commission(cur, tgt) is ((cur, tgt) in allowed)


def test_event_transitions():
    assert can_transition_event("upcoming", "live")
    assert can_transition_event("upcoming", "past")
    assert can_transition_event("live", "past")
    assert not can_transition_event("live", "upcoming")
    assert not can_transition_event("past", "upcoming")
    assert not can_transition_event("past", "live")


def test_available_actions_by_status():
    assert available_commission_actions("pending") == ["approve", "revoke"]
    assert available_commission_actions(CommissionStatus.APPROVED) == ["pay"]
    assert available_commission_actions("paid") == []


def test_unknown_status_is_rejected():
    with pytest.raises(ValueError):
        can_transition_event("cancelled", "past")
    with pytest.raises(ValueError):
        available_commission_actions("revoked")
    assert EventStatus("upcoming") is EventStatus.UPCOMING


def test_source_statuses_follow_transition_table():
    assert source_statuses_for(CommissionStatus.APPROVED) == ["pending"]
    assert source_statuses_for("paid") == ["approved"]
    assert source_statuses_for("pending") == []


def test_only_pending_entries_allow_revoke():
    assert statuses_allowing("revoke") == ["pending"]
    assert statuses_allowing("pay") == ["approved"]
