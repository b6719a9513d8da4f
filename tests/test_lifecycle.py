"""Tests for expense status transitions."""

import pytest

from app.models import ExpenseStatus
from app.services.lifecycle import ExpenseStateMachine


class TestValidTransitions:
    """Only the workflow path Draft -> Submitted -> Approved/Rejected is allowed."""

    @pytest.mark.parametrize(
        "from_status,to_status",
        [
            (ExpenseStatus.DRAFT, ExpenseStatus.SUBMITTED),
            (ExpenseStatus.SUBMITTED, ExpenseStatus.APPROVED),
            (ExpenseStatus.SUBMITTED, ExpenseStatus.REJECTED),
        ],
    )
    def test_allowed(self, from_status, to_status):
        assert ExpenseStateMachine.can_transition(from_status, to_status)

    @pytest.mark.parametrize(
        "from_status,to_status",
        [
            (ExpenseStatus.DRAFT, ExpenseStatus.APPROVED),
            (ExpenseStatus.DRAFT, ExpenseStatus.REJECTED),
            (ExpenseStatus.SUBMITTED, ExpenseStatus.DRAFT),
            (ExpenseStatus.APPROVED, ExpenseStatus.REJECTED),
            (ExpenseStatus.REJECTED, ExpenseStatus.APPROVED),
            (ExpenseStatus.APPROVED, ExpenseStatus.SUBMITTED),
        ],
    )
    def test_rejected(self, from_status, to_status):
        assert not ExpenseStateMachine.can_transition(from_status, to_status)

    def test_accepts_plain_status_names(self):
        assert ExpenseStateMachine.can_transition("Draft", ExpenseStatus.SUBMITTED)


class TestTerminalStatuses:

    def test_reviewed_statuses_are_terminal(self):
        assert ExpenseStateMachine.is_terminal(ExpenseStatus.APPROVED)
        assert ExpenseStateMachine.is_terminal(ExpenseStatus.REJECTED)
        assert ExpenseStateMachine.next_statuses(ExpenseStatus.APPROVED) == []

    def test_open_statuses_are_not_terminal(self):
        assert not ExpenseStateMachine.is_terminal(ExpenseStatus.DRAFT)
        assert ExpenseStateMachine.next_statuses(ExpenseStatus.SUBMITTED) == [
            ExpenseStatus.APPROVED,
            ExpenseStatus.REJECTED,
        ]


class TestDraftOnlyMutations:

    def test_only_drafts_are_editable(self):
        editable = [s for s in ExpenseStatus if ExpenseStateMachine.can_edit(s)]
        assert editable == [ExpenseStatus.DRAFT]

    def test_only_drafts_are_deletable(self):
        deletable = [s for s in ExpenseStatus if ExpenseStateMachine.can_delete(s)]
        assert deletable == [ExpenseStatus.DRAFT]


class TestStatusIds:

    def test_round_trip(self):
        for status in ExpenseStatus:
            assert ExpenseStatus.from_id(status.status_id) is status

    def test_unknown_id(self):
        with pytest.raises(ValueError):
            ExpenseStatus.from_id(99)
