"""Expense status state machine."""

from typing import Dict, FrozenSet, List

from app.models import ExpenseStatus


class ExpenseStateMachine:
    """Legal expense status transitions.

    Allowed transitions:
    - Draft -> Submitted
    - Submitted -> Approved
    - Submitted -> Rejected

    Approved and Rejected are terminal. Drafts are the only expenses that may
    be edited or deleted.
    """

    VALID_TRANSITIONS: Dict[ExpenseStatus, List[ExpenseStatus]] = {
        ExpenseStatus.DRAFT: [ExpenseStatus.SUBMITTED],
        ExpenseStatus.SUBMITTED: [ExpenseStatus.APPROVED, ExpenseStatus.REJECTED],
        ExpenseStatus.APPROVED: [],
        ExpenseStatus.REJECTED: [],
    }

    EDITABLE: FrozenSet[ExpenseStatus] = frozenset({ExpenseStatus.DRAFT})
    DELETABLE: FrozenSet[ExpenseStatus] = frozenset({ExpenseStatus.DRAFT})

    @classmethod
    def can_transition(cls, from_status: ExpenseStatus, to_status: ExpenseStatus) -> bool:
        return to_status in cls.VALID_TRANSITIONS.get(ExpenseStatus(from_status), [])

    @classmethod
    def can_edit(cls, status: ExpenseStatus) -> bool:
        return ExpenseStatus(status) in cls.EDITABLE

    @classmethod
    def can_delete(cls, status: ExpenseStatus) -> bool:
        return ExpenseStatus(status) in cls.DELETABLE

    @classmethod
    def is_terminal(cls, status: ExpenseStatus) -> bool:
        return not cls.VALID_TRANSITIONS[ExpenseStatus(status)]

    @classmethod
    def next_statuses(cls, status: ExpenseStatus) -> List[ExpenseStatus]:
        return list(cls.VALID_TRANSITIONS[ExpenseStatus(status)])
