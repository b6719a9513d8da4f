"""Static demo dataset served when the database cannot be reached."""

from datetime import date, datetime, timedelta
from typing import List

from app.models import ExpenseStatus, UserRole
from app.schemas import CategoryResponse, ExpenseResponse, StatusResponse, UserResponse


def fallback_expenses() -> List[ExpenseResponse]:
    now = datetime.utcnow()
    owner = {"user_id": 1, "user_name": "Alice Example", "email": "alice@example.co.uk"}
    return [
        ExpenseResponse(
            expense_id=1,
            **owner,
            category_id=1,
            category_name="Travel",
            status=ExpenseStatus.SUBMITTED,
            amount_minor=12000,
            expense_date=date(2024, 1, 15),
            description="Taxi from airport to client site",
            submitted_at=now - timedelta(days=2),
            created_at=now - timedelta(days=3),
        ),
        ExpenseResponse(
            expense_id=2,
            **owner,
            category_id=2,
            category_name="Food",
            status=ExpenseStatus.SUBMITTED,
            amount_minor=6900,
            expense_date=date(2023, 1, 10),
            description="Client lunch meeting",
            submitted_at=now - timedelta(days=5),
            created_at=now - timedelta(days=6),
        ),
        ExpenseResponse(
            expense_id=3,
            **owner,
            category_id=3,
            category_name="Office Supplies",
            status=ExpenseStatus.APPROVED,
            amount_minor=9950,
            expense_date=date(2023, 12, 4),
            description="Office stationery",
            submitted_at=now - timedelta(days=10),
            reviewed_by=2,
            reviewer_name="Bob Manager",
            reviewed_at=now - timedelta(days=9),
            created_at=now - timedelta(days=11),
        ),
        ExpenseResponse(
            expense_id=4,
            **owner,
            category_id=1,
            category_name="Travel",
            status=ExpenseStatus.SUBMITTED,
            amount_minor=1920,
            expense_date=date(2023, 12, 18),
            description="Train tickets to conference",
            submitted_at=now - timedelta(days=1),
            created_at=now - timedelta(days=2),
        ),
    ]


def fallback_categories() -> List[CategoryResponse]:
    names = ["Travel", "Food", "Office Supplies", "Accommodation", "Other"]
    return [CategoryResponse(category_id=i, category_name=name) for i, name in enumerate(names, start=1)]


def fallback_users() -> List[UserResponse]:
    return [
        UserResponse(user_id=1, user_name="Alice Example", email="alice@example.co.uk",
                     role=UserRole.EMPLOYEE, manager_id=2, manager_name="Bob Manager"),
        UserResponse(user_id=2, user_name="Bob Manager", email="bob.manager@example.co.uk",
                     role=UserRole.MANAGER),
    ]


def fallback_statuses() -> List[StatusResponse]:
    return [StatusResponse(status_id=status.status_id, status_name=status) for status in ExpenseStatus]
