from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, Text, Date
from sqlalchemy.orm import relationship
from .database import Base
from datetime import datetime
from enum import Enum


class UserRole(str, Enum):
    EMPLOYEE = "Employee"
    MANAGER = "Manager"


class ExpenseStatus(str, Enum):
    DRAFT = "Draft"
    SUBMITTED = "Submitted"
    APPROVED = "Approved"
    REJECTED = "Rejected"

    @property
    def status_id(self) -> int:
        return STATUS_IDS[self]

    @classmethod
    def from_id(cls, status_id: int) -> "ExpenseStatus":
        for status, known_id in STATUS_IDS.items():
            if known_id == status_id:
                return status
        raise ValueError(f"Unknown expense status id: {status_id}")


# Fixed identifiers of the expense_statuses reference rows
STATUS_IDS = {
    ExpenseStatus.DRAFT: 1,
    ExpenseStatus.SUBMITTED: 2,
    ExpenseStatus.APPROVED: 3,
    ExpenseStatus.REJECTED: 4,
}

ROLE_IDS = {
    UserRole.EMPLOYEE: 1,
    UserRole.MANAGER: 2,
}


class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, index=True)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True)
    role_id = Column(Integer, ForeignKey("roles.id"))
    manager_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    role = relationship("Role")
    manager = relationship("User", remote_side=[id])


class Category(Base):
    __tablename__ = "expense_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    is_active = Column(Boolean, default=True)


class Status(Base):
    __tablename__ = "expense_statuses"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    category_id = Column(Integer, ForeignKey("expense_categories.id"), nullable=False)
    status_id = Column(Integer, ForeignKey("expense_statuses.id"), index=True,
                       default=STATUS_IDS[ExpenseStatus.DRAFT], nullable=False)
    amount_minor = Column(Integer, nullable=False)  # pence
    currency = Column(String(3), default="GBP", nullable=False)
    expense_date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)
    receipt_file = Column(String(500), nullable=True)
    submitted_at = Column(DateTime, nullable=True)
    reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", foreign_keys=[user_id])
    reviewer = relationship("User", foreign_keys=[reviewed_by])
    category = relationship("Category")
