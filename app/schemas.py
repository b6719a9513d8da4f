from datetime import date, datetime
from decimal import Decimal
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, computed_field

from .models import ExpenseStatus, UserRole

T = TypeVar("T")


class ExpenseResponse(BaseModel):
    expense_id: int
    user_id: int
    user_name: str = ""
    email: str = ""
    category_id: int
    category_name: str = ""
    status: ExpenseStatus
    amount_minor: int = Field(ge=0, description="Amount in pence")
    currency: str = "GBP"
    expense_date: date
    description: Optional[str] = None
    receipt_file: Optional[str] = None
    submitted_at: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    reviewer_name: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime

    @computed_field
    @property
    def amount(self) -> Decimal:
        return (Decimal(self.amount_minor) / 100).quantize(Decimal("0.01"))

    @computed_field
    @property
    def formatted_amount(self) -> str:
        return f"£{self.amount:,.2f}"

    @computed_field
    @property
    def formatted_date(self) -> str:
        return self.expense_date.strftime("%d/%m/%Y")


class CategoryResponse(BaseModel):
    category_id: int
    category_name: str
    is_active: bool = True


class UserResponse(BaseModel):
    user_id: int
    user_name: str
    email: str
    role: UserRole
    manager_id: Optional[int] = None
    manager_name: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


class StatusResponse(BaseModel):
    status_id: int
    status_name: ExpenseStatus


class ReadResult(BaseModel, Generic[T]):
    """Data from a read plus the diagnostic of a degraded read, if any."""
    data: T
    diagnostic: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.diagnostic is not None


def to_minor_units(amount: Decimal) -> int:
    # Truncates sub-penny fractions
    return int(Decimal(str(amount)) * 100)


class CreateExpenseRequest(BaseModel):
    user_id: int = Field(..., description="Owner of the expense")
    category_id: int
    amount: Decimal = Field(..., ge=0, description="Amount in pounds")
    expense_date: date = Field(default_factory=date.today)
    description: Optional[str] = None
    receipt_file: Optional[str] = None


class UpdateExpenseRequest(BaseModel):
    expense_id: int
    category_id: int
    amount: Decimal = Field(..., ge=0, description="Amount in pounds")
    expense_date: date
    description: Optional[str] = None
    receipt_file: Optional[str] = None


class CreateExpenseResponse(BaseModel):
    expense_id: int


class ExpenseListResponse(BaseModel):
    expenses: List[ExpenseResponse]
    total: int
    diagnostic: Optional[str] = None


class ChatRequest(BaseModel):
    message: str = ""
    reviewer_id: Optional[int] = Field(
        None, description="Identity used when the assistant approves or rejects expenses"
    )


class ChatResponse(BaseModel):
    message: str
    is_ai_enabled: bool


class ChatStatusResponse(BaseModel):
    is_ai_enabled: bool
