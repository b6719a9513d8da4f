from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.dependencies import get_expense_service
from app.schemas import CategoryResponse, StatusResponse, UserResponse
from app.services.expense_service import ExpenseService

router = APIRouter(prefix="/api", tags=["reference"])


class CategoryListResponse(BaseModel):
    categories: List[CategoryResponse]
    diagnostic: Optional[str] = None


class UserListResponse(BaseModel):
    users: List[UserResponse]
    diagnostic: Optional[str] = None


class StatusListResponse(BaseModel):
    statuses: List[StatusResponse]
    diagnostic: Optional[str] = None


@router.get("/categories", response_model=CategoryListResponse)
async def list_categories(service: ExpenseService = Depends(get_expense_service)):
    result = await service.list_categories()
    return CategoryListResponse(categories=result.data, diagnostic=result.diagnostic)


@router.get("/users", response_model=UserListResponse)
async def list_users(service: ExpenseService = Depends(get_expense_service)):
    result = await service.list_users()
    return UserListResponse(users=result.data, diagnostic=result.diagnostic)


@router.get("/statuses", response_model=StatusListResponse)
async def list_statuses(service: ExpenseService = Depends(get_expense_service)):
    result = await service.list_statuses()
    return StatusListResponse(statuses=result.data, diagnostic=result.diagnostic)
