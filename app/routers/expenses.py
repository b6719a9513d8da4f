"""
Expense Management API Endpoints

CRUD and workflow endpoints over the expense lifecycle: list, search, create,
edit drafts, submit for approval, and approve or reject as a manager.
Identities are always supplied by the caller.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.dependencies import get_expense_service
from app.schemas import (
    CreateExpenseRequest,
    CreateExpenseResponse,
    ExpenseListResponse,
    ExpenseResponse,
    ReadResult,
    UpdateExpenseRequest,
)
from app.services.expense_service import ExpenseService

router = APIRouter(prefix="/api/expenses", tags=["expenses"])
logger = logging.getLogger(__name__)


def _to_list_response(result: ReadResult) -> ExpenseListResponse:
    return ExpenseListResponse(
        expenses=result.data,
        total=len(result.data),
        diagnostic=result.diagnostic,
    )


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

@router.get("", response_model=ExpenseListResponse)
async def list_expenses(service: ExpenseService = Depends(get_expense_service)):
    """Get all expenses."""
    return _to_list_response(await service.list_all())


@router.get("/pending", response_model=ExpenseListResponse)
async def list_pending_expenses(service: ExpenseService = Depends(get_expense_service)):
    """Get all expenses awaiting manager review."""
    return _to_list_response(await service.list_pending())


@router.get("/search", response_model=ExpenseListResponse)
async def search_expenses(
    term: str = Query("", description="Matched against description, category and employee name"),
    service: ExpenseService = Depends(get_expense_service),
):
    """Search expenses. A blank term returns everything."""
    if not term.strip():
        return _to_list_response(await service.list_all())
    return _to_list_response(await service.search(term))


@router.get("/user/{user_id}", response_model=ExpenseListResponse)
async def list_user_expenses(user_id: int, service: ExpenseService = Depends(get_expense_service)):
    """Get the expenses owned by one user."""
    return _to_list_response(await service.list_by_user(user_id))


@router.get("/{expense_id}", response_model=ExpenseResponse)
async def get_expense(expense_id: int, service: ExpenseService = Depends(get_expense_service)):
    result = await service.get_by_id(expense_id)
    if result.data is None:
        raise HTTPException(status_code=404, detail="Expense not found")
    return result.data


# ---------------------------------------------------------------------------
# Employee actions
# ---------------------------------------------------------------------------

@router.post("", status_code=status.HTTP_201_CREATED, response_model=CreateExpenseResponse)
async def create_expense(
    request: CreateExpenseRequest,
    service: ExpenseService = Depends(get_expense_service),
):
    """Create a draft expense for the given user."""
    expense_id = await service.create(
        owner_id=request.user_id,
        category_id=request.category_id,
        amount=request.amount,
        expense_date=request.expense_date,
        description=request.description,
        receipt_file=request.receipt_file,
    )
    if expense_id == 0:
        detail = "Failed to create expense"
        if service.last_diagnostic:
            detail = f"{detail}: {service.last_diagnostic}"
        raise HTTPException(status_code=400, detail=detail)

    logger.info(f"User {request.user_id} created expense {expense_id}: £{request.amount:.2f}")
    return CreateExpenseResponse(expense_id=expense_id)


@router.put("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_expense(
    expense_id: int,
    request: UpdateExpenseRequest,
    service: ExpenseService = Depends(get_expense_service),
):
    """Edit a draft expense."""
    if expense_id != request.expense_id:
        raise HTTPException(status_code=400, detail="ID mismatch")

    success = await service.update(
        expense_id=expense_id,
        category_id=request.category_id,
        amount=request.amount,
        expense_date=request.expense_date,
        description=request.description,
        receipt_file=request.receipt_file,
    )
    if not success:
        raise HTTPException(status_code=404, detail="Expense not found or no longer a draft")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{expense_id}/submit", status_code=status.HTTP_204_NO_CONTENT)
async def submit_expense(expense_id: int, service: ExpenseService = Depends(get_expense_service)):
    """Submit a draft expense for approval."""
    if not await service.submit(expense_id):
        raise HTTPException(status_code=400, detail="Failed to submit expense")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(expense_id: int, service: ExpenseService = Depends(get_expense_service)):
    if not await service.delete(expense_id):
        raise HTTPException(
            status_code=400,
            detail="Failed to delete expense. Only draft expenses can be deleted."
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Manager actions
# ---------------------------------------------------------------------------

@router.post("/{expense_id}/approve", status_code=status.HTTP_204_NO_CONTENT)
async def approve_expense(
    expense_id: int,
    reviewer_id: int = Query(..., description="The reviewing manager's user ID"),
    service: ExpenseService = Depends(get_expense_service),
):
    """Approve a submitted expense."""
    if not await service.approve(expense_id, reviewer_id):
        raise HTTPException(status_code=400, detail="Failed to approve expense")
    logger.info(f"Manager {reviewer_id} approved expense {expense_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{expense_id}/reject", status_code=status.HTTP_204_NO_CONTENT)
async def reject_expense(
    expense_id: int,
    reviewer_id: int = Query(..., description="The reviewing manager's user ID"),
    service: ExpenseService = Depends(get_expense_service),
):
    """Reject a submitted expense."""
    if not await service.reject(expense_id, reviewer_id):
        raise HTTPException(status_code=400, detail="Failed to reject expense")
    logger.info(f"Manager {reviewer_id} rejected expense {expense_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
