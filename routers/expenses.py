from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime, date
from database import get_db
from models.finance import ExpenseEntry
from models.user import User
from models.log import LogLevel, LogCategory
from services.errors import ServiceError
from services.cashbook_service import ExpenseService
from utils.auth_dependency import get_current_user
from utils.logger import DatabaseLogger

router = APIRouter(prefix="/api/expenses", tags=["Expenses"])

class ExpenseCreate(BaseModel):
    app_user_id: int
    bank_id: int
    category: str = Field(..., min_length=1, max_length=100)
    amount: float
    date: date
    description: Optional[str] = Field(None, max_length=500)

class ExpenseResponse(BaseModel):
    id: int
    app_user_id: int
    bank_id: int
    category: str
    amount: float
    description: Optional[str] = None
    date: date
    transaction_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

def _get_or_404(db: Session, expense_id: int) -> ExpenseEntry:
    try:
        return ExpenseService.get(db, expense_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

@router.get("/", response_model=List[ExpenseResponse])
def get_expenses(
    app_user_id: Optional[int] = None,
    bank_id: Optional[int] = None,
    category: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    query = db.query(ExpenseEntry)
    if app_user_id:
        query = query.filter(ExpenseEntry.app_user_id == app_user_id)
    if bank_id:
        query = query.filter(ExpenseEntry.bank_id == bank_id)
    if category:
        query = query.filter(ExpenseEntry.category == category)
    if start_date:
        query = query.filter(ExpenseEntry.date >= start_date)
    if end_date:
        query = query.filter(ExpenseEntry.date <= end_date)
    return query.order_by(ExpenseEntry.created_at.desc(), ExpenseEntry.id.desc()).offset(skip).limit(min(limit, 200)).all()

@router.get("/{expense_id}", response_model=ExpenseResponse)
def get_expense(expense_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_or_404(db, expense_id)

@router.post("/", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
def create_expense(request: ExpenseCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Pay an expense from a bank account; 400 when the balance does not cover it"""
    try:
        entry = ExpenseService.create(
            db,
            app_user_id=request.app_user_id,
            bank_id=request.bank_id,
            category=request.category,
            amount=request.amount,
            on_date=request.date,
            description=request.description,
        )
    except ServiceError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)

    DatabaseLogger.log_system(
        LogLevel.INFO, LogCategory.FINANCE, "Expense recorded",
        details={"expense_id": entry.id, "bank_id": entry.bank_id, "amount": entry.amount},
        user_id=current_user.id, db=db
    )
    return entry

@router.put("/{expense_id}", response_model=ExpenseResponse)
def update_expense(
    expense_id: int,
    request: ExpenseCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    entry = _get_or_404(db, expense_id)
    try:
        return ExpenseService.update(
            db, entry,
            app_user_id=request.app_user_id,
            bank_id=request.bank_id,
            category=request.category,
            amount=request.amount,
            on_date=request.date,
            description=request.description,
        )
    except ServiceError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)

@router.delete("/{expense_id}")
def delete_expense(expense_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Remove an expense; the amount goes back to its bank"""
    entry = _get_or_404(db, expense_id)
    details = {"expense_id": entry.id, "bank_id": entry.bank_id, "amount": entry.amount}
    ExpenseService.delete(db, entry)

    DatabaseLogger.log_system(
        LogLevel.WARNING, LogCategory.FINANCE, "Expense deleted", details=details, user_id=current_user.id, db=db
    )
    return {"message": "Expense record deleted successfully", "id": expense_id}
