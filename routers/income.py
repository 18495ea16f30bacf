from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime, date
from database import get_db
from models.finance import IncomeEntry
from models.user import User
from models.log import LogLevel, LogCategory
from services.errors import ServiceError
from services.cashbook_service import IncomeService
from utils.auth_dependency import get_current_user
from utils.logger import DatabaseLogger

router = APIRouter(prefix="/api/income", tags=["Income"])

class IncomeCreate(BaseModel):
    app_user_id: int
    bank_id: int
    category: str = Field(..., min_length=1, max_length=100)
    amount: float
    date: date
    description: Optional[str] = Field(None, max_length=500)

class IncomeResponse(BaseModel):
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

def _get_or_404(db: Session, income_id: int) -> IncomeEntry:
    try:
        return IncomeService.get(db, income_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

@router.get("/", response_model=List[IncomeResponse])
def get_income(
    app_user_id: Optional[int] = None,
    bank_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    query = db.query(IncomeEntry)
    if app_user_id:
        query = query.filter(IncomeEntry.app_user_id == app_user_id)
    if bank_id:
        query = query.filter(IncomeEntry.bank_id == bank_id)
    if start_date:
        query = query.filter(IncomeEntry.date >= start_date)
    if end_date:
        query = query.filter(IncomeEntry.date <= end_date)
    return query.order_by(IncomeEntry.created_at.desc(), IncomeEntry.id.desc()).offset(skip).limit(min(limit, 200)).all()

@router.get("/{income_id}", response_model=IncomeResponse)
def get_income_entry(income_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_or_404(db, income_id)

@router.post("/", response_model=IncomeResponse, status_code=status.HTTP_201_CREATED)
def create_income(request: IncomeCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Credit a bank account and write an income ledger entry"""
    try:
        entry = IncomeService.create(
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
        LogLevel.INFO, LogCategory.FINANCE, "Income recorded",
        details={"income_id": entry.id, "bank_id": entry.bank_id, "amount": entry.amount},
        user_id=current_user.id, db=db
    )
    return entry

@router.put("/{income_id}", response_model=IncomeResponse)
def update_income(
    income_id: int,
    request: IncomeCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    entry = _get_or_404(db, income_id)
    try:
        return IncomeService.update(
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

@router.delete("/{income_id}")
def delete_income(income_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    entry = _get_or_404(db, income_id)
    details = {"income_id": entry.id, "bank_id": entry.bank_id, "amount": entry.amount}
    try:
        IncomeService.delete(db, entry)
    except ServiceError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)

    DatabaseLogger.log_system(
        LogLevel.WARNING, LogCategory.FINANCE, "Income deleted", details=details, user_id=current_user.id, db=db
    )
    return {"message": "Income record deleted successfully", "id": income_id}
