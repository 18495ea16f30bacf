from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime, date
from database import get_db
from models.finance import DriverBudget, PaymentType
from models.user import User
from models.log import LogLevel, LogCategory
from services.errors import ServiceError
from services.ledger_service import BudgetService
from utils.auth_dependency import get_current_user
from utils.logger import DatabaseLogger

router = APIRouter(prefix="/api/driver-budgets", tags=["Driver Budgets"])

class DriverBudgetCreate(BaseModel):
    app_user_id: int
    bank_id: int
    driver_id: int
    daily_budget_amount: float
    date: date
    payment_type: PaymentType = PaymentType.CASH
    description: Optional[str] = Field(None, max_length=500)

class DriverBudgetResponse(BaseModel):
    id: int
    app_user_id: int
    bank_id: int
    driver_id: int
    daily_budget_amount: float
    remaining_budget_amount: float
    date: date
    description: Optional[str] = None
    payment_type: PaymentType
    transaction_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True

@router.get("/", response_model=List[DriverBudgetResponse])
def get_driver_budgets(
    driver_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    query = db.query(DriverBudget)
    if driver_id:
        query = query.filter(DriverBudget.driver_id == driver_id)
    return query.order_by(DriverBudget.created_at.desc(), DriverBudget.id.desc()).offset(skip).limit(min(limit, 200)).all()

@router.get("/latest/{driver_id}", response_model=DriverBudgetResponse)
def get_latest_budget(driver_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    budget = BudgetService.latest(db, driver_id)
    if not budget:
        raise HTTPException(status_code=404, detail="No budget found for this driver")
    return budget

@router.post("/", response_model=DriverBudgetResponse, status_code=status.HTTP_201_CREATED)
def allocate_budget(
    request: DriverBudgetCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Hand a driver new money; any unspent remainder is added on top"""
    try:
        budget = BudgetService.allocate(
            db,
            app_user_id=request.app_user_id,
            bank_id=request.bank_id,
            driver_id=request.driver_id,
            amount=request.daily_budget_amount,
            on_date=request.date,
            payment_type=request.payment_type,
            description=request.description,
        )
    except ServiceError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)

    DatabaseLogger.log_system(
        LogLevel.INFO, LogCategory.DRIVER_BUDGET, "Driver budget allocated",
        details={
            "budget_id": budget.id,
            "driver_id": budget.driver_id,
            "allocated": request.daily_budget_amount,
            "total": budget.daily_budget_amount,
        },
        user_id=current_user.id, db=db
    )
    return budget
