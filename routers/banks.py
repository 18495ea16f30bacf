from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy import or_
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from database import get_db
from models.finance import AppUser, Bank, Transaction
from models.user import User
from models.log import LogLevel, LogCategory
from utils.auth_dependency import get_current_user, get_current_admin
from utils.logger import DatabaseLogger

router = APIRouter(prefix="/api/banks", tags=["Banks"])

class BankCreate(BaseModel):
    bank_name: str = Field(..., min_length=2, max_length=100)
    account_number: str = Field(..., min_length=4, max_length=40)
    balance: float = Field(0.0, ge=0)
    app_user_id: int
    is_active: bool = True

class BankUpdate(BaseModel):
    bank_name: Optional[str] = Field(None, min_length=2, max_length=100)
    balance: Optional[float] = Field(None, ge=0)
    is_active: Optional[bool] = None

class BankResponse(BaseModel):
    id: int
    bank_name: str
    account_number: str
    balance: float
    app_user_id: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True

def _get_or_404(db: Session, bank_id: int) -> Bank:
    bank = db.query(Bank).filter(Bank.id == bank_id).first()
    if not bank:
        raise HTTPException(status_code=404, detail="Bank not found")
    return bank

@router.get("/", response_model=List[BankResponse])
def get_banks(
    app_user_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    query = db.query(Bank)
    if app_user_id:
        query = query.filter(Bank.app_user_id == app_user_id)
    return query.order_by(Bank.bank_name).all()

@router.get("/{bank_id}", response_model=BankResponse)
def get_bank(bank_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_or_404(db, bank_id)

@router.post("/", response_model=BankResponse, status_code=status.HTTP_201_CREATED)
def create_bank(request: BankCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    if not db.query(AppUser).filter(AppUser.id == request.app_user_id).first():
        raise HTTPException(status_code=404, detail="App user not found")
    if db.query(Bank).filter(Bank.account_number == request.account_number).first():
        raise HTTPException(status_code=400, detail="Account number already exists")

    bank = Bank(**request.model_dump())
    db.add(bank)
    db.commit()
    db.refresh(bank)
    return bank

@router.put("/{bank_id}", response_model=BankResponse)
def update_bank(
    bank_id: int,
    request: BankUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    bank = _get_or_404(db, bank_id)
    changes = request.model_dump(exclude_unset=True, exclude_none=True)
    previous_balance = bank.balance
    for field, value in changes.items():
        setattr(bank, field, value)
    db.commit()
    db.refresh(bank)

    if bank.balance != previous_balance:
        DatabaseLogger.log_system(
            LogLevel.WARNING, LogCategory.MASTER_DATA, "Bank balance adjusted manually",
            details={"bank_id": bank.id, "from": previous_balance, "to": bank.balance},
            user_id=current_user.id, db=db
        )
    return bank

@router.delete("/{bank_id}")
def delete_bank(bank_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_admin)):
    bank = _get_or_404(db, bank_id)
    if db.query(Transaction.id).filter(
        or_(Transaction.from_bank_id == bank_id, Transaction.to_bank_id == bank_id)
    ).first():
        raise HTTPException(status_code=400, detail="Bank has transactions and cannot be deleted")
    db.delete(bank)
    db.commit()
    return {"message": "Bank deleted successfully"}
