from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy import or_
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime, date
from database import get_db
from models.finance import Transaction, TransactionType, Bank
from models.user import User
from utils.auth_dependency import get_current_user

router = APIRouter(prefix="/api/transactions", tags=["Transactions"])

class TransactionResponse(BaseModel):
    id: int
    reference: str
    transaction_type: TransactionType
    description: Optional[str]
    amount: float
    from_bank_id: Optional[int]
    to_bank_id: Optional[int]
    app_user_id: Optional[int]
    category: Optional[str]
    balance_after: float
    date: date
    created_at: datetime

    class Config:
        from_attributes = True

class BankStatement(BaseModel):
    bank_id: int
    bank_name: str
    current_balance: float
    total_fuel: float
    total_driver_budget: float
    total_expense: float
    total_income: float
    total_transfers_in: float
    total_transfers_out: float
    transactions: List[TransactionResponse]

@router.get("/", response_model=List[TransactionResponse])
def get_transactions(
    transaction_type: Optional[TransactionType] = None,
    bank_id: Optional[int] = None,
    app_user_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    query = db.query(Transaction)
    if transaction_type:
        query = query.filter(Transaction.transaction_type == transaction_type)
    if bank_id:
        query = query.filter(or_(Transaction.from_bank_id == bank_id, Transaction.to_bank_id == bank_id))
    if app_user_id:
        query = query.filter(Transaction.app_user_id == app_user_id)
    return query.order_by(Transaction.created_at.desc(), Transaction.id.desc()).offset(skip).limit(min(limit, 500)).all()

@router.get("/statement/{bank_id}", response_model=BankStatement)
def get_bank_statement(bank_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    bank = db.query(Bank).filter(Bank.id == bank_id).first()
    if not bank:
        raise HTTPException(status_code=404, detail="Bank not found")

    transactions = db.query(Transaction).filter(
        or_(Transaction.from_bank_id == bank_id, Transaction.to_bank_id == bank_id)
    ).order_by(Transaction.created_at.desc(), Transaction.id.desc()).all()

    def total_for(kind: TransactionType, incoming: bool = False) -> float:
        return float(sum(
            t.amount for t in transactions
            if t.transaction_type == kind and (t.to_bank_id if incoming else t.from_bank_id) == bank_id
        ))

    return BankStatement(
        bank_id=bank.id,
        bank_name=bank.bank_name,
        current_balance=bank.balance,
        total_fuel=total_for(TransactionType.FUEL),
        total_driver_budget=total_for(TransactionType.DRIVER_BUDGET),
        total_expense=total_for(TransactionType.EXPENSE),
        total_income=total_for(TransactionType.INCOME, incoming=True),
        total_transfers_in=total_for(TransactionType.TRANSFER, incoming=True),
        total_transfers_out=total_for(TransactionType.TRANSFER),
        transactions=[TransactionResponse.model_validate(t) for t in transactions]
    )
