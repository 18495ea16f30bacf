from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy import or_
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime, date
from database import get_db
from models.finance import BankTransfer
from models.user import User
from models.log import LogLevel, LogCategory
from services.errors import ServiceError
from services.cashbook_service import TransferService
from utils.auth_dependency import get_current_user
from utils.logger import DatabaseLogger

router = APIRouter(prefix="/api/bank-transfers", tags=["Bank Transfers"])

class TransferCreate(BaseModel):
    from_bank_id: int
    to_bank_id: int
    amount: float
    description: Optional[str] = Field(None, max_length=500)
    transfer_date: Optional[date] = None

class TransferResponse(BaseModel):
    id: int
    from_bank_id: int
    to_bank_id: int
    amount: float
    description: Optional[str] = None
    transfer_date: date
    transaction_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True

@router.get("/", response_model=List[TransferResponse])
def get_transfers(
    bank_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    query = db.query(BankTransfer)
    if bank_id:
        query = query.filter(or_(BankTransfer.from_bank_id == bank_id, BankTransfer.to_bank_id == bank_id))
    return query.order_by(BankTransfer.created_at.desc(), BankTransfer.id.desc()).all()

@router.post("/", response_model=TransferResponse, status_code=status.HTTP_201_CREATED)
def create_transfer(request: TransferCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    try:
        transfer = TransferService.create(
            db,
            from_bank_id=request.from_bank_id,
            to_bank_id=request.to_bank_id,
            amount=request.amount,
            description=request.description,
            on_date=request.transfer_date,
        )
    except ServiceError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)

    DatabaseLogger.log_system(
        LogLevel.INFO, LogCategory.FINANCE, "Bank transfer completed",
        details={
            "transfer_id": transfer.id,
            "from_bank_id": transfer.from_bank_id,
            "to_bank_id": transfer.to_bank_id,
            "amount": transfer.amount,
        },
        user_id=current_user.id, db=db
    )
    return transfer
