from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from database import get_db
from models.finance import AppUser, AppUserStatus, Bank
from models.user import User
from routers.banks import BankResponse
from utils.auth_dependency import get_current_user, get_current_admin

router = APIRouter(prefix="/api/app-users", tags=["App Users"])

class AppUserCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    mobile: str = Field(..., min_length=10, max_length=15)
    gstin: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=500)
    status: AppUserStatus = AppUserStatus.ACTIVE

class AppUserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    mobile: Optional[str] = Field(None, min_length=10, max_length=15)
    gstin: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=500)
    status: Optional[AppUserStatus] = None

class AppUserResponse(BaseModel):
    id: int
    name: str
    mobile: str
    gstin: Optional[str] = None
    address: Optional[str] = None
    status: AppUserStatus
    created_at: datetime

    class Config:
        from_attributes = True

def _get_or_404(db: Session, app_user_id: int) -> AppUser:
    app_user = db.query(AppUser).filter(AppUser.id == app_user_id).first()
    if not app_user:
        raise HTTPException(status_code=404, detail="App user not found")
    return app_user

@router.get("/", response_model=List[AppUserResponse])
def get_app_users(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return db.query(AppUser).order_by(AppUser.name).all()

@router.get("/{app_user_id}", response_model=AppUserResponse)
def get_app_user(app_user_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_or_404(db, app_user_id)

@router.get("/{app_user_id}/banks", response_model=List[BankResponse])
def get_app_user_banks(app_user_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Active bank accounts an app user can pay from or receive into"""
    _get_or_404(db, app_user_id)
    return db.query(Bank).filter(Bank.app_user_id == app_user_id, Bank.is_active == True).order_by(Bank.bank_name).all()

@router.post("/", response_model=AppUserResponse, status_code=status.HTTP_201_CREATED)
def create_app_user(request: AppUserCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    app_user = AppUser(**request.model_dump())
    db.add(app_user)
    db.commit()
    db.refresh(app_user)
    return app_user

@router.put("/{app_user_id}", response_model=AppUserResponse)
def update_app_user(
    app_user_id: int,
    request: AppUserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    app_user = _get_or_404(db, app_user_id)
    for field, value in request.model_dump(exclude_unset=True).items():
        setattr(app_user, field, value)
    db.commit()
    db.refresh(app_user)
    return app_user

@router.delete("/{app_user_id}")
def delete_app_user(app_user_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_admin)):
    app_user = _get_or_404(db, app_user_id)
    if app_user.banks:
        raise HTTPException(status_code=400, detail="App user has bank accounts and cannot be deleted")
    db.delete(app_user)
    db.commit()
    return {"message": "App user deleted successfully"}
