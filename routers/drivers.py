from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import datetime
from database import get_db
from models.fleet import Driver, DriverStatus
from models.trip import Trip
from models.user import User
from utils.auth_dependency import get_current_user, get_current_admin
import re

router = APIRouter(prefix="/api/drivers", tags=["Drivers"])

def _clean_mobile(v: str) -> str:
    v = v.strip()
    if not re.match(r'^\+?[0-9]{10,15}$', v):
        raise ValueError('Invalid mobile number format. Use 10-15 digits with optional + prefix')
    return v.lstrip('+')

class DriverCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    mobile: str
    status: DriverStatus = DriverStatus.ACTIVE

    @validator('mobile')
    def validate_mobile(cls, v):
        return _clean_mobile(v)

class DriverUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    mobile: Optional[str] = None
    status: Optional[DriverStatus] = None

    @validator('mobile')
    def validate_mobile(cls, v):
        return _clean_mobile(v) if v is not None else v

class DriverResponse(BaseModel):
    id: int
    name: str
    mobile: str
    status: DriverStatus
    created_at: datetime

    class Config:
        from_attributes = True

def _get_or_404(db: Session, driver_id: int) -> Driver:
    driver = db.query(Driver).filter(Driver.id == driver_id).first()
    if not driver:
        raise HTTPException(status_code=404, detail="Driver not found")
    return driver

@router.get("/", response_model=List[DriverResponse])
def get_drivers(
    status: Optional[DriverStatus] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    query = db.query(Driver)
    if status:
        query = query.filter(Driver.status == status)
    return query.order_by(Driver.name).all()

@router.get("/{driver_id}", response_model=DriverResponse)
def get_driver(driver_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_or_404(db, driver_id)

@router.post("/", response_model=DriverResponse, status_code=status.HTTP_201_CREATED)
def create_driver(request: DriverCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    if db.query(Driver).filter(Driver.mobile == request.mobile).first():
        raise HTTPException(status_code=400, detail="Mobile number already exists")

    driver = Driver(name=request.name, mobile=request.mobile, status=request.status)
    db.add(driver)
    db.commit()
    db.refresh(driver)
    return driver

@router.put("/{driver_id}", response_model=DriverResponse)
def update_driver(
    driver_id: int,
    request: DriverUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    driver = _get_or_404(db, driver_id)

    if request.mobile is not None and request.mobile != driver.mobile:
        if db.query(Driver).filter(Driver.mobile == request.mobile, Driver.id != driver_id).first():
            raise HTTPException(status_code=400, detail="Mobile number already in use")
        driver.mobile = request.mobile
    if request.name is not None:
        driver.name = request.name
    if request.status is not None:
        driver.status = request.status

    db.commit()
    db.refresh(driver)
    return driver

@router.delete("/{driver_id}")
def delete_driver(driver_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_admin)):
    driver = _get_or_404(db, driver_id)
    if db.query(Trip.id).filter(Trip.driver_id == driver_id).first():
        raise HTTPException(status_code=400, detail="Driver has trips and cannot be deleted")
    db.delete(driver)
    db.commit()
    return {"message": "Driver deleted successfully"}
