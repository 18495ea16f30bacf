from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime, date
from database import get_db
from models.finance import FuelTracking, PaymentType
from models.user import User
from models.log import LogLevel, LogCategory
from services.errors import ServiceError
from services.ledger_service import FuelService
from utils.auth_dependency import get_current_user
from utils.logger import DatabaseLogger

router = APIRouter(prefix="/api/fuel-tracking", tags=["Fuel Tracking"])

class FuelTrackingCreate(BaseModel):
    app_user_id: int
    bank_id: int
    vehicle_id: int
    start_km: float = Field(..., ge=0)
    end_km: float = Field(..., ge=0)
    fuel_quantity: float
    fuel_rate: float
    date: date
    payment_type: PaymentType
    description: Optional[str] = Field(None, max_length=500)

class FuelTrackingResponse(BaseModel):
    id: int
    app_user_id: int
    bank_id: int
    vehicle_id: int
    start_km: float
    end_km: float
    fuel_quantity: float
    remaining_fuel_quantity: float
    fuel_rate: float
    total_amount: float
    truck_average: float
    date: date
    description: Optional[str] = None
    payment_type: PaymentType
    transaction_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True

@router.get("/", response_model=List[FuelTrackingResponse])
def get_fuel_records(
    vehicle_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    query = db.query(FuelTracking)
    if vehicle_id:
        query = query.filter(FuelTracking.vehicle_id == vehicle_id)
    return query.order_by(FuelTracking.created_at.desc(), FuelTracking.id.desc()).offset(skip).limit(min(limit, 200)).all()

@router.get("/latest/{vehicle_id}", response_model=FuelTrackingResponse)
def get_latest_fuel(vehicle_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Most recent purchase; its remaining quantity is the fuel in the tank"""
    record = FuelService.latest(db, vehicle_id)
    if not record:
        raise HTTPException(status_code=404, detail="No fuel records found for this vehicle")
    return record

@router.post("/", response_model=FuelTrackingResponse, status_code=status.HTTP_201_CREATED)
def create_fuel_record(
    request: FuelTrackingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        record = FuelService.record_purchase(
            db,
            app_user_id=request.app_user_id,
            bank_id=request.bank_id,
            vehicle_id=request.vehicle_id,
            start_km=request.start_km,
            end_km=request.end_km,
            fuel_quantity=request.fuel_quantity,
            fuel_rate=request.fuel_rate,
            on_date=request.date,
            payment_type=request.payment_type,
            description=request.description,
        )
    except ServiceError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)

    DatabaseLogger.log_system(
        LogLevel.INFO, LogCategory.FUEL, "Fuel purchase recorded",
        details={
            "fuel_id": record.id,
            "vehicle_id": record.vehicle_id,
            "quantity": record.fuel_quantity,
            "amount": record.total_amount,
        },
        user_id=current_user.id, db=db
    )
    return record
