from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime, date
from database import get_db
from models.trip import Trip, TripStatus, RouteStatus
from models.finance import PaymentType
from models.user import User
from models.log import LogLevel, LogCategory
from services.errors import ServiceError
from services.trip_service import TripService
from utils.auth_dependency import get_current_user, get_current_admin
from utils.logger import DatabaseLogger

router = APIRouter(prefix="/api/trips", tags=["Trips"])

class HopSchema(BaseModel):
    from_location: str = ""
    to_location: str = ""
    status: RouteStatus = RouteStatus.IN_PROGRESS

    class Config:
        from_attributes = True

class ExpenseSchema(BaseModel):
    category: str = Field(..., min_length=1, max_length=100)
    amount: float = Field(..., gt=0)
    quantity: float = Field(..., gt=0)
    total: float = 0.0
    description: str = ""

    class Config:
        from_attributes = True

class RouteRequest(BaseModel):
    hops: List[HopSchema] = Field(..., min_length=1)
    customer_id: int
    product_name: str = Field(..., min_length=1, max_length=200)
    rate: float = Field(..., ge=0)
    weight: float = Field(..., gt=0)
    advance_amount: float = Field(0.0, ge=0)
    payment_type: PaymentType
    bank_id: int
    app_user_id: int
    expenses: List[ExpenseSchema] = []
    dates: List[date] = []
    route_status: RouteStatus = RouteStatus.IN_PROGRESS

class TripRequest(BaseModel):
    """Body for create and full update; derived totals are ignored and recomputed"""
    dates: List[date] = Field(..., min_length=1)
    start_km: float = Field(..., ge=0)
    end_km: float = Field(..., ge=0)
    driver_id: int
    vehicle_id: int
    status: TripStatus = TripStatus.DRAFT
    remarks: str = ""
    routes: List[RouteRequest] = []
    created_by: Optional[int] = None

class RouteResponse(BaseModel):
    id: int
    route_number: int
    hops: List[HopSchema]
    start_location: str
    end_location: str
    customer_id: int
    product_name: str
    rate: float
    weight: float
    route_amount: float
    advance_amount: float
    payment_type: PaymentType
    bank_id: int
    app_user_id: int
    expenses: List[ExpenseSchema]
    total_expense: float
    dates: List[date]
    route_status: RouteStatus

    class Config:
        from_attributes = True

class TripResponse(BaseModel):
    id: int
    trip_number: str
    dates: List[date]
    start_km: float
    end_km: float
    total_km: float
    driver_id: int
    vehicle_id: int
    status: TripStatus
    remarks: Optional[str] = None
    routes: List[RouteResponse]
    trip_route_cost: float
    trip_expenses: float
    trip_disel_cost: float
    trip_fuel_quantity: float
    remaining_amount: float
    created_by: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class LatestTripResponse(BaseModel):
    id: int
    trip_number: str
    vehicle_id: int
    end_km: float
    end_location: str
    last_trip_date: Optional[date] = None
    created_at: datetime

def _get_or_404(db: Session, trip_id: int) -> Trip:
    trip = db.query(Trip).filter(Trip.id == trip_id).first()
    if not trip:
        raise HTTPException(status_code=404, detail="Trip not found")
    return trip

def _body(request: TripRequest) -> dict:
    return request.model_dump(mode="json", exclude={"created_by"})

@router.get("/", response_model=List[TripResponse])
def get_trips(
    status: Optional[TripStatus] = None,
    driver_id: Optional[int] = None,
    vehicle_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    query = db.query(Trip)
    if status:
        query = query.filter(Trip.status == status)
    if driver_id:
        query = query.filter(Trip.driver_id == driver_id)
    if vehicle_id:
        query = query.filter(Trip.vehicle_id == vehicle_id)
    return query.order_by(Trip.created_at.desc(), Trip.id.desc()).offset(skip).limit(min(limit, 200)).all()

@router.get("/latest/{vehicle_id}", response_model=LatestTripResponse)
def get_latest_trip(vehicle_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Odometer and position of a vehicle after its most recent trip"""
    trip = TripService.latest_for_vehicle(db, vehicle_id)
    if not trip:
        raise HTTPException(status_code=404, detail="No trip records found for this vehicle")

    return LatestTripResponse(
        id=trip.id,
        trip_number=trip.trip_number,
        vehicle_id=trip.vehicle_id,
        end_km=trip.end_km,
        end_location=trip.routes[-1].end_location if trip.routes else "",
        last_trip_date=max(trip.dates) if trip.dates else None,
        created_at=trip.created_at,
    )

@router.get("/{trip_id}", response_model=TripResponse)
def get_trip(trip_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_or_404(db, trip_id)

@router.post("/", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
def create_trip(request: TripRequest, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    try:
        trip = TripService.create_trip(db, _body(request), created_by=request.created_by or current_user.id)
    except ServiceError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)

    DatabaseLogger.log_system(
        LogLevel.INFO, LogCategory.TRIP, f"Trip {trip.trip_number} created",
        details={
            "trip_id": trip.id,
            "vehicle_id": trip.vehicle_id,
            "trip_fuel_quantity": trip.trip_fuel_quantity,
            "trip_expenses": trip.trip_expenses,
        },
        user_id=current_user.id, db=db
    )
    return trip

@router.put("/{trip_id}", response_model=TripResponse)
def update_trip(
    trip_id: int,
    request: TripRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    trip = _get_or_404(db, trip_id)
    try:
        trip = TripService.update_trip(db, trip, _body(request))
    except ServiceError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)

    DatabaseLogger.log_system(
        LogLevel.INFO, LogCategory.TRIP, f"Trip {trip.trip_number} updated",
        details={"trip_id": trip.id}, user_id=current_user.id, db=db
    )
    return trip

@router.delete("/{trip_id}")
def delete_trip(trip_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_admin)):
    trip = _get_or_404(db, trip_id)
    trip_number = trip.trip_number
    removed = TripService.delete_trip(db, trip)

    DatabaseLogger.log_system(
        LogLevel.WARNING, LogCategory.TRIP, f"Trip {trip_number} deleted",
        details={"trip_id": trip_id, "attendance_removed": removed}, user_id=current_user.id, db=db
    )
    return {"message": "Trip deleted successfully", "attendance_removed": removed}
