from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import datetime
from database import get_db
from models.fleet import Vehicle, VehicleType, VehicleStatus
from models.trip import Trip
from models.user import User
from utils.auth_dependency import get_current_user, get_current_admin

router = APIRouter(prefix="/api/vehicles", tags=["Vehicles"])

class VehicleCreate(BaseModel):
    registration_number: str = Field(..., min_length=4, max_length=30)
    vehicle_type: VehicleType
    vehicle_weight: float = Field(..., gt=0)
    vehicle_status: VehicleStatus = VehicleStatus.AVAILABLE

    @validator('registration_number')
    def normalise_registration(cls, v):
        # Stored uppercase without spaces so lookups match however it was typed
        return ''.join(v.split()).upper()

class VehicleUpdate(BaseModel):
    registration_number: Optional[str] = Field(None, min_length=4, max_length=30)
    vehicle_type: Optional[VehicleType] = None
    vehicle_weight: Optional[float] = Field(None, gt=0)
    vehicle_status: Optional[VehicleStatus] = None

    @validator('registration_number')
    def normalise_registration(cls, v):
        return ''.join(v.split()).upper() if v is not None else v

class VehicleResponse(BaseModel):
    id: int
    registration_number: str
    vehicle_type: VehicleType
    vehicle_weight: float
    vehicle_status: VehicleStatus
    created_at: datetime

    class Config:
        from_attributes = True

def _get_or_404(db: Session, vehicle_id: int) -> Vehicle:
    vehicle = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
    if not vehicle:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return vehicle

@router.get("/", response_model=List[VehicleResponse])
def get_vehicles(
    vehicle_status: Optional[VehicleStatus] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    query = db.query(Vehicle)
    if vehicle_status:
        query = query.filter(Vehicle.vehicle_status == vehicle_status)
    return query.order_by(Vehicle.registration_number).all()

@router.get("/{vehicle_id}", response_model=VehicleResponse)
def get_vehicle(vehicle_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_or_404(db, vehicle_id)

@router.post("/", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
def create_vehicle(request: VehicleCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    if db.query(Vehicle).filter(Vehicle.registration_number == request.registration_number).first():
        raise HTTPException(status_code=400, detail="Vehicle already registered")

    vehicle = Vehicle(
        registration_number=request.registration_number,
        vehicle_type=request.vehicle_type,
        vehicle_weight=request.vehicle_weight,
        vehicle_status=request.vehicle_status
    )
    db.add(vehicle)
    db.commit()
    db.refresh(vehicle)
    return vehicle

@router.put("/{vehicle_id}", response_model=VehicleResponse)
def update_vehicle(
    vehicle_id: int,
    request: VehicleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    vehicle = _get_or_404(db, vehicle_id)

    if request.registration_number is not None and request.registration_number != vehicle.registration_number:
        existing = db.query(Vehicle).filter(
            Vehicle.registration_number == request.registration_number,
            Vehicle.id != vehicle_id
        ).first()
        if existing:
            raise HTTPException(status_code=400, detail="Vehicle already registered")
        vehicle.registration_number = request.registration_number
    if request.vehicle_type is not None:
        vehicle.vehicle_type = request.vehicle_type
    if request.vehicle_weight is not None:
        vehicle.vehicle_weight = request.vehicle_weight
    if request.vehicle_status is not None:
        vehicle.vehicle_status = request.vehicle_status

    db.commit()
    db.refresh(vehicle)
    return vehicle

@router.delete("/{vehicle_id}")
def delete_vehicle(vehicle_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_admin)):
    vehicle = _get_or_404(db, vehicle_id)
    if db.query(Trip.id).filter(Trip.vehicle_id == vehicle_id).first():
        raise HTTPException(status_code=400, detail="Vehicle has trips and cannot be deleted")
    db.delete(vehicle)
    db.commit()
    return {"message": "Vehicle deleted successfully"}
