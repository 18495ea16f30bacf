from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime, date
from database import get_db
from models.attendance import Standby, AttendanceStatus
from models.user import User
from models.log import LogLevel, LogCategory
from services.errors import ServiceError
from services.attendance_service import StandbyService
from utils.auth_dependency import get_current_user
from utils.logger import DatabaseLogger

router = APIRouter(prefix="/api/standby", tags=["Standby"])

class StandbyCreate(BaseModel):
    vehicle_id: int
    driver_id: int
    dates: List[date] = Field(..., min_length=1)
    attendance_status: AttendanceStatus
    remarks: Optional[str] = Field(None, max_length=500)
    created_by: Optional[int] = None

class StandbyResponse(BaseModel):
    id: int
    vehicle_id: int
    driver_id: int
    dates: List[date]
    attendance_status: AttendanceStatus
    remarks: Optional[str] = None
    created_by: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class VehicleStandbyResponse(BaseModel):
    latest_standby_date: Optional[date] = None
    standby_records: List[StandbyResponse] = []

@router.get("/", response_model=VehicleStandbyResponse)
def get_standby(
    vehicle_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Recent standby records, newest first; scoped to one vehicle when given"""
    if vehicle_id:
        records = StandbyService.for_vehicle(db, vehicle_id)
    else:
        records = db.query(Standby).order_by(Standby.updated_at.desc(), Standby.id.desc()).limit(100).all()

    return VehicleStandbyResponse(
        latest_standby_date=StandbyService.latest_date(records),
        standby_records=[StandbyResponse.model_validate(r) for r in records],
    )

@router.post("/", response_model=StandbyResponse, status_code=status.HTTP_201_CREATED)
def create_standby(
    request: StandbyCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        standby = StandbyService.create(
            db,
            vehicle_id=request.vehicle_id,
            driver_id=request.driver_id,
            dates=request.dates,
            attendance_status=request.attendance_status,
            created_by=request.created_by or current_user.id,
            remarks=request.remarks,
        )
    except ServiceError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)

    DatabaseLogger.log_system(
        LogLevel.INFO, LogCategory.ATTENDANCE, "Standby recorded",
        details={"standby_id": standby.id, "vehicle_id": standby.vehicle_id, "days": len(standby.dates)},
        user_id=current_user.id, db=db
    )
    return standby
