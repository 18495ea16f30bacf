from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime, date
import calendar
from database import get_db
from models.attendance import Attendance, AttendanceStatus
from models.fleet import Driver
from models.user import User
from models.log import LogLevel, LogCategory
from services.errors import ServiceError
from services.attendance_service import AttendanceService
from utils.auth_dependency import get_current_user, get_current_admin
from utils.logger import DatabaseLogger

router = APIRouter(prefix="/api/attendance", tags=["Attendance"])

class AttendanceCreate(BaseModel):
    driver_id: int
    date: date
    status: AttendanceStatus
    remarks: Optional[str] = Field(None, max_length=500)
    trip_id: Optional[int] = None
    trip_number: Optional[str] = Field(None, max_length=30)
    created_by: Optional[int] = None

class AttendanceBulkRequest(BaseModel):
    records: List[AttendanceCreate] = Field(..., min_length=1)

class AttendanceResponse(BaseModel):
    id: int
    driver_id: int
    date: date
    status: AttendanceStatus
    remarks: Optional[str] = None
    trip_id: Optional[int] = None
    trip_number: Optional[str] = None
    created_by: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

@router.get("/", response_model=List[AttendanceResponse])
def get_attendance(
    driver_id: Optional[int] = None,
    month: Optional[int] = None,
    year: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    query = db.query(Attendance)
    if driver_id:
        query = query.filter(Attendance.driver_id == driver_id)

    if month and year:
        if not 1 <= month <= 12:
            raise HTTPException(status_code=400, detail="Month must be between 1 and 12")
        last_day = calendar.monthrange(year, month)[1]
        query = query.filter(
            Attendance.date >= date(year, month, 1),
            Attendance.date <= date(year, month, last_day)
        )
    else:
        if start_date:
            query = query.filter(Attendance.date >= start_date)
        if end_date:
            query = query.filter(Attendance.date <= end_date)

    return query.order_by(Attendance.date, Attendance.driver_id).all()

@router.post("/", response_model=AttendanceResponse, status_code=status.HTTP_201_CREATED)
def create_attendance(
    request: AttendanceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Mark one driver for one day; a second mark for the same day is a 400"""
    try:
        attendance = AttendanceService.create(
            db,
            driver_id=request.driver_id,
            on_date=request.date,
            status=request.status,
            created_by=request.created_by or current_user.id,
            remarks=request.remarks,
            trip_id=request.trip_id,
            trip_number=request.trip_number,
        )
    except ServiceError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return attendance

@router.put("/", response_model=List[AttendanceResponse])
def bulk_upsert_attendance(
    request: AttendanceBulkRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create or overwrite a batch of records in one transaction"""
    driver_ids = {r.driver_id for r in request.records}
    found = {d.id for d in db.query(Driver.id).filter(Driver.id.in_(driver_ids)).all()}
    missing = sorted(driver_ids - found)
    if missing:
        raise HTTPException(status_code=404, detail=f"Driver not found: {missing[0]}")

    records = [
        AttendanceService.upsert(
            db,
            driver_id=r.driver_id,
            on_date=r.date,
            status=r.status,
            created_by=r.created_by or current_user.id,
            remarks=r.remarks,
            trip_id=r.trip_id,
            trip_number=r.trip_number,
        )
        for r in request.records
    ]
    db.commit()
    for record in records:
        db.refresh(record)

    DatabaseLogger.log_system(
        LogLevel.INFO, LogCategory.ATTENDANCE, "Attendance updated in bulk",
        details={"records": len(records)}, user_id=current_user.id, db=db
    )
    return records

@router.delete("/{attendance_id}")
def delete_attendance(attendance_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_admin)):
    attendance = db.query(Attendance).filter(Attendance.id == attendance_id).first()
    if not attendance:
        raise HTTPException(status_code=404, detail="Attendance record not found")
    db.delete(attendance)
    db.commit()
    return {"message": "Attendance record deleted successfully"}
