from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from datetime import date
from typing import List, Optional
from models.attendance import Attendance, AttendanceStatus, Standby
from models.fleet import Driver, Vehicle
from services.errors import ServiceError
import logging

logger = logging.getLogger(__name__)

class AttendanceService:
    @staticmethod
    def find(db: Session, driver_id: int, on_date: date) -> Optional[Attendance]:
        return db.query(Attendance).filter(
            Attendance.driver_id == driver_id,
            Attendance.date == on_date
        ).first()

    @staticmethod
    def create(
        db: Session,
        driver_id: int,
        on_date: date,
        status: AttendanceStatus,
        created_by: int,
        remarks: Optional[str] = None,
        trip_id: Optional[int] = None,
        trip_number: Optional[str] = None,
    ) -> Attendance:
        """Insert one record; a second record for the same driver and day is rejected"""
        if not db.query(Driver).filter(Driver.id == driver_id).first():
            raise ServiceError("Driver not found", 404)
        if AttendanceService.find(db, driver_id, on_date):
            raise ServiceError(f"Attendance already recorded for this driver on {on_date.isoformat()}")

        attendance = Attendance(
            driver_id=driver_id,
            date=on_date,
            status=status,
            remarks=remarks,
            trip_id=trip_id,
            trip_number=trip_number,
            created_by=created_by,
        )
        db.add(attendance)
        try:
            db.commit()
        except IntegrityError:
            # Lost a race with a concurrent insert for the same day
            db.rollback()
            raise ServiceError(f"Attendance already recorded for this driver on {on_date.isoformat()}")
        db.refresh(attendance)
        return attendance

    @staticmethod
    def upsert(
        db: Session,
        driver_id: int,
        on_date: date,
        status: AttendanceStatus,
        created_by: int,
        remarks: Optional[str] = None,
        trip_id: Optional[int] = None,
        trip_number: Optional[str] = None,
    ) -> Attendance:
        """Create or overwrite the record for a driver and day; caller commits"""
        attendance = AttendanceService.find(db, driver_id, on_date)
        if attendance is None:
            attendance = Attendance(driver_id=driver_id, date=on_date, created_by=created_by)
            db.add(attendance)
        attendance.status = status
        attendance.remarks = remarks
        attendance.trip_id = trip_id
        attendance.trip_number = trip_number
        db.flush()
        return attendance

class StandbyService:
    ALLOWED_STATUSES = (AttendanceStatus.PRESENT, AttendanceStatus.ABSENT)

    @staticmethod
    def for_vehicle(db: Session, vehicle_id: int, limit: int = 5) -> List[Standby]:
        return db.query(Standby).filter(
            Standby.vehicle_id == vehicle_id
        ).order_by(Standby.updated_at.desc(), Standby.id.desc()).limit(limit).all()

    @staticmethod
    def latest_date(records: List[Standby]) -> Optional[date]:
        dates = [date.fromisoformat(d) for record in records for d in (record.dates or [])]
        return max(dates) if dates else None

    @staticmethod
    def create(
        db: Session,
        vehicle_id: int,
        driver_id: int,
        dates: List[date],
        attendance_status: AttendanceStatus,
        created_by: int,
        remarks: Optional[str] = None,
    ) -> Standby:
        """Record idle days and mark the driver's attendance for each of them"""
        if attendance_status not in StandbyService.ALLOWED_STATUSES:
            raise ServiceError("attendance_status must be present or absent")
        if not dates:
            raise ServiceError("At least one date is required")
        if not db.query(Vehicle).filter(Vehicle.id == vehicle_id).first():
            raise ServiceError("Vehicle not found", 404)
        if not db.query(Driver).filter(Driver.id == driver_id).first():
            raise ServiceError("Driver not found", 404)

        unique_dates = sorted(set(dates))
        standby = Standby(
            vehicle_id=vehicle_id,
            driver_id=driver_id,
            dates=[d.isoformat() for d in unique_dates],
            attendance_status=attendance_status,
            remarks=remarks,
            created_by=created_by,
        )
        db.add(standby)
        for on_date in unique_dates:
            AttendanceService.upsert(
                db, driver_id, on_date, attendance_status, created_by,
                remarks=remarks or "Standby",
            )
        db.commit()
        db.refresh(standby)
        logger.info(f"Standby recorded for vehicle {vehicle_id}: {len(unique_dates)} day(s)")
        return standby
