"""
Trip persistence.

Every derived figure is recomputed here with the same aggregation the trip
form uses, so a client that sends stale totals cannot corrupt the ledger.
Creating a trip consumes fuel from the vehicle's latest fuel record and
expenses from the driver's latest budget.
"""
from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import datetime, date
from typing import List, Optional
from models.fleet import Driver, Vehicle
from models.trip import Trip, TripStatus, RouteBreakdown, RouteStatus, RouteExpense
from models.finance import PaymentType
from models.attendance import Attendance
from services.errors import ServiceError
from services.ledger_service import FuelService, BudgetService
from trip_workflow.schemas import TripDraft
from trip_workflow.costs import recompute, remaining_amount
from trip_workflow.draft import derive_locations
from trip_workflow.resolvers import fuel_snapshot_from
import logging

logger = logging.getLogger(__name__)

class TripService:
    @staticmethod
    def generate_trip_number(db: Session, today: Optional[date] = None) -> str:
        """TRIP + YYYYMMDD + running count, skipping numbers already taken"""
        stamp = (today or datetime.utcnow().date()).strftime("%Y%m%d")
        count = db.query(func.count(Trip.id)).scalar() or 0
        while True:
            count += 1
            trip_number = f"TRIP{stamp}{count:03d}"
            if not db.query(Trip.id).filter(Trip.trip_number == trip_number).first():
                return trip_number

    @staticmethod
    def _check_references(db: Session, driver_id: int, vehicle_id: int, start_km: float, end_km: float):
        if not db.query(Driver).filter(Driver.id == driver_id).first():
            raise ServiceError("Driver not found", 404)
        if not db.query(Vehicle).filter(Vehicle.id == vehicle_id).first():
            raise ServiceError("Vehicle not found", 404)
        if end_km <= start_km:
            raise ServiceError("End KM must be greater than Start KM")

    @staticmethod
    def build_draft(data: dict, fuel_record=None) -> TripDraft:
        """Normalise an incoming trip body and recompute its figures"""
        draft = TripDraft(**data)
        for route in draft.routes:
            derive_locations(route)
        draft.fuel_snapshot = fuel_snapshot_from(
            {
                "remaining_fuel_quantity": fuel_record.remaining_fuel_quantity,
                "fuel_rate": fuel_record.fuel_rate,
                "total_amount": fuel_record.total_amount,
                "truck_average": fuel_record.truck_average,
            } if fuel_record else None
        )
        return recompute(draft)

    @staticmethod
    def _routes_from(draft: TripDraft) -> List[RouteBreakdown]:
        routes = []
        for number, route in enumerate(draft.routes, start=1):
            routes.append(RouteBreakdown(
                route_number=number,
                hops=[hop.model_dump() for hop in route.hops],
                start_location=route.start_location,
                end_location=route.end_location,
                customer_id=route.customer_id,
                product_name=route.product_name,
                rate=route.rate,
                weight=route.weight,
                route_amount=route.route_amount,
                advance_amount=route.advance_amount,
                payment_type=PaymentType(route.payment_type),
                bank_id=route.bank_id,
                app_user_id=route.app_user_id,
                total_expense=route.total_expense,
                dates=[d.isoformat() for d in route.dates],
                route_status=RouteStatus(route.route_status),
                expenses=[
                    RouteExpense(
                        position=position,
                        category=expense.category,
                        amount=expense.amount,
                        quantity=expense.quantity,
                        total=expense.total,
                        description=expense.description,
                    )
                    for position, expense in enumerate(route.expenses)
                ],
            ))
        return routes

    @staticmethod
    def _apply(trip: Trip, draft: TripDraft):
        trip.dates = [d.isoformat() for d in draft.dates]
        trip.start_km = draft.start_km
        trip.end_km = draft.end_km
        trip.total_km = draft.total_km
        trip.driver_id = draft.driver_id
        trip.vehicle_id = draft.vehicle_id
        trip.status = TripStatus(draft.status)
        trip.remarks = draft.remarks
        trip.trip_route_cost = draft.trip_route_cost
        trip.trip_expenses = draft.trip_expenses
        trip.trip_disel_cost = draft.trip_disel_cost
        trip.trip_fuel_quantity = draft.trip_fuel_quantity
        trip.remaining_amount = draft.remaining_amount

    @staticmethod
    def create_trip(db: Session, data: dict, created_by: int) -> Trip:
        TripService._check_references(db, data["driver_id"], data["vehicle_id"], data["start_km"], data["end_km"])

        fuel_record = FuelService.latest(db, data["vehicle_id"])
        if not fuel_record:
            raise ServiceError("No fuel tracking record found for this vehicle")

        draft = TripService.build_draft(data, fuel_record)
        trip = Trip(trip_number=TripService.generate_trip_number(db), created_by=created_by)
        TripService._apply(trip, draft)
        trip.routes = TripService._routes_from(draft)
        db.add(trip)

        FuelService.consume(db, draft.vehicle_id, draft.trip_fuel_quantity)
        BudgetService.spend(db, draft.driver_id, draft.trip_expenses)

        db.commit()
        db.refresh(trip)
        logger.info(f"Trip {trip.trip_number} created with {len(trip.routes)} route(s)")
        return trip

    @staticmethod
    def update_trip(db: Session, trip: Trip, data: dict) -> Trip:
        """Full replace; fuel figures are only recomputed when vehicle or KM change"""
        TripService._check_references(db, data["driver_id"], data["vehicle_id"], data["start_km"], data["end_km"])

        fuel_changed = (
            data["vehicle_id"] != trip.vehicle_id
            or data["start_km"] != trip.start_km
            or data["end_km"] != trip.end_km
        )
        if fuel_changed:
            fuel_record = FuelService.latest(db, data["vehicle_id"])
            if not fuel_record:
                raise ServiceError("No fuel tracking record found for this vehicle")
            draft = TripService.build_draft(data, fuel_record)
        else:
            draft = TripService.build_draft(data)
            draft.total_km = trip.total_km
            draft.trip_fuel_quantity = trip.trip_fuel_quantity
            draft.trip_disel_cost = trip.trip_disel_cost
            draft.remaining_amount = remaining_amount(draft.trip_route_cost, draft.trip_expenses, draft.trip_disel_cost)

        TripService._apply(trip, draft)
        trip.routes = TripService._routes_from(draft)
        db.commit()
        db.refresh(trip)
        logger.info(f"Trip {trip.trip_number} updated")
        return trip

    @staticmethod
    def delete_trip(db: Session, trip: Trip) -> int:
        """Delete a trip and the attendance it created; returns attendance rows removed"""
        trip_number = trip.trip_number
        removed = db.query(Attendance).filter(Attendance.trip_id == trip.id).delete(synchronize_session=False)
        db.delete(trip)
        db.commit()
        logger.info(f"Trip {trip_number} deleted with {removed} attendance record(s)")
        return removed

    @staticmethod
    def latest_for_vehicle(db: Session, vehicle_id: int) -> Optional[Trip]:
        return db.query(Trip).filter(
            Trip.vehicle_id == vehicle_id
        ).order_by(Trip.created_at.desc(), Trip.id.desc()).first()
