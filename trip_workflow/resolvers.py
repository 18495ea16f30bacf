"""
Vehicle and driver state lookups used to prefill the trip form
"""
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Set
import logging

from trip_workflow.api_client import TransportApiClient
from trip_workflow.schemas import VehicleState, FuelSnapshot, BudgetSnapshot

logger = logging.getLogger(__name__)


def _parse_date(value: Any) -> Optional[date]:
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _standby_dates(standby: Optional[Dict[str, Any]]) -> Set[date]:
    dates = set()
    for record in (standby or {}).get("standby_records") or []:
        for value in record.get("dates") or []:
            parsed = _parse_date(value)
            if parsed:
                dates.add(parsed)
    return dates


def fuel_snapshot_from(record: Optional[Dict[str, Any]]) -> Optional[FuelSnapshot]:
    if not record:
        return None
    return FuelSnapshot(
        fuel_quantity=record.get("remaining_fuel_quantity") or 0.0,
        fuel_rate=record.get("fuel_rate") or 0.0,
        total_amount=record.get("total_amount") or 0.0,
        average=record.get("truck_average") or 0.0,
    )


def budget_snapshot_from(record: Optional[Dict[str, Any]]) -> Optional[BudgetSnapshot]:
    if not record:
        return None
    return BudgetSnapshot(
        remaining_budget_amount=record.get("remaining_budget_amount") or 0.0,
        allocation_date=_parse_date(record.get("date")),
    )


class VehicleStateResolver:
    """Best-effort prefill of odometer, fuel and availability for a vehicle"""

    def __init__(self, client: TransportApiClient):
        self.client = client

    async def _fetch(self, what: str, call) -> Any:
        try:
            return await call
        except Exception as e:
            logger.warning(f"Could not load {what}: {e}")
            return None

    async def resolve(self, vehicle_id: int) -> VehicleState:
        state = VehicleState()

        trip = await self._fetch(f"latest trip for vehicle {vehicle_id}", self.client.latest_trip(vehicle_id))
        last_trip_date = None
        if trip:
            state.start_km = trip.get("end_km") or 0.0
            state.last_destination = trip.get("end_location") or ""
            last_trip_date = _parse_date(trip.get("last_trip_date"))

        standby = await self._fetch(f"standby for vehicle {vehicle_id}", self.client.standby_for_vehicle(vehicle_id))
        standby_date = _parse_date((standby or {}).get("latest_standby_date"))
        state.standby_days = len(standby_dates_after(standby, last_trip_date))

        if standby_date and (last_trip_date is None or standby_date > last_trip_date):
            state.next_available_date = standby_date + timedelta(days=1)
        elif last_trip_date:
            state.next_available_date = last_trip_date + timedelta(days=1)

        fuel = await self._fetch(f"fuel record for vehicle {vehicle_id}", self.client.latest_fuel(vehicle_id))
        state.fuel_snapshot = fuel_snapshot_from(fuel)
        return state


class DriverBudgetResolver:
    """Latest budget allocation of a driver"""

    def __init__(self, client: TransportApiClient):
        self.client = client

    async def resolve(self, driver_id: int) -> Optional[BudgetSnapshot]:
        try:
            record = await self.client.latest_budget(driver_id)
        except Exception as e:
            logger.warning(f"Could not load budget for driver {driver_id}: {e}")
            return None
        return budget_snapshot_from(record)

    @staticmethod
    def carry_forward_notice(snapshot: Optional[BudgetSnapshot]) -> Optional[str]:
        if snapshot is None or snapshot.remaining_budget_amount <= 0:
            return None
        return (
            f"Remaining budget of {snapshot.remaining_budget_amount:.2f} "
            "will be added automatically to the new allocation"
        )


def standby_dates_after(standby: Optional[Dict[str, Any]], after: Optional[date]) -> List[date]:
    dates = _standby_dates(standby)
    return sorted(d for d in dates if after is None or d > after)
