"""
Serializable state for the trip form.

A ``TripDraft`` is the single aggregate the trip form edits. Every route owns
its own list of location hops and expenses, so removing a route never leaves
stale entries behind in a side structure.
"""
from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from datetime import date

TripStatusValue = Literal["draft", "in_progress", "completed", "cancelled"]
RouteStatusValue = Literal["in_progress", "completed"]


class LocationHop(BaseModel):
    from_location: str = ""
    to_location: str = ""
    status: RouteStatusValue = "in_progress"

    class Config:
        validate_assignment = True


class ExpenseItem(BaseModel):
    category: str = ""
    amount: float = 0.0
    quantity: float = 1.0
    total: float = 0.0
    description: str = ""


class RouteDraft(BaseModel):
    route_number: int = 1
    hops: List[LocationHop] = Field(default_factory=lambda: [LocationHop()])
    start_location: str = ""
    end_location: str = ""
    customer_id: Optional[int] = None
    customer_name: str = ""
    product_name: str = ""
    rate: Optional[float] = None
    weight: float = 0.0
    route_amount: float = 0.0
    advance_amount: float = 0.0
    payment_type: Optional[str] = None
    bank_id: Optional[int] = None
    app_user_id: Optional[int] = None
    expenses: List[ExpenseItem] = Field(default_factory=list)
    total_expense: float = 0.0
    dates: List[date] = Field(default_factory=list)
    route_status: RouteStatusValue = "in_progress"

    class Config:
        validate_assignment = True


class FuelSnapshot(BaseModel):
    """Latest fuel purchase of a vehicle, as seen when the form loaded it"""
    fuel_quantity: float = 0.0  # fuel still available in the tank
    fuel_rate: float = 0.0
    total_amount: float = 0.0
    average: float = 0.0  # km per unit of fuel


class BudgetSnapshot(BaseModel):
    remaining_budget_amount: float = 0.0
    allocation_date: Optional[date] = None


class VehicleState(BaseModel):
    start_km: float = 0.0
    standby_days: int = 0
    fuel_snapshot: Optional[FuelSnapshot] = None
    last_destination: str = ""
    next_available_date: Optional[date] = None


class TripDraft(BaseModel):
    trip_id: Optional[int] = None  # set when editing a persisted trip
    trip_number: Optional[str] = None
    dates: List[date] = Field(default_factory=lambda: [date.today()])
    start_km: float = 0.0
    end_km: float = 0.0
    total_km: float = 0.0
    driver_id: Optional[int] = None
    driver_name: str = ""
    vehicle_id: Optional[int] = None
    vehicle_number: str = ""
    status: TripStatusValue = "draft"
    remarks: str = ""
    routes: List[RouteDraft] = Field(default_factory=list)

    trip_route_cost: float = 0.0
    trip_expenses: float = 0.0
    trip_disel_cost: float = 0.0
    trip_fuel_quantity: float = 0.0
    remaining_amount: float = 0.0

    fuel_snapshot: Optional[FuelSnapshot] = None
    budget_snapshot: Optional[BudgetSnapshot] = None

    class Config:
        validate_assignment = True

    def to_payload(self) -> dict:
        """Body for POST/PUT /api/trips; snapshots and display names stay local"""
        return self.model_dump(
            mode="json",
            exclude={"trip_id", "trip_number", "driver_name", "vehicle_number", "fuel_snapshot", "budget_snapshot"},
        )
