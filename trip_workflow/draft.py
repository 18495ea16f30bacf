"""
Route breakdown editor.

Every function takes a ``TripDraft`` and returns a new one with the edit
applied and all derived figures recomputed; the input draft is never mutated.

Location chaining rules:
    - setting hop i's ``from_location`` also overwrites hop i-1's ``to_location``
    - a new route's first hop starts where the previous route's last hop ended
    - ``start_location``/``end_location`` always mirror the first and last hop
    - removing a hop never re-chains its neighbours
"""
from typing import Iterable, List, Optional
from datetime import date
from trip_workflow.schemas import (
    TripDraft, RouteDraft, LocationHop, ExpenseItem, VehicleState, BudgetSnapshot
)
from trip_workflow.costs import recompute

EDITABLE_ROUTE_FIELDS = {
    "customer_id", "customer_name", "product_name", "advance_amount", "payment_type",
    "bank_id", "app_user_id", "dates", "route_status",
}
EDITABLE_EXPENSE_FIELDS = {"category", "amount", "quantity", "description"}


def new_draft(trip_dates: Optional[List[date]] = None) -> TripDraft:
    draft = TripDraft()
    if trip_dates:
        draft.dates = list(trip_dates)
    return draft


def _edit(draft: TripDraft) -> TripDraft:
    return draft.model_copy(deep=True)


def _done(draft: TripDraft) -> TripDraft:
    return recompute(draft)


def derive_locations(route: RouteDraft) -> None:
    if route.hops:
        route.start_location = route.hops[0].from_location
        route.end_location = route.hops[-1].to_location
    else:
        route.start_location = ""
        route.end_location = ""


def find_chain_breaks(route: RouteDraft) -> List[int]:
    """Indices of hops whose origin does not match the previous hop's destination"""
    return [
        i for i in range(1, len(route.hops))
        if route.hops[i].from_location != route.hops[i - 1].to_location
    ]


# Trip header

def set_vehicle(draft: TripDraft, vehicle_id: int, vehicle_number: str, state: Optional[VehicleState] = None) -> TripDraft:
    draft = _edit(draft)
    draft.vehicle_id = vehicle_id
    draft.vehicle_number = vehicle_number
    state = state or VehicleState()
    draft.start_km = state.start_km
    draft.fuel_snapshot = state.fuel_snapshot
    return _done(draft)


def set_driver(draft: TripDraft, driver_id: int, driver_name: str, budget: Optional[BudgetSnapshot] = None) -> TripDraft:
    draft = _edit(draft)
    draft.driver_id = driver_id
    draft.driver_name = driver_name
    draft.budget_snapshot = budget
    return _done(draft)


def set_start_km(draft: TripDraft, start_km: float) -> TripDraft:
    draft = _edit(draft)
    draft.start_km = start_km
    return _done(draft)


def set_end_km(draft: TripDraft, end_km: float) -> TripDraft:
    draft = _edit(draft)
    draft.end_km = end_km
    return _done(draft)


def set_trip_fields(draft: TripDraft, **fields) -> TripDraft:
    """Update plain header fields: dates, status, remarks"""
    unknown = set(fields) - {"dates", "status", "remarks"}
    if unknown:
        raise ValueError(f"Not editable on the trip header: {', '.join(sorted(unknown))}")
    draft = _edit(draft)
    for name, value in fields.items():
        setattr(draft, name, value)
    return _done(draft)


def reset_fuel_fields(draft: TripDraft) -> TripDraft:
    """Clear the end reading so the user has to enter a feasible one"""
    draft = _edit(draft)
    draft.end_km = 0.0
    return _done(draft)


# Routes

def add_route(draft: TripDraft) -> TripDraft:
    draft = _edit(draft)
    first_hop = LocationHop()
    if draft.routes and draft.routes[-1].hops:
        first_hop.from_location = draft.routes[-1].hops[-1].to_location
    route = RouteDraft(route_number=len(draft.routes) + 1, hops=[first_hop])
    derive_locations(route)
    draft.routes.append(route)
    return _done(draft)


def remove_route(draft: TripDraft, route_index: int) -> TripDraft:
    draft = _edit(draft)
    del draft.routes[route_index]
    for number, route in enumerate(draft.routes, start=1):
        route.route_number = number
    return _done(draft)


def update_route(draft: TripDraft, route_index: int, **fields) -> TripDraft:
    if "weight" in fields or "rate" in fields:
        raise ValueError("Use set_weight/set_rate to change pricing")
    unknown = set(fields) - EDITABLE_ROUTE_FIELDS
    if unknown:
        raise ValueError(f"Not editable on a route: {', '.join(sorted(unknown))}")
    draft = _edit(draft)
    route = draft.routes[route_index]
    for name, value in fields.items():
        setattr(route, name, value)
    return _done(draft)


def set_weight(draft: TripDraft, route_index: int, weight: float) -> TripDraft:
    """Change the load weight; per-weight expenses follow it"""
    draft = _edit(draft)
    route = draft.routes[route_index]
    route.weight = weight
    for expense in route.expenses:
        expense.quantity = weight
    return _done(draft)


def set_rate(draft: TripDraft, route_index: int, rate: Optional[float]) -> TripDraft:
    draft = _edit(draft)
    draft.routes[route_index].rate = rate
    return _done(draft)


def apply_customer_products(
    draft: TripDraft,
    route_index: int,
    customer_id: int,
    customer_name: str,
    products: Iterable[dict],
) -> TripDraft:
    """Select a customer and prefill product, rate and its expense categories"""
    products = list(products)
    draft = _edit(draft)
    route = draft.routes[route_index]
    route.customer_id = customer_id
    route.customer_name = customer_name
    if products:
        product = products[0]
        route.product_name = product.get("product_name", "")
        route.rate = product.get("product_rate")
        known = {e.category for e in route.expenses}
        for category in product.get("categories") or []:
            name = category.get("category_name", "")
            if not name or name in known:
                continue
            route.expenses.append(ExpenseItem(category=name, amount=category.get("category_rate") or 0.0, quantity=1.0))
            known.add(name)
    return _done(draft)


# Location hops

def add_hop(draft: TripDraft, route_index: int) -> TripDraft:
    draft = _edit(draft)
    route = draft.routes[route_index]
    origin = route.hops[-1].to_location if route.hops else ""
    route.hops.append(LocationHop(from_location=origin))
    derive_locations(route)
    return _done(draft)


def set_hop_from(draft: TripDraft, route_index: int, hop_index: int, location: str) -> TripDraft:
    draft = _edit(draft)
    route = draft.routes[route_index]
    route.hops[hop_index].from_location = location
    if hop_index > 0:
        route.hops[hop_index - 1].to_location = location
    derive_locations(route)
    return _done(draft)


def set_hop_to(draft: TripDraft, route_index: int, hop_index: int, location: str) -> TripDraft:
    draft = _edit(draft)
    route = draft.routes[route_index]
    route.hops[hop_index].to_location = location
    derive_locations(route)
    return _done(draft)


def set_hop_status(draft: TripDraft, route_index: int, hop_index: int, status: str) -> TripDraft:
    draft = _edit(draft)
    draft.routes[route_index].hops[hop_index].status = status
    return _done(draft)


def remove_hop(draft: TripDraft, route_index: int, hop_index: int) -> TripDraft:
    draft = _edit(draft)
    route = draft.routes[route_index]
    del route.hops[hop_index]
    derive_locations(route)
    return _done(draft)


# Expenses

def add_expense(
    draft: TripDraft,
    route_index: int,
    category: str = "",
    amount: float = 0.0,
    quantity: float = 1.0,
    description: str = "",
) -> TripDraft:
    draft = _edit(draft)
    draft.routes[route_index].expenses.append(
        ExpenseItem(category=category, amount=amount, quantity=quantity, description=description)
    )
    return _done(draft)


def update_expense(draft: TripDraft, route_index: int, expense_index: int, **fields) -> TripDraft:
    unknown = set(fields) - EDITABLE_EXPENSE_FIELDS
    if unknown:
        raise ValueError(f"Not editable on an expense: {', '.join(sorted(unknown))}")
    draft = _edit(draft)
    expense = draft.routes[route_index].expenses[expense_index]
    for name, value in fields.items():
        setattr(expense, name, value)
    return _done(draft)


def remove_expense(draft: TripDraft, route_index: int, expense_index: int) -> TripDraft:
    draft = _edit(draft)
    del draft.routes[route_index].expenses[expense_index]
    return _done(draft)
