"""
Trip cost aggregation.

Pure arithmetic shared by the trip form and the trips API so both sides agree
on every derived figure:

    route_amount     = weight * rate
    expense.total    = amount * quantity
    total_expense    = sum(expense.total)
    fuel_quantity    = (end_km - start_km) / average
    disel_cost       = fuel_quantity * fuel_rate
    remaining_amount = route_cost - expenses - disel_cost

Fuel figures are forced to zero when the KM range is not positive or the
vehicle average is unknown.
"""
from typing import Iterable, NamedTuple, Optional
from trip_workflow.schemas import TripDraft, RouteDraft, ExpenseItem


class FuelMetrics(NamedTuple):
    total_km: float
    fuel_quantity: float
    disel_cost: float


ZERO_FUEL = FuelMetrics(0.0, 0.0, 0.0)


def route_amount(weight: Optional[float], rate: Optional[float]) -> float:
    return (weight or 0.0) * (rate or 0.0)


def expense_total(amount: Optional[float], quantity: Optional[float]) -> float:
    return (amount or 0.0) * (quantity or 0.0)


def sum_totals(totals: Iterable[float]) -> float:
    return sum((t or 0.0) for t in totals)


def fuel_metrics(start_km: float, end_km: float, average: Optional[float], fuel_rate: Optional[float]) -> FuelMetrics:
    if start_km is None or end_km is None or end_km <= start_km:
        return ZERO_FUEL
    total_km = end_km - start_km
    if not average or average <= 0:
        return FuelMetrics(total_km, 0.0, 0.0)
    fuel_quantity = total_km / average
    return FuelMetrics(total_km, fuel_quantity, fuel_quantity * (fuel_rate or 0.0))


def remaining_amount(route_cost: float, expenses: float, disel_cost: float) -> float:
    return route_cost - expenses - disel_cost


def recompute_expense(expense: ExpenseItem) -> None:
    expense.total = expense_total(expense.amount, expense.quantity)


def recompute_route(route: RouteDraft) -> None:
    route.route_amount = route_amount(route.weight, route.rate)
    for expense in route.expenses:
        recompute_expense(expense)
    route.total_expense = sum_totals(e.total for e in route.expenses)


def recompute(draft: TripDraft) -> TripDraft:
    """Refresh every derived figure of the draft in place and return it"""
    for route in draft.routes:
        recompute_route(route)

    draft.trip_route_cost = sum_totals(r.route_amount for r in draft.routes)
    draft.trip_expenses = sum_totals(r.total_expense for r in draft.routes)

    snapshot = draft.fuel_snapshot
    metrics = fuel_metrics(
        draft.start_km,
        draft.end_km,
        snapshot.average if snapshot else None,
        snapshot.fuel_rate if snapshot else None,
    )
    draft.total_km = metrics.total_km
    draft.trip_fuel_quantity = metrics.fuel_quantity
    draft.trip_disel_cost = metrics.disel_cost
    draft.remaining_amount = remaining_amount(draft.trip_route_cost, draft.trip_expenses, draft.trip_disel_cost)
    return draft
