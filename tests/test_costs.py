import pytest

from trip_workflow.costs import (
    ZERO_FUEL, fuel_metrics, recompute, remaining_amount, route_amount, expense_total
)
from trip_workflow.schemas import TripDraft, RouteDraft, ExpenseItem, FuelSnapshot


def make_draft(**kwargs):
    defaults = dict(
        start_km=100,
        end_km=350,
        fuel_snapshot=FuelSnapshot(fuel_quantity=40, fuel_rate=90, average=10),
        routes=[
            RouteDraft(
                weight=1000,
                rate=5,
                expenses=[ExpenseItem(category="Toll", amount=800, quantity=1)],
            )
        ],
    )
    defaults.update(kwargs)
    return TripDraft(**defaults)


def test_route_amount_is_weight_times_rate():
    assert route_amount(1000, 5) == 5000
    assert route_amount(1000, None) == 0


def test_expense_total_is_amount_times_quantity():
    assert expense_total(150, 4) == 600


def test_fuel_metrics_from_km_and_average():
    metrics = fuel_metrics(100, 350, 10, 90)
    assert metrics.total_km == 250
    assert metrics.fuel_quantity == pytest.approx(25)
    assert metrics.disel_cost == pytest.approx(2250)


@pytest.mark.parametrize("end_km", [100, 50])
def test_fuel_metrics_zero_when_km_range_not_positive(end_km):
    assert fuel_metrics(100, end_km, 10, 90) == ZERO_FUEL


def test_fuel_metrics_without_average_keeps_distance_only():
    metrics = fuel_metrics(100, 350, 0, 90)
    assert metrics.total_km == 250
    assert metrics.fuel_quantity == 0
    assert metrics.disel_cost == 0


def test_remaining_amount():
    assert remaining_amount(5000, 800, 2250) == 1950


def test_recompute_fills_every_derived_figure():
    draft = recompute(make_draft())

    route = draft.routes[0]
    assert route.route_amount == 5000
    assert route.expenses[0].total == 800
    assert route.total_expense == 800
    assert draft.trip_route_cost == 5000
    assert draft.trip_expenses == 800
    assert draft.total_km == 250
    assert draft.trip_fuel_quantity == pytest.approx(25)
    assert draft.trip_disel_cost == pytest.approx(2250)
    assert draft.remaining_amount == pytest.approx(1950)


def test_recompute_sums_over_routes_and_expenses():
    draft = make_draft(routes=[
        RouteDraft(weight=10, rate=100, expenses=[
            ExpenseItem(category="Toll", amount=50, quantity=2),
            ExpenseItem(category="Loading", amount=25, quantity=4),
        ]),
        RouteDraft(weight=20, rate=50),
    ])
    draft = recompute(draft)

    assert draft.trip_route_cost == 2000
    assert draft.routes[0].total_expense == 200
    assert draft.trip_expenses == 200


def test_recompute_without_fuel_snapshot():
    draft = recompute(make_draft(fuel_snapshot=None))
    assert draft.trip_fuel_quantity == 0
    assert draft.trip_disel_cost == 0
    assert draft.remaining_amount == 5000 - 800


def test_recompute_end_km_not_after_start_zeroes_fuel():
    draft = recompute(make_draft(end_km=90))
    assert draft.total_km == 0
    assert draft.trip_fuel_quantity == 0
    assert draft.trip_disel_cost == 0
