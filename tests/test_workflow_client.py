import asyncio
from datetime import date

import httpx
import pytest

from trip_workflow.api_client import ApiError, TransportApiClient
from trip_workflow.batch import run_best_effort
from trip_workflow.odometer import OdometerWatcher
from trip_workflow.reference import ReferenceDataLoader
from trip_workflow.resolvers import DriverBudgetResolver, VehicleStateResolver, standby_dates_after
from trip_workflow.schemas import BudgetSnapshot


def mock_client(routes):
    """Client whose transport answers from a {(method, path): (status, body)} table"""
    seen = []

    def handler(request: httpx.Request):
        seen.append((request.method, request.url.path))
        status, body = routes.get((request.method, request.url.path), (404, {"detail": "Not Found"}))
        return httpx.Response(status, json=body)

    client = TransportApiClient(base_url="http://fleet.test", token="abc", transport=httpx.MockTransport(handler))
    return client, seen


def run(coro):
    return asyncio.run(coro)


VEHICLE_ROUTES = {
    ("GET", "/api/trips/latest/2"): (200, {
        "id": 9, "trip_number": "TRIP20240110001", "vehicle_id": 2, "end_km": 5400.0,
        "end_location": "Mumbai", "last_trip_date": "2024-01-10", "created_at": "2024-01-10T08:00:00",
    }),
    ("GET", "/api/standby/"): (200, {
        "latest_standby_date": "2024-01-13",
        "standby_records": [
            {"id": 1, "dates": ["2024-01-09", "2024-01-12", "2024-01-13"]},
            {"id": 2, "dates": ["2024-01-11", "2024-01-12"]},
        ],
    }),
    ("GET", "/api/fuel-tracking/latest/2"): (200, {
        "id": 3, "remaining_fuel_quantity": 42.5, "fuel_rate": 92.0, "total_amount": 4600.0, "truck_average": 6.5,
    }),
}


def test_vehicle_state_from_trip_standby_and_fuel():
    client, seen = mock_client(VEHICLE_ROUTES)
    state = run(VehicleStateResolver(client).resolve(2))

    assert state.start_km == 5400.0
    assert state.last_destination == "Mumbai"
    assert state.standby_days == 3
    assert state.next_available_date == date(2024, 1, 14)
    assert state.fuel_snapshot.fuel_quantity == 42.5
    assert state.fuel_snapshot.average == 6.5
    assert ("GET", "/api/standby/") in seen


def test_vehicle_without_history_is_blank():
    client, _ = mock_client({("GET", "/api/standby/"): (200, {"latest_standby_date": None, "standby_records": []})})
    state = run(VehicleStateResolver(client).resolve(2))

    assert state.start_km == 0
    assert state.standby_days == 0
    assert state.next_available_date is None
    assert state.fuel_snapshot is None


def test_next_available_after_last_trip_when_no_later_standby():
    routes = dict(VEHICLE_ROUTES)
    routes[("GET", "/api/standby/")] = (200, {
        "latest_standby_date": "2024-01-08",
        "standby_records": [{"id": 1, "dates": ["2024-01-08"]}],
    })
    client, _ = mock_client(routes)
    state = run(VehicleStateResolver(client).resolve(2))

    assert state.standby_days == 0
    assert state.next_available_date == date(2024, 1, 11)


def test_vehicle_state_survives_server_errors():
    routes = dict(VEHICLE_ROUTES)
    routes[("GET", "/api/standby/")] = (500, {"detail": "boom"})
    client, _ = mock_client(routes)
    state = run(VehicleStateResolver(client).resolve(2))

    assert state.start_km == 5400.0
    assert state.standby_days == 0
    assert state.fuel_snapshot is not None


def test_standby_dates_after_is_sorted_and_strict():
    standby = {"standby_records": [{"dates": ["2024-01-12", "2024-01-10", "2024-01-11"]}]}
    assert standby_dates_after(standby, date(2024, 1, 10)) == [date(2024, 1, 11), date(2024, 1, 12)]


def test_driver_budget_and_carry_forward_notice():
    client, _ = mock_client({
        ("GET", "/api/driver-budgets/latest/1"): (200, {"remaining_budget_amount": 750.0, "date": "2024-01-02"}),
    })
    snapshot = run(DriverBudgetResolver(client).resolve(1))

    assert snapshot == BudgetSnapshot(remaining_budget_amount=750.0, allocation_date=date(2024, 1, 2))
    notice = DriverBudgetResolver.carry_forward_notice(snapshot)
    assert "750.00" in notice
    assert DriverBudgetResolver.carry_forward_notice(BudgetSnapshot()) is None


def test_driver_without_budget():
    client, _ = mock_client({})
    assert run(DriverBudgetResolver(client).resolve(1)) is None


def test_api_error_carries_server_detail():
    client, _ = mock_client({("POST", "/api/trips/"): (400, {"detail": "End KM must be greater than Start KM"})})
    with pytest.raises(ApiError) as exc:
        run(client.create_trip({}))
    assert exc.value.status_code == 400
    assert exc.value.detail == "End KM must be greater than Start KM"


def test_reference_data_load_tolerates_failing_lists():
    client, _ = mock_client({
        ("GET", "/api/drivers/"): (200, [{"id": 1, "name": "Ramesh"}]),
        ("GET", "/api/vehicles/"): (500, {"detail": "boom"}),
        ("GET", "/api/customers/"): (200, []),
        ("GET", "/api/banks/"): (200, []),
        ("GET", "/api/app-users/"): (200, []),
        ("GET", "/api/locations/"): (200, [{"id": 1, "location_name": "Pune"}]),
    })
    data = run(ReferenceDataLoader(client).load())

    assert data.drivers == [{"id": 1, "name": "Ramesh"}]
    assert data.vehicles == []
    assert data.location_names() == ["Pune"]
    assert "Toll" in data.expense_categories


def test_best_effort_batch_keeps_going_after_failure():
    async def ok():
        return 1

    async def boom():
        raise RuntimeError("down")

    report = run(run_best_effort([("a", ok), ("b", boom), ("c", ok)]))
    assert [o.label for o in report.succeeded] == ["a", "c"]
    assert report.failed[0].error == "down"


def test_odometer_watcher_publishes_and_switches_vehicle():
    client, _ = mock_client(VEHICLE_ROUTES)
    readings = []

    async def scenario():
        watcher = OdometerWatcher(client, lambda vid, km: readings.append((vid, km)), interval=0.01)
        await watcher.select(2)
        await asyncio.sleep(0.05)
        assert watcher.running
        await watcher.select(7)
        await asyncio.sleep(0.03)
        await watcher.stop()
        assert not watcher.running
        await client.aclose()

    run(scenario())
    assert (2, 5400.0) in readings
    # Vehicle 7 has no trips, so it reads zero
    assert (7, 0.0) in readings


def test_network_error_becomes_api_error():
    def timeout(request):
        raise httpx.ReadTimeout("timed out", request=request)

    client = TransportApiClient(base_url="http://fleet.test", transport=httpx.MockTransport(timeout))
    with pytest.raises(ApiError) as exc:
        run(client.latest_trip(2))
    assert exc.value.status_code == 0
    assert exc.value.detail == "timed out"


def test_odometer_survives_failing_listener(caplog):
    client, _ = mock_client(VEHICLE_ROUTES)
    calls = []

    def listener(vehicle_id, km):
        calls.append(km)
        raise RuntimeError("form closed")

    async def scenario():
        watcher = OdometerWatcher(client, listener, interval=0.01)
        await watcher.select(2)
        await asyncio.sleep(0.05)
        assert watcher.running
        await watcher.stop()
        await client.aclose()

    with caplog.at_level("WARNING", logger="trip_workflow.odometer"):
        run(scenario())

    assert len(calls) > 1
    assert "Odometer listener failed for vehicle 2: form closed" in caplog.text
