import asyncio
from datetime import date

import httpx
import pytest

from main import app
from models.attendance import Attendance
from trip_workflow import draft as ops
from trip_workflow.api_client import TransportApiClient
from trip_workflow.reference import ReferenceDataLoader
from trip_workflow.resolvers import DriverBudgetResolver, VehicleStateResolver
from trip_workflow.submission import SubmissionState, TripSubmissionOrchestrator


def api_client(admin_token):
    return TransportApiClient(
        base_url="http://testserver",
        token=admin_token,
        transport=httpx.ASGITransport(app=app),
    )


async def build_draft(client, fleet):
    reference = await ReferenceDataLoader(client).load()
    driver = next(d for d in reference.drivers if d["id"] == fleet.driver_id)
    vehicle = next(v for v in reference.vehicles if v["id"] == fleet.vehicle_id)

    state = await VehicleStateResolver(client).resolve(vehicle["id"])
    budget = await DriverBudgetResolver(client).resolve(driver["id"])
    products = await ReferenceDataLoader(client).products_for(fleet.customer_id)

    d = ops.new_draft([date(2024, 1, 5)])
    d = ops.set_vehicle(d, vehicle["id"], vehicle["registration_number"], state)
    d = ops.set_driver(d, driver["id"], driver["name"], budget)
    d = ops.set_start_km(d, 100)
    d = ops.set_end_km(d, 350)
    d = ops.add_route(d)
    d = ops.set_hop_from(d, 0, 0, "Pune")
    d = ops.set_hop_to(d, 0, 0, "Mumbai")
    d = ops.apply_customer_products(d, 0, fleet.customer_id, "Anil Cements", products)
    d = ops.set_weight(d, 0, 1000)
    d = ops.update_route(
        d, 0,
        payment_type="cash",
        bank_id=fleet.bank_id,
        app_user_id=fleet.app_user_id,
        dates=[date(2024, 1, 5), date(2024, 1, 6)],
    )
    return d


def test_trip_form_to_ledger(funded, admin_user, admin_token, session_factory, client):
    async def scenario():
        async with api_client(admin_token) as api:
            draft = await build_draft(api, funded)
            assert draft.fuel_snapshot.fuel_quantity == 50
            assert draft.budget_snapshot.remaining_budget_amount == 2000
            # Loading category prefilled, then mirrored to the weight
            assert draft.routes[0].expenses[0].quantity == 1000

            blocked = await TripSubmissionOrchestrator(api, created_by=admin_user.id).submit(draft)
            assert blocked.state == SubmissionState.BLOCKED_BUDGET

            draft = ops.update_expense(draft, 0, 0, quantity=1)
            result = await TripSubmissionOrchestrator(api, created_by=admin_user.id).submit(draft)
            latest = await api.latest_trip(funded.vehicle_id)
            return result, latest

    result, latest = asyncio.run(scenario())

    assert result.state == SubmissionState.DONE, result.message
    assert result.trip["remaining_amount"] == pytest.approx(5000 - 300 - 2250)
    assert result.attendance.complete
    assert len(result.attendance.succeeded) == 2
    assert latest["end_km"] == 350

    session = session_factory()
    try:
        days = session.query(Attendance).filter(Attendance.trip_id == result.draft.trip_id).order_by(Attendance.date).all()
        assert [a.date for a in days] == [date(2024, 1, 5), date(2024, 1, 6)]
        assert all(a.remarks == "On Trip" for a in days)
    finally:
        session.close()
