from datetime import date

import pytest

from conftest import trip_body
from models.attendance import Attendance, AttendanceStatus
from models.finance import FuelTracking, DriverBudget
from models.log import SystemLog, LogCategory
from services.trip_service import TripService


def test_create_trip_recomputes_figures_and_consumes_fuel_and_budget(client, auth_headers, funded, db_session):
    body = trip_body(funded, remaining_amount=999999)
    response = client.post("/api/trips/", json=body, headers=auth_headers)
    assert response.status_code == 201
    trip = response.json()

    assert trip["trip_number"] == f"TRIP{date.today():%Y%m%d}001"
    assert trip["total_km"] == 250
    assert trip["trip_route_cost"] == 5000
    assert trip["trip_expenses"] == 800
    assert trip["trip_fuel_quantity"] == pytest.approx(25)
    assert trip["trip_disel_cost"] == pytest.approx(2250)
    assert trip["remaining_amount"] == pytest.approx(1950)

    route = trip["routes"][0]
    assert route["route_number"] == 1
    assert route["start_location"] == "Pune"
    assert route["end_location"] == "Mumbai"
    assert route["route_amount"] == 5000
    assert route["expenses"][0]["total"] == 800
    assert route["dates"] == ["2024-01-05", "2024-01-07"]

    db_session.expire_all()
    fuel = db_session.query(FuelTracking).filter(FuelTracking.vehicle_id == funded.vehicle_id).one()
    budget = db_session.query(DriverBudget).filter(DriverBudget.driver_id == funded.driver_id).one()
    assert fuel.remaining_fuel_quantity == pytest.approx(25)
    assert budget.remaining_budget_amount == pytest.approx(1200)

    # Attendance is the client's job
    assert db_session.query(Attendance).count() == 0
    assert db_session.query(SystemLog).filter(SystemLog.category == LogCategory.TRIP).count() == 1


def test_create_trip_requires_fuel_record(client, auth_headers, fleet):
    response = client.post("/api/trips/", json=trip_body(fleet), headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "No fuel tracking record found for this vehicle"


def test_create_trip_rejects_reversed_km(client, auth_headers, funded):
    response = client.post("/api/trips/", json=trip_body(funded, end_km=50), headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "End KM must be greater than Start KM"


def test_create_trip_unknown_driver(client, auth_headers, funded):
    response = client.post("/api/trips/", json=trip_body(funded, driver_id=999), headers=auth_headers)
    assert response.status_code == 404


def test_create_trip_requires_auth(client, funded):
    response = client.post("/api/trips/", json=trip_body(funded))
    assert response.status_code in (401, 403)


def test_trip_numbers_increment(client, auth_headers, funded):
    first = client.post("/api/trips/", json=trip_body(funded), headers=auth_headers).json()
    second = client.post(
        "/api/trips/", json=trip_body(funded, start_km=350, end_km=400), headers=auth_headers
    ).json()
    assert first["trip_number"].endswith("001")
    assert second["trip_number"].endswith("002")


def test_generate_trip_number_uses_date(db_session):
    assert TripService.generate_trip_number(db_session, today=date(2024, 3, 9)) == "TRIP20240309001"


def test_latest_trip_for_vehicle(client, auth_headers, funded):
    client.post("/api/trips/", json=trip_body(funded), headers=auth_headers)
    response = client.get(f"/api/trips/latest/{funded.vehicle_id}", headers=auth_headers)
    assert response.status_code == 200
    latest = response.json()
    assert latest["end_km"] == 350
    assert latest["end_location"] == "Mumbai"
    assert latest["last_trip_date"] == "2024-01-05"


def test_latest_trip_missing(client, auth_headers, fleet):
    response = client.get(f"/api/trips/latest/{fleet.vehicle_id}", headers=auth_headers)
    assert response.status_code == 404


def test_update_keeps_fuel_when_km_unchanged(client, auth_headers, funded, db_session):
    created = client.post("/api/trips/", json=trip_body(funded), headers=auth_headers).json()

    body = trip_body(funded, remarks="second load added")
    body["routes"].append(dict(body["routes"][0], weight=200, expenses=[]))
    response = client.put(f"/api/trips/{created['id']}", json=body, headers=auth_headers)
    assert response.status_code == 200
    trip = response.json()

    assert trip["remarks"] == "second load added"
    assert [r["route_number"] for r in trip["routes"]] == [1, 2]
    assert trip["trip_route_cost"] == 6000
    assert trip["trip_fuel_quantity"] == pytest.approx(25)
    assert trip["remaining_amount"] == pytest.approx(6000 - 800 - 2250)


def test_update_recomputes_fuel_when_km_change(client, auth_headers, funded):
    created = client.post("/api/trips/", json=trip_body(funded), headers=auth_headers).json()
    response = client.put(f"/api/trips/{created['id']}", json=trip_body(funded, end_km=300), headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["trip_fuel_quantity"] == pytest.approx(20)


def test_list_trips_filters_by_vehicle(client, auth_headers, funded):
    client.post("/api/trips/", json=trip_body(funded), headers=auth_headers)
    assert len(client.get(f"/api/trips/?vehicle_id={funded.vehicle_id}", headers=auth_headers).json()) == 1
    assert client.get("/api/trips/?vehicle_id=999", headers=auth_headers).json() == []


def test_delete_trip_removes_its_attendance(client, auth_headers, funded, admin_user, db_session):
    created = client.post("/api/trips/", json=trip_body(funded), headers=auth_headers).json()
    db_session.add(Attendance(
        driver_id=funded.driver_id, date=date(2024, 1, 5), status=AttendanceStatus.PRESENT,
        trip_id=created["id"], trip_number=created["trip_number"], created_by=admin_user.id,
    ))
    db_session.commit()

    response = client.delete(f"/api/trips/{created['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["attendance_removed"] == 1
    assert client.get(f"/api/trips/{created['id']}", headers=auth_headers).status_code == 404


def test_delete_trip_is_admin_only(client, auth_headers, operator_headers, funded):
    created = client.post("/api/trips/", json=trip_body(funded), headers=auth_headers).json()
    assert client.delete(f"/api/trips/{created['id']}", headers=operator_headers).status_code == 403
