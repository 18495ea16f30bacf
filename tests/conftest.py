import os

os.environ.setdefault("SESSION_SECRET", "test-session-secret")

from datetime import date
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

import database
from database import Base, get_db, build_engine
from main import app
from middleware.security import rate_limiter
from models.user import UserRole
from models.fleet import Driver, Vehicle, VehicleType
from models.finance import AppUser, Bank, PaymentType
from models.customer import Customer, Product, ProductCategory
from services.auth_service import AuthService
from services.ledger_service import FuelService, BudgetService


@pytest.fixture
def session_factory(tmp_path, monkeypatch):
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    # DatabaseLogger opens its own sessions through the database module
    monkeypatch.setattr(database, "engine", engine)
    monkeypatch.setattr(database, "SessionLocal", factory)

    yield factory
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    rate_limiter.requests.clear()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_user(db_session):
    return AuthService.create_user(db_session, "Admin", "9999999999", "Admin@123", role=UserRole.ADMIN)


@pytest.fixture
def admin_token(admin_user):
    return AuthService.generate_tokens(admin_user)["access_token"]


@pytest.fixture
def auth_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def operator_headers(db_session):
    operator = AuthService.create_user(db_session, "Operator", "8888888888", "Operator1", role=UserRole.OPERATOR)
    return {"Authorization": f"Bearer {AuthService.generate_tokens(operator)['access_token']}"}


@pytest.fixture
def fleet(db_session):
    """One driver, truck, app user with a funded bank and a customer with a product"""
    driver = Driver(name="Ramesh", mobile="9876543210")
    vehicle = Vehicle(registration_number="MH12AB1234", vehicle_type=VehicleType.TRUCK, vehicle_weight=16.0)
    app_user = AppUser(name="Sai Transport", mobile="9123456780")
    db_session.add_all([driver, vehicle, app_user])
    db_session.flush()

    bank = Bank(bank_name="State Bank", account_number="0011223344", balance=100000.0, app_user_id=app_user.id)
    customer = Customer(
        customer_name="Anil",
        company_name="Anil Cements",
        mobile="9000000001",
        products=[
            Product(
                product_name="Cement",
                product_rate=5.0,
                categories=[ProductCategory(category_name="Loading", category_rate=300.0)],
            )
        ],
    )
    db_session.add_all([bank, customer])
    db_session.commit()

    return SimpleNamespace(
        driver_id=driver.id,
        vehicle_id=vehicle.id,
        app_user_id=app_user.id,
        bank_id=bank.id,
        customer_id=customer.id,
    )


@pytest.fixture
def funded(db_session, fleet):
    """Fleet with 50 units of fuel at average 10 km/unit, rate 90, and a 2000 budget"""
    FuelService.record_purchase(
        db_session, fleet.app_user_id, fleet.bank_id, fleet.vehicle_id,
        start_km=0, end_km=500, fuel_quantity=50, fuel_rate=90,
        on_date=date(2024, 1, 1), payment_type=PaymentType.UPI,
    )
    BudgetService.allocate(
        db_session, fleet.app_user_id, fleet.bank_id, fleet.driver_id,
        amount=2000, on_date=date(2024, 1, 1), payment_type=PaymentType.CASH,
    )
    return fleet


def trip_body(fleet, **overrides):
    body = {
        "dates": ["2024-01-05"],
        "start_km": 100,
        "end_km": 350,
        "driver_id": fleet.driver_id,
        "vehicle_id": fleet.vehicle_id,
        "status": "in_progress",
        "routes": [
            {
                "hops": [{"from_location": "Pune", "to_location": "Mumbai"}],
                "customer_id": fleet.customer_id,
                "product_name": "Cement",
                "rate": 5,
                "weight": 1000,
                "payment_type": "cash",
                "bank_id": fleet.bank_id,
                "app_user_id": fleet.app_user_id,
                "expenses": [{"category": "Toll", "amount": 800, "quantity": 1}],
                "dates": ["2024-01-05", "2024-01-07"],
            }
        ],
    }
    body.update(overrides)
    return body
