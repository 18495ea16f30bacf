from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from database import Base
from models.finance import PaymentType
import enum

class TripStatus(str, enum.Enum):
    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class RouteStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

class Trip(Base):
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True)
    trip_number = Column(String(30), unique=True, nullable=False, index=True)
    dates = Column(JSON, nullable=False, default=list)  # ISO dates
    start_km = Column(Float, nullable=False)
    end_km = Column(Float, nullable=False)
    total_km = Column(Float, nullable=False)
    driver_id = Column(Integer, ForeignKey("drivers.id"), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    status = Column(SQLEnum(TripStatus), default=TripStatus.DRAFT, nullable=False)
    remarks = Column(Text, nullable=True)

    trip_route_cost = Column(Float, default=0.0, nullable=False)
    trip_expenses = Column(Float, default=0.0, nullable=False)
    trip_disel_cost = Column(Float, default=0.0, nullable=False)
    trip_fuel_quantity = Column(Float, default=0.0, nullable=False)
    remaining_amount = Column(Float, default=0.0, nullable=False)

    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    driver = relationship("Driver")
    vehicle = relationship("Vehicle")
    creator = relationship("User")
    routes = relationship(
        "RouteBreakdown",
        back_populates="trip",
        cascade="all, delete-orphan",
        order_by="RouteBreakdown.route_number",
    )

class RouteBreakdown(Base):
    """One leg of a trip with its own customer, pricing and expenses"""
    __tablename__ = "trip_routes"

    id = Column(Integer, primary_key=True, index=True)
    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    route_number = Column(Integer, nullable=False)
    hops = Column(JSON, nullable=False, default=list)  # [{from_location, to_location, status}]
    start_location = Column(String(200), nullable=False)
    end_location = Column(String(200), nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    product_name = Column(String(200), nullable=False)
    rate = Column(Float, nullable=False)
    weight = Column(Float, nullable=False)
    route_amount = Column(Float, nullable=False)
    advance_amount = Column(Float, default=0.0, nullable=False)
    payment_type = Column(SQLEnum(PaymentType), nullable=False)
    bank_id = Column(Integer, ForeignKey("banks.id"), nullable=False)
    app_user_id = Column(Integer, ForeignKey("app_users.id"), nullable=False)
    total_expense = Column(Float, default=0.0, nullable=False)
    dates = Column(JSON, nullable=False, default=list)
    route_status = Column(SQLEnum(RouteStatus), default=RouteStatus.IN_PROGRESS, nullable=False)

    trip = relationship("Trip", back_populates="routes")
    customer = relationship("Customer")
    bank = relationship("Bank")
    app_user = relationship("AppUser")
    expenses = relationship(
        "RouteExpense",
        back_populates="route",
        cascade="all, delete-orphan",
        order_by="RouteExpense.position",
    )

class RouteExpense(Base):
    __tablename__ = "trip_route_expenses"

    id = Column(Integer, primary_key=True, index=True)
    route_id = Column(Integer, ForeignKey("trip_routes.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    category = Column(String(100), nullable=False)
    amount = Column(Float, nullable=False)
    quantity = Column(Float, nullable=False)
    total = Column(Float, nullable=False)
    description = Column(Text, nullable=True)

    route = relationship("RouteBreakdown", back_populates="expenses")
