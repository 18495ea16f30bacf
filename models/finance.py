from sqlalchemy import Column, Integer, String, Float, DateTime, Date, Boolean, Text, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from database import Base
import enum

class PaymentType(str, enum.Enum):
    CASH = "cash"
    UPI = "upi"
    NET_BANKING = "net_banking"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    CHEQUE = "cheque"

class AppUserStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"

class TransactionType(str, enum.Enum):
    FUEL = "fuel"
    DRIVER_BUDGET = "driver_budget"
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"

class AppUser(Base):
    """Business account that owns bank accounts and books trip income"""
    __tablename__ = "app_users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    mobile = Column(String(20), nullable=False, index=True)
    gstin = Column(String(20), nullable=True)
    address = Column(String(500), nullable=True)
    status = Column(SQLEnum(AppUserStatus), default=AppUserStatus.ACTIVE, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    banks = relationship("Bank", back_populates="app_user")

class Bank(Base):
    __tablename__ = "banks"

    id = Column(Integer, primary_key=True, index=True)
    bank_name = Column(String(100), nullable=False)
    account_number = Column(String(40), unique=True, nullable=False)
    balance = Column(Float, default=0.0, nullable=False)
    app_user_id = Column(Integer, ForeignKey("app_users.id"), nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    app_user = relationship("AppUser", back_populates="banks")

class FuelTracking(Base):
    """Fuel purchase for a vehicle; remaining quantity carries into the next purchase"""
    __tablename__ = "fuel_tracking"

    id = Column(Integer, primary_key=True, index=True)
    app_user_id = Column(Integer, ForeignKey("app_users.id"), nullable=False)
    bank_id = Column(Integer, ForeignKey("banks.id"), nullable=False)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    start_km = Column(Float, nullable=False)
    end_km = Column(Float, nullable=False)
    fuel_quantity = Column(Float, nullable=False)
    remaining_fuel_quantity = Column(Float, default=0.0, nullable=False)
    fuel_rate = Column(Float, nullable=False)
    total_amount = Column(Float, nullable=False)
    truck_average = Column(Float, nullable=False)
    date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)
    payment_type = Column(SQLEnum(PaymentType), nullable=False)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

class DriverBudget(Base):
    """Cash handed to a driver for trip expenses"""
    __tablename__ = "driver_budgets"

    id = Column(Integer, primary_key=True, index=True)
    app_user_id = Column(Integer, ForeignKey("app_users.id"), nullable=False)
    bank_id = Column(Integer, ForeignKey("banks.id"), nullable=False)
    driver_id = Column(Integer, ForeignKey("drivers.id"), nullable=False, index=True)
    daily_budget_amount = Column(Float, nullable=False)
    remaining_budget_amount = Column(Float, default=0.0, nullable=False)
    date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)
    payment_type = Column(SQLEnum(PaymentType), nullable=False)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

class Transaction(Base):
    """Ledger entry written whenever money enters, leaves or moves between bank accounts"""
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    reference = Column(String(40), unique=True, nullable=False, index=True)
    transaction_type = Column(SQLEnum(TransactionType), nullable=False)
    description = Column(String(500), nullable=True)
    amount = Column(Float, nullable=False)
    from_bank_id = Column(Integer, ForeignKey("banks.id"), nullable=True)
    to_bank_id = Column(Integer, ForeignKey("banks.id"), nullable=True)
    app_user_id = Column(Integer, ForeignKey("app_users.id"), nullable=True)
    category = Column(String(100), nullable=True)
    balance_after = Column(Float, nullable=False)
    date = Column(Date, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    bank = relationship("Bank", foreign_keys=[from_bank_id])
    to_bank = relationship("Bank", foreign_keys=[to_bank_id])

class IncomeEntry(Base):
    """Money received into a bank account outside of trips, e.g. an invoice payment"""
    __tablename__ = "income"

    id = Column(Integer, primary_key=True, index=True)
    app_user_id = Column(Integer, ForeignKey("app_users.id"), nullable=False, index=True)
    bank_id = Column(Integer, ForeignKey("banks.id"), nullable=False, index=True)
    category = Column(String(100), nullable=False)
    amount = Column(Float, nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False, index=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

class ExpenseEntry(Base):
    """Business expense paid from a bank account, e.g. rent or salaries"""
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    app_user_id = Column(Integer, ForeignKey("app_users.id"), nullable=False, index=True)
    bank_id = Column(Integer, ForeignKey("banks.id"), nullable=False, index=True)
    category = Column(String(100), nullable=False)
    amount = Column(Float, nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False, index=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

class BankTransfer(Base):
    __tablename__ = "bank_transfers"

    id = Column(Integer, primary_key=True, index=True)
    from_bank_id = Column(Integer, ForeignKey("banks.id"), nullable=False, index=True)
    to_bank_id = Column(Integer, ForeignKey("banks.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    description = Column(String(500), nullable=True)
    transfer_date = Column(Date, nullable=False)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
