from models.user import User, UserRole
from models.fleet import Driver, DriverStatus, Vehicle, VehicleType, VehicleStatus, Location
from models.customer import Customer, Product, ProductCategory
from models.finance import (
    AppUser, AppUserStatus, Bank, PaymentType, FuelTracking, DriverBudget, Transaction, TransactionType,
    IncomeEntry, ExpenseEntry, BankTransfer,
)
from models.invoice import Invoice, InvoiceStatus
from models.trip import Trip, TripStatus, RouteBreakdown, RouteStatus, RouteExpense
from models.attendance import Attendance, AttendanceStatus, Standby
from models.log import SystemLog, ErrorLog, LogLevel, LogCategory

__all__ = [
    "User", "UserRole",
    "Driver", "DriverStatus", "Vehicle", "VehicleType", "VehicleStatus", "Location",
    "Customer", "Product", "ProductCategory",
    "AppUser", "AppUserStatus", "Bank", "PaymentType", "FuelTracking", "DriverBudget", "Transaction", "TransactionType",
    "IncomeEntry", "ExpenseEntry", "BankTransfer", "Invoice", "InvoiceStatus",
    "Trip", "TripStatus", "RouteBreakdown", "RouteStatus", "RouteExpense",
    "Attendance", "AttendanceStatus", "Standby",
    "SystemLog", "ErrorLog", "LogLevel", "LogCategory",
]
