from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Boolean, Enum as SQLEnum
from datetime import datetime
from database import Base
import enum

class LogLevel(str, enum.Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

class LogCategory(str, enum.Enum):
    AUTHENTICATION = "authentication"
    TRIP = "trip"
    FUEL = "fuel"
    DRIVER_BUDGET = "driver_budget"
    FINANCE = "finance"
    INVOICE = "invoice"
    ATTENDANCE = "attendance"
    MASTER_DATA = "master_data"
    SYSTEM = "system"

class SystemLog(Base):
    """Business events worth keeping after the process log rotates"""
    __tablename__ = "system_logs"

    id = Column(Integer, primary_key=True, index=True)
    level = Column(SQLEnum(LogLevel), nullable=False, index=True)
    category = Column(SQLEnum(LogCategory), nullable=False, index=True)
    message = Column(Text, nullable=False)
    details = Column(Text, nullable=True)  # JSON string
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

class ErrorLog(Base):
    """Unhandled exceptions caught by the global handler"""
    __tablename__ = "error_logs"

    id = Column(Integer, primary_key=True, index=True)
    error_type = Column(String(200), nullable=False, index=True)
    error_message = Column(Text, nullable=False)
    stack_trace = Column(Text, nullable=True)
    endpoint = Column(String(500), nullable=True)
    method = Column(String(10), nullable=True)
    severity = Column(SQLEnum(LogLevel), default=LogLevel.ERROR, nullable=False)
    resolved = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
