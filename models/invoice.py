from sqlalchemy import Column, Integer, String, Float, DateTime, Date, Text, JSON, Enum as SQLEnum
from datetime import datetime
from database import Base
import enum

class InvoiceStatus(str, enum.Enum):
    PAID = "paid"
    UNPAID = "unpaid"
    PENDING = "pending"

class Invoice(Base):
    """Lorry receipt billed to a customer; one row per truck load"""
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    lr_number = Column(String(30), unique=True, nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    from_location = Column(String(200), nullable=False)
    to_location = Column(String(200), nullable=False)
    taluka = Column(String(100), nullable=True)
    district = Column(String(100), nullable=True)
    customer_name = Column(String(200), nullable=False, index=True)
    consignor = Column(String(200), nullable=True)
    consignee = Column(String(200), nullable=True)
    remarks = Column(Text, nullable=True)
    # [{product, truck_number, articles, weight, rate, total, remarks}]
    rows = Column(JSON, nullable=False, default=list)

    tax_percent = Column(Float, default=0.0, nullable=False)
    tax_amount = Column(Float, default=0.0, nullable=False)
    total = Column(Float, default=0.0, nullable=False)
    advance_amount = Column(Float, default=0.0, nullable=False)
    remaining_amount = Column(Float, default=0.0, nullable=False)
    status = Column(SQLEnum(InvoiceStatus), default=InvoiceStatus.UNPAID, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
