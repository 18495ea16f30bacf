from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import datetime, date
import datetime as dt
from database import get_db
from models.invoice import Invoice, InvoiceStatus
from models.user import User
from models.log import LogLevel, LogCategory
from services.errors import ServiceError
from services.invoice_service import InvoiceService
from utils.auth_dependency import get_current_user, get_current_admin
from utils.logger import DatabaseLogger

router = APIRouter(prefix="/api/invoices", tags=["Invoices"])

def _required(v):
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("must not be blank")
    return v

class InvoiceRow(BaseModel):
    product: str = Field(..., max_length=200)
    truck_number: str = Field(..., max_length=20)
    articles: str = ""
    weight: float = Field(0.0, ge=0)
    rate: float = Field(0.0, ge=0)
    total: float = Field(0.0, ge=0)
    remarks: str = ""

    @validator('product', 'truck_number')
    def not_blank(cls, v):
        return _required(v)

class InvoiceCreate(BaseModel):
    date: date
    from_location: str = Field(..., max_length=200)
    to_location: str = Field(..., max_length=200)
    taluka: str = ""
    district: str = ""
    customer_name: str = Field(..., max_length=200)
    consignor: str = ""
    consignee: str = ""
    lr_number: Optional[str] = Field(None, max_length=30)
    remarks: str = ""
    rows: List[InvoiceRow] = Field(..., min_length=1)
    tax_percent: float = Field(0.0, ge=0, le=100)
    advance_amount: float = Field(0.0, ge=0)
    status: InvoiceStatus = InvoiceStatus.UNPAID

    @validator('from_location', 'to_location', 'customer_name')
    def not_blank(cls, v):
        return _required(v)

class InvoiceUpdate(BaseModel):
    date: Optional[dt.date] = None
    from_location: Optional[str] = Field(None, max_length=200)
    to_location: Optional[str] = Field(None, max_length=200)
    taluka: Optional[str] = None
    district: Optional[str] = None
    customer_name: Optional[str] = Field(None, max_length=200)
    consignor: Optional[str] = None
    consignee: Optional[str] = None
    lr_number: Optional[str] = Field(None, max_length=30)
    remarks: Optional[str] = None
    rows: Optional[List[InvoiceRow]] = Field(None, min_length=1)
    tax_percent: Optional[float] = Field(None, ge=0, le=100)
    advance_amount: Optional[float] = Field(None, ge=0)
    status: Optional[InvoiceStatus] = None

    @validator('from_location', 'to_location', 'customer_name')
    def not_blank(cls, v):
        return _required(v)

class InvoiceResponse(BaseModel):
    id: int
    lr_number: str
    date: date
    from_location: str
    to_location: str
    taluka: Optional[str] = None
    district: Optional[str] = None
    customer_name: str
    consignor: Optional[str] = None
    consignee: Optional[str] = None
    remarks: Optional[str] = None
    rows: List[InvoiceRow]
    tax_percent: float
    tax_amount: float
    total: float
    advance_amount: float
    remaining_amount: float
    status: InvoiceStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class BulkStatusRequest(BaseModel):
    invoice_ids: List[int] = Field(..., min_length=1)
    status: InvoiceStatus
    bank_id: Optional[int] = None
    app_user_id: Optional[int] = None
    category: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    date: Optional[dt.date] = None

class BulkStatusResponse(BaseModel):
    updated_count: int
    invoices: List[InvoiceResponse]

def _get_or_404(db: Session, invoice_id: int) -> Invoice:
    invoice = db.query(Invoice).filter(Invoice.id == invoice_id).first()
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return invoice

@router.get("/", response_model=List[InvoiceResponse])
def get_invoices(
    status: Optional[InvoiceStatus] = None,
    customer_name: Optional[str] = None,
    lr_number: Optional[str] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    query = db.query(Invoice)
    if status:
        query = query.filter(Invoice.status == status)
    if customer_name:
        query = query.filter(Invoice.customer_name.ilike(f"%{customer_name}%"))
    if lr_number:
        query = query.filter(Invoice.lr_number.ilike(f"%{lr_number}%"))
    if from_date:
        query = query.filter(Invoice.date >= from_date)
    if to_date:
        query = query.filter(Invoice.date <= to_date)
    return query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).offset(skip).limit(min(limit, 200)).all()

@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_or_404(db, invoice_id)

@router.post("/", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
def create_invoice(request: InvoiceCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Bill a customer; row totals, tax and remaining amount are computed here"""
    try:
        invoice = InvoiceService.create(db, request.model_dump())
    except ServiceError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)

    DatabaseLogger.log_system(
        LogLevel.INFO, LogCategory.INVOICE, "Invoice created",
        details={"invoice_id": invoice.id, "lr_number": invoice.lr_number, "total": invoice.total},
        user_id=current_user.id, db=db
    )
    return invoice

@router.put("/{invoice_id}", response_model=InvoiceResponse)
def update_invoice(
    invoice_id: int,
    request: InvoiceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    invoice = _get_or_404(db, invoice_id)
    try:
        return InvoiceService.update(db, invoice, request.model_dump(exclude_unset=True, exclude_none=True))
    except ServiceError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)

@router.post("/bulk-status", response_model=BulkStatusResponse)
def bulk_update_status(
    request: BulkStatusRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Mark several invoices paid or unpaid; paying books the remaining amounts as income"""
    try:
        invoices = InvoiceService.bulk_status(
            db,
            invoice_ids=request.invoice_ids,
            status=request.status,
            bank_id=request.bank_id,
            app_user_id=request.app_user_id,
            category=request.category,
            description=request.description,
            on_date=request.date,
        )
    except ServiceError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)

    DatabaseLogger.log_system(
        LogLevel.INFO, LogCategory.INVOICE, "Invoice status updated",
        details={"invoice_ids": [i.id for i in invoices], "status": request.status.value, "bank_id": request.bank_id},
        user_id=current_user.id, db=db
    )
    return BulkStatusResponse(
        updated_count=len(invoices),
        invoices=[InvoiceResponse.model_validate(i) for i in invoices],
    )

@router.delete("/{invoice_id}")
def delete_invoice(invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_admin)):
    invoice = _get_or_404(db, invoice_id)
    db.delete(invoice)
    db.commit()
    return {"message": "Invoice deleted successfully"}
