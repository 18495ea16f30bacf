"""
Lorry receipts (invoices) billed to customers.

Row totals are ``weight * rate``; the invoice total adds tax on top of the
row sum and the remaining amount is whatever the advance did not cover.
Marking invoices paid books the remaining amount as income.
"""
from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import datetime, date
from typing import List, Optional, Tuple
from models.invoice import Invoice, InvoiceStatus
from services.errors import ServiceError
from services.cashbook_service import IncomeService
from services.ledger_service import LedgerService
import logging

logger = logging.getLogger(__name__)

class InvoiceService:
    @staticmethod
    def generate_lr_number(db: Session, today: Optional[date] = None) -> str:
        """LR + YYYYMMDD + running count, skipping numbers already taken"""
        stamp = (today or datetime.utcnow().date()).strftime("%Y%m%d")
        count = db.query(func.count(Invoice.id)).scalar() or 0
        while True:
            count += 1
            lr_number = f"LR{stamp}{count:03d}"
            if not db.query(Invoice.id).filter(Invoice.lr_number == lr_number).first():
                return lr_number

    @staticmethod
    def price_rows(rows: List[dict]) -> List[dict]:
        priced = []
        for row in rows:
            row = dict(row)
            weight, rate = row.get("weight") or 0.0, row.get("rate") or 0.0
            if weight and rate:
                row["total"] = weight * rate
            priced.append(row)
        return priced

    @staticmethod
    def totals(rows: List[dict], tax_percent: float, advance_amount: float) -> Tuple[float, float, float]:
        """(tax_amount, total, remaining_amount) for already priced rows"""
        base = sum(row.get("total") or 0.0 for row in rows)
        tax_amount = base * tax_percent / 100 if tax_percent > 0 else 0.0
        total = base + tax_amount
        return tax_amount, total, max(0.0, total - advance_amount)

    @staticmethod
    def _apply_totals(invoice: Invoice):
        invoice.tax_amount, invoice.total, invoice.remaining_amount = InvoiceService.totals(
            invoice.rows, invoice.tax_percent, invoice.advance_amount
        )

    @staticmethod
    def create(db: Session, data: dict) -> Invoice:
        data = dict(data)
        lr_number = data.pop("lr_number", None) or InvoiceService.generate_lr_number(db, data.get("date"))
        if db.query(Invoice.id).filter(Invoice.lr_number == lr_number).first():
            raise ServiceError("LR number already exists")

        invoice = Invoice(lr_number=lr_number, **data)
        invoice.rows = InvoiceService.price_rows(data["rows"])
        invoice.tax_percent = data.get("tax_percent") or 0.0
        invoice.advance_amount = data.get("advance_amount") or 0.0
        InvoiceService._apply_totals(invoice)
        db.add(invoice)
        db.commit()
        db.refresh(invoice)
        return invoice

    @staticmethod
    def update(db: Session, invoice: Invoice, changes: dict) -> Invoice:
        changes = dict(changes)
        lr_number = changes.pop("lr_number", None)
        if lr_number and lr_number != invoice.lr_number:
            if db.query(Invoice.id).filter(Invoice.lr_number == lr_number).first():
                raise ServiceError("LR number already exists")
            invoice.lr_number = lr_number
        if "rows" in changes:
            changes["rows"] = InvoiceService.price_rows(changes["rows"])
        for field, value in changes.items():
            setattr(invoice, field, value)
        InvoiceService._apply_totals(invoice)
        db.commit()
        db.refresh(invoice)
        return invoice

    @staticmethod
    def bulk_status(
        db: Session,
        invoice_ids: List[int],
        status: InvoiceStatus,
        bank_id: Optional[int] = None,
        app_user_id: Optional[int] = None,
        category: Optional[str] = None,
        description: Optional[str] = None,
        on_date: Optional[date] = None,
    ) -> List[Invoice]:
        """Mark invoices paid or unpaid; newly paid invoices credit the bank"""
        if status not in (InvoiceStatus.PAID, InvoiceStatus.UNPAID):
            raise ServiceError("Status must be paid or unpaid")
        if status == InvoiceStatus.PAID:
            if not bank_id or not app_user_id:
                raise ServiceError("Bank and app user are required to mark invoices as paid")
            LedgerService.get_account(db, app_user_id, bank_id)

        invoices = db.query(Invoice).filter(Invoice.id.in_(invoice_ids)).order_by(Invoice.id).all()
        if not invoices:
            raise ServiceError("No invoices found for the given ids", 404)

        category = category or "Invoice Payment"
        on_date = on_date or datetime.utcnow().date()
        for invoice in invoices:
            if status == InvoiceStatus.PAID and invoice.status != InvoiceStatus.PAID and invoice.remaining_amount > 0:
                IncomeService.record(
                    db,
                    app_user_id=app_user_id,
                    bank_id=bank_id,
                    category=category,
                    amount=invoice.remaining_amount,
                    on_date=on_date,
                    description=description or f"Payment received for invoice {invoice.lr_number}",
                )
            invoice.status = status
        db.commit()
        for invoice in invoices:
            db.refresh(invoice)
        logger.info(f"Marked {len(invoices)} invoices {status.value}")
        return invoices
