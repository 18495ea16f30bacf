"""
Income, expense and bank transfer bookkeeping.

Income credits a bank and an expense debits one. Editing or deleting an entry
moves the bank balance by the difference and keeps the linked ledger
``Transaction`` in step with the entry.
"""
from sqlalchemy.orm import Session
from datetime import date, datetime
from typing import Optional
from models.finance import Bank, Transaction, TransactionType, IncomeEntry, ExpenseEntry, BankTransfer
from services.errors import ServiceError
from services.ledger_service import LedgerService
import logging

logger = logging.getLogger(__name__)

class CashbookService:
    model = None
    transaction_type = None
    sign = 1
    label = ""
    reverse_message = "Insufficient balance in bank account"

    @classmethod
    def get(cls, db: Session, entry_id: int):
        entry = db.query(cls.model).filter(cls.model.id == entry_id).first()
        if not entry:
            raise ServiceError(f"{cls.label} record not found", 404)
        return entry

    @classmethod
    def _move(cls, db: Session, bank: Bank, amount: float, category: str, description: str,
              app_user_id: int, on_date: date) -> Transaction:
        if cls.sign > 0:
            return LedgerService.credit(db, bank, amount, cls.transaction_type, description, category, app_user_id, on_date)
        return LedgerService.debit(db, bank, amount, cls.transaction_type, description, category, app_user_id, on_date)

    @classmethod
    def record(
        cls,
        db: Session,
        app_user_id: int,
        bank_id: int,
        category: str,
        amount: float,
        on_date: date,
        description: Optional[str] = None,
    ):
        """Book an entry and its ledger transaction; caller commits"""
        if amount <= 0:
            raise ServiceError("Amount must be greater than 0")
        bank = LedgerService.get_account(db, app_user_id, bank_id)
        transaction = cls._move(
            db, bank, amount, category, description or f"{cls.label} - {category}", app_user_id, on_date
        )
        entry = cls.model(
            app_user_id=app_user_id,
            bank_id=bank_id,
            category=category,
            amount=amount,
            description=description,
            date=on_date,
            transaction_id=transaction.id,
        )
        db.add(entry)
        db.flush()
        return entry

    @classmethod
    def create(cls, db: Session, **fields):
        entry = cls.record(db, **fields)
        db.commit()
        db.refresh(entry)
        return entry

    @classmethod
    def update(
        cls,
        db: Session,
        entry,
        app_user_id: int,
        bank_id: int,
        category: str,
        amount: float,
        on_date: date,
        description: Optional[str] = None,
    ):
        if amount <= 0:
            raise ServiceError("Amount must be greater than 0")
        bank = LedgerService.get_account(db, app_user_id, bank_id)

        if bank_id == entry.bank_id:
            LedgerService.adjust(bank, cls.sign * (amount - entry.amount), cls.reverse_message)
        else:
            previous_bank = db.query(Bank).filter(Bank.id == entry.bank_id).first()
            if previous_bank:
                LedgerService.adjust(previous_bank, -cls.sign * entry.amount, cls.reverse_message)
            LedgerService.adjust(bank, cls.sign * amount)

        transaction = db.query(Transaction).filter(Transaction.id == entry.transaction_id).first()
        if transaction:
            transaction.amount = amount
            transaction.category = category
            transaction.description = description or f"{cls.label} - {category}"
            transaction.app_user_id = app_user_id
            transaction.date = on_date
            transaction.balance_after = bank.balance
            if cls.sign > 0:
                transaction.to_bank_id = bank_id
            else:
                transaction.from_bank_id = bank_id

        entry.app_user_id = app_user_id
        entry.bank_id = bank_id
        entry.category = category
        entry.amount = amount
        entry.description = description
        entry.date = on_date
        db.commit()
        db.refresh(entry)
        return entry

    @classmethod
    def delete(cls, db: Session, entry):
        """Remove an entry, undo its balance change and drop its ledger row"""
        bank = db.query(Bank).filter(Bank.id == entry.bank_id).first()
        if bank:
            LedgerService.adjust(bank, -cls.sign * entry.amount, cls.reverse_message)
        transaction_id = entry.transaction_id
        db.delete(entry)
        db.flush()
        if transaction_id:
            db.query(Transaction).filter(Transaction.id == transaction_id).delete()
        db.commit()

class IncomeService(CashbookService):
    model = IncomeEntry
    transaction_type = TransactionType.INCOME
    sign = 1
    label = "Income"
    reverse_message = "Insufficient bank balance to reverse this income record"

class ExpenseService(CashbookService):
    model = ExpenseEntry
    transaction_type = TransactionType.EXPENSE
    sign = -1
    label = "Expense"

class TransferService:
    @staticmethod
    def create(
        db: Session,
        from_bank_id: int,
        to_bank_id: int,
        amount: float,
        description: Optional[str] = None,
        on_date: Optional[date] = None,
    ) -> BankTransfer:
        if amount <= 0:
            raise ServiceError("Amount must be greater than 0")
        if from_bank_id == to_bank_id:
            raise ServiceError("Cannot transfer to the same bank account")

        from_bank = db.query(Bank).filter(Bank.id == from_bank_id).first()
        to_bank = db.query(Bank).filter(Bank.id == to_bank_id).first()
        if not from_bank or not to_bank:
            raise ServiceError("One or both bank accounts not found", 404)

        LedgerService.adjust(from_bank, -amount, "Insufficient balance in source account")
        LedgerService.adjust(to_bank, amount)

        on_date = on_date or datetime.utcnow().date()
        description = description or f"Transfer from {from_bank.bank_name} to {to_bank.bank_name}"
        transaction = Transaction(
            reference=LedgerService.new_reference(),
            transaction_type=TransactionType.TRANSFER,
            description=description,
            amount=amount,
            from_bank_id=from_bank.id,
            to_bank_id=to_bank.id,
            app_user_id=from_bank.app_user_id,
            category="Bank Transfer",
            balance_after=from_bank.balance,
            date=on_date,
        )
        db.add(transaction)
        db.flush()

        transfer = BankTransfer(
            from_bank_id=from_bank.id,
            to_bank_id=to_bank.id,
            amount=amount,
            description=description,
            transfer_date=on_date,
            transaction_id=transaction.id,
        )
        db.add(transfer)
        db.commit()
        db.refresh(transfer)
        logger.info(f"Transferred {amount} from bank {from_bank.id} to bank {to_bank.id}")
        return transfer
