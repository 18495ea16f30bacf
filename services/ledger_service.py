"""
Bank ledger, fuel purchases and driver budget allocations.

Every balance change goes through ``LedgerService`` and leaves a ledger
``Transaction`` behind. Unspent fuel or budget from the previous record
carries into the new one and the previous record is zeroed, so only the
latest record ever holds a remainder.
"""
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional
from models.fleet import Driver, Vehicle
from models.finance import (
    AppUser, Bank, FuelTracking, DriverBudget, Transaction, TransactionType, PaymentType
)
from services.errors import ServiceError
import secrets
import time
import logging

logger = logging.getLogger(__name__)

class LedgerService:
    @staticmethod
    def new_reference() -> str:
        return f"TXN-{int(time.time() * 1000)}-{secrets.token_hex(4)}"

    @staticmethod
    def get_account(db: Session, app_user_id: int, bank_id: int) -> Bank:
        app_user = db.query(AppUser).filter(AppUser.id == app_user_id).first()
        if not app_user:
            raise ServiceError("App user not found", 404)
        bank = db.query(Bank).filter(Bank.id == bank_id).first()
        if not bank:
            raise ServiceError("Bank not found", 404)
        return bank

    @staticmethod
    def adjust(bank: Bank, delta: float, message: str = "Insufficient balance in bank account"):
        """Move a balance by delta; a balance never goes below zero"""
        if delta < 0 and bank.balance < -delta:
            raise ServiceError(message)
        bank.balance = bank.balance + delta

    @staticmethod
    def debit(
        db: Session,
        bank: Bank,
        amount: float,
        transaction_type: TransactionType,
        description: str,
        category: str,
        app_user_id: Optional[int],
        on_date: date,
    ) -> Transaction:
        """Take money out of a bank account and record it; caller commits"""
        LedgerService.adjust(bank, -amount)
        transaction = Transaction(
            reference=LedgerService.new_reference(),
            transaction_type=transaction_type,
            description=description,
            amount=amount,
            from_bank_id=bank.id,
            app_user_id=app_user_id,
            category=category,
            balance_after=bank.balance,
            date=on_date,
        )
        db.add(transaction)
        db.flush()
        return transaction

    @staticmethod
    def credit(
        db: Session,
        bank: Bank,
        amount: float,
        transaction_type: TransactionType,
        description: str,
        category: str,
        app_user_id: Optional[int],
        on_date: date,
    ) -> Transaction:
        """Put money into a bank account and record it; caller commits"""
        LedgerService.adjust(bank, amount)
        transaction = Transaction(
            reference=LedgerService.new_reference(),
            transaction_type=transaction_type,
            description=description,
            amount=amount,
            to_bank_id=bank.id,
            app_user_id=app_user_id,
            category=category,
            balance_after=bank.balance,
            date=on_date,
        )
        db.add(transaction)
        db.flush()
        return transaction

class FuelService:
    @staticmethod
    def latest(db: Session, vehicle_id: int) -> Optional[FuelTracking]:
        return db.query(FuelTracking).filter(
            FuelTracking.vehicle_id == vehicle_id
        ).order_by(FuelTracking.created_at.desc(), FuelTracking.id.desc()).first()

    @staticmethod
    def record_purchase(
        db: Session,
        app_user_id: int,
        bank_id: int,
        vehicle_id: int,
        start_km: float,
        end_km: float,
        fuel_quantity: float,
        fuel_rate: float,
        on_date: date,
        payment_type: PaymentType,
        description: Optional[str] = None,
    ) -> FuelTracking:
        if end_km <= start_km:
            raise ServiceError("End KM must be greater than start KM")
        if fuel_quantity <= 0 or fuel_rate <= 0:
            raise ServiceError("Fuel quantity and rate must be greater than 0")

        bank = LedgerService.get_account(db, app_user_id, bank_id)
        vehicle = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
        if not vehicle:
            raise ServiceError("Vehicle not found", 404)

        previous = FuelService.latest(db, vehicle_id)
        carry_forward = previous.remaining_fuel_quantity if previous and previous.remaining_fuel_quantity > 0 else 0.0
        total_fuel = fuel_quantity + carry_forward
        total_amount = fuel_quantity * fuel_rate

        transaction = LedgerService.debit(
            db, bank, total_amount, TransactionType.FUEL,
            description or f"Fuel for {vehicle.registration_number} - {fuel_quantity}L",
            "Fuel Expense", app_user_id, on_date,
        )

        record = FuelTracking(
            app_user_id=app_user_id,
            bank_id=bank_id,
            vehicle_id=vehicle_id,
            start_km=start_km,
            end_km=end_km,
            fuel_quantity=fuel_quantity,
            remaining_fuel_quantity=total_fuel,
            fuel_rate=fuel_rate,
            total_amount=total_amount,
            # KM per unit over everything that was in the tank
            truck_average=(end_km - start_km) / total_fuel,
            date=on_date,
            description=description,
            payment_type=payment_type,
            transaction_id=transaction.id,
        )
        if carry_forward > 0:
            logger.info(f"Carrying forward {carry_forward} fuel from record {previous.id}")
            previous.remaining_fuel_quantity = 0.0
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def consume(db: Session, vehicle_id: int, quantity: float) -> Optional[FuelTracking]:
        """Deduct trip fuel from the latest record, never below zero; caller commits"""
        record = FuelService.latest(db, vehicle_id)
        if record:
            record.remaining_fuel_quantity = max(0.0, record.remaining_fuel_quantity - quantity)
        return record

class BudgetService:
    @staticmethod
    def latest(db: Session, driver_id: int) -> Optional[DriverBudget]:
        return db.query(DriverBudget).filter(
            DriverBudget.driver_id == driver_id
        ).order_by(DriverBudget.created_at.desc(), DriverBudget.id.desc()).first()

    @staticmethod
    def allocate(
        db: Session,
        app_user_id: int,
        bank_id: int,
        driver_id: int,
        amount: float,
        on_date: date,
        payment_type: PaymentType,
        description: Optional[str] = None,
    ) -> DriverBudget:
        if amount <= 0:
            raise ServiceError("Daily budget amount must be greater than 0")

        bank = LedgerService.get_account(db, app_user_id, bank_id)
        driver = db.query(Driver).filter(Driver.id == driver_id).first()
        if not driver:
            raise ServiceError("Driver not found", 404)

        previous = BudgetService.latest(db, driver_id)
        carry_forward = previous.remaining_budget_amount if previous and previous.remaining_budget_amount > 0 else 0.0
        total = amount + carry_forward

        # Only the new money leaves the bank
        transaction = LedgerService.debit(
            db, bank, amount, TransactionType.DRIVER_BUDGET,
            description or f"Daily budget for {driver.name}",
            "Driver Budget", app_user_id, on_date,
        )

        budget = DriverBudget(
            app_user_id=app_user_id,
            bank_id=bank_id,
            driver_id=driver_id,
            daily_budget_amount=total,
            remaining_budget_amount=total,
            date=on_date,
            description=description,
            payment_type=payment_type,
            transaction_id=transaction.id,
        )
        if carry_forward > 0:
            logger.info(f"Carrying forward {carry_forward} budget from record {previous.id}")
            previous.remaining_budget_amount = 0.0
        db.add(budget)
        db.commit()
        db.refresh(budget)
        return budget

    @staticmethod
    def spend(db: Session, driver_id: int, amount: float) -> Optional[DriverBudget]:
        """Deduct trip expenses from the latest budget, never below zero; caller commits"""
        budget = BudgetService.latest(db, driver_id)
        if budget:
            budget.remaining_budget_amount = max(0.0, budget.remaining_budget_amount - amount)
        return budget
