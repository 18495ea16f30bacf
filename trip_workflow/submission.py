"""
Trip submission: validate the draft, persist it, then record attendance.

One attempt moves through::

    idle -> validating -> blocked_fields | blocked_fuel | blocked_budget
                       -> persisting -> failed
                                     -> persisted -> attendance_fan_out -> done

Validation failures never reach the network. A failed create/update stops the
attempt with the server's message. Attendance is written only after a create,
one record per calendar day the routes span, as a best-effort batch.
"""
import enum
from datetime import date, timedelta
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
import logging

from config import settings
from trip_workflow.api_client import TransportApiClient, ApiError
from trip_workflow.batch import BatchReport, run_best_effort
from trip_workflow.costs import recompute
from trip_workflow.draft import reset_fuel_fields, find_chain_breaks
from trip_workflow.schemas import TripDraft

logger = logging.getLogger(__name__)


class SubmissionState(str, enum.Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    BLOCKED_FIELDS = "blocked_fields"
    BLOCKED_FUEL = "blocked_fuel"
    BLOCKED_BUDGET = "blocked_budget"
    PERSISTING = "persisting"
    PERSISTED = "persisted"
    ATTENDANCE_FAN_OUT = "attendance_fan_out"
    DONE = "done"
    FAILED = "failed"


class ValidationBlocked(Exception):
    """Raised by the validator with the state the attempt ends in"""

    def __init__(self, state: SubmissionState, message: str):
        super().__init__(message)
        self.state = state
        self.message = message


class SubmissionResult(BaseModel):
    state: SubmissionState
    message: str = ""
    draft: TripDraft
    trip: Optional[Dict[str, Any]] = None
    attendance: Optional[BatchReport] = None
    history: List[SubmissionState] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state == SubmissionState.DONE


def _fields(message: str) -> ValidationBlocked:
    return ValidationBlocked(SubmissionState.BLOCKED_FIELDS, message)


class SubmissionValidator:
    """Checks run in order; the first failure wins"""

    @staticmethod
    def check_header(draft: TripDraft):
        if draft.driver_id is None:
            raise _fields("Please select a driver")
        if draft.vehicle_id is None:
            raise _fields("Please select a vehicle")
        if draft.end_km <= draft.start_km:
            raise _fields("End KM must be greater than Start KM")

    @staticmethod
    def check_routes(draft: TripDraft):
        required = [
            ("customer_id", "customer"),
            ("app_user_id", "app user"),
            ("bank_id", "bank"),
            ("payment_type", "payment type"),
            ("start_location", "start location"),
            ("end_location", "end location"),
            ("product_name", "product"),
        ]
        for route in draft.routes:
            for attr, label in required:
                if getattr(route, attr) in (None, ""):
                    raise _fields(f"Route {route.route_number}: {label} is required")
            if not route.weight or route.weight <= 0:
                raise _fields(f"Route {route.route_number}: weight must be greater than 0")
            if route.rate is None:
                raise _fields(f"Route {route.route_number}: rate is required")
            breaks = find_chain_breaks(route)
            if breaks:
                logger.warning(f"Route {route.route_number} has disconnected hops at {breaks}")

    @staticmethod
    def check_expenses(draft: TripDraft):
        for route in draft.routes:
            for position, expense in enumerate(route.expenses, start=1):
                where = f"Route {route.route_number}, expense {position}"
                if not expense.category:
                    raise _fields(f"{where}: category is required")
                if not expense.amount or expense.amount <= 0:
                    raise _fields(f"{where}: amount must be greater than 0")
                if not expense.quantity or expense.quantity <= 0:
                    raise _fields(f"{where}: quantity must be greater than 0")

    @staticmethod
    def check_fuel(draft: TripDraft):
        available = draft.fuel_snapshot.fuel_quantity if draft.fuel_snapshot else 0.0
        if draft.trip_fuel_quantity > available:
            raise ValidationBlocked(
                SubmissionState.BLOCKED_FUEL,
                f"Insufficient fuel: trip needs {draft.trip_fuel_quantity:.2f} "
                f"but only {available:.2f} is available. Add fuel before creating this trip.",
            )

    @staticmethod
    def check_budget(draft: TripDraft):
        budget = draft.budget_snapshot
        if budget is None or budget.remaining_budget_amount <= 0:
            raise ValidationBlocked(
                SubmissionState.BLOCKED_BUDGET,
                "No driver budget available. Allocate a budget to the driver first.",
            )
        if draft.trip_expenses > budget.remaining_budget_amount:
            raise ValidationBlocked(
                SubmissionState.BLOCKED_BUDGET,
                f"Trip expenses {draft.trip_expenses:.2f} exceed the driver's "
                f"remaining budget of {budget.remaining_budget_amount:.2f}",
            )

    @classmethod
    def validate(cls, draft: TripDraft):
        cls.check_header(draft)
        cls.check_routes(draft)
        cls.check_expenses(draft)
        cls.check_fuel(draft)
        cls.check_budget(draft)


def attendance_dates(draft: TripDraft) -> List[date]:
    """Every calendar day from the earliest to the latest route date, inclusive"""
    dates = [d for route in draft.routes for d in route.dates]
    if not dates:
        dates = list(draft.dates)
    if not dates:
        return []
    first, last = min(dates), max(dates)
    return [first + timedelta(days=n) for n in range((last - first).days + 1)]


def _is_duplicate(error: Exception) -> bool:
    return isinstance(error, ApiError) and error.status_code == 400


class TripSubmissionOrchestrator:

    def __init__(self, client: TransportApiClient, created_by: Optional[int] = None):
        self.client = client
        self.created_by = created_by

    async def submit(self, draft: TripDraft) -> SubmissionResult:
        history = [SubmissionState.IDLE, SubmissionState.VALIDATING]
        draft = recompute(draft.model_copy(deep=True))

        try:
            SubmissionValidator.validate(draft)
        except ValidationBlocked as blocked:
            history.append(blocked.state)
            if blocked.state == SubmissionState.BLOCKED_FUEL:
                draft = reset_fuel_fields(draft)
            logger.info(f"Trip submission blocked: {blocked.message}")
            return SubmissionResult(state=blocked.state, message=blocked.message, draft=draft, history=history)

        history.append(SubmissionState.PERSISTING)
        payload = draft.to_payload()
        if self.created_by is not None:
            payload["created_by"] = self.created_by
        is_create = draft.trip_id is None
        try:
            if is_create:
                trip = await self.client.create_trip(payload)
            else:
                trip = await self.client.update_trip(draft.trip_id, payload)
        except ApiError as e:
            history.append(SubmissionState.FAILED)
            logger.error(f"Failed to save trip: {e}")
            return SubmissionResult(state=SubmissionState.FAILED, message=e.detail, draft=draft, history=history)

        history.append(SubmissionState.PERSISTED)
        draft.trip_id = trip.get("id")
        draft.trip_number = trip.get("trip_number")

        report = None
        if is_create:
            history.append(SubmissionState.ATTENDANCE_FAN_OUT)
            report = await self.record_attendance(draft)

        history.append(SubmissionState.DONE)
        message = "Trip created successfully" if is_create else "Trip updated successfully"
        return SubmissionResult(
            state=SubmissionState.DONE,
            message=message,
            draft=draft,
            trip=trip,
            attendance=report,
            history=history,
        )

    async def record_attendance(self, draft: TripDraft) -> BatchReport:
        def task(day: date):
            body = {
                "driver_id": draft.driver_id,
                "date": day.isoformat(),
                "status": "present",
                "remarks": settings.attendance_remark,
                "trip_id": draft.trip_id,
                "trip_number": draft.trip_number,
                "created_by": self.created_by,
            }
            return lambda: self.client.create_attendance(body)

        tasks = [(f"attendance {day.isoformat()}", task(day)) for day in attendance_dates(draft)]
        report = await run_best_effort(tasks, is_skip=_is_duplicate)
        if report.failed:
            logger.warning(f"{len(report.failed)} of {len(tasks)} attendance records for trip {draft.trip_number} failed")
        return report
