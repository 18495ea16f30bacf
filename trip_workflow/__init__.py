from trip_workflow.schemas import (
    LocationHop, ExpenseItem, RouteDraft, FuelSnapshot, BudgetSnapshot, VehicleState, TripDraft
)
from trip_workflow.costs import FuelMetrics, fuel_metrics, recompute
from trip_workflow.api_client import ApiError, TransportApiClient
from trip_workflow.batch import TaskOutcome, BatchReport, run_best_effort
from trip_workflow.reference import ReferenceData, ReferenceDataLoader
from trip_workflow.resolvers import VehicleStateResolver, DriverBudgetResolver
from trip_workflow.submission import (
    SubmissionState, ValidationBlocked, SubmissionResult, SubmissionValidator,
    TripSubmissionOrchestrator, attendance_dates
)
from trip_workflow.odometer import OdometerWatcher
from trip_workflow import draft

__all__ = [
    "LocationHop", "ExpenseItem", "RouteDraft", "FuelSnapshot", "BudgetSnapshot", "VehicleState", "TripDraft",
    "FuelMetrics", "fuel_metrics", "recompute",
    "ApiError", "TransportApiClient",
    "TaskOutcome", "BatchReport", "run_best_effort",
    "ReferenceData", "ReferenceDataLoader",
    "VehicleStateResolver", "DriverBudgetResolver",
    "SubmissionState", "ValidationBlocked", "SubmissionResult", "SubmissionValidator",
    "TripSubmissionOrchestrator", "attendance_dates",
    "OdometerWatcher",
    "draft",
]
