from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from database import engine, Base, SessionLocal, verify_db_connection
from routers import auth, drivers, vehicles, customers, app_users, banks, locations
from routers import trips, fuel_tracking, driver_budgets, attendance, standby, transactions
from routers import income, expenses, bank_transfers, invoices
from middleware.security import SecurityMiddleware
from models.log import LogLevel
from utils.logger import DatabaseLogger
from config import settings
from init_db import seed_admin
import models  # noqa: F401
import traceback
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Transport Trip Ledger API",
    description="Backend API for recording truck trips, fuel, driver budgets and attendance",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler to prevent information leakage"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    DatabaseLogger.log_error(
        error_type=type(exc).__name__,
        error_message=str(exc),
        stack_trace=traceback.format_exc(),
        endpoint=request.url.path,
        method=request.method,
        severity=LogLevel.ERROR,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "An internal error occurred. Please try again later."}
    )

app.add_middleware(SecurityMiddleware)

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=["*"]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=600,
)

app.include_router(auth.router)
app.include_router(drivers.router)
app.include_router(vehicles.router)
app.include_router(customers.router)
app.include_router(app_users.router)
app.include_router(banks.router)
app.include_router(locations.router)
app.include_router(trips.router)
app.include_router(fuel_tracking.router)
app.include_router(driver_budgets.router)
app.include_router(attendance.router)
app.include_router(standby.router)
app.include_router(transactions.router)
app.include_router(income.router)
app.include_router(expenses.router)
app.include_router(bank_transfers.router)
app.include_router(invoices.router)

db_initialized = False

@app.on_event("startup")
async def startup_event():
    """Create tables and the first admin account on startup"""
    global db_initialized

    if engine is None:
        logger.error("DATABASE_URL not configured - database features disabled")
        return

    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created/verified")

        db = SessionLocal()
        try:
            if not seed_admin(db):
                logger.info("Admin user already exists")
            db_initialized = True
        finally:
            db.close()
    except Exception as e:
        logger.error(f"Startup error: {e}")

@app.get("/")
def root():
    return {
        "message": "Transport Trip Ledger API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }

@app.get("/health")
def health_check():
    db_status = "connected" if verify_db_connection() else "not connected"
    return {
        "status": "healthy",
        "database": db_status
    }
