from database import engine, Base, SessionLocal
from models.user import User, UserRole
from services.auth_service import AuthService
import models  # noqa: F401  registers every table on Base.metadata
import os
import logging

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_MOBILE = "9999999999"

def seed_admin(db) -> bool:
    """Create the first admin account if none exists; returns True when created"""
    if db.query(User).filter(User.role == UserRole.ADMIN).first():
        return False

    admin = AuthService.create_user(
        db=db,
        name="Admin",
        mobile=os.getenv("ADMIN_MOBILE", DEFAULT_ADMIN_MOBILE),
        password=os.getenv("ADMIN_PASSWORD", "Admin@123"),
        role=UserRole.ADMIN
    )
    if admin:
        logger.info(f"Admin user created: {admin.mobile}")
        return True
    return False

def init_database():
    if engine is None:
        raise RuntimeError("Database not configured. Set DATABASE_URL environment variable.")

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    db = SessionLocal()
    try:
        if not seed_admin(db):
            logger.info("Admin user already exists")
    finally:
        db.close()

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_database()
