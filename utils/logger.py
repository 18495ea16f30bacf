"""
Persistent application logging to the system_logs and error_logs tables
"""
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from models.log import SystemLog, ErrorLog, LogLevel, LogCategory
from utils.sanitizer import DataSanitizer
from typing import Optional, Dict, Any
import database
import logging

logger = logging.getLogger(__name__)

class DatabaseLogger:
    """Centralized database logger for business events and errors"""

    @staticmethod
    def _session(db: Optional[Session]):
        if db is not None:
            return db, False
        if database.SessionLocal is None:
            return None, False
        return database.SessionLocal(), True

    @staticmethod
    def log_system(
        level: LogLevel,
        category: LogCategory,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        user_id: Optional[int] = None,
        db: Optional[Session] = None
    ):
        """Log a business event with sensitive data sanitization"""
        session, should_close = DatabaseLogger._session(db)
        if session is None:
            logger.log(logging.getLevelName(level.value.upper()), message)
            return

        try:
            session.add(SystemLog(
                level=level,
                category=category,
                message=message,
                details=DataSanitizer.to_json(details),
                user_id=user_id,
            ))
            session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to write system log: {e}")
            session.rollback()
        finally:
            if should_close:
                session.close()

    @staticmethod
    def log_error(
        error_type: str,
        error_message: str,
        stack_trace: Optional[str] = None,
        endpoint: Optional[str] = None,
        method: Optional[str] = None,
        severity: LogLevel = LogLevel.ERROR,
        db: Optional[Session] = None
    ):
        """Log an unhandled exception"""
        session, should_close = DatabaseLogger._session(db)
        if session is None:
            return

        try:
            session.add(ErrorLog(
                error_type=error_type,
                error_message=DataSanitizer.sanitize_string(error_message),
                stack_trace=stack_trace,
                endpoint=endpoint,
                method=method,
                severity=severity,
            ))
            session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to write error log: {e}")
            session.rollback()
        finally:
            if should_close:
                session.close()
