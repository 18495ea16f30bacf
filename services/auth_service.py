from sqlalchemy.orm import Session
from models.user import User, UserRole
from utils.security import (
    verify_password, get_password_hash, create_access_token,
    create_refresh_token, decode_refresh_token, validate_password_strength
)
from datetime import timedelta
from config import settings
from typing import Optional, Tuple, Dict
import logging

logger = logging.getLogger(__name__)

class AuthService:
    @staticmethod
    def authenticate_user(db: Session, mobile: str, password: str) -> Optional[User]:
        """Authenticate user with mobile and password"""
        user = db.query(User).filter(User.mobile == mobile).first()
        if not user:
            logger.warning(f"Login attempt with non-existent mobile: {mobile[:4]}****")
            return None
        if not verify_password(password, user.password_hash):
            logger.warning(f"Failed login attempt for user: {user.id}")
            return None
        if not user.is_active:
            logger.warning(f"Login attempt for disabled user: {user.id}")
            return None
        logger.info(f"Successful login for user: {user.id}")
        return user

    @staticmethod
    def create_user(
        db: Session,
        name: str,
        mobile: str,
        password: str,
        role: UserRole = UserRole.OPERATOR,
    ) -> Optional[User]:
        """Create a staff account; None when the mobile is taken"""
        existing_user = db.query(User).filter(User.mobile == mobile).first()
        if existing_user:
            return None

        user = User(
            name=name,
            mobile=mobile,
            password_hash=get_password_hash(password),
            role=role
        )
        db.add(user)
        db.commit()
        db.refresh(user)

        logger.info(f"New user created: {user.id} with role: {role.value}")
        return user

    @staticmethod
    def generate_tokens(user: User) -> Dict[str, str]:
        """Generate both access and refresh tokens"""
        token_data = {
            "sub": user.mobile,
            "role": user.role.value,
            "user_id": user.id
        }

        access_token_expires = timedelta(minutes=settings.access_token_expire_minutes)
        access_token = create_access_token(data=token_data, expires_delta=access_token_expires)
        refresh_token = create_refresh_token(data=token_data)

        return {
            "access_token": access_token,
            "refresh_token": refresh_token
        }

    @staticmethod
    def refresh_access_token(db: Session, refresh_token: str) -> Optional[Tuple[User, Dict[str, str]]]:
        """Exchange a refresh token for a new token pair"""
        payload = decode_refresh_token(refresh_token)
        if not payload:
            logger.warning("Invalid refresh token attempted")
            return None

        mobile = payload.get("sub")
        user = db.query(User).filter(User.mobile == mobile).first()
        if not user or not user.is_active:
            logger.warning(f"Refresh token for unknown or disabled user: {mobile[:4] if mobile else '****'}****")
            return None

        return user, AuthService.generate_tokens(user)

    @staticmethod
    def verify_password_strength(password: str) -> Tuple[bool, str]:
        """Validate password meets security requirements"""
        return validate_password_strength(password)
