from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, validator, Field
from typing import Optional
from database import get_db
from config import settings
from services.auth_service import AuthService
from models.user import User, UserRole
from models.log import LogLevel, LogCategory
from utils.auth_dependency import get_current_user, get_current_admin
from utils.logger import DatabaseLogger
import re

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

class LoginRequest(BaseModel):
    mobile: str = Field(..., min_length=10, max_length=15, description="Mobile number (10-15 digits)")
    password: str = Field(..., min_length=6, max_length=100, description="Password (minimum 6 characters)")

    @validator('mobile')
    def validate_mobile(cls, v):
        v = v.strip()
        if not re.match(r'^\+?[0-9]{10,15}$', v):
            raise ValueError('Invalid mobile number format. Use 10-15 digits with optional + prefix')
        # Stored without the + prefix
        return v.lstrip('+')

class CreateUserRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    mobile: str = Field(..., min_length=10, max_length=15)
    password: str = Field(..., min_length=6, max_length=100)
    role: UserRole = UserRole.OPERATOR

    @validator('name')
    def validate_name(cls, v):
        v = ' '.join(v.split())
        if re.search(r'<\s*script|<\s*iframe|javascript:', v, re.IGNORECASE):
            raise ValueError('Invalid characters in name')
        return v

    @validator('mobile')
    def validate_mobile(cls, v):
        v = v.strip()
        if not re.match(r'^\+?[0-9]{10,15}$', v):
            raise ValueError('Invalid mobile number format. Use 10-15 digits with optional + prefix')
        return v.lstrip('+')

    @validator('password')
    def validate_password(cls, v):
        valid, message = AuthService.verify_password_strength(v)
        if not valid:
            raise ValueError(message)
        return v

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    user_id: int
    name: str
    role: str
    expires_in: int

class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., min_length=20, description="Refresh token to exchange for new access token")

class UserResponse(BaseModel):
    id: int
    name: str
    mobile: str
    role: UserRole
    is_active: bool

    class Config:
        from_attributes = True

def _token_response(user: User, tokens: dict) -> TokenResponse:
    return TokenResponse(
        access_token=tokens["access_token"],
        refresh_token=tokens["refresh_token"],
        user_id=user.id,
        name=user.name,
        role=user.role.value,
        expires_in=settings.access_token_expire_minutes * 60
    )

@router.post("/login", response_model=TokenResponse)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    user = AuthService.authenticate_user(db, request.mobile, request.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect mobile number or password"
        )

    DatabaseLogger.log_system(LogLevel.INFO, LogCategory.AUTHENTICATION, "User logged in", user_id=user.id, db=db)
    return _token_response(user, AuthService.generate_tokens(user))

@router.post("/refresh", response_model=TokenResponse)
def refresh_token(request: RefreshTokenRequest, db: Session = Depends(get_db)):
    """Exchange refresh token for new access token"""
    result = AuthService.refresh_access_token(db, request.refresh_token)
    if not result:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token"
        )
    user, tokens = result
    return _token_response(user, tokens)

@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user

@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    request: CreateUserRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    """Create a staff account (Admin only)"""
    user = AuthService.create_user(db, request.name, request.mobile, request.password, request.role)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Mobile number already registered"
        )
    DatabaseLogger.log_system(
        LogLevel.INFO, LogCategory.AUTHENTICATION, "User created",
        details={"new_user_id": user.id, "role": user.role.value}, user_id=current_user.id, db=db
    )
    return user
