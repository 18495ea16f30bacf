import os
from typing import List
from pydantic_settings import BaseSettings
import hashlib

def _derive_key(base_secret: str, purpose: str) -> str:
    """Derive a deterministic key from base secret for specific purpose"""
    return hashlib.sha256(f"{base_secret}:{purpose}".encode()).hexdigest()

class Settings(BaseSettings):
    database_url: str = os.getenv("DATABASE_URL", "")
    _base_secret: str = os.getenv("SESSION_SECRET", "default-dev-secret-change-in-production")

    @property
    def secret_key(self) -> str:
        """JWT access token signing key"""
        return self._base_secret

    @property
    def refresh_secret_key(self) -> str:
        """JWT refresh token signing key - derived from base secret"""
        return _derive_key(self._base_secret, "refresh_token")

    @property
    def password_pepper(self) -> str:
        """Password pepper - derived from base secret"""
        return _derive_key(self._base_secret, "password_pepper")[:32]

    algorithm: str = "HS256"
    access_token_expire_minutes: int = 720  # one working shift
    refresh_token_expire_days: int = 30

    min_password_length: int = 6

    cors_origins: List[str] = ["*"]

    rate_limit_requests: int = 300
    rate_limit_window_seconds: int = 60
    auth_rate_limit_requests: int = 10
    auth_rate_limit_window_seconds: int = 60
    max_request_bytes: int = 5 * 1024 * 1024

    # Trip workflow client
    api_base_url: str = "http://localhost:8000"
    api_timeout_seconds: float = 10.0
    odometer_poll_seconds: float = 10.0
    attendance_remark: str = "On Trip"
    default_expense_categories: List[str] = ["Toll", "Gate Pass", "Driver Allowance"]

    class Config:
        env_file = ".env"

settings = Settings()
