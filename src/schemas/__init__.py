"""Pydantic schemas for API requests and responses."""

from src.schemas.auth import (
    AuthResponse,
    ClientConfigResponse,
    ErrorResponse,
    GoogleAuthRequest,
    SigninRequest,
    SignupRequest,
)

__all__ = [
    "SignupRequest",
    "SigninRequest",
    "GoogleAuthRequest",
    "AuthResponse",
    "ErrorResponse",
    "ClientConfigResponse",
]
