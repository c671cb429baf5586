"""Authentication API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from src.api.dependencies import get_identity_verifier
from src.config import get_settings
from src.database import get_db
from src.schemas.auth import (
    AuthResponse,
    ClientConfigResponse,
    ErrorResponse,
    GoogleAuthRequest,
    SigninRequest,
    SignupRequest,
)
from src.services.auth import (
    ProviderError,
    authenticate_user,
    create_user,
    format_data_to_send,
    get_or_create_google_user,
)
from src.services.identity import IdentityVerificationError, IdentityVerifier

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

ERROR_RESPONSES = {
    403: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.post("/signup", response_model=AuthResponse, responses=ERROR_RESPONSES)
def signup(
    user_data: SignupRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """Register a new password account."""
    user = create_user(db, user_data.fullname, user_data.email, user_data.password)
    return format_data_to_send(user)


@router.post("/signin", response_model=AuthResponse, responses=ERROR_RESPONSES)
def signin(
    credentials: SigninRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """Login with email and password."""
    user = authenticate_user(db, credentials.email, credentials.password)
    return format_data_to_send(user)


@router.post("/google-auth", response_model=AuthResponse, responses=ERROR_RESPONSES)
async def google_auth(
    body: GoogleAuthRequest,
    db: Annotated[Session, Depends(get_db)],
    verifier: Annotated[IdentityVerifier, Depends(get_identity_verifier)],
):
    """Sign in (or sign up) with a Google ID token."""
    try:
        identity = await verifier.verify(body.access_token)
    except IdentityVerificationError as e:
        logger.warning(f"Google sign-in rejected: {e}")
        raise ProviderError(
            "Failed to authenticate you with Google. Try with some other Google account"
        ) from e

    user = get_or_create_google_user(db, identity)
    return format_data_to_send(user)


@router.get("/api/config", response_model=ClientConfigResponse)
async def client_config():
    """Public settings for the frontend."""
    return ClientConfigResponse(google_client_id=get_settings().google_client_id)
