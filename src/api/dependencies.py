"""FastAPI dependencies shared by the routers."""

from fastapi import Request

from src.services.identity import IdentityVerifier


def get_identity_verifier(request: Request) -> IdentityVerifier:
    """Get the identity verifier created at startup."""
    return request.app.state.identity_verifier
