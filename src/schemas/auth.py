"""Authentication schemas."""

from pydantic import BaseModel, ConfigDict, Field


class SignupRequest(BaseModel):
    """Signup request.

    Field rules are checked in order by the auth service.
    """

    fullname: str = ""
    email: str = ""
    password: str = ""


class SigninRequest(BaseModel):
    """Signin request."""

    email: str = ""
    password: str = ""


class GoogleAuthRequest(BaseModel):
    """Google sign-in request carrying the ID token from the client popup."""

    access_token: str = Field(..., min_length=1)


class AuthResponse(BaseModel):
    """Token-bearing profile returned by every auth endpoint."""

    model_config = ConfigDict(from_attributes=True)

    access_token: str
    profile_img: str | None = None
    username: str
    fullname: str


class ErrorResponse(BaseModel):
    """Error body."""

    error: str


class ClientConfigResponse(BaseModel):
    """Public settings the frontend needs to start the Google popup."""

    google_client_id: str | None
