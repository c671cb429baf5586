"""Google identity verification."""

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from src.config import Settings

logger = logging.getLogger(__name__)


class IdentityVerificationError(Exception):
    """The identity token could not be verified."""


@dataclass(frozen=True)
class VerifiedIdentity:
    """Claims taken from a verified identity token."""

    email: str
    name: str
    picture: str | None = None


class IdentityVerifier(Protocol):
    """Anything that turns an opaque identity token into verified claims."""

    async def verify(self, token: str) -> VerifiedIdentity: ...

    async def close(self) -> None: ...


class GoogleTokenVerifier:
    """Verify Google ID tokens against Google's tokeninfo endpoint.

    The client is opened once and shared by all requests; call ``close`` at
    shutdown.
    """

    def __init__(
        self,
        client_id: str | None,
        tokeninfo_url: str = "https://oauth2.googleapis.com/tokeninfo",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.client_id = client_id
        self.tokeninfo_url = tokeninfo_url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "GoogleTokenVerifier":
        """Build a verifier from application settings."""
        return cls(
            client_id=settings.google_client_id,
            tokeninfo_url=settings.google_tokeninfo_url,
            timeout=settings.google_timeout_seconds,
        )

    async def verify(self, token: str) -> VerifiedIdentity:
        """Verify ``token`` and return its identity claims."""
        try:
            response = await self._client.get(self.tokeninfo_url, params={"id_token": token})
        except httpx.HTTPError as e:
            logger.error(f"HTTP error calling Google tokeninfo: {e}")
            raise IdentityVerificationError("Could not reach Google") from e

        if response.status_code != 200:
            logger.warning(f"Google rejected identity token: HTTP {response.status_code}")
            raise IdentityVerificationError("Invalid token")

        try:
            payload = response.json()
        except ValueError as e:
            logger.warning(f"Google tokeninfo returned a non-JSON body: {e}")
            raise IdentityVerificationError("Malformed tokeninfo response") from e
        if not isinstance(payload, dict):
            raise IdentityVerificationError("Malformed tokeninfo response")

        if self.client_id and payload.get("aud") != self.client_id:
            logger.warning(f"Identity token issued for another audience: {payload.get('aud')}")
            raise IdentityVerificationError("Token audience mismatch")

        email = payload.get("email")
        if not email:
            raise IdentityVerificationError("Token missing email")

        return VerifiedIdentity(
            email=email,
            name=payload.get("name") or email.split("@")[0],
            picture=payload.get("picture"),
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
