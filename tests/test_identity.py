"""Tests for the Google identity verifier."""

import httpx
import pytest

from src.services.identity import GoogleTokenVerifier, IdentityVerificationError

CLIENT_ID = "1234.apps.googleusercontent.com"


def make_verifier(handler) -> GoogleTokenVerifier:
    """Build a verifier whose HTTP calls go to ``handler``."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GoogleTokenVerifier(client_id=CLIENT_ID, client=client)


class TestGoogleTokenVerifier:
    """Tests for GoogleTokenVerifier."""

    @pytest.mark.asyncio
    async def test_verify_returns_claims(self):
        """Test a valid token yields email, name and picture."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["id_token"] = request.url.params["id_token"]
            return httpx.Response(
                200,
                json={
                    "aud": CLIENT_ID,
                    "email": "gina@gmail.com",
                    "email_verified": "true",
                    "name": "Gina Google",
                    "picture": "https://lh3.googleusercontent.com/a/x=s96-c",
                },
            )

        verifier = make_verifier(handler)
        identity = await verifier.verify("good-token")
        await verifier.close()

        assert seen["id_token"] == "good-token"
        assert identity.email == "gina@gmail.com"
        assert identity.name == "Gina Google"
        assert identity.picture == "https://lh3.googleusercontent.com/a/x=s96-c"

    @pytest.mark.asyncio
    async def test_verify_rejected_token(self):
        """Test a token Google refuses raises."""
        verifier = make_verifier(lambda request: httpx.Response(400, json={"error": "invalid"}))

        with pytest.raises(IdentityVerificationError):
            await verifier.verify("expired-token")

    @pytest.mark.asyncio
    async def test_verify_wrong_audience(self):
        """Test a token minted for another app raises."""
        verifier = make_verifier(
            lambda request: httpx.Response(200, json={"aud": "other", "email": "a@b.com"})
        )

        with pytest.raises(IdentityVerificationError, match="audience"):
            await verifier.verify("foreign-token")

    @pytest.mark.asyncio
    async def test_verify_missing_email(self):
        """Test a token without an email raises."""
        verifier = make_verifier(lambda request: httpx.Response(200, json={"aud": CLIENT_ID}))

        with pytest.raises(IdentityVerificationError, match="email"):
            await verifier.verify("no-email-token")

    @pytest.mark.asyncio
    async def test_verify_non_json_body(self):
        """Test a 200 response that is not JSON raises the verification error."""
        verifier = make_verifier(
            lambda request: httpx.Response(200, text="<html>upstream error</html>")
        )

        with pytest.raises(IdentityVerificationError, match="Malformed"):
            await verifier.verify("good-token")

    @pytest.mark.asyncio
    async def test_verify_non_object_body(self):
        """Test a JSON body that is not an object raises the verification error."""
        verifier = make_verifier(lambda request: httpx.Response(200, json=["not", "claims"]))

        with pytest.raises(IdentityVerificationError, match="Malformed"):
            await verifier.verify("good-token")

    @pytest.mark.asyncio
    async def test_verify_network_error(self):
        """Test transport failures raise the verification error."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        verifier = make_verifier(handler)

        with pytest.raises(IdentityVerificationError):
            await verifier.verify("good-token")

    @pytest.mark.asyncio
    async def test_close_closes_client(self):
        """Test close shuts the HTTP client."""
        verifier = make_verifier(lambda request: httpx.Response(200))

        await verifier.close()

        assert verifier._client.is_closed
