"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from src.api import auth
from src.config import get_settings
from src.services.auth import AuthError
from src.services.identity import GoogleTokenVerifier

settings = get_settings()

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"


def configure_logging() -> None:
    """Set the root log level from settings."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    # Startup: the Google verifier is shared by every request
    app.state.identity_verifier = GoogleTokenVerifier.from_settings(settings)
    if not settings.google_client_id:
        logger.warning("GOOGLE_CLIENT_ID is not set; token audience will not be checked")
    yield
    # Shutdown
    await app.state.identity_verifier.close()


app = FastAPI(
    title="Blog Auth API",
    description="Signup, signin and Google sign-in for the blogging website",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware, the frontend may be served from a dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Render auth failures as ``{"error": message}``."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


# Register routers
app.include_router(auth.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}


# Frontend shell, mounted last so API routes win
app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="frontend")


if __name__ == "__main__":
    import uvicorn

    configure_logging()
    uvicorn.run(app, host="0.0.0.0", port=settings.port)  # noqa: S104
