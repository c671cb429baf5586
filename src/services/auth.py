"""Authentication service: validation, password hashing, tokens and accounts."""

import logging
import re
import secrets
import string

from fastapi import status
from jose import jwt
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from src.config import get_settings
from src.models.user import User
from src.schemas.auth import AuthResponse
from src.services.identity import VerifiedIdentity

logger = logging.getLogger(__name__)

settings = get_settings()

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)

EMAIL_REGEX = re.compile(r"\w+(?:[.-]\w+)*@\w+(?:[.-]\w+)*\.\w{2,3}")
PASSWORD_REGEX = re.compile(r"(?=.*\d)(?=.*[a-z])(?=.*[A-Z]).{6,20}")

USERNAME_SUFFIX_LENGTH = 5
USERNAME_SUFFIX_ALPHABET = string.ascii_letters + string.digits

GOOGLE_PICTURE_LOW_RES = "s96-c"
GOOGLE_PICTURE_HIGH_RES = "s384-c"

# How the unique email index is named in SQLite and Postgres errors
EMAIL_CONSTRAINT_NAMES = ("users.email", "ix_users_email")


class AuthError(Exception):
    """Base error for auth operations, carrying the HTTP status to answer with."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailed(AuthError):
    """Signup input broke a field rule."""

    status_code = status.HTTP_403_FORBIDDEN


class AuthenticationFailed(AuthError):
    """Credentials or sign-in method were rejected."""

    status_code = status.HTTP_403_FORBIDDEN


class AccountExists(AuthError):
    """The email is already registered.

    Answered with 500, unlike the other client errors.
    """


class StoreError(AuthError):
    """The user store failed."""


class ProviderError(AuthError):
    """The identity provider could not vouch for the caller."""


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def create_access_token(user_id: int) -> str:
    """Create a JWT access token carrying the user id. It has no expiry."""
    return jwt.encode({"id": user_id}, settings.secret_access_key, algorithm=settings.jwt_algorithm)


def validate_signup(fullname: str, email: str, password: str) -> None:
    """Check signup fields in order, raising on the first broken rule."""
    if len(fullname) < 3:
        raise ValidationFailed("Fullname must be at least 3 letters long")
    if not email:
        raise ValidationFailed("Enter email")
    if not EMAIL_REGEX.fullmatch(email):
        raise ValidationFailed("Email is invalid")
    if not PASSWORD_REGEX.fullmatch(password):
        raise ValidationFailed(
            "Password should be 6 to 20 characters long with a numeric, "
            "1 lowercase and 1 uppercase letters"
        )


def format_data_to_send(user: User) -> AuthResponse:
    """Build the token-bearing profile returned to the client."""
    return AuthResponse(
        access_token=create_access_token(user.id),
        profile_img=user.profile_img,
        username=user.username,
        fullname=user.fullname,
    )


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get a user by email."""
    return db.query(User).filter(User.email == email).first()


def username_exists(db: Session, username: str) -> bool:
    """Check whether a username is taken."""
    return db.query(User.id).filter(User.username == username).first() is not None


def generate_username(db: Session, email: str) -> str:
    """Derive a username from the email local-part.

    A taken name gets a random suffix. The check is a single read, so two
    concurrent signups can still pick the same name; the loser fails on the
    unique index and is not retried.
    """
    username = email.split("@")[0]
    if username_exists(db, username):
        suffix = "".join(
            secrets.choice(USERNAME_SUFFIX_ALPHABET) for _ in range(USERNAME_SUFFIX_LENGTH)
        )
        username += suffix
    return username


def upscale_picture(picture: str | None) -> str | None:
    """Ask Google for the larger variant of a profile picture."""
    if not picture:
        return picture
    return picture.replace(GOOGLE_PICTURE_LOW_RES, GOOGLE_PICTURE_HIGH_RES)


def _save_user(db: Session, user: User) -> User:
    """Insert a user, translating store failures into auth errors."""
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        detail = str(e.orig)
        if any(name in detail for name in EMAIL_CONSTRAINT_NAMES):
            logger.info(f"Duplicate signup for {user.email}")
            raise AccountExists("Email already exists") from e
        logger.error(f"Failed to save user {user.username}: {detail}")
        raise StoreError(detail) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to save user {user.username}: {e}")
        raise StoreError(str(e)) from e
    db.refresh(user)
    return user


def create_user(db: Session, fullname: str, email: str, password: str) -> User:
    """Validate signup input and create a password account."""
    validate_signup(fullname, email, password)

    hashed_password = get_password_hash(password)
    try:
        username = generate_username(db, email)
    except SQLAlchemyError as e:
        raise StoreError(str(e)) from e

    user = _save_user(
        db,
        User(fullname=fullname, email=email, password=hashed_password, username=username),
    )
    logger.info(f"Created user {user.username} (id={user.id})")
    return user


def authenticate_user(db: Session, email: str, password: str) -> User:
    """Authenticate a user by email and password."""
    try:
        user = get_user_by_email(db, email)
    except SQLAlchemyError as e:
        logger.error(f"User lookup failed: {e}")
        raise StoreError(str(e)) from e

    if not user:
        raise AuthenticationFailed("Email not found")

    if user.google_auth:
        raise AuthenticationFailed(
            "Account was created using Google. Try logging in with Google"
        )

    try:
        matches = verify_password(password, user.password)
    except (ValueError, TypeError) as e:
        logger.error(f"Password check failed for user {user.id}: {e}")
        raise AuthenticationFailed("Error occurred while logging in, please try again") from e

    if not matches:
        raise AuthenticationFailed("Password is incorrect")
    return user


def get_or_create_google_user(db: Session, identity: VerifiedIdentity) -> User:
    """Sign in a Google identity, creating its account on first visit."""
    picture = upscale_picture(identity.picture)

    try:
        user = get_user_by_email(db, identity.email)
    except SQLAlchemyError as e:
        logger.error(f"User lookup failed: {e}")
        raise StoreError(str(e)) from e

    if user:
        if not user.google_auth:
            raise AuthenticationFailed(
                "This email was signed up without Google. "
                "Please log in with password to access the account"
            )
        return user

    try:
        username = generate_username(db, identity.email)
    except SQLAlchemyError as e:
        raise StoreError(str(e)) from e

    user = User(
        fullname=identity.name,
        email=identity.email,
        username=username,
        profile_img=picture,
        google_auth=True,
    )
    try:
        user = _save_user(db, user)
    except AccountExists as e:
        # Lost a race with another first sign-in for the same email
        raise StoreError(e.message) from e
    logger.info(f"Created Google user {user.username} (id={user.id})")
    return user
