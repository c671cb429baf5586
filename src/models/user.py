"""User model."""

from sqlalchemy import Boolean, Column, Integer, String

from src.database import Base
from src.models.mixins import TimestampMixin


class User(Base, TimestampMixin):
    """A blog account, created by signup or by a first Google sign-in."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # personal_info
    fullname = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=True)
    username = Column(String(255), unique=True, nullable=False, index=True)
    profile_img = Column(String(512), nullable=True)

    google_auth = Column(Boolean, default=False, nullable=False)

    @property
    def personal_info(self) -> dict:
        """Nested view of the profile fields, as the document was laid out."""
        return {
            "fullname": self.fullname,
            "email": self.email,
            "password": self.password,
            "username": self.username,
            "profile_img": self.profile_img,
        }
