"""User model."""

import enum
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskhub.db.base import BaseModel

if TYPE_CHECKING:
    from taskhub.models.project import Project, ProjectMember


class UserRole(str, enum.Enum):
    """Platform roles. Flat: compared by equality, never ranked."""

    ADMIN = "ADMIN"
    USER = "USER"
    MANAGER = "MANAGER"
    CONSULTANT = "CONSULTANT"


class User(BaseModel):
    """Platform member authenticated with email and password."""

    __tablename__ = "users"

    # Credentials
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Profile info
    first_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(50), nullable=True)

    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserRole.USER.value
    )  # ADMIN, USER, MANAGER, CONSULTANT

    # Account status
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    project_memberships: Mapped[list["ProjectMember"]] = relationship(
        "ProjectMember", back_populates="user", lazy="raise"
    )

    @property
    def projects(self) -> list["Project"]:
        return [m.project for m in self.project_memberships]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        try:
            return f"<User {self.email}>"
        except Exception:
            return f"<User id={self.id}>"
