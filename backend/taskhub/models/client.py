"""Client model - the external organization a project is delivered for."""

from typing import TYPE_CHECKING

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskhub.db.base import BaseModel

if TYPE_CHECKING:
    from taskhub.models.project import Project


class Client(BaseModel):
    """External organization projects are done for."""

    __tablename__ = "clients"

    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Contact fields
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    website: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Relationships
    projects: Mapped[list["Project"]] = relationship(
        "Project", back_populates="client", lazy="raise"
    )

    def __repr__(self) -> str:
        return f"<Client {self.name}>"
