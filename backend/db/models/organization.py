"""Organization model for the workflow automation engine."""

from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import OrganizationStatus
from db.base import BaseModel


class Organization(BaseModel):
    """Client organization that can own workflows.

    Attributes:
        id: Unique identifier (UUID string)
        name: Organization name
        slug: URL-friendly identifier
        status: active / inactive; workflows of an inactive organization
            cannot be executed
    """

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(nullable=False, index=True)
    slug: Mapped[str] = mapped_column(nullable=False, unique=True, index=True)
    status: Mapped[str] = mapped_column(
        default=OrganizationStatus.ACTIVE.value, index=True
    )

    workflows: Mapped[list["Workflow"]] = relationship(
        "Workflow",
        back_populates="organization",
        lazy="noload",
    )

    @property
    def is_active(self) -> bool:
        return self.status != OrganizationStatus.INACTIVE.value
