"""UserCredential model for the workflow automation engine."""

from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from core.constants import CredentialType
from db.base import BaseModel


class UserCredential(BaseModel):
    """An encrypted per-user secret for one platform.

    OAuth access tokens and API keys are stored side by side; the run's
    execution context exposes them as ``{{user.<platform>}}``.

    Attributes:
        id: Unique identifier (UUID string)
        user_id: Owning user
        platform: Platform key (twitter, openai, stripe, ...)
        credential_type: oauth / api_key
        encrypted_value: Fernet token of the secret
    """

    __tablename__ = "user_credentials"
    __table_args__ = (
        UniqueConstraint("user_id", "platform", "credential_type", name="uq_user_platform_type"),
    )

    user_id: Mapped[str] = mapped_column(nullable=False, index=True)
    platform: Mapped[str] = mapped_column(nullable=False, index=True)
    credential_type: Mapped[str] = mapped_column(
        default=CredentialType.API_KEY.value, index=True
    )
    encrypted_value: Mapped[str] = mapped_column(nullable=False)
