"""Store access and marketing models: user roles, newsletter subscribers."""

import uuid
from datetime import datetime

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.store_service.models.enums import AppRole, enum_values
from sqlalchemy import DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class UserRole(Base):
    """Roles granted to auth users. Admin access is decided from this table."""

    __tablename__ = "store_user_roles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    role: Mapped[AppRole] = mapped_column(
        SAEnum(AppRole, values_callable=enum_values, name="store_app_role_enum"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (UniqueConstraint("user_id", "role", name="unique_user_role"),)

    def __repr__(self):
        return f"<UserRole {self.user_id} {self.role}>"


class NewsletterSubscriber(Base):
    """Newsletter sign-ups (lower-cased, unique)."""

    __tablename__ = "store_newsletter_subscribers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
