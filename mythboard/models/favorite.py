from datetime import datetime, UTC
import uuid
from sqlalchemy import DateTime, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from mythboard.db.database import Base


class Favorite(Base):
    """Favorite model, the existence of the row is the favorited state"""
    __tablename__ = "favorites"
    __table_args__ = (
        UniqueConstraint("user_identifier", "post_id", name="uq_favorite_identity_post"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    post_id: Mapped[str] = mapped_column(String(36), index=True)  # not using foreign key, only storing ID
    user_identifier: Mapped[str] = mapped_column(String(100), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))
