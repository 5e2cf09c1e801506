from datetime import datetime, UTC
import uuid
from sqlalchemy import CheckConstraint, DateTime, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from mythboard.db.database import Base

# slot value used when one identity may hold only one reaction per target
SINGLE_SLOT = "*"


class Reaction(Base):
    """Reaction model

    A reaction points at exactly one target: a post or an image URL of a post's gallery.
    `target_key` folds both into one indexed column, and `slot` lets the same unique
    constraint express either one row per (identity, target) or one row per
    (identity, target, type).
    """
    __tablename__ = "reactions"
    __table_args__ = (
        UniqueConstraint("user_identifier", "target_key", "slot", name="uq_reaction_identity_target_slot"),
        CheckConstraint(
            "(post_id IS NULL) <> (image_url IS NULL)",
            name="ck_reaction_single_target"
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    post_id: Mapped[str] = mapped_column(String(36), nullable=True, index=True)  # not using foreign key, only storing ID
    image_url: Mapped[str] = mapped_column(String(2048), nullable=True)
    target_key: Mapped[str] = mapped_column(String(2100), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    slot: Mapped[str] = mapped_column(String(32), nullable=False, default=SINGLE_SLOT)
    user_identifier: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=lambda: datetime.now(UTC))
