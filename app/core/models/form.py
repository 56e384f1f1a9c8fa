import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import relationship

from app.db.session import Base


# Partial unique index enforcing one live (name, rank) per owner
LIVE_UNIQUE_INDEX = "uq_forms_owner_name_rank_live"

# Column limits shared with the input schema
NAME_MAX_LENGTH = 200
BELT_COLOR_MAX_LENGTH = 50
REFERENCE_URL_MAX_LENGTH = 2048
RANK_NUMBER_MAX = 2**31 - 1  # signed 32-bit INTEGER


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Form(Base):
    """
    A kata, bunkai, kumite drill or weapon form tracked by one user at one rank.
    Soft delete only through deleted_at (NULL = live, set = in the trash).
    """

    __tablename__ = "forms"
    __table_args__ = (
        # (name, rank) unique per owner among live rows; trashed rows don't count,
        # so a trashed form can be re-created and two owners may hold the same tuple.
        Index(
            LIVE_UNIQUE_INDEX,
            "owner_id",
            "name",
            "rank_type",
            "rank_number",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
        CheckConstraint("rank_number >= 1", name="rank_number_positive"),
        CheckConstraint("rank_type IN ('Kyu', 'Dan')", name="rank_type_valid"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(NAME_MAX_LENGTH), nullable=False)
    rank_type = Column(String(10), nullable=False)  # Kyu | Dan
    rank_number = Column(Integer, nullable=False)
    belt_color = Column(String(BELT_COLOR_MAX_LENGTH), nullable=True)  # lowercase
    category = Column(String(20), nullable=False, default="Kata")
    description = Column(Text, nullable=False, default="")
    reference_url = Column(String(REFERENCE_URL_MAX_LENGTH), nullable=True)
    learned = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    owner = relationship("User", back_populates="forms")
