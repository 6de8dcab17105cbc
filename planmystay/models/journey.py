"""
models/journey.py — SQLAlchemy ORM model for travel-journey stages.

Table: journey_stages
Served read-only by /api/journey; replaced wholesale by the seed trigger.
"""
import uuid

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from planmystay.database import Base, JSONDocument


class JourneyStageORM(Base):
    __tablename__ = "journey_stages"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    slug: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    tips: Mapped[list] = mapped_column(
        JSONDocument,
        nullable=False,
        default=list,
        comment="Ordered list of short tip strings",
    )
