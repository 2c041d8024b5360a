"""SQLAlchemy ORM models for Cadence."""

from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, ForeignKey
)
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


class SequenceRecord(Base):
    """A stored timer sequence."""

    __tablename__ = "sequences"

    id = Column(String(36), primary_key=True)  # uuid4 string
    name = Column(String(255), nullable=False)
    repeats = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now)

    steps = relationship(
        "StepRecord",
        back_populates="sequence",
        order_by="StepRecord.position",
        cascade="all, delete-orphan",
    )
    recurrence = relationship(
        "RecurrenceRecord",
        back_populates="sequence",
        uselist=False,
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<SequenceRecord id={self.id} name={self.name!r}>"


class StepRecord(Base):
    """One timer inside a stored sequence."""

    __tablename__ = "steps"

    id = Column(String(36), primary_key=True)
    sequence_id = Column(String(36), ForeignKey("sequences.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    title = Column(String(255), nullable=False)
    duration_seconds = Column(Integer, nullable=False, default=0)

    sequence = relationship("SequenceRecord", back_populates="steps")

    def __repr__(self) -> str:
        return (
            f"<StepRecord pos={self.position} title={self.title!r} "
            f"duration={self.duration_seconds}>"
        )


class RecurrenceRecord(Base):
    """Recurrence rule attached to a sequence (at most one)."""

    __tablename__ = "recurrence_rules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sequence_id = Column(
        String(36), ForeignKey("sequences.id"), nullable=False, unique=True
    )
    frequency = Column(String(20), nullable=False)  # daily | weekly | monthly | custom
    interval = Column(Integer, nullable=False, default=1)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    weekdays = Column(String(20), nullable=True)    # e.g. "1,3,5"

    sequence = relationship("SequenceRecord", back_populates="recurrence")

    def __repr__(self) -> str:
        return (
            f"<RecurrenceRecord frequency={self.frequency} "
            f"interval={self.interval}>"
        )
