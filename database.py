"""Database module for Email Reminder Service.

This module defines the SQLAlchemy model for tracked emails and database
session management. Timestamps are stored as UTC datetimes.
"""

from sqlalchemy import create_engine, Column, String, DateTime, Enum as SQLEnum, Index
from sqlalchemy.orm import declarative_base, sessionmaker
import enum

from config import settings

# SQLAlchemy Base
Base = declarative_base()


class StatusEnum(enum.Enum):
    """Acknowledgment status of a tracked email"""
    UNSEEN = "UNSEEN"
    SEEN = "SEEN"


class TrackedEmail(Base):
    """One monitored email address and its acknowledgment status.

    ``address`` carries a UNIQUE constraint so duplicates are rejected by the
    database even if two inserts race past the store's pre-check.
    """

    __tablename__ = "tracked_emails"

    id = Column(String, primary_key=True, doc="Unique record ID (UUID)")
    address = Column(String, nullable=False, unique=True, doc="Tracked email address")
    status = Column(
        SQLEnum(StatusEnum),
        default=StatusEnum.UNSEEN,
        nullable=False,
        index=True,
        doc="UNSEEN until the tracking link is visited"
    )

    created_at = Column(DateTime(timezone=True), nullable=False, doc="When the record was created (UTC)")
    updated_at = Column(DateTime(timezone=True), nullable=False, doc="When the record was last updated (UTC)")

    # The sweep filters on both columns
    __table_args__ = (
        Index('idx_status_created', 'status', 'created_at'),
    )

    def __repr__(self):
        return (
            f"<TrackedEmail(id={self.id}, address={self.address}, "
            f"status={self.status.value}, created={self.created_at})>"
        )


# Database Engine Setup
engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False} if "sqlite" in settings.DATABASE_URL else {},
    echo=False  # Set to True for SQL debugging
)

# Session Factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Database session dependency for FastAPI.

    Yields:
        Session: SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# Create all tables
Base.metadata.create_all(bind=engine)
