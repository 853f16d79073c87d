"""CRUD operations for Email Reminder Service.

This module is the record store for tracked emails. Every function takes an
open SQLAlchemy session; callers own its lifetime.
"""

import threading

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional
import uuid
from datetime import datetime, timedelta, timezone

from config import settings
from database import TrackedEmail, StatusEnum
from exceptions import ValidationError, LimitExceeded, DuplicateKey, NotFound
from logger_config import setup_logger

logger = setup_logger(__name__, 'crud.log')

# Serializes adds across the API threadpool
_create_lock = threading.Lock()


def list_tracked_emails(db: Session) -> List[TrackedEmail]:
    """Get every tracked email, newest first.

    Args:
        db: Database session

    Returns:
        List[TrackedEmail]: All records ordered by created_at descending
    """
    return db.query(TrackedEmail).order_by(TrackedEmail.created_at.desc()).all()


def count_tracked_emails(db: Session) -> int:
    """Get total number of tracked emails."""
    return db.query(TrackedEmail).count()


def get_tracked_email(db: Session, record_id: str) -> Optional[TrackedEmail]:
    """Get a specific tracked email by ID.

    Args:
        db: Database session
        record_id: Record UUID

    Returns:
        Optional[TrackedEmail]: Record if found, None otherwise
    """
    return db.query(TrackedEmail).filter(TrackedEmail.id == record_id).first()


def create_tracked_email(
    db: Session,
    address: Optional[str],
    max_records: Optional[int] = None
) -> TrackedEmail:
    """Create a new tracked email with status UNSEEN.

    Checks run in order: missing address, record cap, duplicate address.
    Nothing is written when a check fails.

    Args:
        db: Database session
        address: Email address to track (trimmed, then exact and case-sensitive)
        max_records: Record cap (default: settings.MAX_TRACKED_EMAILS)

    Returns:
        TrackedEmail: Created record

    Raises:
        ValidationError: address is missing or blank
        LimitExceeded: the store is full
        DuplicateKey: address is already tracked
    """
    if not address or not address.strip():
        raise ValidationError("Email is required")
    address = address.strip()

    if max_records is None:
        max_records = settings.MAX_TRACKED_EMAILS

    # Cap and duplicate checks must see every earlier insert
    with _create_lock:
        if count_tracked_emails(db) >= max_records:
            raise LimitExceeded(f"Email limit reached (Max {max_records} allowed)", max_records=max_records)

        if db.query(TrackedEmail).filter(TrackedEmail.address == address).first():
            raise DuplicateKey("Email already exists", address=address)

        now = datetime.now(timezone.utc)
        record = TrackedEmail(
            id=str(uuid.uuid4()),
            address=address,
            status=StatusEnum.UNSEEN,
            created_at=now,
            updated_at=now
        )

        db.add(record)
        try:
            db.commit()
        except IntegrityError:
            # Insert from another process won the unique constraint
            db.rollback()
            raise DuplicateKey("Email already exists", address=address)

    db.refresh(record)
    logger.info(f"Tracking email {record.id} ({record.address})")
    return record


def acknowledge_tracked_email(db: Session, record_id: str) -> TrackedEmail:
    """Mark a tracked email as SEEN.

    Idempotent: acknowledging a SEEN record returns it without writing.

    Args:
        db: Database session
        record_id: Record UUID

    Returns:
        TrackedEmail: The acknowledged record

    Raises:
        NotFound: no record with this ID
    """
    record = get_tracked_email(db, record_id)
    if not record:
        raise NotFound("Email entry not found", record_id=record_id)

    if record.status != StatusEnum.SEEN:
        record.status = StatusEnum.SEEN
        record.updated_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(record)
        logger.info(f"Tracked email {record.id} acknowledged")

    return record


def get_stale_unseen(
    db: Session,
    threshold: timedelta,
    now: Optional[datetime] = None
) -> List[TrackedEmail]:
    """Get UNSEEN records created more than ``threshold`` ago.

    Args:
        db: Database session
        threshold: Minimum age of a record to count as stale
        now: Reference time (default: current UTC time)

    Returns:
        List[TrackedEmail]: Stale unacknowledged records, in no particular order
    """
    if now is None:
        now = datetime.now(timezone.utc)
    cutoff = now - threshold

    return db.query(TrackedEmail).filter(
        TrackedEmail.status == StatusEnum.UNSEEN,
        TrackedEmail.created_at < cutoff
    ).all()
