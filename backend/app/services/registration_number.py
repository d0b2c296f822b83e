"""
Registration number allocation.

CONCURRENCY STRATEGY: Atomic ledger counter
===========================================

Problem:
  "Count the registrations and add one" lets two simultaneous registrations
  read the same count and be handed the same number.

Solution:
  The next number comes from a single row in `ledger_counters`:

    UPDATE ledger_counters SET value = value + 1
    WHERE name = 'event_registration_number'
    RETURNING value

  The UPDATE takes a row lock that is held until the registration
  transaction commits, so concurrent allocators queue behind each other and
  every caller receives a distinct value. Numbers are never reused: a
  rolled-back registration releases its number back with the rollback, and
  a committed one keeps it forever.

  The unique constraint on registration_number remains as the final safety
  net; a collision there is reported as a retryable conflict.
"""

from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.errors import ConflictError
from app.core.logging import get_logger
from app.models.counter import LedgerCounter, REGISTRATION_SEQUENCE
from app.models.registration import EventRegistration

logger = get_logger(__name__)
settings = get_settings()


def format_registration_number(value: int, width: Optional[int] = None) -> str:
    """Zero-pad to the configured width; larger values simply grow (12345)."""
    return str(value).zfill(width or settings.REGISTRATION_NUMBER_WIDTH)


async def _advance(db: AsyncSession) -> int | None:
    result = await db.execute(
        update(LedgerCounter)
        .where(LedgerCounter.name == REGISTRATION_SEQUENCE)
        .values(value=LedgerCounter.value + 1)
        .returning(LedgerCounter.value)
        .execution_options(synchronize_session=False)
    )
    return result.scalar_one_or_none()


async def _seed(db: AsyncSession) -> int:
    """
    Create the counter row on first use, continuing after any registrations
    that already exist (e.g. imported data).
    """
    existing = (await db.execute(select(func.count()).select_from(EventRegistration))).scalar() or 0
    value = existing + 1
    db.add(LedgerCounter(name=REGISTRATION_SEQUENCE, value=value))
    try:
        await db.flush()
    except IntegrityError:
        # Another transaction seeded the row between our UPDATE and INSERT
        logger.warning("registration_sequence_seed_conflict")
        raise ConflictError("Registration number conflict, please retry")
    logger.info("registration_sequence_seeded", start=value)
    return value


async def allocate(db: AsyncSession) -> str:
    """Return the next registration number, e.g. "0001"."""
    value = await _advance(db)
    if value is None:
        value = await _seed(db)
    return format_registration_number(value)
