"""
Named monotonic counters kept in the ledger.

A counter is advanced with a single `UPDATE ... SET value = value + 1
RETURNING value`, so concurrent allocators serialize on the row lock instead
of racing on a COUNT.
"""

from sqlalchemy import Column, String, BigInteger

from app.db.base import Base

REGISTRATION_SEQUENCE = "event_registration_number"


class LedgerCounter(Base):
    __tablename__ = "ledger_counters"

    name = Column(String(64), primary_key=True)
    value = Column(BigInteger, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<LedgerCounter(name={self.name}, value={self.value})>"
