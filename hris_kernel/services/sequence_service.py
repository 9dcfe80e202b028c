"""
SequenceService -- monotonic sequence allocation via locked counter rows.

Responsibility:
    Provides strictly increasing sequence numbers for audit events.  Uses a
    dedicated counter table with row-level locking (``SELECT ... FOR UPDATE``
    on PostgreSQL) to guarantee uniqueness and ordering under concurrency.

Architecture position:
    Kernel > Services.  Called by AuditorService.

Invariants enforced:
    - The locked counter row is the sole source of truth for the next value;
      aggregate-max-plus-one is never used.
    - The increment is only visible after the caller's transaction commits.

Failure modes:
    - IntegrityError when two transactions create the same counter on first
      use.  The caller's transaction rolls back; a retry finds the row.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from hris_kernel.logging_config import get_logger
from hris_kernel.models.sequence import SequenceCounter

logger = get_logger("services.sequence")


class SequenceService:
    """
    Service for generating transactional sequence numbers.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
    """

    AUDIT_EVENT = "audit_event"

    def __init__(self, session: Session):
        self._session = session

    def next_value(self, sequence_name: str) -> int:
        """
        Lock (or create) the counter row, increment it and return the value.

        Postconditions:
            - Returns an integer > 0 strictly greater than any previously
              returned value for this sequence name.
        """
        counter = self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

        if counter is None:
            counter = SequenceCounter(name=sequence_name, current_value=0)
            self._session.add(counter)

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, sequence_name: str) -> int | None:
        """Current value of a sequence without incrementing; None if unused."""
        return self._session.execute(
            select(SequenceCounter.current_value)
            .where(SequenceCounter.name == sequence_name)
        ).scalar_one_or_none()
