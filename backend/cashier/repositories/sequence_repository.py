from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..models import DocumentSequence


class SequenceRepository:
    def __init__(self, session):
        self.session = session

    def next_number(self, document_type: str, period: str) -> int:
        """
        Atomically allocate the next number for (document_type, period).

        The UPDATE takes the row lock, so concurrent callers inside their own
        transactions get distinct numbers. The first caller of a new period
        inserts the row; a losing insert race falls back to the UPDATE.
        """
        stmt = (
            update(DocumentSequence)
            .where(
                DocumentSequence.document_type == document_type,
                DocumentSequence.period == period,
            )
            .values(next_number=DocumentSequence.next_number + 1)
            .execution_options(synchronize_session=False)
        )

        result = self.session.execute(stmt)
        if result.rowcount:
            return self._current(document_type, period) - 1

        savepoint = self.session.begin_nested()
        try:
            self.session.add(DocumentSequence(document_type=document_type, period=period, next_number=2))
            self.session.flush()
            savepoint.commit()
            return 1
        except IntegrityError:
            savepoint.rollback()

        result = self.session.execute(stmt)
        if not result.rowcount:
            raise RuntimeError(f"document sequence {document_type}/{period} could not be allocated")
        return self._current(document_type, period) - 1

    def _current(self, document_type: str, period: str) -> int:
        return (
            self.session.query(DocumentSequence.next_number)
            .filter_by(document_type=document_type, period=period)
            .scalar()
        )
