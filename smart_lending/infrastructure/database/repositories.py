"""Data access layer for application records"""

import logging
from typing import Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from smart_lending.domain.exceptions import DeserializationError, StoreFailureError
from smart_lending.domain.identifiers import highest_issued_number
from smart_lending.infrastructure.database.models import IdentifierCounter, LoanApplicationRecord
from smart_lending.infrastructure.serialization import codec

logger = logging.getLogger(__name__)

COUNTER_NAME = "loan_identifiers"


class SqlRecordStore:
    """Key-addressed record store backed by the loan_application_record table"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> Optional[bytes]:
        """Fetch the serialized record, or None if absent"""
        try:
            record = self.db.get(LoanApplicationRecord, key)
        except SQLAlchemyError as e:
            raise StoreFailureError(f"Failed to read application {key!r}: {e}") from e
        return record.payload if record is not None else None

    def put(self, key: str, value: bytes) -> None:
        """
        Insert or replace the record and commit.

        Raises:
            StoreFailureError: If the write or commit fails; the session is rolled back
        """
        try:
            record = self.db.get(LoanApplicationRecord, key)
            if record is None:
                record = LoanApplicationRecord(application_number=key)
                self.db.add(record)
            record.payload = value
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreFailureError(f"Failed to write application {key!r}: {e}") from e

    def scan(self) -> Iterator[bytes]:
        """All stored payloads, ordered by application number"""
        try:
            rows = (
                self.db.query(LoanApplicationRecord.payload)
                .order_by(LoanApplicationRecord.application_number)
                .all()
            )
        except SQLAlchemyError as e:
            raise StoreFailureError(f"Failed to scan application records: {e}") from e
        for (payload,) in rows:
            yield payload


class SqlIdentifierGenerator:
    """
    Sequential bidding/account numbers kept in the identifier_counter table.

    The counter row is locked (SELECT ... FOR UPDATE) and incremented inside
    the session's open transaction, so it commits or rolls back together with
    the record written by SqlRecordStore.put on the same session. Concurrent
    requests queue on the row lock and never receive the same number.

    The first allocation ever seeds the row from the highest number found in
    the stored records. Records that cannot be decoded at that moment are
    skipped and their numbers may be issued again.
    """

    def __init__(self, db: Session, name: str = COUNTER_NAME):
        self.db = db
        self.name = name

    def next_id(self) -> int:
        try:
            counter = (
                self.db.query(IdentifierCounter)
                .filter(IdentifierCounter.name == self.name)
                .with_for_update()
                .one_or_none()
            )
            if counter is None:
                counter = IdentifierCounter(name=self.name, last_value=self._seed())
                self.db.add(counter)
            counter.last_value += 1
            self.db.flush()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreFailureError(f"Failed to allocate identifier from {self.name!r}: {e}") from e
        return counter.last_value

    def _seed(self) -> int:
        applications = []
        for payload in SqlRecordStore(self.db).scan():
            try:
                applications.append(codec.decode(payload))
            except DeserializationError as e:
                logger.warning(f"Skipping unreadable record while seeding {self.name!r}: {e}")
        highest = highest_issued_number(applications)
        logger.info(f"Seeding identifier counter {self.name!r} at {highest}")
        return highest
