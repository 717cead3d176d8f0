"""Dependency injection for FastAPI endpoints"""

import base64
import binascii

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from smart_lending.config import settings
from smart_lending.domain.identifiers import IdentifierGenerator, make_identifier_generator
from smart_lending.domain.models import TransactionContext
from smart_lending.infrastructure.database.repositories import SqlIdentifierGenerator, SqlRecordStore
from smart_lending.infrastructure.database.session import get_db
from smart_lending.lifecycle import LoanLifecycleEngine
from smart_lending.utils.date_utils import utcnow

CALLER_METADATA_HEADER = "X-Caller-Metadata"


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_transaction_context(request: Request) -> TransactionContext:
    """
    Build the invocation context from the request.

    The request ID doubles as the transaction ID. Caller metadata is read from
    the X-Caller-Metadata header as base64; anything else is kept as raw text.
    """
    header = request.headers.get(CALLER_METADATA_HEADER, "")
    try:
        caller_metadata = base64.b64decode(header, validate=True)
    except (binascii.Error, ValueError):
        caller_metadata = header.encode("utf-8")
    return TransactionContext(
        transaction_id=get_request_id(request),
        timestamp=utcnow(),
        caller_metadata=caller_metadata,
    )


def get_record_store(db: Session = Depends(get_db)) -> SqlRecordStore:
    """Provide the SQL-backed record store"""
    return SqlRecordStore(db)


def get_identifier_generator(db: Session = Depends(get_db)) -> IdentifierGenerator:
    """Provide the configured identifier generator; sequential numbers come from the counter table"""
    if settings.identifier_strategy == "sequential":
        return SqlIdentifierGenerator(db)
    return make_identifier_generator(settings.identifier_strategy, settings.identifier_upper_bound)


def get_engine(
    store: SqlRecordStore = Depends(get_record_store),
    context: TransactionContext = Depends(get_transaction_context),
    id_generator: IdentifierGenerator = Depends(get_identifier_generator),
) -> LoanLifecycleEngine:
    """Provide a lifecycle engine bound to this request's store session and context"""
    return LoanLifecycleEngine.from_settings(
        store,
        settings,
        id_generator=id_generator,
        context_provider=lambda: context,
    )
