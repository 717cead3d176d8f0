"""Loan application lifecycle engine - state transitions against the record store"""

import base64
import dataclasses
import logging
import math
import time
import uuid
from datetime import datetime
from typing import Callable, List, Optional, Protocol

from smart_lending.config import Settings
from smart_lending.domain.exceptions import (
    ApplicationNotFoundError,
    DeserializationError,
    DuplicateApplicationError,
    InvalidInputError,
    StoreFailureError,
)
from smart_lending.domain.identifiers import IdentifierGenerator, RandomIdentifierGenerator
from smart_lending.domain.installments import generate_repayment_schedule
from smart_lending.domain.models import (
    ApplicationStatus,
    LoanApplication,
    RepaymentStatus,
    TransactionContext,
    TransactionMetadata,
)
from smart_lending.domain.monitoring import MISSED_INSTALLMENT_THRESHOLD, classify_loan_performance
from smart_lending.domain.quotes import DEFAULT_LENDER_PANEL, QuotePolicy, build_lender_panel, collect_quotations
from smart_lending.infrastructure.observability.logging import log_lifecycle_event
from smart_lending.infrastructure.observability.metrics import (
    applications_created_counter,
    corrupt_record_counter,
    record_bid_confirmation,
    record_payment_update,
    record_quotations,
    store_failure_counter,
)
from smart_lending.infrastructure.serialization import ApplicationCodec, codec as default_codec
from smart_lending.utils.date_utils import format_repayment_date, utcnow

logger = logging.getLogger(__name__)

BID_STATUSES = (ApplicationStatus.BID_ACCEPTED, ApplicationStatus.BID_REJECTED)
REPAYMENT_STATUSES = frozenset(status.value for status in RepaymentStatus)


class RecordStore(Protocol):
    """Key-addressed storage of serialized application records"""

    def get(self, key: str) -> Optional[bytes]:
        ...

    def put(self, key: str, value: bytes) -> None:
        ...


def new_transaction_context() -> TransactionContext:
    """Context for calls made outside a request: fresh id, current time, no caller metadata"""
    return TransactionContext(transaction_id=str(uuid.uuid4()), timestamp=utcnow())


class LoanLifecycleEngine:
    """
    Applies lifecycle operations to one application record at a time.

    Every operation is a synchronous load-modify-store against the record
    store. Each successful write appends one TransactionMetadata entry to the
    application's audit trail in the same write.
    """

    def __init__(
        self,
        store: RecordStore,
        id_generator: Optional[IdentifierGenerator] = None,
        lender_panel: Optional[List[QuotePolicy]] = None,
        context_provider: Callable[[], TransactionContext] = new_transaction_context,
        clock: Callable[[], datetime] = utcnow,
        codec: ApplicationCodec = default_codec,
        missed_installment_threshold: int = MISSED_INSTALLMENT_THRESHOLD,
        strict_bid_status: bool = False,
        fail_on_store_error: bool = False,
        tolerate_corrupt_records: bool = False,
    ):
        self.store = store
        self.id_generator = id_generator or RandomIdentifierGenerator()
        self.lender_panel = lender_panel if lender_panel is not None else DEFAULT_LENDER_PANEL
        self.context_provider = context_provider
        self.clock = clock
        self.codec = codec
        self.missed_installment_threshold = missed_installment_threshold
        self.strict_bid_status = strict_bid_status
        self.fail_on_store_error = fail_on_store_error
        self.tolerate_corrupt_records = tolerate_corrupt_records

    @classmethod
    def from_settings(cls, store: RecordStore, config: Settings, **overrides) -> "LoanLifecycleEngine":
        """Build an engine with lender panel and failure policy taken from configuration"""
        options = dict(
            lender_panel=build_lender_panel(config.lender_ids, config.base_interest_rate),
            missed_installment_threshold=config.missed_installment_threshold,
            strict_bid_status=config.strict_bid_status,
            fail_on_store_error=config.fail_on_store_error,
            tolerate_corrupt_records=config.tolerate_corrupt_records,
        )
        options.update(overrides)
        return cls(store, **options)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def create(
        self,
        application_number: str,
        make: str,
        model: str,
        loan_amount: float,
        ssn: str,
        age: int,
        monthly_income: float,
        credit_score: int,
        tenure: int,
    ) -> LoanApplication:
        """
        Register a new application and collect a quotation from every lender.

        Flow:
        1. Reject empty or already-used application numbers
        2. Save the application as APPLIED
        3. Ask each lender on the panel for a quote, in panel order
        4. Save again as QUOTATIONS_RECEIVED

        Both saves are audited separately.

        Raises:
            InvalidInputError: Empty application number or a non-finite amount
            DuplicateApplicationError: A record already exists for this number
        """
        start_time = time.time()
        if not application_number:
            raise InvalidInputError("Application number is required")
        for name, value in (("loan amount", loan_amount), ("monthly income", monthly_income)):
            if not math.isfinite(value):
                raise InvalidInputError(f"Invalid {name}: {value}")
        if self.store.get(application_number) is not None:
            raise DuplicateApplicationError(application_number)

        context = self.context_provider()
        application = LoanApplication(
            application_number=application_number,
            make=make,
            model=model,
            loan_amount=loan_amount,
            ssn=ssn,
            age=age,
            monthly_income=monthly_income,
            credit_score=credit_score,
            tenure=tenure,
            status=ApplicationStatus.APPLIED,
        )
        self._save(application, context)

        application.quotations = collect_quotations(
            application.evaluation_params(), self.lender_panel, self.id_generator, self.clock
        )
        application.status = ApplicationStatus.QUOTATIONS_RECEIVED
        self._save(application, context)

        applications_created_counter.inc()
        record_quotations(application.quotations)
        self._log("create", application, context, start_time)
        return application

    def confirm_bid(self, application_number: str, bidding_number: int, bid_status: int) -> LoanApplication:
        """
        Record the borrower's answer to the quotations.

        The application status becomes `bid_status`. When it is BID_ACCEPTED
        and an accepted quotation carries `bidding_number`, that quotation is
        flagged as the winner, an account number is issued and the repayment
        schedule is generated. An unknown bidding number only changes the status.

        Raises:
            ApplicationNotFoundError: No record for this application number
            InvalidInputError: A winning bid was already confirmed, or (strict
                mode only) bid_status is not BID_ACCEPTED/BID_REJECTED
        """
        start_time = time.time()
        application = self._load(application_number)
        if self.strict_bid_status and bid_status not in BID_STATUSES:
            raise InvalidInputError(f"Invalid bid status: {bid_status}")
        if application.winning_bid is not None:
            raise InvalidInputError(
                f"Bid {application.winning_bid.bidding_number} already confirmed for {application_number!r}"
            )

        context = self.context_provider()
        application.status = bid_status

        if bid_status == ApplicationStatus.BID_ACCEPTED:
            winner = application.find_quotation(bidding_number)
            if winner is not None:
                winner.is_winning_bid = True
                application.account_number = self.id_generator.next_id()
                application.repayment_schedule = generate_repayment_schedule(winner)
            else:
                logger.warning(
                    f"No quotation {bidding_number} on application {application_number}",
                    extra={"transaction_id": context.transaction_id},
                )

        self._save(application, context)

        record_bid_confirmation(bid_status)
        self._log("confirm_bid", application, context, start_time)
        return application

    def change_payment_status(
        self, application_number: str, installment_number: int, repayment_status: int
    ) -> LoanApplication:
        """
        Update one installment and reclassify the loan.

        Only the first installment with a matching number is touched. The
        application status is then recomputed from the whole schedule, even
        when no installment matched.

        Raises:
            ApplicationNotFoundError: No record for this application number
            InvalidInputError: Unknown repayment status
        """
        start_time = time.time()
        if repayment_status not in REPAYMENT_STATUSES:
            raise InvalidInputError(f"Invalid repayment status: {repayment_status}")

        application = self._load(application_number)
        context = self.context_provider()

        installment = application.find_installment(installment_number)
        if installment is not None:
            installment.repayment_status = repayment_status
            installment.repayment_date = format_repayment_date(self.clock())
            installment.metadata = self._transaction_metadata(application.status, context)
        else:
            logger.warning(
                f"No installment {installment_number} on application {application_number}",
                extra={"transaction_id": context.transaction_id},
            )

        application.status = classify_loan_performance(
            application.repayment_schedule, self.missed_installment_threshold
        )
        self._save(application, context)

        record_payment_update(repayment_status, application.status)
        self._log("change_payment_status", application, context, start_time)
        return application

    def read(self, application_number: str) -> LoanApplication:
        """
        Raises:
            ApplicationNotFoundError: No record for this application number
        """
        return self._load(application_number)

    def read_record(self, application_number: str) -> bytes:
        """Stored bytes exactly as persisted"""
        raw = self.store.get(application_number)
        if raw is None:
            raise ApplicationNotFoundError(application_number)
        return raw

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self, application_number: str) -> LoanApplication:
        raw = self.store.get(application_number)
        if raw is None:
            raise ApplicationNotFoundError(application_number)

        try:
            return self.codec.decode(raw)
        except DeserializationError as e:
            corrupt_record_counter.inc()
            if not self.tolerate_corrupt_records:
                logger.error(f"Corrupt record for {application_number}: {e}")
                raise
            logger.warning(f"Corrupt record for {application_number}, continuing with empty record: {e}")
            return LoanApplication(application_number=application_number)

    def _save(self, application: LoanApplication, context: TransactionContext) -> None:
        """
        Persist the application together with its next audit entry.

        The entry is kept on the in-memory aggregate only if the store accepts
        the write. A rejected write is logged and, unless fail_on_store_error
        is set, the operation carries on with the unpersisted state.
        """
        entry = self._transaction_metadata(application.status, context)
        pending = dataclasses.replace(application, transactions=[*application.transactions, entry])

        try:
            self.store.put(application.application_number, self.codec.encode(pending))
        except StoreFailureError as e:
            store_failure_counter.inc()
            logger.error(
                f"Store write failed for {application.application_number}: {e}",
                extra={"transaction_id": context.transaction_id},
            )
            if self.fail_on_store_error:
                raise
            return

        application.record_transaction(entry)

    def _transaction_metadata(self, status: int, context: TransactionContext) -> TransactionMetadata:
        return TransactionMetadata(
            application_state=status,
            transaction_id=context.transaction_id,
            transaction_timestamp=context.timestamp_display,
            transaction_date=self.clock(),
            caller_metadata=base64.b64encode(context.caller_metadata).decode("ascii"),
        )

    def _log(self, operation: str, application: LoanApplication, context: TransactionContext, start_time: float) -> None:
        duration_ms = (time.time() - start_time) * 1000
        log_lifecycle_event(
            operation, application.application_number, application.status, context.transaction_id, duration_ms
        )
