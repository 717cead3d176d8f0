"""Prometheus metrics for monitoring applications, quotations, bids and repayments"""

from typing import Iterable

from prometheus_client import Counter, Histogram

from smart_lending.domain.models import ApplicationStatus, BiddingDetails, RepaymentStatus

# Application metrics
applications_created_counter = Counter(
    "lending_applications_created_total",
    "Loan applications created",
)

quotation_counter = Counter(
    "lending_quotations_total",
    "Lender quotations issued",
    ["lender_id", "outcome"],  # accepted | rejected
)

bid_confirmation_counter = Counter(
    "lending_bid_confirmations_total",
    "Bid confirmations by resulting application status",
    ["outcome"],  # bid_accepted | bid_rejected | other
)

# Repayment metrics
payment_status_counter = Counter(
    "lending_payment_status_changes_total",
    "Installment status updates",
    ["status"],
)

loan_classification_counter = Counter(
    "lending_loan_classifications_total",
    "Default monitor outcomes after a payment update",
    ["classification"],  # performing | non_performing
)

# Store metrics
store_failure_counter = Counter(
    "lending_store_failures_total",
    "Failed record store writes",
)

corrupt_record_counter = Counter(
    "lending_corrupt_records_total",
    "Stored records that could not be decoded",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def _status_label(value: int, enum_type) -> str:
    try:
        return enum_type(value).name.lower()
    except ValueError:
        return "other"


def record_quotations(quotations: Iterable[BiddingDetails]) -> None:
    """Count each lender's accept/reject decision"""
    for quote in quotations:
        outcome = "accepted" if quote.accepted else "rejected"
        quotation_counter.labels(lender_id=str(quote.lender_id), outcome=outcome).inc()


def record_bid_confirmation(bid_status: int) -> None:
    if bid_status in (ApplicationStatus.BID_ACCEPTED, ApplicationStatus.BID_REJECTED):
        outcome = _status_label(bid_status, ApplicationStatus)
    else:
        outcome = "other"
    bid_confirmation_counter.labels(outcome=outcome).inc()


def record_payment_update(repayment_status: int, classification: int) -> None:
    """Record the installment update and the resulting loan classification"""
    payment_status_counter.labels(status=_status_label(repayment_status, RepaymentStatus)).inc()
    loan_classification_counter.labels(
        classification=_status_label(classification, ApplicationStatus)
    ).inc()
