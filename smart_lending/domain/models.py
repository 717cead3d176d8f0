"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import List, Optional


class ApplicationStatus(IntEnum):
    """Lifecycle status of a loan application"""

    APPLIED = 0
    QUOTATIONS_RECEIVED = 1
    BID_ACCEPTED = 2
    BID_REJECTED = 3
    PERFORMING = 4
    NON_PERFORMING = 5


class LenderDecision(IntEnum):
    """Whether a lender accepted the application"""

    REJECT = 0
    ACCEPT = 1


class RepaymentStatus(IntEnum):
    """Status of a single installment"""

    NOT_DEMANDED = 0
    DEMANDED = 1
    RECOVERED = 2
    MISSED = 3


@dataclass
class TransactionMetadata:
    """Audit entry stamped on every persisted write"""

    application_state: int
    transaction_id: str
    transaction_timestamp: str
    transaction_date: datetime
    caller_metadata: str = ""  # base64 of the caller-supplied bytes


@dataclass
class EvaluationParams:
    """Underwriting inputs handed to each lender"""

    application_number: str
    loan_amount: float
    ssn: str
    age: int
    monthly_income: float
    credit_score: int
    tenure: int


@dataclass
class BiddingDetails:
    """One lender's quotation for an application"""

    application_number: str
    lender_id: int
    application_accept_status: int = LenderDecision.REJECT
    bidding_number: Optional[int] = None
    bidding_date: Optional[datetime] = None
    sanctioned_amount: Optional[float] = None
    interest_type: Optional[str] = None
    interest_rate: Optional[float] = None
    tenure: Optional[int] = None
    rejection_reason: Optional[str] = None
    is_winning_bid: bool = False

    @property
    def accepted(self) -> bool:
        return self.application_accept_status == LenderDecision.ACCEPT


@dataclass
class PaymentDetail:
    """Single installment in a repayment schedule"""

    installment_number: int
    principal_amount: float
    interest_amount: float
    total_emi: float
    repayment_status: int = RepaymentStatus.DEMANDED
    repayment_date: Optional[str] = None
    metadata: Optional[TransactionMetadata] = None


@dataclass
class LoanApplication:
    """Aggregate root: one record per application number"""

    application_number: str
    make: str = ""
    model: str = ""
    loan_amount: float = 0.0
    ssn: str = ""
    age: int = 0
    monthly_income: float = 0.0
    credit_score: int = 0
    tenure: int = 0
    status: int = ApplicationStatus.APPLIED
    account_number: Optional[int] = None
    quotations: List[BiddingDetails] = field(default_factory=list)
    transactions: List[TransactionMetadata] = field(default_factory=list)
    repayment_schedule: List[PaymentDetail] = field(default_factory=list)

    def evaluation_params(self) -> EvaluationParams:
        """Rebuild the underwriting view of this application"""
        return EvaluationParams(
            application_number=self.application_number,
            loan_amount=self.loan_amount,
            ssn=self.ssn,
            age=self.age,
            monthly_income=self.monthly_income,
            credit_score=self.credit_score,
            tenure=self.tenure,
        )

    def record_transaction(self, metadata: TransactionMetadata) -> None:
        """Append an audit entry. Entries are never edited or removed."""
        self.transactions.append(metadata)

    def find_quotation(self, bidding_number: int) -> Optional[BiddingDetails]:
        """Accepted quotation carrying this bidding number, if any"""
        for quote in self.quotations:
            if quote.accepted and quote.bidding_number == bidding_number:
                return quote
        return None

    def find_installment(self, installment_number: int) -> Optional[PaymentDetail]:
        for installment in self.repayment_schedule:
            if installment.installment_number == installment_number:
                return installment
        return None

    @property
    def winning_bid(self) -> Optional[BiddingDetails]:
        return next((q for q in self.quotations if q.is_winning_bid), None)


@dataclass
class TransactionContext:
    """Invocation context of the operation being applied"""

    transaction_id: str
    timestamp: datetime
    caller_metadata: bytes = b""

    @property
    def timestamp_display(self) -> str:
        return self.timestamp.isoformat()
