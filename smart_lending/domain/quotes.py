"""Lender quote policies - underwriting and pricing for each lender on the panel"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from smart_lending.domain.identifiers import IdentifierGenerator
from smart_lending.domain.models import BiddingDetails, EvaluationParams, LenderDecision

BASE_INTEREST_RATE = 5.0

REJECT_CREDIT_SCORE = "Not meeting credit score requirements"
REJECT_AGE = "Not meeting age requirements"
REJECT_SSN = "Invalid SSN"
REJECT_INCOME = "Not meeting monthly income requirements"

MIN_CREDIT_SCORE = 300
MIN_AGE = 18
SSN_LENGTH = 7
MIN_MONTHLY_INCOME = 1000.00


def check_eligibility(params: EvaluationParams) -> Optional[str]:
    """
    Return the rejection reason for an applicant, or None if eligible.

    Rules are evaluated in order and the first failure wins:
    - credit score below 300
    - age below 18
    - SSN not exactly 7 characters (code points, not bytes)
    - monthly income below 1000.00
    """
    if params.credit_score < MIN_CREDIT_SCORE:
        return REJECT_CREDIT_SCORE
    if params.age < MIN_AGE:
        return REJECT_AGE
    if len(params.ssn) != SSN_LENGTH:
        return REJECT_SSN
    if params.monthly_income < MIN_MONTHLY_INCOME:
        return REJECT_INCOME
    return None


def calculate_interest_rate(params: EvaluationParams, base_rate: float = BASE_INTEREST_RATE) -> float:
    """
    Price an eligible applicant: base rate plus one delta per dimension.

    Bands are open intervals, so the edge values themselves add nothing:
    - credit score (300, 500): +0.50, (500, 700): +0.25
    - age (30, 50): +0.25, above 50: +0.50
    - monthly income (1000, 3000): +0.50, above 3000: +0.25
    """
    delta = 0.0

    if 500 < params.credit_score < 700:
        delta += 0.25
    elif 300 < params.credit_score < 500:
        delta += 0.50

    if 30 < params.age < 50:
        delta += 0.25
    elif params.age > 50:
        delta += 0.50

    if 1000 < params.monthly_income < 3000:
        delta += 0.50
    elif params.monthly_income > 3000:
        delta += 0.25

    return base_rate + delta


@dataclass(frozen=True)
class QuotePolicy:
    """A lender on the panel. Lenders differ only in id and interest type."""

    lender_id: int
    interest_type: str
    base_rate: float = BASE_INTEREST_RATE

    def quote(
        self,
        params: EvaluationParams,
        id_generator: IdentifierGenerator,
        now: Callable[[], datetime],
    ) -> BiddingDetails:
        """Accept or reject the application; accepted bids carry pricing terms"""
        bid = BiddingDetails(application_number=params.application_number, lender_id=self.lender_id)

        reason = check_eligibility(params)
        if reason is not None:
            bid.application_accept_status = LenderDecision.REJECT
            bid.rejection_reason = reason
            return bid

        bid.application_accept_status = LenderDecision.ACCEPT
        bid.bidding_number = id_generator.next_id()
        bid.bidding_date = now()
        bid.sanctioned_amount = params.loan_amount
        bid.tenure = params.tenure
        bid.interest_type = self.interest_type
        bid.interest_rate = calculate_interest_rate(params, self.base_rate)
        bid.is_winning_bid = False
        return bid


def interest_type_for(lender_id: int) -> str:
    # odd lenders quote simple interest, even lenders floating
    return "simple" if lender_id % 2 else "floating"


def build_lender_panel(
    lender_ids: Iterable[int] = (1, 2, 3, 4),
    base_rate: float = BASE_INTEREST_RATE,
) -> List[QuotePolicy]:
    """Build the ordered policy table for the configured lenders"""
    return [
        QuotePolicy(lender_id=lender_id, interest_type=interest_type_for(lender_id), base_rate=base_rate)
        for lender_id in lender_ids
    ]


DEFAULT_LENDER_PANEL = build_lender_panel()


def collect_quotations(
    params: EvaluationParams,
    policies: Iterable[QuotePolicy],
    id_generator: IdentifierGenerator,
    now: Callable[[], datetime],
) -> List[BiddingDetails]:
    """Ask every lender once, keeping panel order"""
    return [policy.quote(params, id_generator, now) for policy in policies]
