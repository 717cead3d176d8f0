"""Repayment schedule generation for an accepted bid"""

from typing import List
from smart_lending.domain.models import BiddingDetails, PaymentDetail, RepaymentStatus

INSTALLMENTS_PER_YEAR = 12


def generate_repayment_schedule(winning_bid: BiddingDetails) -> List[PaymentDetail]:
    """
    Generate monthly installments for the winning bid.

    Requirements:
    - tenure (years) * 12 installments, numbered from 1
    - Equal principal per installment (sanctioned amount / count)
    - Flat interest: each installment pays principal * rate / 100
    - Every installment starts as DEMANDED

    Args:
        winning_bid: Accepted quotation carrying amount, rate and tenure

    Returns:
        List of PaymentDetail objects, fully materialized

    Example:
        12000.00 over 1 year at 6% →
        12 x (principal 1000.00 + interest 60.00 = 1060.00)
    """
    num_installments = (winning_bid.tenure or 0) * INSTALLMENTS_PER_YEAR
    if num_installments <= 0:
        return []

    principal = winning_bid.sanctioned_amount / num_installments
    interest = principal * winning_bid.interest_rate / 100

    return [
        PaymentDetail(
            installment_number=i + 1,
            principal_amount=principal,
            interest_amount=interest,
            total_emi=principal + interest,
            repayment_status=RepaymentStatus.DEMANDED,
        )
        for i in range(num_installments)
    ]
