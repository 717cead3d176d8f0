"""Default monitoring - classifies a loan from its repayment record"""

from typing import Iterable

from smart_lending.domain.models import ApplicationStatus, PaymentDetail, RepaymentStatus

MISSED_INSTALLMENT_THRESHOLD = 3


def count_missed_installments(schedule: Iterable[PaymentDetail]) -> int:
    return sum(1 for inst in schedule if inst.repayment_status == RepaymentStatus.MISSED)


def classify_loan_performance(
    schedule: Iterable[PaymentDetail],
    threshold: int = MISSED_INSTALLMENT_THRESHOLD,
) -> ApplicationStatus:
    """
    NON_PERFORMING once `threshold` or more installments are missed, else PERFORMING.

    Always computed over the whole schedule so the result does not depend on
    the order in which payment updates arrived.
    """
    if count_missed_installments(schedule) >= threshold:
        return ApplicationStatus.NON_PERFORMING
    return ApplicationStatus.PERFORMING
