"""Bidding and account number generation"""

import random
from typing import Iterable, Optional, Protocol

from smart_lending.domain.models import LoanApplication


class IdentifierGenerator(Protocol):
    def next_id(self) -> int:
        ...


class RandomIdentifierGenerator:
    """
    Uniform random numbers in [0, upper_bound).

    No uniqueness check is made, so two bids on the same application can
    collide. Use the sequential strategy where that matters.
    """

    def __init__(self, upper_bound: int = 100_000, seed: Optional[int] = None):
        self.upper_bound = upper_bound
        self._rng = random.Random(seed)

    def next_id(self) -> int:
        return self._rng.randrange(self.upper_bound)


class SequentialIdentifierGenerator:
    """Monotonic counter; every call returns a number never handed out before"""

    def __init__(self, start: int = 1):
        self._next = start

    def next_id(self) -> int:
        value = self._next
        self._next += 1
        return value


def highest_issued_number(applications: Iterable[LoanApplication]) -> int:
    """Largest bidding or account number on any of the applications, 0 if none"""
    highest = 0
    for app in applications:
        if app.account_number is not None:
            highest = max(highest, app.account_number)
        for quote in app.quotations:
            if quote.bidding_number is not None:
                highest = max(highest, quote.bidding_number)
    return highest


def make_identifier_generator(
    strategy: str,
    upper_bound: int = 100_000,
) -> IdentifierGenerator:
    if strategy == "random":
        return RandomIdentifierGenerator(upper_bound)
    if strategy == "sequential":
        return SequentialIdentifierGenerator()
    raise ValueError(f"Unknown identifier strategy: {strategy}")
