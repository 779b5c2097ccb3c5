"""
Credit authorization.

The ledger itself is stored elsewhere (``models.CreditTransaction``); this
module only compares balances and sums transactions.
"""

from typing import Iterable

from .types import CreditDecision, CreditTransaction


TRANSACTION_PURCHASE = 'purchase'
TRANSACTION_USAGE = 'usage'
TRANSACTION_REFUND = 'refund'
TRANSACTION_ADMIN = 'admin'
TRANSACTION_GIFT = 'gift'

TRANSACTION_KINDS = (
    TRANSACTION_PURCHASE,
    TRANSACTION_USAGE,
    TRANSACTION_REFUND,
    TRANSACTION_ADMIN,
    TRANSACTION_GIFT,
)


def authorize(balance: int, cost: int) -> CreditDecision:
    """
    Check whether ``balance`` covers ``cost``.

    Raises:
        ValueError: If cost is negative
    """
    if cost < 0:
        raise ValueError("Credit cost cannot be negative")

    if balance >= cost:
        return CreditDecision(authorized=True)
    return CreditDecision(authorized=False, shortfall=cost - balance)


def ledger_balance(transactions: Iterable[CreditTransaction]) -> int:
    """Running sum of signed transaction amounts."""
    return sum(transaction.amount for transaction in transactions)
