"""Similarity scoring between bank debits and open installments"""

from decimal import Decimal
from typing import Iterable, List, Optional

from payables_gateway.domain.models import BankTransaction, Installment, MatchCandidate

VALUE_WEIGHT = 0.6
NAME_WEIGHT = 0.4
MIN_TOKEN_LENGTH = 4  # Tokens of 3 chars or fewer ("abc", "s/a", "de") are ignored


def value_score(transaction_value: Decimal, installment_value: Optional[Decimal]) -> float:
    """1.0 for identical values, decreasing linearly to 0 at 100% relative difference"""
    if installment_value is None or installment_value <= 0:
        return 0.0
    diff = abs(transaction_value - installment_value)
    return max(0.0, 1.0 - float(diff / installment_value))


def name_tokens(counterparty: str) -> List[str]:
    return [token for token in counterparty.lower().split() if len(token) >= MIN_TOKEN_LENGTH]


def name_score(description: str, counterparty: str) -> float:
    """Share of counterparty tokens found as substrings of the transaction description"""
    tokens = name_tokens(counterparty)
    if not tokens:
        return 0.0
    haystack = description.lower()
    found = sum(1 for token in tokens if token in haystack)
    return found / len(tokens)


def similarity_score(
    transaction_value: Decimal,
    description: str,
    installment_value: Optional[Decimal],
    counterparty: str,
) -> float:
    """
    Score how likely a bank debit pays an installment, from 0.0 to 1.0.

    Weights:
    - 60%: value proximity, 1 - |t - i| / i floored at 0
    - 40%: counterparty name tokens (> 3 chars) present in the description
    """
    return (
        VALUE_WEIGHT * value_score(transaction_value, installment_value)
        + NAME_WEIGHT * name_score(description, counterparty)
    )


def rank_candidates(
    transactions: Iterable[BankTransaction],
    installments: Iterable[Installment],
    threshold: float = 0.3,
) -> List[MatchCandidate]:
    """
    Score every transaction against every installment.

    Pairs scoring at or below `threshold` are dropped. The rest are sorted by
    score, highest first; ties keep transaction-then-installment order.
    """
    installments = list(installments)
    candidates = []
    for txn in transactions:
        for inst in installments:
            score = similarity_score(txn.value, txn.description, inst.amount, inst.counterparty)
            if score > threshold:
                candidates.append(MatchCandidate(transaction=txn, installment=inst, score=score))

    candidates.sort(key=lambda c: c.score, reverse=True)
    return candidates
