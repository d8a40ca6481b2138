"""Debt simplification: reduce net balances to a minimal list of payments."""

import logging
from collections.abc import Iterable, Mapping

from ..exceptions import InvariantViolation
from ..models import Transaction

logger = logging.getLogger(__name__)


def simplify(balances: Mapping[str, int]) -> list[Transaction]:
    """
    Greedily match the largest creditor with the largest debtor.

    Algorithm:
    1. Split users into creditors (balance > 0) and debtors (balance < 0,
       tracked by absolute value). Zero balances are skipped.
    2. Sort both lists largest-first. The sort is stable, so equal amounts
       keep the iteration order of ``balances``.
    3. Emit ``debtor -> creditor`` for ``min`` of their remaining amounts and
       advance whichever side reached zero.

    Each payment settles at least one user completely, so k users with a
    non-zero balance need at most k - 1 payments.

    Args:
        balances: Mapping of user ID to signed net balance

    Returns:
        Transactions in the order they were matched

    Raises:
        InvariantViolation: If credits and debits don't balance
    """
    creditors: list[list] = []
    debtors: list[list] = []

    for user_id, balance in balances.items():
        if balance > 0:
            creditors.append([user_id, balance])
        elif balance < 0:
            debtors.append([user_id, -balance])

    total_credit = sum(amount for _, amount in creditors)
    total_debit = sum(amount for _, amount in debtors)
    if total_credit != total_debit:
        logger.error(f"Unbalanced ledger: credits {total_credit}, debits {total_debit}")
        raise InvariantViolation(
            f"Cannot simplify unbalanced ledger: credits {total_credit} != debits {total_debit}"
        )

    creditors.sort(key=lambda entry: entry[1], reverse=True)
    debtors.sort(key=lambda entry: entry[1], reverse=True)

    transactions: list[Transaction] = []
    creditor_idx = 0
    debtor_idx = 0

    while creditor_idx < len(creditors) and debtor_idx < len(debtors):
        creditor = creditors[creditor_idx]
        debtor = debtors[debtor_idx]

        amount = min(creditor[1], debtor[1])
        transactions.append(Transaction(from_user=debtor[0], to_user=creditor[0], amount=amount))

        creditor[1] -= amount
        debtor[1] -= amount

        if creditor[1] == 0:
            creditor_idx += 1
        if debtor[1] == 0:
            debtor_idx += 1

    # Both sides must run out together
    if creditor_idx != len(creditors) or debtor_idx != len(debtors):
        raise InvariantViolation(
            f"Simplification left unsettled balances "
            f"({len(creditors) - creditor_idx} creditors, {len(debtors) - debtor_idx} debtors)"
        )

    logger.debug(
        f"Simplified {len(creditors) + len(debtors)} non-zero balances "
        f"into {len(transactions)} transactions"
    )
    return transactions


def settle_all(
    balances: Mapping[str, int], transactions: Iterable[Transaction]
) -> dict[str, int]:
    """
    Apply transactions to a copy of ``balances``.

    Paying moves the debtor's balance up and the creditor's down. After
    applying ``simplify(balances)`` every balance is zero.
    """
    result = dict(balances)
    for tx in transactions:
        result[tx.from_user] = result.get(tx.from_user, 0) + tx.amount
        result[tx.to_user] = result.get(tx.to_user, 0) - tx.amount
    return result
