"""Per-group net balance ledger."""

import logging
import threading
from collections.abc import Iterable

from ..exceptions import InvariantViolation, ValidationError
from ..models import SplitEntry

logger = logging.getLogger(__name__)


class BalanceLedger:
    """
    Holds one ``user -> net balance`` mapping per group.

    Positive balances are owed money, negative balances owe money. Every
    mutation is an all-or-nothing update under a single lock, so a reader
    never sees a half-applied expense.
    """

    def __init__(self):
        """Initialize an empty ledger."""
        self._balances: dict[str, dict[str, int]] = {}
        self._lock = threading.RLock()

    def apply_expense(
        self,
        group_id: str,
        paid_by: str,
        total_amount: int,
        splits: Iterable[SplitEntry],
    ) -> None:
        """
        Credit the payer with the total and debit each participant's share.

        Args:
            group_id: Group the expense belongs to
            paid_by: User who paid
            total_amount: Total amount paid
            splits: Computed split entries for the expense

        Raises:
            InvariantViolation: If the splits don't sum to the total
        """
        splits = list(splits)
        split_total = sum(split.amount for split in splits)
        if split_total != total_amount:
            logger.error(
                f"Refusing expense in group {group_id}: splits sum to "
                f"{split_total}, total is {total_amount}"
            )
            raise InvariantViolation(
                f"Splits sum to {split_total} but expense total is {total_amount}"
            )

        deltas: dict[str, int] = {paid_by: total_amount}
        for split in splits:
            deltas[split.user_id] = deltas.get(split.user_id, 0) - split.amount

        with self._lock:
            balances = self._balances.setdefault(group_id, {})
            for user_id, delta in deltas.items():
                balances[user_id] = balances.get(user_id, 0) + delta

        logger.info(
            f"Applied expense of {total_amount} in group {group_id} "
            f"paid by {paid_by} across {len(splits)} splits"
        )

    def apply_settlement(
        self, group_id: str, from_user: str, to_user: str, amount: int
    ) -> None:
        """
        Record a direct payment from ``from_user`` to ``to_user``.

        The payer's balance goes up (less debt) and the receiver's goes down.
        """
        if amount <= 0:
            raise ValidationError(f"Settlement amount must be positive, got {amount}")
        if from_user == to_user:
            raise ValidationError("Settlement payer and receiver must be different users")

        with self._lock:
            balances = self._balances.setdefault(group_id, {})
            balances[from_user] = balances.get(from_user, 0) + amount
            balances[to_user] = balances.get(to_user, 0) - amount

        logger.info(
            f"Applied settlement of {amount} in group {group_id}: {from_user} -> {to_user}"
        )

    def get_balances(self, group_id: str) -> dict[str, int]:
        """Return a snapshot of a group's balances, in first-reference order."""
        with self._lock:
            return dict(self._balances.get(group_id, {}))

    def total(self, group_id: str) -> int:
        """Sum of a group's balances; zero unless conservation is broken."""
        with self._lock:
            return sum(self._balances.get(group_id, {}).values())

    def groups(self) -> list[str]:
        """IDs of groups that have ledger state."""
        with self._lock:
            return list(self._balances)

    def reset_group(self, group_id: str) -> None:
        """Drop all balances for one group."""
        with self._lock:
            self._balances.pop(group_id, None)

    def reset(self) -> None:
        """Clear every group's balances."""
        with self._lock:
            self._balances.clear()
        logger.info("Ledger reset")
