"""In-memory storage for SplitLedger."""

import threading

from .balances.ledger import BalanceLedger
from .models import Expense, Group, User


class ExpenseStore:
    """In-memory store of users, groups and expenses plus the balance ledger.

    Nothing survives a restart. One store is created per process (or per
    test) and passed to whatever needs it.
    """

    def __init__(self, ledger: BalanceLedger | None = None):
        """Initialize empty collections."""
        self.ledger = ledger or BalanceLedger()
        self._users: dict[str, User] = {}
        self._groups: dict[str, Group] = {}
        self._expenses: dict[str, Expense] = {}
        self._lock = threading.RLock()

    # Users

    def save_user(self, user: User) -> None:
        with self._lock:
            self._users[user.id] = user

    def get_user(self, user_id: str) -> User | None:
        with self._lock:
            return self._users.get(user_id)

    def list_users(self) -> list[User]:
        with self._lock:
            return list(self._users.values())

    # Groups

    def save_group(self, group: Group) -> None:
        with self._lock:
            self._groups[group.id] = group

    def get_group(self, group_id: str) -> Group | None:
        with self._lock:
            return self._groups.get(group_id)

    def list_groups(self) -> list[Group]:
        with self._lock:
            return list(self._groups.values())

    def add_member(self, group_id: str, user_id: str) -> Group:
        """Append a member to a group and return the updated group."""
        with self._lock:
            group = self._groups[group_id]
            updated = group.model_copy(update={"members": [*group.members, user_id]})
            self._groups[group_id] = updated
            return updated

    # Expenses

    def save_expense(self, expense: Expense) -> None:
        with self._lock:
            self._expenses[expense.id] = expense

    def get_expenses_for_group(self, group_id: str) -> list[Expense]:
        """Expenses of one group, most recent first."""
        with self._lock:
            expenses = [e for e in self._expenses.values() if e.group_id == group_id]
        return sorted(reversed(expenses), key=lambda e: e.created_at, reverse=True)

    def reset(self) -> None:
        """Clear all users, groups, expenses and balances."""
        with self._lock:
            self._users.clear()
            self._groups.clear()
            self._expenses.clear()
            self.ledger.reset()
