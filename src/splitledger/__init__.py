"""SplitLedger - Track shared expenses and work out who owes whom."""

__version__ = "0.1.0"

from .balances.ledger import BalanceLedger
from .balances.service import ExpenseService
from .balances.simplifier import simplify
from .balances.splitter import compute_split
from .config import Settings, load_settings
from .models import (
    Expense,
    Group,
    SplitEntry,
    SplitType,
    Transaction,
    User,
)
from .store import ExpenseStore

__all__ = [
    "Settings",
    "load_settings",
    "ExpenseStore",
    "BalanceLedger",
    "ExpenseService",
    "Expense",
    "Group",
    "SplitEntry",
    "SplitType",
    "Transaction",
    "User",
    "compute_split",
    "simplify",
]
