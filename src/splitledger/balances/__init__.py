"""Balance engine: split calculator, ledger and debt simplifier."""

from .ledger import BalanceLedger
from .simplifier import settle_all, simplify
from .splitter import build_strategy, compute_split

__all__ = [
    "BalanceLedger",
    "build_strategy",
    "compute_split",
    "settle_all",
    "simplify",
]
