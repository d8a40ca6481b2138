"""Rich table rendering for splits, balances and transactions."""

from collections.abc import Mapping

from rich.table import Table

from ..models import SplitEntry, Transaction


def format_money(
    amount: int, symbol: str = "$", minor_units: int = 100, use_color: bool = True
) -> str:
    """
    Format minor units in accounting style with alignment.

    Negative amounts use parentheses: ($85.02)
    Positive amounts have spaces:      $85.02
    The spaces ensure decimal points align in tables.
    """
    major = abs(amount) / minor_units
    places = len(str(minor_units)) - 1 if minor_units > 1 else 0
    text = f"{symbol}{major:,.{places}f}"
    if amount < 0:
        return f"([red]{text}[/red])" if use_color else f"({text})"
    return f" [green]{text}[/green] " if use_color else f" {text} "


def splits_table(
    splits: list[SplitEntry],
    names: Mapping[str, str] | None = None,
    symbol: str = "$",
    minor_units: int = 100,
) -> Table:
    """Table of participants and the amount each owes."""
    names = names or {}
    table = Table(
        title="Splits", show_header=True, header_style="bold magenta", min_width=40
    )
    table.add_column("Participant", style="cyan")
    table.add_column("Owes", justify="right")
    table.add_column("Units", justify="right", style="dim")

    for split in splits:
        table.add_row(
            names.get(split.user_id, split.user_id),
            format_money(split.amount, symbol, minor_units),
            str(split.amount),
        )
    return table


def balances_table(
    balances: Mapping[str, int],
    names: Mapping[str, str] | None = None,
    symbol: str = "$",
    minor_units: int = 100,
) -> Table:
    """Table of net balances; positive means the user is owed money."""
    names = names or {}
    table = Table(
        title="Net Balances", show_header=True, header_style="bold magenta", min_width=40
    )
    table.add_column("User", style="cyan")
    table.add_column("Balance", justify="right")
    table.add_column("Status", style="dim")

    for user_id, balance in balances.items():
        if balance > 0:
            status = "is owed"
        elif balance < 0:
            status = "owes"
        else:
            status = "settled"
        table.add_row(
            names.get(user_id, user_id), format_money(balance, symbol, minor_units), status
        )
    return table


def transactions_table(
    transactions: list[Transaction],
    names: Mapping[str, str] | None = None,
    symbol: str = "$",
    minor_units: int = 100,
) -> Table:
    """Table of simplified settle-up payments."""
    names = names or {}
    table = Table(
        title=f"Simplified Transactions ({len(transactions)})",
        show_header=True,
        header_style="bold magenta",
        min_width=40,
    )
    table.add_column("From", style="red")
    table.add_column("To", style="green")
    table.add_column("Amount", justify="right")

    for tx in transactions:
        table.add_row(
            names.get(tx.from_user, tx.from_user),
            names.get(tx.to_user, tx.to_user),
            format_money(tx.amount, symbol, minor_units),
        )
    return table
