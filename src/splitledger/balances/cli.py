"""CLI commands for splitting expenses and simplifying balances."""

import logging
import sys
from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from ..config import load_settings
from ..exceptions import SplitLedgerError, ValidationError
from ..models import Scenario, SplitType
from ..store import ExpenseStore
from .service import ExpenseService
from .simplifier import settle_all, simplify
from .splitter import compute_split, parse_split_type
from .ui import balances_table, splits_table, transactions_table

app = typer.Typer(
    name="balances",
    help="Split expenses and work out who owes whom",
)

console = Console()


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def _parse_pairs(entries: list[str], value_type: type) -> list[tuple[str, Any]]:
    """Parse ``name=value`` arguments."""
    pairs = []
    for entry in entries:
        name, sep, raw_value = entry.partition("=")
        if not sep or not name:
            raise typer.BadParameter(f"Expected NAME=VALUE, got '{entry}'")
        try:
            pairs.append((name, value_type(raw_value)))
        except ValueError:
            raise typer.BadParameter(
                f"Invalid value for '{name}': {raw_value!r}"
            ) from None
    return pairs


def _fail(error: Exception, verbose: bool):
    console.print(f"\n[bold red]Error:[/bold red] {error}")
    if verbose:
        raise error
    sys.exit(1)


@app.command()
def split(
    split_type: str = typer.Argument(..., help="EQUAL, EXACT or PERCENT"),
    total: int = typer.Argument(..., help="Total amount in minor units (e.g. cents)"),
    entries: list[str] = typer.Argument(
        ..., help="Participant names (EQUAL) or NAME=AMOUNT / NAME=PERCENT pairs"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Compute how an expense is divided among participants.

    Examples:

        splitledger balances split equal 1000 alice bob carol

        splitledger balances split percent 1000 alice=50 bob=30 carol=20
    """
    setup_logging(verbose)

    try:
        settings = load_settings()
        tag = parse_split_type(split_type.upper())

        participants: list[Any]
        if tag is SplitType.EQUAL:
            participants = list(entries)
        elif tag is SplitType.EXACT:
            participants = [
                {"user_id": name, "amount": amount}
                for name, amount in _parse_pairs(entries, int)
            ]
        else:
            participants = [
                {"user_id": name, "percent": percent}
                for name, percent in _parse_pairs(entries, float)
            ]

        splits = compute_split(tag, total, participants, options=settings.split_options())

        console.print(
            splits_table(splits, symbol=settings.currency_symbol, minor_units=settings.minor_units)
        )
        console.print(f"[dim]Total: {sum(s.amount for s in splits)} ({tag})[/dim]")

    except SplitLedgerError as e:
        _fail(e, verbose)


@app.command(name="simplify")
def simplify_command(
    entries: list[str] = typer.Argument(..., help="NAME=BALANCE pairs (balances must sum to 0)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Reduce net balances to the fewest settle-up payments.

    Example:

        splitledger balances simplify alice=3000 bob=-200 carol=-2800
    """
    setup_logging(verbose)

    try:
        settings = load_settings()
        balances = dict(_parse_pairs(entries, int))
        transactions = simplify(balances)

        console.print(
            transactions_table(
                transactions,
                symbol=settings.currency_symbol,
                minor_units=settings.minor_units,
            )
        )

        remaining = settle_all(balances, transactions)
        if any(remaining.values()):
            console.print("[bold red]Transactions do not settle all balances[/bold red]")
            sys.exit(1)

    except SplitLedgerError as e:
        _fail(e, verbose)


@app.command()
def simulate(
    scenario_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Scenario JSON"),
    raw_only: bool = typer.Option(
        False, "--raw-only", help="Show net balances without simplification"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Replay a scenario file and show the resulting balances.

    The file lists users by name, groups with their members, then expenses
    and settlements that refer to users and groups by name.
    """
    setup_logging(verbose)

    try:
        settings = load_settings()
        scenario = Scenario.model_validate_json(scenario_file.read_text())

        service = ExpenseService(settings, ExpenseStore())
        group_ids = load_scenario(service, scenario)
        names = {user.id: user.name for user in service.list_users()}

        for group_name, group_id in group_ids.items():
            console.print(f"\n[bold blue]{group_name}[/bold blue]")

            raw = service.get_raw_balances(group_id)
            console.print(
                balances_table(
                    raw.balances,
                    names,
                    symbol=settings.currency_symbol,
                    minor_units=settings.minor_units,
                )
            )

            if not raw_only:
                simplified = service.get_simplified_balances(group_id)
                console.print(
                    transactions_table(
                        simplified.transactions,
                        names,
                        symbol=settings.currency_symbol,
                        minor_units=settings.minor_units,
                    )
                )

    except SplitLedgerError as e:
        _fail(e, verbose)
    except ValueError as e:
        # malformed scenario JSON
        _fail(e, verbose)


def load_scenario(service: ExpenseService, scenario: Scenario) -> dict[str, str]:
    """
    Create users, groups, expenses and settlements from a scenario.

    Returns:
        Mapping of group name to group ID, in scenario order
    """
    user_ids: dict[str, str] = {}
    for name in scenario.users:
        user_ids[name] = service.create_user(name).id

    def resolve(name: str) -> str:
        try:
            return user_ids[name]
        except KeyError:
            raise ValidationError(f"Unknown user in scenario: {name}") from None

    group_ids: dict[str, str] = {}
    for scenario_group in scenario.groups:
        if not scenario_group.members:
            raise ValidationError(f"Group '{scenario_group.name}' has no members")
        creator, *others = scenario_group.members
        group = service.create_group(scenario_group.name, resolve(creator))
        for member in others:
            service.add_member(group.id, resolve(member))
        group_ids[scenario_group.name] = group.id

    def resolve_group(name: str) -> str:
        try:
            return group_ids[name]
        except KeyError:
            raise ValidationError(f"Unknown group in scenario: {name}") from None

    for expense in scenario.expenses:
        participants: list[Any] = []
        for participant in expense.participants:
            if isinstance(participant, dict):
                name = participant.get("user_id", participant.get("userId", ""))
                participant = {**participant, "user_id": resolve(name)}
                participant.pop("userId", None)
            else:
                participant = resolve(participant)
            participants.append(participant)

        service.add_expense(
            resolve_group(expense.group),
            {
                "description": expense.description,
                "category": expense.category,
                "total_amount": expense.total_amount,
                "paid_by": resolve(expense.paid_by),
                "split_type": expense.split_type,
                "participants": participants,
            },
        )

    for settlement in scenario.settlements:
        service.settle_up(
            resolve_group(settlement.group),
            resolve(settlement.from_user),
            resolve(settlement.to_user),
            settlement.amount,
        )

    return group_ids
