"""CLI for SplitLedger."""

import typer

from .balances.cli import app as balances_app
from .mcp_server import run_server

app = typer.Typer(
    name="splitledger",
    help="Shared expense tracking with debt simplification",
)

app.add_typer(balances_app, name="balances", help="Split expenses and simplify debts")


@app.command()
def mcp():
    """Start the MCP server exposing groups, expenses and balances as tools."""
    run_server()


if __name__ == "__main__":
    app()
