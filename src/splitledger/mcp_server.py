"""MCP server for SplitLedger: exposes groups, expenses and balances as tools."""

import logging
from dataclasses import dataclass
from typing import Any

from mcp.server.fastmcp import FastMCP
from pydantic import StrictInt

from .balances.service import ExpenseService
from .config import load_settings
from .exceptions import ErrorDetail, ErrorKind, SplitLedgerError
from .store import ExpenseStore

logger = logging.getLogger(__name__)

mcp_app = FastMCP("splitledger")

# ---------------------------------------------------------------------------
# Session state: one MCP server process = one in-memory ledger
# ---------------------------------------------------------------------------

WORKFLOW_INSTRUCTIONS = """\
You are helping a group track shared expenses. Follow this workflow:

1. USERS: Call create_user for each person. Keep the returned IDs.

2. GROUP: Call create_group with a name and the creator's user ID, then
   add_member for everyone else.

3. EXPENSES: Call add_expense for each expense. Amounts are integers in the
   smallest currency unit (cents). split_type is EQUAL, EXACT or PERCENT:
   - EQUAL: participants = ["<user_id>", ...]
   - EXACT: participants = [{"user_id": "<id>", "amount": 1500}, ...]
   - PERCENT: participants = [{"user_id": "<id>", "percent": 60}, ...]

4. BALANCES: Call get_raw_balances to see net positions, and
   get_simplified_balances for the fewest payments that settle the group.

5. SETTLE: When someone pays another member directly, call settle_up.

Positive balance = is owed money, negative balance = owes money.\
"""


@dataclass
class SessionState:
    """Holds the service between MCP tool calls."""

    service: ExpenseService | None = None


_state = SessionState()


def _ensure_service() -> ExpenseService:
    """Lazily initialize the ExpenseService (loads .env config)."""
    if _state.service is None:
        _state.service = ExpenseService(load_settings(), ExpenseStore())
    return _state.service


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _error(error: Exception, action: str) -> dict[str, Any]:
    """Map an exception to the error payload returned by every tool."""
    if isinstance(error, SplitLedgerError):
        detail = error.to_detail()
    else:
        logger.exception(f"Unexpected error while trying to {action}")
        detail = ErrorDetail(
            kind=ErrorKind.INTERNAL,
            message=f"Failed to {action}: {error}",
            status_code=500,
        )
    return {"error": detail.model_dump(mode="json")}


# ---------------------------------------------------------------------------
# MCP Tools
# ---------------------------------------------------------------------------


@mcp_app.tool()
def create_user(name: str) -> dict[str, Any]:
    """Create a user.

    Args:
        name: Display name of the user.
    """
    try:
        return _ensure_service().create_user(name).model_dump(mode="json")
    except Exception as e:
        return _error(e, "create user")


@mcp_app.tool()
def list_users() -> dict[str, Any]:
    """List all users."""
    try:
        users = _ensure_service().list_users()
        return {"users": [user.model_dump(mode="json") for user in users]}
    except Exception as e:
        return _error(e, "list users")


@mcp_app.tool()
def create_group(name: str, created_by: str) -> dict[str, Any]:
    """Create a group. The creator automatically becomes a member.

    Args:
        name: Group name, e.g. "Trip to Goa".
        created_by: ID of the user creating the group.
    """
    try:
        return _ensure_service().create_group(name, created_by).model_dump(mode="json")
    except Exception as e:
        return _error(e, "create group")


@mcp_app.tool()
def add_member(group_id: str, user_id: str) -> dict[str, Any]:
    """Add an existing user to a group.

    Args:
        group_id: ID of the group.
        user_id: ID of the user to add.
    """
    try:
        return _ensure_service().add_member(group_id, user_id).model_dump(mode="json")
    except Exception as e:
        return _error(e, "add member")


@mcp_app.tool()
def get_group(group_id: str) -> dict[str, Any]:
    """Show a group and its members."""
    try:
        return _ensure_service().get_group(group_id).model_dump(mode="json")
    except Exception as e:
        return _error(e, "get group")


@mcp_app.tool()
def list_groups() -> dict[str, Any]:
    """List all groups."""
    try:
        groups = _ensure_service().list_groups()
        return {"groups": [group.model_dump(mode="json") for group in groups]}
    except Exception as e:
        return _error(e, "list groups")


@mcp_app.tool()
def add_expense(
    group_id: str,
    description: str,
    category: str,
    total_amount: StrictInt,
    paid_by: str,
    split_type: str,
    participants: list[Any],
) -> dict[str, Any]:
    """Add an expense to a group and update balances.

    Args:
        group_id: ID of the group.
        description: What the expense was for.
        category: Free-form category, e.g. "food".
        total_amount: Positive total in the smallest currency unit.
        paid_by: ID of the member who paid.
        split_type: EQUAL, EXACT or PERCENT.
        participants: User IDs (EQUAL), or {user_id, amount} (EXACT) /
            {user_id, percent} (PERCENT) objects.
    """
    try:
        expense = _ensure_service().add_expense(
            group_id,
            {
                "description": description,
                "category": category,
                "total_amount": total_amount,
                "paid_by": paid_by,
                "split_type": split_type,
                "participants": participants,
            },
        )
        return expense.model_dump(mode="json")
    except Exception as e:
        return _error(e, "add expense")


@mcp_app.tool()
def list_expenses(group_id: str) -> dict[str, Any]:
    """List a group's expenses, most recent first."""
    try:
        expenses = _ensure_service().list_expenses(group_id)
        return {
            "group_id": group_id,
            "expenses": [expense.model_dump(mode="json") for expense in expenses],
        }
    except Exception as e:
        return _error(e, "list expenses")


@mcp_app.tool()
def settle_up(
    group_id: str, from_user: str, to_user: str, amount: StrictInt
) -> dict[str, Any]:
    """Record a direct payment between two members.

    Args:
        group_id: ID of the group.
        from_user: Member who paid.
        to_user: Member who received the money.
        amount: Positive amount in the smallest currency unit.
    """
    try:
        balances = _ensure_service().settle_up(group_id, from_user, to_user, amount)
        return balances.model_dump(mode="json")
    except Exception as e:
        return _error(e, "settle up")


@mcp_app.tool()
def get_raw_balances(group_id: str) -> dict[str, Any]:
    """Net balance per user. Positive = is owed money, negative = owes money."""
    try:
        return _ensure_service().get_raw_balances(group_id).model_dump(mode="json")
    except Exception as e:
        return _error(e, "get balances")


@mcp_app.tool()
def get_simplified_balances(group_id: str) -> dict[str, Any]:
    """Fewest payments (from, to, amount) that settle every balance in the group."""
    try:
        simplified = _ensure_service().get_simplified_balances(group_id)
        return simplified.model_dump(mode="json", by_alias=True)
    except Exception as e:
        return _error(e, "simplify balances")


@mcp_app.tool()
def reset() -> dict[str, Any]:
    """Clear all users, groups, expenses and balances."""
    try:
        _ensure_service().reset()
        return {"message": "All data has been reset successfully", "success": True}
    except Exception as e:
        return _error(e, "reset")


# ---------------------------------------------------------------------------
# MCP Prompt
# ---------------------------------------------------------------------------


@mcp_app.prompt()
def expense_workflow() -> str:
    """Instructions for tracking a group's shared expenses."""
    return WORKFLOW_INSTRUCTIONS


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def run_server():
    """Start the MCP server (stdio transport)."""
    mcp_app.run(transport="stdio")
