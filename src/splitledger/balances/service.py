"""Service layer that composes the directory, split calculator, ledger and simplifier.

Every check runs before the ledger is touched, so a rejected request never
leaves partial state behind.
"""

import logging
import uuid
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..config import Settings
from ..exceptions import NotFoundError, ValidationError
from ..models import (
    CreateExpenseRequest,
    EqualSplit,
    ExactSplit,
    Expense,
    Group,
    PercentSplit,
    RawBalances,
    SimplifiedBalances,
    User,
)
from ..store import ExpenseStore
from .simplifier import simplify
from .splitter import build_strategy, compute_split, parse_split_type

logger = logging.getLogger(__name__)


class ExpenseService:
    """Service for managing groups, recording expenses and querying balances."""

    def __init__(self, settings: Settings, store: ExpenseStore):
        """Initialize the expense service."""
        self.settings = settings
        self.store = store

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def create_user(self, name: Any) -> User:
        """Create a user with a fresh ID."""
        name = _require_text(name, "Name")
        user = User(id=str(uuid.uuid4()), name=name)
        self.store.save_user(user)
        logger.info(f"Created user {user.id} ({user.name})")
        return user

    def get_user(self, user_id: str) -> User:
        user = self.store.get_user(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    def list_users(self) -> list[User]:
        return self.store.list_users()

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def create_group(self, name: Any, created_by: str) -> Group:
        """Create a group; the creator becomes its first member."""
        name = _require_text(name, "Group name")
        if not created_by or self.store.get_user(created_by) is None:
            raise ValidationError("Valid created_by user ID is required")

        group = Group(
            id=str(uuid.uuid4()),
            name=name,
            created_by=created_by,
            members=[created_by],
        )
        self.store.save_group(group)
        logger.info(f"Created group {group.id} ({group.name})")
        return group

    def get_group(self, group_id: str) -> Group:
        group = self.store.get_group(group_id)
        if group is None:
            raise NotFoundError("Group", group_id)
        return group

    def list_groups(self) -> list[Group]:
        return self.store.list_groups()

    def add_member(self, group_id: str, user_id: str) -> Group:
        """Add an existing user to a group."""
        group = self.get_group(group_id)

        if not user_id or self.store.get_user(user_id) is None:
            raise ValidationError("Valid user ID is required")
        if group.is_member(user_id):
            raise ValidationError("User is already a member of this group")

        group = self.store.add_member(group_id, user_id)
        logger.info(f"Added user {user_id} to group {group_id}")
        return group

    # ------------------------------------------------------------------
    # Expenses and settlements
    # ------------------------------------------------------------------

    def add_expense(
        self, group_id: str, request: CreateExpenseRequest | dict[str, Any]
    ) -> Expense:
        """
        Validate an expense, compute its splits and apply it to the ledger.

        Args:
            group_id: Group the expense belongs to
            request: Expense payload (model or raw mapping)

        Returns:
            The recorded expense, including computed splits

        Raises:
            NotFoundError: If the group doesn't exist
            ValidationError: For bad fields or non-member users
            UnknownSplitTypeError: For an unsupported split type
            InvalidSplitError: If the split can't be computed
        """
        group = self.get_group(group_id)

        if not isinstance(request, CreateExpenseRequest):
            try:
                request = CreateExpenseRequest.model_validate(request)
            except PydanticValidationError as e:
                first = e.errors()[0]
                field = ".".join(str(part) for part in first["loc"])
                raise ValidationError(f"Invalid expense field '{field}': {first['msg']}") from e

        description = _require_text(request.description, "Description")
        category = _require_text(request.category, "Category")

        if request.total_amount <= 0:
            raise ValidationError("Total amount must be a positive number")

        if not request.paid_by or self.store.get_user(request.paid_by) is None:
            raise ValidationError("Valid paid_by user ID is required")
        if not group.is_member(request.paid_by):
            raise ValidationError("Payer must be a member of the group")

        split_type = parse_split_type(request.split_type)

        if not request.participants:
            raise ValidationError("Participants list is required")

        strategy = build_strategy(split_type, request.participants)

        for user_id in _participant_ids(strategy):
            if not group.is_member(user_id):
                raise ValidationError(f"User {user_id} is not a member of this group")

        splits = compute_split(
            strategy, request.total_amount, options=self.settings.split_options()
        )

        expense = Expense(
            id=str(uuid.uuid4()),
            group_id=group_id,
            description=description,
            category=category,
            total_amount=request.total_amount,
            paid_by=request.paid_by,
            split_type=split_type,
            participants=request.participants,
            splits=splits,
        )

        self.store.ledger.apply_expense(group_id, request.paid_by, request.total_amount, splits)
        self.store.save_expense(expense)

        logger.info(
            f"Recorded {split_type} expense {expense.id} in group {group_id} "
            f"({description}, {request.total_amount})"
        )
        return expense

    def list_expenses(self, group_id: str) -> list[Expense]:
        """Expenses of a group, most recent first."""
        self.get_group(group_id)
        return self.store.get_expenses_for_group(group_id)

    def settle_up(self, group_id: str, from_user: str, to_user: str, amount: Any) -> RawBalances:
        """
        Record a direct payment between two members and return new balances.

        Raises:
            NotFoundError: If the group doesn't exist
            ValidationError: For non-members, self-payments or a bad amount
        """
        group = self.get_group(group_id)

        for user_id in (from_user, to_user):
            if not group.is_member(user_id):
                raise ValidationError(f"User {user_id} is not a member of this group")
        if from_user == to_user:
            raise ValidationError("Settlement payer and receiver must be different users")
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationError("Settlement amount must be a positive integer")

        self.store.ledger.apply_settlement(group_id, from_user, to_user, amount)
        return self.get_raw_balances(group_id)

    # ------------------------------------------------------------------
    # Balance queries
    # ------------------------------------------------------------------

    def get_raw_balances(self, group_id: str) -> RawBalances:
        """Net balance per user (positive = should receive, negative = owes)."""
        self.get_group(group_id)
        return RawBalances(group_id=group_id, balances=self.store.ledger.get_balances(group_id))

    def get_simplified_balances(self, group_id: str) -> SimplifiedBalances:
        """Minimal list of payments that would settle the group."""
        self.get_group(group_id)
        transactions = simplify(self.store.ledger.get_balances(group_id))
        return SimplifiedBalances(
            group_id=group_id, transactions=transactions, count=len(transactions)
        )

    def reset(self) -> None:
        """Clear all users, groups, expenses and balances."""
        self.store.reset()
        logger.info("All data has been reset")


def _require_text(value: Any, field_name: str) -> str:
    """Return a stripped, non-empty string or raise ValidationError."""
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required")
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} must be a non-empty string")
    return value.strip()


def _participant_ids(strategy: EqualSplit | ExactSplit | PercentSplit) -> list[str]:
    match strategy:
        case EqualSplit(participants=participants):
            return list(participants)
        case ExactSplit(shares=shares) | PercentSplit(shares=shares):
            return [share.user_id for share in shares]
    return []
