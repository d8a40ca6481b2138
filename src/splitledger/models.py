"""Pydantic domain models for SplitLedger."""

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictInt

# ============================================================================
# Split Models
# ============================================================================


class SplitType(StrEnum):
    """Supported ways of dividing an expense."""

    EQUAL = "EQUAL"
    EXACT = "EXACT"
    PERCENT = "PERCENT"


class SplitOptions(BaseModel):
    """Tunable validation choices for the split calculator."""

    percent_tolerance: float = 0.01
    percent_rounding: Literal["half_up", "half_even"] = "half_up"
    duplicate_participants: Literal["allow", "reject", "merge"] = "allow"


class SplitEntry(BaseModel):
    """One participant's owed share of an expense, in smallest currency units."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(validation_alias=AliasChoices("user_id", "userId"))
    amount: int = Field(ge=0)


class ExactShare(BaseModel):
    """Requested fixed amount for one participant."""

    user_id: str = Field(validation_alias=AliasChoices("user_id", "userId"))
    amount: StrictInt


class PercentShare(BaseModel):
    """Requested percentage for one participant."""

    user_id: str = Field(validation_alias=AliasChoices("user_id", "userId"))
    percent: float = Field(allow_inf_nan=False)


class EqualSplit(BaseModel):
    """Divide the total evenly; earlier participants absorb the remainder."""

    split_type: Literal[SplitType.EQUAL] = SplitType.EQUAL
    participants: list[str]


class ExactSplit(BaseModel):
    """Each participant owes a stated amount."""

    split_type: Literal[SplitType.EXACT] = SplitType.EXACT
    shares: list[ExactShare]


class PercentSplit(BaseModel):
    """Each participant owes a percentage; the last absorbs rounding drift."""

    split_type: Literal[SplitType.PERCENT] = SplitType.PERCENT
    shares: list[PercentShare]


SplitStrategy = Annotated[
    EqualSplit | ExactSplit | PercentSplit, Field(discriminator="split_type")
]


# ============================================================================
# Balance Models
# ============================================================================


class Transaction(BaseModel):
    """A single payment that moves money from a debtor to a creditor."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_user: str = Field(alias="from")
    to_user: str = Field(alias="to")
    amount: int = Field(gt=0)


class RawBalances(BaseModel):
    """Net balance per user in a group (positive = owed money)."""

    group_id: str
    balances: dict[str, int]


class SimplifiedBalances(BaseModel):
    """Minimal set of transactions that settles a group."""

    group_id: str
    transactions: list[Transaction]
    count: int


# ============================================================================
# Directory Models
# ============================================================================


class User(BaseModel):
    """A person who can join groups and share expenses."""

    id: str
    name: str
    created_at: datetime = Field(default_factory=datetime.now)


class Group(BaseModel):
    """An expense-splitting group. Members keep the order they joined in."""

    id: str
    name: str
    created_by: str
    members: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)

    def is_member(self, user_id: str) -> bool:
        return user_id in self.members


class Expense(BaseModel):
    """A recorded expense together with its computed splits."""

    id: str
    group_id: str
    description: str
    category: str
    total_amount: int
    paid_by: str
    split_type: SplitType
    participants: list[Any]  # raw participant input as submitted
    splits: list[SplitEntry]
    created_at: datetime = Field(default_factory=datetime.now)


class CreateExpenseRequest(BaseModel):
    """Payload for adding an expense to a group.

    ``participants`` is shaped by ``split_type``:

    - EQUAL: ``["user-1", "user-2"]``
    - EXACT: ``[{"user_id": "user-1", "amount": 1500}, ...]``
    - PERCENT: ``[{"user_id": "user-1", "percent": 60}, ...]``
    """

    model_config = ConfigDict(populate_by_name=True)

    description: str
    category: str
    total_amount: StrictInt = Field(
        validation_alias=AliasChoices("total_amount", "totalAmount")
    )
    paid_by: str = Field(validation_alias=AliasChoices("paid_by", "paidBy"))
    split_type: str = Field(validation_alias=AliasChoices("split_type", "splitType"))
    participants: list[Any]


# ============================================================================
# Scenario Models (CLI simulation input)
# ============================================================================


class ScenarioGroup(BaseModel):
    """A group in a scenario file; members are user names."""

    name: str
    members: list[str]


class ScenarioExpense(BaseModel):
    """An expense in a scenario file; users are referenced by name."""

    group: str
    description: str
    category: str = "general"
    total_amount: StrictInt
    paid_by: str
    split_type: str
    participants: list[Any]


class ScenarioSettlement(BaseModel):
    """A direct payment in a scenario file."""

    model_config = ConfigDict(populate_by_name=True)

    group: str
    from_user: str = Field(alias="from")
    to_user: str = Field(alias="to")
    amount: StrictInt


class Scenario(BaseModel):
    """A full scenario: users, groups, then expenses and settlements in order."""

    users: list[str]
    groups: list[ScenarioGroup]
    expenses: list[ScenarioExpense] = Field(default_factory=list)
    settlements: list[ScenarioSettlement] = Field(default_factory=list)
