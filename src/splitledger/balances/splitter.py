"""Split calculator: turns an expense total and participant input into split entries.

All amounts are integers in the smallest currency unit. Every successful split
sums exactly to the expense total; anything else is rejected before the
ledger is touched.
"""

import logging
from collections import Counter
from decimal import ROUND_HALF_EVEN, ROUND_HALF_UP, Decimal
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import (
    InvalidSplitError,
    SplitConservationError,
    UnknownSplitTypeError,
)
from ..models import (
    EqualSplit,
    ExactSplit,
    PercentSplit,
    SplitEntry,
    SplitOptions,
    SplitStrategy,
    SplitType,
)

logger = logging.getLogger(__name__)

_strategy_adapter: TypeAdapter[EqualSplit | ExactSplit | PercentSplit] = TypeAdapter(
    SplitStrategy
)

_ROUNDING_MODES = {
    "half_up": ROUND_HALF_UP,
    "half_even": ROUND_HALF_EVEN,
}

_HUNDRED = Decimal("100")


def parse_split_type(split_type: SplitType | str) -> SplitType:
    """
    Resolve a split type tag.

    Raises:
        UnknownSplitTypeError: If the tag is not EQUAL, EXACT or PERCENT
    """
    try:
        return SplitType(split_type)
    except ValueError:
        raise UnknownSplitTypeError(split_type) from None


def build_strategy(
    split_type: SplitType | str, participants: Any
) -> EqualSplit | ExactSplit | PercentSplit:
    """
    Build a validated strategy variant from a raw request payload.

    Args:
        split_type: EQUAL, EXACT or PERCENT
        participants: List of user IDs (EQUAL) or list of
            ``{user_id, amount}`` / ``{user_id, percent}`` mappings

    Returns:
        The matching strategy variant

    Raises:
        UnknownSplitTypeError: For an unsupported tag
        InvalidSplitError: When the payload doesn't fit the split type
    """
    tag = parse_split_type(split_type)
    payload_key = "participants" if tag is SplitType.EQUAL else "shares"

    try:
        return _strategy_adapter.validate_python(
            {"split_type": tag, payload_key: participants}
        )
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"][1:])
        raise InvalidSplitError(
            f"Invalid participants for {tag} split"
            + (f" at {location}" if location else "")
            + f": {first['msg']}"
        ) from e


def compute_split(
    strategy: EqualSplit | ExactSplit | PercentSplit | SplitType | str,
    total_amount: int,
    participant_input: Any = None,
    *,
    options: SplitOptions | None = None,
) -> list[SplitEntry]:
    """
    Compute the per-participant breakdown of an expense.

    Accepts either a strategy variant or a split type tag plus raw
    participant input. Never partially succeeds.

    Args:
        strategy: Strategy variant, or a split type tag
        total_amount: Expense total in smallest currency units (positive)
        participant_input: Raw participants, required when ``strategy`` is a tag
        options: Validation choices (defaults to ``SplitOptions()``)

    Returns:
        Split entries summing exactly to ``total_amount``
    """
    options = options or SplitOptions()

    if isinstance(strategy, (SplitType, str)):
        strategy = build_strategy(strategy, participant_input)

    if isinstance(total_amount, bool) or not isinstance(total_amount, int):
        raise InvalidSplitError(
            f"Total amount must be an integer number of minor units, got {total_amount!r}"
        )
    if total_amount <= 0:
        raise InvalidSplitError(f"Total amount must be positive, got {total_amount}")

    match strategy:
        case EqualSplit(participants=participants):
            splits = equal_split(total_amount, participants, options)
        case ExactSplit(shares=shares):
            splits = exact_split(total_amount, [(s.user_id, s.amount) for s in shares])
        case PercentSplit(shares=shares):
            splits = percent_split(
                total_amount, [(s.user_id, s.percent) for s in shares], options
            )
        case _:
            raise UnknownSplitTypeError(type(strategy).__name__)

    logger.debug(
        f"Computed {strategy.split_type} split of {total_amount} "
        f"across {len(splits)} participants"
    )
    return splits


def equal_split(
    total_amount: int, participants: list[str], options: SplitOptions | None = None
) -> list[SplitEntry]:
    """
    Divide the total evenly.

    The first ``total % n`` participants (in the order given) receive one
    extra unit, so the entries always sum to the total and differ by at most 1.
    """
    if not participants:
        raise InvalidSplitError("Participants list cannot be empty")

    participants = _apply_duplicate_policy(participants, options or SplitOptions())

    base_amount, remainder = divmod(total_amount, len(participants))
    return [
        SplitEntry(user_id=user_id, amount=base_amount + (1 if index < remainder else 0))
        for index, user_id in enumerate(participants)
    ]


def exact_split(total_amount: int, shares: list[tuple[str, int]]) -> list[SplitEntry]:
    """Use the requested amounts verbatim once they sum exactly to the total."""
    if not shares:
        raise InvalidSplitError("Shares list cannot be empty")

    share_sum = sum(amount for _, amount in shares)
    if share_sum != total_amount:
        raise SplitConservationError(
            f"Sum of shares ({share_sum}) must equal total amount ({total_amount})"
        )

    for user_id, amount in shares:
        if amount < 0:
            raise InvalidSplitError(
                f"Share amounts must be non-negative (user {user_id}: {amount})"
            )

    return [SplitEntry(user_id=user_id, amount=amount) for user_id, amount in shares]


def percent_split(
    total_amount: int,
    shares: list[tuple[str, float]],
    options: SplitOptions | None = None,
) -> list[SplitEntry]:
    """
    Allocate the total by percentage.

    Every participant but the last gets ``round(total * percent / 100)``
    under the configured rounding rule; the last participant gets whatever
    is left, so accepted entries always sum to the total.

    Raises:
        SplitConservationError: If the percentages don't sum to 100 within
            the tolerance, or if rounding the earlier shares up leaves the
            last participant a negative amount (e.g. ten 10% shares of 5)
        InvalidSplitError: For an empty list or a percent outside 0..100
    """
    options = options or SplitOptions()

    if not shares:
        raise InvalidSplitError("Shares list cannot be empty")

    percents = [(user_id, Decimal(str(percent))) for user_id, percent in shares]

    percent_sum = sum((percent for _, percent in percents), Decimal("0"))
    if abs(percent_sum - _HUNDRED) > Decimal(str(options.percent_tolerance)):
        raise SplitConservationError(
            f"Sum of percentages ({float(percent_sum):g}) must equal 100"
        )

    for user_id, percent in percents:
        if percent < 0 or percent > _HUNDRED:
            raise InvalidSplitError(
                f"Percentages must be between 0 and 100 (user {user_id}: {percent})"
            )

    rounding = _ROUNDING_MODES[options.percent_rounding]
    total = Decimal(total_amount)

    amounts: list[int] = []
    for _, percent in percents[:-1]:
        raw = total * percent / _HUNDRED
        amounts.append(int(raw.quantize(Decimal("1"), rounding=rounding)))

    last_amount = total_amount - sum(amounts)
    if last_amount < 0:
        raise SplitConservationError(
            f"Rounded percentages over-allocate the total ({total_amount}); "
            f"last participant would owe {last_amount}"
        )
    amounts.append(last_amount)

    return [
        SplitEntry(user_id=user_id, amount=amount)
        for (user_id, _), amount in zip(percents, amounts, strict=True)
    ]


def _apply_duplicate_policy(participants: list[str], options: SplitOptions) -> list[str]:
    """Handle repeated participant IDs in an EQUAL split."""
    if len(set(participants)) == len(participants):
        return participants

    match options.duplicate_participants:
        case "reject":
            duplicates = [p for p, count in Counter(participants).items() if count > 1]
            raise InvalidSplitError(
                f"Duplicate participants in EQUAL split: {', '.join(duplicates)}"
            )
        case "merge":
            merged = list(dict.fromkeys(participants))
            logger.debug(f"Merged duplicate participants: {len(participants)} -> {len(merged)}")
            return merged
        case _:
            # "allow": each occurrence counts as its own share
            return participants
