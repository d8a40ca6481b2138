"""Tests for the balance ledger."""

import threading

import pytest

from splitledger.balances.ledger import BalanceLedger
from splitledger.balances.splitter import compute_split
from splitledger.exceptions import InvariantViolation, ValidationError
from splitledger.models import SplitEntry


@pytest.fixture
def ledger():
    """Create an empty ledger."""
    return BalanceLedger()


class TestApplyExpense:
    """Tests for apply_expense."""

    def test_equal_split_scenario(self, ledger):
        """Alice pays 6000 split equally among Alice, Bob and Charlie."""
        splits = compute_split("EQUAL", 6000, ["alice", "bob", "charlie"])

        ledger.apply_expense("trip", "alice", 6000, splits)

        assert ledger.get_balances("trip") == {"alice": 4000, "bob": -2000, "charlie": -2000}

    def test_exact_split_scenario(self, ledger):
        """Bob pays 3000 split exactly; his own share nets out."""
        splits = compute_split(
            "EXACT",
            3000,
            [
                {"user_id": "alice", "amount": 1000},
                {"user_id": "bob", "amount": 1200},
                {"user_id": "charlie", "amount": 800},
            ],
        )

        ledger.apply_expense("trip", "bob", 3000, splits)

        balances = ledger.get_balances("trip")
        assert balances["bob"] == 1800
        assert balances["alice"] == -1000
        assert balances["charlie"] == -800

    def test_payer_not_participating(self, ledger):
        """A payer outside the split is credited the full total."""
        ledger.apply_expense("g", "alice", 1000, [SplitEntry(user_id="bob", amount=1000)])

        assert ledger.get_balances("g") == {"alice": 1000, "bob": -1000}

    def test_mismatched_splits_rejected_without_mutation(self, ledger):
        """Splits that don't sum to the total never reach the balances."""
        ledger.apply_expense("g", "alice", 100, [SplitEntry(user_id="bob", amount=100)])

        with pytest.raises(InvariantViolation):
            ledger.apply_expense("g", "alice", 1000, [SplitEntry(user_id="bob", amount=999)])

        assert ledger.get_balances("g") == {"alice": 100, "bob": -100}

    def test_conservation_across_many_operations(self, ledger):
        """The group total stays zero after any mix of expenses and settlements."""
        ledger.apply_expense("g", "a", 1001, compute_split("EQUAL", 1001, ["a", "b", "c"]))
        ledger.apply_expense(
            "g",
            "b",
            777,
            compute_split(
                "PERCENT",
                777,
                [
                    {"user_id": "a", "percent": 33.33},
                    {"user_id": "c", "percent": 33.33},
                    {"user_id": "d", "percent": 33.34},
                ],
            ),
        )
        ledger.apply_settlement("g", "c", "a", 250)
        ledger.apply_expense(
            "g",
            "d",
            50,
            compute_split("EXACT", 50, [{"user_id": "d", "amount": 20}, {"user_id": "b", "amount": 30}]),
        )

        assert ledger.total("g") == 0
        assert sum(ledger.get_balances("g").values()) == 0


class TestApplySettlement:
    """Tests for apply_settlement."""

    def test_moves_balance_between_users(self, ledger):
        """Paying off a debt raises the payer and lowers the receiver."""
        ledger.apply_expense("g", "alice", 2000, compute_split("EQUAL", 2000, ["alice", "bob"]))

        ledger.apply_settlement("g", "bob", "alice", 600)

        assert ledger.get_balances("g") == {"alice": 400, "bob": -400}

    def test_full_settlement_zeroes_balances(self, ledger):
        ledger.apply_expense("g", "alice", 2000, compute_split("EQUAL", 2000, ["alice", "bob"]))

        ledger.apply_settlement("g", "bob", "alice", 1000)

        assert ledger.get_balances("g") == {"alice": 0, "bob": 0}

    @pytest.mark.parametrize("amount", [0, -5])
    def test_non_positive_amount_rejected(self, ledger, amount):
        with pytest.raises(ValidationError, match="must be positive"):
            ledger.apply_settlement("g", "bob", "alice", amount)

        assert ledger.get_balances("g") == {}

    def test_self_settlement_rejected(self, ledger):
        with pytest.raises(ValidationError, match="different users"):
            ledger.apply_settlement("g", "bob", "bob", 100)


class TestQueriesAndReset:
    """Tests for snapshots, group isolation and reset."""

    def test_unknown_group_is_empty(self, ledger):
        assert ledger.get_balances("nope") == {}
        assert ledger.total("nope") == 0

    def test_snapshot_is_a_copy(self, ledger):
        """Mutating a snapshot doesn't touch the ledger."""
        ledger.apply_expense("g", "a", 10, [SplitEntry(user_id="b", amount=10)])

        snapshot = ledger.get_balances("g")
        snapshot["a"] = 999_999

        assert ledger.get_balances("g")["a"] == 10

    def test_repeated_reads_are_identical(self, ledger):
        ledger.apply_expense("g", "a", 10, [SplitEntry(user_id="b", amount=10)])

        assert ledger.get_balances("g") == ledger.get_balances("g")

    def test_groups_are_isolated(self, ledger):
        ledger.apply_expense("g1", "a", 10, [SplitEntry(user_id="b", amount=10)])
        ledger.apply_expense("g2", "b", 30, [SplitEntry(user_id="a", amount=30)])

        assert ledger.get_balances("g1") == {"a": 10, "b": -10}
        assert ledger.get_balances("g2") == {"b": 30, "a": -30}
        assert ledger.groups() == ["g1", "g2"]

    def test_reset_group(self, ledger):
        ledger.apply_expense("g1", "a", 10, [SplitEntry(user_id="b", amount=10)])
        ledger.apply_expense("g2", "a", 10, [SplitEntry(user_id="b", amount=10)])

        ledger.reset_group("g1")

        assert ledger.groups() == ["g2"]

    def test_reset_clears_everything(self, ledger):
        ledger.apply_expense("g1", "a", 10, [SplitEntry(user_id="b", amount=10)])
        ledger.apply_expense("g2", "a", 10, [SplitEntry(user_id="b", amount=10)])

        ledger.reset()

        assert ledger.groups() == []
        assert ledger.get_balances("g1") == {}


class TestConcurrency:
    """Readers never observe a partially applied expense."""

    def test_concurrent_writes_and_reads_preserve_conservation(self, ledger):
        users = ["a", "b", "c", "d", "e"]
        violations: list[int] = []
        stop = threading.Event()

        def writer(payer: str):
            receiver = users[(users.index(payer) + 1) % len(users)]
            for i in range(200):
                total = 100 + i
                ledger.apply_expense("g", payer, total, compute_split("EQUAL", total, users))
                ledger.apply_settlement("g", payer, receiver, 7)

        def reader():
            while not stop.is_set():
                snapshot = ledger.get_balances("g")
                if sum(snapshot.values()) != 0:
                    violations.append(sum(snapshot.values()))

        readers = [threading.Thread(target=reader) for _ in range(2)]
        writers = [threading.Thread(target=writer, args=(payer,)) for payer in users]

        for thread in readers + writers:
            thread.start()
        for thread in writers:
            thread.join()
        stop.set()
        for thread in readers:
            thread.join()

        assert violations == []
        assert ledger.total("g") == 0
