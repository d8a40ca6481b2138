"""Tests for debt simplification."""

import random

import pytest

from splitledger.balances.simplifier import settle_all, simplify
from splitledger.exceptions import InvariantViolation
from splitledger.models import Transaction


def as_tuples(transactions):
    return [(tx.from_user, tx.to_user, tx.amount) for tx in transactions]


def random_balances(rng: random.Random, size: int) -> dict[str, int]:
    """Random balances that sum to zero."""
    balances = {f"user-{i}": rng.randint(-5000, 5000) for i in range(size - 1)}
    balances[f"user-{size - 1}"] = -sum(balances.values())
    return balances


class TestSimplifyScenarios:
    """Hand-worked simplification cases."""

    def test_one_creditor_two_debtors(self):
        """Largest debtor pays first."""
        result = simplify({"A": 3000, "B": -200, "C": -2800})

        assert as_tuples(result) == [("C", "A", 2800), ("B", "A", 200)]
        assert len(result) == 2

    def test_equal_split_scenario(self):
        """Two debtors of equal size pay in iteration order."""
        result = simplify({"alice": 4000, "bob": -2000, "charlie": -2000})

        assert as_tuples(result) == [("bob", "alice", 2000), ("charlie", "alice", 2000)]

    def test_chain_collapses(self):
        """A owes B, B owes C collapses to A paying C directly."""
        result = simplify({"A": -500, "B": 0, "C": 500})

        assert as_tuples(result) == [("A", "C", 500)]

    def test_partial_matches(self):
        """A creditor can be paid by several debtors and vice versa."""
        result = simplify({"A": 5000, "B": 1000, "C": -4000, "D": -2000})

        assert as_tuples(result) == [
            ("C", "A", 4000),
            ("D", "A", 1000),
            ("D", "B", 1000),
        ]

    def test_ties_keep_iteration_order(self):
        """Equal magnitudes are matched in the order they were inserted."""
        result = simplify({"A": 100, "B": 100, "C": -100, "D": -100})

        assert as_tuples(result) == [("C", "A", 100), ("D", "B", 100)]

    def test_ties_follow_insertion_order_not_names(self):
        result = simplify({"Z": 100, "Y": 100, "X": -100, "W": -100})

        assert as_tuples(result) == [("X", "Z", 100), ("W", "Y", 100)]


class TestSimplifyEdgeCases:
    """Empty, zero and invalid inputs."""

    def test_empty_balances(self):
        assert simplify({}) == []

    def test_all_zero_balances(self):
        assert simplify({"A": 0, "B": 0}) == []

    def test_zero_balances_never_appear(self):
        result = simplify({"A": 0, "B": 700, "C": -700, "D": 0})

        users = {tx.from_user for tx in result} | {tx.to_user for tx in result}
        assert users == {"B", "C"}

    def test_unbalanced_input_raises(self):
        """Credits that don't match debits indicate a broken ledger."""
        with pytest.raises(InvariantViolation, match="unbalanced"):
            simplify({"A": 100, "B": -50})

    def test_input_not_mutated(self):
        balances = {"A": 3000, "B": -200, "C": -2800}

        simplify(balances)

        assert balances == {"A": 3000, "B": -200, "C": -2800}

    def test_repeated_calls_are_identical(self):
        balances = {"A": 3000, "B": -1000, "C": -1500, "D": -500}

        assert simplify(balances) == simplify(balances)


class TestSimplifyProperties:
    """Properties that hold for any balanced input."""

    @pytest.mark.parametrize("seed", range(25))
    def test_settles_everything_within_bound(self, seed):
        """Transactions zero every balance and number at most k - 1."""
        rng = random.Random(seed)
        balances = random_balances(rng, rng.randint(2, 12))

        result = simplify(balances)

        nonzero = sum(1 for balance in balances.values() if balance != 0)
        assert len(result) <= max(nonzero - 1, 0)
        assert all(value == 0 for value in settle_all(balances, result).values())
        assert all(tx.amount > 0 for tx in result)


class TestTransaction:
    """Tests for the Transaction model."""

    def test_dumps_with_from_and_to_keys(self):
        tx = Transaction(from_user="C", to_user="A", amount=2800)

        assert tx.model_dump(by_alias=True) == {"from": "C", "to": "A", "amount": 2800}

    def test_accepts_aliases(self):
        tx = Transaction.model_validate({"from": "C", "to": "A", "amount": 1})

        assert tx.from_user == "C"
        assert tx.to_user == "A"

    def test_settle_all_applies_payments(self):
        result = settle_all({"A": 300, "B": -300}, [Transaction(from_user="B", to_user="A", amount=100)])

        assert result == {"A": 200, "B": -200}
