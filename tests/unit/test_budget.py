"""Unit tests for the context token budget."""

import pytest
import pytest_check as check

from docchat.context import budget
from docchat.context.budget import UsageLevel
from docchat.models.schemas import Document


def make_doc(doc_id: str, tokens: int) -> Document:
    return Document(
        id=doc_id,
        name=f"{doc_id}.txt",
        media_type="text/plain",
        size=10,
        summary="x" * (tokens * 4),
    )


@pytest.fixture
def documents() -> list[Document]:
    return [make_doc("a", 60), make_doc("b", 50), make_doc("c", 30), make_doc("huge", 150)]


class TestEstimateCost:
    """Tests for the default cost estimate."""

    def test_empty_text_costs_nothing(self) -> None:
        assert budget.estimate_cost("") == 0

    def test_non_empty_text_costs_at_least_one(self) -> None:
        check.equal(budget.estimate_cost("a"), 1)
        check.equal(budget.estimate_cost("abc"), 1)
        check.equal(budget.estimate_cost("abcd"), 1)
        check.equal(budget.estimate_cost("abcde"), 2)

    def test_cost_never_decreases_with_length(self) -> None:
        costs = [budget.estimate_cost("x" * n) for n in range(200)]
        assert costs == sorted(costs)

    def test_cost_depends_only_on_length(self) -> None:
        assert budget.estimate_cost("abcdefgh") == budget.estimate_cost("12345678")


class TestCharsPerTokenEstimator:
    """Tests for pluggable cost functions."""

    def test_custom_ratio(self) -> None:
        estimate = budget.chars_per_token_estimator(2)

        check.equal(estimate("abcd"), 2)
        check.equal(estimate("abcde"), 3)
        check.equal(estimate("a"), 1)

    @pytest.mark.parametrize("ratio", [0, -1])
    def test_rejects_non_positive_ratio(self, ratio: float) -> None:
        with pytest.raises(ValueError, match="positive"):
            budget.chars_per_token_estimator(ratio)

    def test_operations_use_given_estimator(self, documents: list[Document]) -> None:
        per_char = budget.chars_per_token_estimator(1)

        assert budget.total_cost({"c"}, documents, per_char) == 120


class TestTotalCost:
    """Tests for summing the selection's cost."""

    def test_empty_selection_is_zero(self, documents: list[Document]) -> None:
        assert budget.total_cost(set(), documents) == 0

    def test_sums_selected_documents(self, documents: list[Document]) -> None:
        selection = {"a", "c"}
        expected = sum(budget.estimate_cost(d.summary) for d in documents if d.id in selection)

        assert budget.total_cost(selection, documents) == expected == 90

    def test_unknown_ids_contribute_nothing(self, documents: list[Document]) -> None:
        assert budget.total_cost({"a", "missing"}, documents) == 60

    def test_duplicate_ids_counted_once(self, documents: list[Document]) -> None:
        assert budget.total_cost(["a", "a"], documents) == 60


class TestWouldExceed:
    def test_fits_within_budget(self, documents: list[Document]) -> None:
        assert budget.would_exceed("b", {"c"}, documents, 100) is False

    def test_exact_fit_does_not_exceed(self, documents: list[Document]) -> None:
        assert budget.would_exceed("c", {"a"}, documents, 90) is False

    def test_over_budget(self, documents: list[Document]) -> None:
        assert budget.would_exceed("b", {"a"}, documents, 100) is True

    def test_already_selected_never_exceeds(self, documents: list[Document]) -> None:
        assert budget.would_exceed("a", {"a", "b"}, documents, 10) is False

    def test_single_oversized_document(self, documents: list[Document]) -> None:
        assert budget.would_exceed("huge", set(), documents, 100) is True


class TestToggle:
    """Tests for adding and removing documents."""

    def test_rejection_scenario(self, documents: list[Document]) -> None:
        """A (60) fits in 100; B (50) would make 110 and is refused."""
        selection = budget.toggle("a", frozenset(), documents, 100)
        check.equal(selection, frozenset({"a"}))
        check.equal(budget.total_cost(selection, documents), 60)

        after = budget.toggle("b", selection, documents, 100)
        check.equal(after, frozenset({"a"}))

    def test_removal_always_succeeds(self, documents: list[Document]) -> None:
        over = frozenset({"a", "b"})  # 110, already over a budget of 100

        assert budget.toggle("a", over, documents, 100) == frozenset({"b"})

    def test_oversized_document_never_added(self, documents: list[Document]) -> None:
        assert budget.toggle("huge", frozenset(), documents, 100) == frozenset()

    def test_toggle_twice_restores_selection(self, documents: list[Document]) -> None:
        original = frozenset({"c"})

        for doc_id in ("a", "c", "b"):
            once = budget.toggle(doc_id, original, documents, 100)
            twice = budget.toggle(doc_id, once, documents, 100)
            check.equal(twice, original, f"toggle({doc_id}) twice")

    def test_does_not_mutate_input(self, documents: list[Document]) -> None:
        selection = {"c"}
        budget.toggle("a", selection, documents, 100)

        assert selection == {"c"}

    def test_budget_invariant_holds_over_any_sequence(self, documents: list[Document]) -> None:
        sequence = ["a", "b", "c", "huge", "a", "b", "c", "b", "huge", "c", "a"]
        selection: frozenset[str] = frozenset()
        for doc_id in sequence:
            selection = budget.toggle(doc_id, selection, documents, 100)
            check.less_equal(budget.total_cost(selection, documents), 100)


class TestUsage:
    """Tests for usage reporting."""

    def test_levels(self, documents: list[Document]) -> None:
        check.equal(budget.usage({"c"}, documents, 100).level, UsageLevel.OK)
        check.equal(budget.usage({"a"}, documents, 80).level, UsageLevel.WARNING)
        check.equal(budget.usage({"a", "c"}, documents, 95).level, UsageLevel.CRITICAL)

    def test_ratio_is_clamped(self, documents: list[Document]) -> None:
        result = budget.usage({"huge"}, documents, 100)

        check.equal(result.used, 150)
        check.equal(result.ratio, 1.0)
        check.equal(result.level, UsageLevel.CRITICAL)

    def test_empty_selection(self, documents: list[Document]) -> None:
        result = budget.usage(set(), documents, budget.DEFAULT_TOKEN_LIMIT)

        check.equal(result.used, 0)
        check.equal(result.ratio, 0.0)
        check.equal(result.limit, 200_000)

    @pytest.mark.parametrize("limit", [0, -5])
    def test_rejects_non_positive_budget(self, documents: list[Document], limit: int) -> None:
        with pytest.raises(ValueError, match="at least 1"):
            budget.usage({"a"}, documents, limit)

    def test_can_select_matches_would_exceed(self, documents: list[Document]) -> None:
        selection = {"a"}
        for doc in documents:
            check.equal(
                budget.can_select(doc.id, selection, documents, 100),
                not budget.would_exceed(doc.id, selection, documents, 100),
            )
