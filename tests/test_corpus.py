"""코퍼스 인덱스 / 필터 테스트"""
import pytest

from sketchmatch.corpus import CorpusHolder, SeriesCorpusIndex, minimum_support_filter
from sketchmatch.errors import ContractViolation
from sketchmatch.models import TimeSeries

PERIODS = [f"2024-{m:02d}" for m in range(1, 13)]


def make_series(key, values, category="Furniture"):
    return TimeSeries(
        entity_key=key,
        category=category,
        period_index=tuple(range(len(values))),
        values=tuple(float(v) for v in values),
        total_value=float(sum(values)),
    )


@pytest.fixture
def index():
    return SeriesCorpusIndex([
        make_series("Desk", range(1, 13)),
        make_series("Laptop", [5] * 12, category="Electronics"),
        make_series("Lamp", [0] * 10 + [3, 4]),  # 희소 시계열
        make_series("Chair", [2, 0] * 6),
    ], PERIODS)


class TestMinimumSupport:

    @pytest.mark.parametrize("non_zero,expected", [(4, False), (5, True), (12, True)])
    def test_long_axis_needs_five(self, non_zero, expected):
        s = make_series("x", [1] * non_zero + [0] * (12 - non_zero))
        assert minimum_support_filter(s, 12) is expected

    @pytest.mark.parametrize("non_zero,expected", [(2, False), (3, True)])
    def test_short_axis_needs_half(self, non_zero, expected):
        s = make_series("x", [1] * non_zero + [0] * (6 - non_zero))
        assert minimum_support_filter(s, 6) is expected

    def test_negative_values_count_as_support(self):
        s = make_series("x", [-1, -2, -3, 0, 0, 0])
        assert minimum_support_filter(s, 6)


class TestFilters:

    def test_all_returns_full_corpus_in_order(self, index):
        assert [s.entity_key for s in index.filter_by_category("All")] == ["Desk", "Laptop", "Lamp", "Chair"]

    def test_exact_category_match(self, index):
        assert [s.entity_key for s in index.filter_by_category("Electronics")] == ["Laptop"]
        assert index.filter_by_category("electronics") == []

    def test_eligible_applies_both_filters(self, index):
        assert [s.entity_key for s in index.eligible()] == ["Desk", "Laptop", "Chair"]
        assert [s.entity_key for s in index.eligible("Furniture")] == ["Desk", "Chair"]
        assert index.eligible("Toys") == []

    def test_categories(self, index):
        assert index.categories() == ["All", "Furniture", "Electronics"]

    def test_lookup_and_size(self, index):
        assert len(index) == 4
        assert index.period_count == 12
        assert index.period_keys == tuple(PERIODS)
        assert index.get("Laptop").category == "Electronics"
        assert index.get("Sofa") is None


class TestValidation:

    def test_misaligned_periods(self):
        bad = TimeSeries(entity_key="Shelf", category="Furniture",
                         period_index=tuple(range(1, 13)), values=(1.0,) * 12)

        with pytest.raises(ContractViolation, match="Shelf") as exc:
            SeriesCorpusIndex([bad], PERIODS)
        assert exc.value.entity_key == "Shelf"

    def test_missing_periods(self):
        with pytest.raises(ContractViolation, match="Shelf"):
            SeriesCorpusIndex([make_series("Shelf", [1] * 10)], PERIODS)

    def test_value_count_mismatch(self):
        bad = TimeSeries(entity_key="Shelf", period_index=tuple(range(12)), values=(1.0,) * 11)

        with pytest.raises(ContractViolation, match="Shelf"):
            SeriesCorpusIndex([bad], PERIODS)

    def test_non_finite_value(self):
        with pytest.raises(ContractViolation, match="Shelf"):
            SeriesCorpusIndex([make_series("Shelf", [1] * 11 + [float("nan")])], PERIODS)

    def test_duplicate_entity(self):
        with pytest.raises(ContractViolation, match="Desk"):
            SeriesCorpusIndex([make_series("Desk", [1] * 12), make_series("Desk", [2] * 12)], PERIODS)

    def test_empty_corpus(self):
        index = SeriesCorpusIndex([], [])
        assert len(index) == 0
        assert index.eligible() == []
        assert index.categories() == ["All"]


def test_holder_swaps_without_touching_old_index(index):
    holder = CorpusHolder(index)
    held = holder.current()
    replacement = SeriesCorpusIndex([make_series("Sofa", [9] * 12)], PERIODS)

    previous = holder.swap(replacement)

    assert previous is index
    assert holder.current() is replacement
    assert [s.entity_key for s in held.eligible()] == ["Desk", "Laptop", "Chair"]


def test_holder_starts_empty():
    assert len(CorpusHolder().current()) == 0
