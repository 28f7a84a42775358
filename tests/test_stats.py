import pytest

from core.data import split_table
from core.stats import Stats, compute_stats, highlight_summary

TYPES = {"Region": "textual", "Product": "textual", "Sales": "numeric"}


@pytest.fixture
def prepared(sales_table):
    return split_table(sales_table, 1)


class TestComputeStats:
    def test_population_statistics(self):
        stats = compute_stats([[1], [2], [3], [4]], ["v"], "v", {"v": "numeric"})
        assert (stats.min, stats.max, stats.mean, stats.median) == (1, 4, 2.5, 2.5)
        assert stats.std_dev == pytest.approx(1.118, abs=1e-3)

    def test_skips_unparseable_cells(self, prepared):
        headers, rows = prepared
        stats = compute_stats(rows, headers, "Sales", TYPES)
        assert stats.min == 5 and stats.max == 40
        assert stats.mean == pytest.approx(165 / 9)
        assert stats.median == 15

    def test_bounds_hold(self, prepared):
        headers, rows = prepared
        s = compute_stats(rows, headers, "Sales", TYPES)
        assert s.min <= s.median <= s.max
        assert s.min <= s.mean <= s.max
        assert s.std_dev >= 0

    def test_single_value_has_zero_spread(self):
        assert compute_stats([[7]], ["v"], "v", {"v": "numeric"}) == Stats(7, 7, 7, 7, 0)

    @pytest.mark.parametrize("y,types", [("Region", TYPES), ("", TYPES), ("Missing", {"Missing": "numeric"})])
    def test_undefined_stats_are_zero(self, prepared, y, types):
        headers, rows = prepared
        assert compute_stats(rows, headers, y, types) == Stats()

    def test_no_numeric_values(self):
        assert compute_stats([["x"], [None]], ["v"], "v", {"v": "numeric"}) == Stats()


class TestHighlightSummary:
    def test_highest_average_first_group_wins_ties(self, prepared):
        headers, rows = prepared
        assert highlight_summary(rows, headers, "Region", "Sales", TYPES) == (
            "Highest average Sales is 27.50 for East in entire dataset."
        )

    def test_most_frequent_value(self, prepared):
        headers, rows = prepared
        assert highlight_summary(rows, headers, "Region", "Product", TYPES, "page") == (
            'Most frequent Product value is "Widget" with 5 occurrences in current page.'
        )

    def test_single_occurrence_is_singular(self):
        text = highlight_summary([["A", "x"]], ["k", "v"], "k", "v", {"v": "textual"})
        assert text == 'Most frequent v value is "x" with 1 occurrence in entire dataset.'

    def test_no_numeric_values(self):
        text = highlight_summary([["A", "n/a"]], ["k", "v"], "k", "v", {"v": "numeric"})
        assert text == "No numeric v values in entire dataset."

    @pytest.mark.parametrize("x,y", [("", "Sales"), ("Region", ""), ("Nope", "Sales")])
    def test_needs_both_axes(self, prepared, x, y):
        headers, rows = prepared
        assert highlight_summary(rows, headers, x, y, TYPES) == ""
