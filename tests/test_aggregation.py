import pytest

from core.aggregation import UNKNOWN, aggregate_rows, axis_value, group_average
from core.data import split_table


def _averages(result):
    return {x: group_average(g) for x, g in result.items()}


class TestAggregateRows:
    def test_numeric_y_sums_and_counts(self):
        result = aggregate_rows([["A", 10], ["A", 20], ["B", 5]], ["k", "v"], "k", "v", {"v": "numeric"})
        assert result == {"A": {"sum": 30.0, "count": 2}, "B": {"sum": 5.0, "count": 1}}
        assert _averages(result) == {"A": 15.0, "B": 5.0}

    def test_textual_y_counts_occurrences(self):
        rows = [["A", "x"], ["A", "x"], ["A", "y"]]
        assert aggregate_rows(rows, ["k", "v"], "k", "v", {"v": "textual"}) == {"A": {"x": 2, "y": 1}}

    def test_unparseable_numeric_cells_are_skipped(self, sales_table):
        headers, rows = split_table(sales_table, 1)
        result = aggregate_rows(rows, headers, "Region", "Sales", {"Sales": "numeric"})
        assert result["South"] == {"sum": 13.0, "count": 2}
        assert _averages(result) == {"North": 14.0, "South": 6.5, "East": 27.5, "West": 27.5}

    def test_groups_keep_first_seen_order(self, sales_table):
        headers, rows = split_table(sales_table, 1)
        result = aggregate_rows(rows, headers, "Region", "Product", {"Product": "textual"})
        assert list(result) == ["North", "South", "East", "West"]
        assert list(result["North"]) == ["Widget", "Gadget"]

    def test_blank_axis_values_become_unknown(self):
        rows = [[None, ""], ["  ", "x"], ["A"]]
        result = aggregate_rows(rows, ["k", "v"], "k", "v", {"v": "textual"})
        assert result == {UNKNOWN: {UNKNOWN: 1, "x": 1}, "A": {UNKNOWN: 1}}

    def test_counts_sum_to_row_count(self, sales_table):
        headers, rows = split_table(sales_table, 1)
        result = aggregate_rows(rows, headers, "Product", "Region", {"Region": "textual"})
        assert sum(n for group in result.values() for n in group.values()) == len(rows)

    @pytest.mark.parametrize("x,y", [("", "v"), ("k", ""), ("nope", "v"), ("k", "nope")])
    def test_missing_axis_gives_none(self, x, y):
        assert aggregate_rows([["A", 1]], ["k", "v"], x, y, {"v": "numeric"}) is None

    def test_no_rows_gives_none(self):
        assert aggregate_rows([], ["k", "v"], "k", "v", {"v": "numeric"}) is None

    def test_all_numeric_cells_unparseable(self):
        assert aggregate_rows([["A", "n/a"]], ["k", "v"], "k", "v", {"v": "numeric"}) == {}


def test_axis_value():
    assert axis_value(3.0) == "3"
    assert axis_value(" East ") == "East"
    assert axis_value(None) == UNKNOWN


def test_group_average_of_empty_group():
    assert group_average({"sum": 0.0, "count": 0}) == 0.0
