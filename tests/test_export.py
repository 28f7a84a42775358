import csv
import io

from core.export import export_csv, export_filename


def test_every_field_is_quoted():
    text = export_csv(["Region", "Sales"], [["North", 10], ["South", 2.5]])
    assert text == '"Region","Sales"\n"North","10"\n"South","2.5"'


def test_round_trips_through_a_csv_reader():
    rows = [['say "hi"', "a,b"], ["line\nbreak", None]]
    parsed = list(csv.reader(io.StringIO(export_csv(["h1", "h2"], rows))))
    assert parsed == [["h1", "h2"], ['say "hi"', "a,b"], ["line\nbreak", ""]]


def test_embedded_quotes_are_doubled():
    assert export_csv(["q"], [['5" pipe']]) == '"q"\n"5"" pipe"'


def test_ragged_rows_are_padded():
    parsed = list(csv.reader(io.StringIO(export_csv(["a", "b"], [["x"], ["y", "z"]]))))
    assert parsed == [["a", "b"], ["x", ""], ["y", "z"]]


def test_headers_only():
    assert export_csv(["a", "b"], []) == '"a","b"'


def test_export_filename():
    assert export_filename("abc123") == "filtered-data-abc123.csv"
