from parser import parse
from trace_table import (
    CURRENT, EXECUTED, PENDING, TraceRow, format_console, format_trace_csv,
    format_trace_text, listing_rows, trace_cells, trace_headers,
)

PROGRAM = (
    'step-1: start\n'
    'step-2: X = 1\n'
    'step-3: if (X > 0):\n'
    '          print "a"\n'
    '          print "b"\n'
    'step-4: stop\n'
)

ROWS = [
    TraceRow("1"),
    TraceRow("2", "", {"X": 5}),
    TraceRow("3", "hi"),
]


def test_headers():
    assert trace_headers(["X", "Y"]) == ["Step", "X", "Y", "Output"]


def test_cells_only_show_changed_variables():
    assert trace_cells(TraceRow("3a", "", {"Y": "s"}), ["X", "Y"]) == ["3a", "", "s", ""]


def test_empty_trace_text():
    assert format_trace_text([], ["X"]) == "No trace data recorded."


def test_trace_text_table():
    lines = format_trace_text(ROWS, ["X"]).split("\n")
    assert lines[0] == "+------+---+--------+"
    assert lines[1] == "| Step | X | Output |"
    assert lines[4] == "| 2    | 5 |        |"
    assert lines[5] == "| 3    |   | hi     |"
    assert lines[-1] == lines[0]


def test_trace_text_escapes_newlines():
    text = format_trace_text([TraceRow("1", "a\nb")], [])
    assert "a\\nb" in text


def test_trace_csv():
    assert format_trace_csv(ROWS, ["X"]) == (
        'Step,X,Output\n'
        '"1",,\n'
        '"2","5",\n'
        '"3",,"hi"\n'
    )


def test_trace_csv_quotes():
    csv = format_trace_csv([TraceRow("1", 'say "x"')], [])
    assert csv.splitlines()[1] == '"1","say ""x"""'


def test_console_spaces_visible():
    assert format_console("X is 5\n") == "X·is·5\n"


def test_listing_before_block():
    rows = listing_rows(parse(PROGRAM), 1)
    assert [r.status for r in rows] == [EXECUTED, CURRENT, PENDING, PENDING, PENDING, PENDING]
    assert [r.line_number for r in rows] == [1, 2, 3, 4, 5, 6]


def test_listing_inside_block():
    rows = listing_rows(parse(PROGRAM), 2, (2, 1))
    assert [r.status for r in rows] == [EXECUTED, EXECUTED, CURRENT, EXECUTED, CURRENT, PENDING]
    assert rows[4].text == '          print "b"'


def test_listing_after_program():
    rows = listing_rows(parse(PROGRAM), 4)
    assert all(r.status == EXECUTED for r in rows)
