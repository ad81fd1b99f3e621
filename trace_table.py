"""
Trace rows and their text renderings.

A trace row is recorded for every completed atomic action of a session.
The table has a Step column, one column per program variable and an
Output column; a row only fills the columns of the variables it changed.
"""
from collections import namedtuple
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from ast_nodes import Conditional, NestedConditional, Program
from constants import CONSOLE_SPACE_MARKER
from symbol_table import Value, format_value


@dataclass
class TraceRow:
    label: str
    output: str = ""
    changed_variables: Dict[str, Value] = field(default_factory=dict)


ListingRow = namedtuple('ListingRow', 'line_number text status')

EXECUTED = "executed"
CURRENT = "current"
PENDING = "pending"


def trace_headers(columns: Sequence[str]) -> List[str]:
    return ['Step'] + list(columns) + ['Output']


def trace_cells(row: TraceRow, columns: Sequence[str]) -> List[str]:
    """One table row: label, changed variables only, output."""
    cells = [row.label]
    for name in columns:
        if name in row.changed_variables:
            cells.append(format_value(row.changed_variables[name]))
        else:
            cells.append('')
    cells.append(row.output)
    return cells


def _single_line(text: str) -> str:
    return text.replace('\n', '\\n')


def format_trace_text(rows: Iterable[TraceRow], columns: Sequence[str]) -> str:
    """Format the trace as an ASCII table string."""
    rows = list(rows)
    if not rows:
        return "No trace data recorded."
    body = [[_single_line(c) for c in trace_cells(r, columns)] for r in rows]
    return _format_ascii_table(trace_headers(columns), body)


def format_trace_csv(rows: Iterable[TraceRow], columns: Sequence[str]) -> str:
    lines = [','.join(trace_headers(columns))]
    for row in rows:
        cells = trace_cells(row, columns)
        lines.append(','.join(_csv_cell(c) for c in cells))
    return '\n'.join(lines) + '\n'


def _csv_cell(value: str) -> str:
    if value == '':
        return ''
    return '"' + value.replace('"', '""') + '"'


def format_console(text: str) -> str:
    """Console text with spaces made visible."""
    return text.replace(' ', CONSOLE_SPACE_MARKER)


def _format_ascii_table(headers, rows):
    """Render headers + rows as a fixed-width ASCII table."""
    col_w = [len(h) for h in headers]
    for row in rows:
        for i, c in enumerate(row):
            col_w[i] = max(col_w[i], len(str(c)))
    col_w = [min(w, 30) for w in col_w]

    def pad(s, w):
        return str(s)[:w].ljust(w)

    sep = '+' + '+'.join('-' * (w + 2) for w in col_w) + '+'
    hdr = '|' + '|'.join(f" {pad(h, w)} " for h, w in zip(headers, col_w)) + '|'
    lines = [sep, hdr, sep]
    for row in rows:
        lines.append('|' + '|'.join(f" {pad(c, w)} " for c, w in zip(row, col_w)) + '|')
    lines.append(sep)
    return '\n'.join(lines)


# ── Program listing ──

def listing_rows(program: Program, program_counter: int,
                 block_cursor: Optional[tuple] = None) -> List[ListingRow]:
    """
    Every source line with its highlight status. Steps before the program
    counter are executed and the step at it is current; inside an active
    block, lines before the cursor are executed and the line at it is current.
    """
    rows = []
    for idx, step in enumerate(program.steps):
        rows.append(ListingRow(step.line_number, step.line, _status(idx, program_counter)))
        if isinstance(step.command, Conditional):
            _block_rows(step.command.items, (idx,), program_counter, block_cursor, rows)
    return rows


def _status(index, program_counter):
    if index < program_counter:
        return EXECUTED
    if index == program_counter:
        return CURRENT
    return PENDING


def _block_rows(items, path, program_counter, block_cursor, rows):
    for i, item in enumerate(items):
        item_path = path + (i,)
        rows.append(ListingRow(item.line_number, item.line,
                               _block_status(item_path, program_counter, block_cursor)))
        if isinstance(item, NestedConditional):
            _block_rows(item.items, item_path, program_counter, block_cursor, rows)


def _block_status(item_path, program_counter, block_cursor):
    step_index = item_path[0]
    if step_index < program_counter:
        return EXECUTED
    if step_index > program_counter or block_cursor is None:
        return PENDING
    if item_path < block_cursor:
        return EXECUTED
    if item_path == block_cursor:
        return CURRENT
    return PENDING
