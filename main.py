import logging
import sys

from parser import ParseError
from interpreter import InterpreterError
from session import InputError, Session, load_program
from trace_table import (
    CURRENT, EXECUTED, format_console, format_trace_csv, format_trace_text, listing_rows,
)
from validator import ValidationError

USAGE = ('Usage: python main.py <program.txt> [--run] [--inputs "5,3,8"] '
         '[--max-steps N] [--csv] [--verbose]')

_MARKERS = {CURRENT: '>', EXECUTED: '*'}


def load_session(filename):
    with open(filename, 'r', encoding='utf-8') as f:
        source = f.read()
    try:
        return Session(load_program(source))
    except ValidationError as e:
        for message in e.errors:
            print(f"Validation Error: {message}")
    except ParseError as e:
        print(f"Parser Error: {e}")
    return None


def print_listing(session):
    snap = session.snapshot_for_display()
    for row in listing_rows(session.program, snap.program_counter, snap.block_cursor):
        print(f" {_MARKERS.get(row.status, ' ')} {row.text}")


def print_trace(session, csv=False):
    columns = session.program.variable_names()
    rows = session.state.trace
    if csv:
        print(format_trace_csv(rows, columns), end="")
    else:
        print(format_trace_text(rows, columns))


def print_console(session):
    print("Console:")
    print(format_console(session.state.console) or "(empty)")


def _supply_input(session, inputs):
    """Feed the next queued value, or ask on stdin. Returns False on EOF."""
    name = session.state.waiting_variable
    if inputs:
        raw = inputs.pop(0)
        print(f"read {name}: {raw}")
    else:
        try:
            raw = input(f"read {name}: ")
        except EOFError:
            return False
    try:
        session.provide_input(raw)
    except InputError as e:
        print(f"Input Error: {e}")
    return True


def run_to_end(session, inputs=None, max_steps=10000, csv=False):
    """Step until stop; the step cap only guards the terminal, not the engine."""
    inputs = list(inputs or [])
    steps = 0
    while not session.is_finished:
        if session.state.waiting:
            if not _supply_input(session, inputs):
                print("\nInput ended before the program finished.")
                break
            continue
        if steps >= max_steps:
            print(f"Stopped after {max_steps} steps (the program may loop forever).")
            break
        try:
            session.step()
        except InterpreterError as e:
            print(f"Runtime Error at step-{_current_step(session)}: {e}")
            break
        steps += 1

    print_console(session)
    print()
    print_trace(session, csv)


def _current_step(session):
    steps = session.program.steps
    pc = session.state.program_counter
    return steps[pc].number if pc < len(steps) else steps[-1].number


def interactive(session, inputs=None):
    """Terminal debugger: next, back, restart, table, console, quit."""
    inputs = list(inputs or [])
    print("Commands: [n]ext  [b]ack  [r]estart  [t]able  [c]onsole  [q]uit")
    print_listing(session)
    while True:
        if session.state.waiting:
            if not _supply_input(session, inputs):
                break
            print_listing(session)
            continue
        try:
            cmd = input("> ").strip().lower() or "n"
        except EOFError:
            break
        if cmd in ("q", "quit", "exit"):
            break
        if cmd in ("n", "next"):
            if session.is_finished:
                print("Program has stopped. Use [b]ack or [r]estart.")
                continue
            try:
                session.step()
            except InterpreterError as e:
                print(f"Runtime Error: {e}")
            _print_last_row(session)
        elif cmd in ("b", "back"):
            session.step_back()
        elif cmd in ("r", "restart"):
            try:
                session.restart()
            except (ValidationError, ParseError) as e:
                print(f"Restart failed: {e}")
        elif cmd in ("t", "table"):
            print_trace(session)
            continue
        elif cmd in ("c", "console"):
            print_console(session)
            continue
        else:
            print(f"Unknown command: {cmd}")
            continue
        print_listing(session)


def _print_last_row(session):
    if session.state.trace:
        row = session.state.trace[-1]
        changed = ", ".join(f"{k} = {v!r}" for k, v in row.changed_variables.items())
        print(f"  [{row.label}] {changed}{'  output: ' + repr(row.output) if row.output else ''}")


def cli():
    if len(sys.argv) < 2:
        print(USAGE)
        return
    filename = None
    run_mode = False
    csv = False
    inputs = None
    max_steps = 10000
    i = 1
    while i < len(sys.argv):
        if sys.argv[i] == '--run':
            run_mode = True
        elif sys.argv[i] == '--csv':
            csv = True
        elif sys.argv[i] == '--verbose':
            logging.basicConfig(level=logging.DEBUG,
                                format="%(levelname)s %(name)s: %(message)s")
        elif sys.argv[i] == '--inputs' and i + 1 < len(sys.argv):
            i += 1
            inputs = [v.strip() for v in sys.argv[i].split(",") if v.strip()]
        elif sys.argv[i] == '--max-steps' and i + 1 < len(sys.argv):
            i += 1
            max_steps = int(sys.argv[i])
        else:
            filename = sys.argv[i]
        i += 1
    session = load_session(filename) if filename else None
    if filename is None:
        print(USAGE)
    elif session is not None:
        if run_mode:
            run_to_end(session, inputs, max_steps, csv)
        else:
            interactive(session, inputs)


if __name__ == "__main__":
    cli()
