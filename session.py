"""
Reversible execution engine for step-language programs.

A Session executes a parsed Program one atomic action per ``step()``:
a start/stop, a print, an assignment, a jump, a conditional test or one
line of a conditional's block. Every forward step first pushes a deep
copy of the live state onto the undo history, so ``step_back()`` lands
exactly where the previous step started. A ``read`` suspends the session
until ``provide_input()`` supplies an integer.
"""
import logging
import re
from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, List, Optional, Tuple

from ast_nodes import *
from interpreter import Evaluator, InterpreterError
from parser import parse
from symbol_table import Environment, Value, format_value
from trace_table import TraceRow
from validator import ValidationError, validate

logger = logging.getLogger(__name__)

_INTEGER_INPUT = re.compile(r'\s*([+-]?\d+)\s*')


class InputError(ValueError):
    pass


class ExecutionState(Enum):
    IDLE = auto()
    RUNNING = auto()
    WAITING_FOR_INPUT = auto()
    HALTED = auto()


class _Outcome(Enum):
    """What a command did to control flow."""
    ADVANCE = auto()
    JUMP = auto()
    WAIT = auto()


@dataclass
class BlockFrame:
    """Cursor into one block: its address in the program and the next item."""
    path: Tuple[int, ...]
    index: int = 0


@dataclass
class SessionState:
    """All mutable state of a session; snapshots are deep copies of this."""
    program_counter: int = 0
    variables: Environment = field(default_factory=Environment)
    console: str = ""
    trace: List[TraceRow] = field(default_factory=list)
    frames: List[BlockFrame] = field(default_factory=list)
    sub_index: int = 0
    waiting: bool = False
    waiting_variable: Optional[str] = None
    waiting_label: Optional[str] = None


@dataclass
class DisplaySnapshot:
    program_counter: int
    block_cursor: Optional[Tuple[int, ...]]
    variables: Dict[str, Value]
    console_text: str
    trace_rows: List[TraceRow]
    waiting_for_input: bool
    waiting_variable_name: Optional[str]
    state: ExecutionState


def load_program(text: str) -> Program:
    """Validate then parse; raises ValidationError or ParseError."""
    result = validate(text)
    if not result.ok:
        raise ValidationError(result.errors)
    return parse(text)


class Session:
    def __init__(self, program: Program):
        self._reset(program)
        self._dispatch = {
            StartCmd: self._exec_marker,
            StopCmd: self._exec_marker,
            PrintCmd: self._exec_print,
            AssignCmd: self._exec_assign,
            ReadCmd: self._exec_read,
            GotoCmd: self._exec_goto,
        }

    def _reset(self, program: Program):
        self.program = program
        self.state = SessionState()
        self.history: List[SessionState] = []

    # ══════════════════════════════════════════════════════
    #  Status
    # ══════════════════════════════════════════════════════

    @property
    def execution_state(self) -> ExecutionState:
        s = self.state
        if s.waiting:
            return ExecutionState.WAITING_FOR_INPUT
        if self.is_finished:
            return ExecutionState.HALTED
        if s.program_counter == 0 and not s.frames and not s.trace:
            return ExecutionState.IDLE
        return ExecutionState.RUNNING

    @property
    def is_finished(self) -> bool:
        return self.state.program_counter >= len(self.program.steps) and not self.state.frames

    @property
    def can_step(self) -> bool:
        return not self.state.waiting and not self.is_finished

    @property
    def can_step_back(self) -> bool:
        return bool(self.history)

    @property
    def block_cursor(self) -> Optional[Tuple[int, ...]]:
        if not self.state.frames:
            return None
        frame = self.state.frames[-1]
        return frame.path + (frame.index,)

    def snapshot_for_display(self) -> DisplaySnapshot:
        s = self.state
        return DisplaySnapshot(
            program_counter=s.program_counter,
            block_cursor=self.block_cursor,
            variables=s.variables.as_dict(),
            console_text=s.console,
            trace_rows=deepcopy(s.trace),
            waiting_for_input=s.waiting,
            waiting_variable_name=s.waiting_variable,
            state=self.execution_state,
        )

    # ══════════════════════════════════════════════════════
    #  Forward / backward
    # ══════════════════════════════════════════════════════

    def step(self):
        """Perform one atomic action; on failure restore the pre-step state and re-raise."""
        if not self.can_step:
            return

        self.history.append(deepcopy(self.state))
        try:
            if self.state.frames:
                self._step_block()
            else:
                self._step_top()
        except Exception as e:
            logger.debug("Step failed, rolling back: %s", e)
            self.step_back()
            raise

    def step_back(self):
        if not self.history:
            return
        self.state = self.history.pop()
        self.state.waiting = False
        self.state.waiting_variable = None
        self.state.waiting_label = None
        logger.debug("Stepped back to step index %d", self.state.program_counter)

    def provide_input(self, raw: str):
        """Resolve a pending read with an integer typed by the user."""
        s = self.state
        if not s.waiting:
            return

        # Echoed even when rejected
        s.console += raw + "\n"
        match = _INTEGER_INPUT.fullmatch(raw)
        if not match:
            raise InputError("Input must be a number.")

        value = int(match.group(1))
        s.variables.assign(s.waiting_variable, value)
        self._record(s.waiting_label, "", {s.waiting_variable: value})
        logger.debug("Input %d stored in %s", value, s.waiting_variable)
        s.waiting = False
        s.waiting_variable = None
        s.waiting_label = None

        if s.frames:
            self._advance_block()
        else:
            s.program_counter += 1

    # ══════════════════════════════════════════════════════
    #  Program lifecycle
    # ══════════════════════════════════════════════════════

    def restart(self):
        """Re-validate and re-parse the original text and start over."""
        self._reset(load_program(self.program.source))
        logger.info("Session restarted")

    def load_new_program(self, text: str):
        self._reset(load_program(text))
        logger.info("Loaded new program with %d steps", len(self.program.steps))

    # ══════════════════════════════════════════════════════
    #  Execution
    # ══════════════════════════════════════════════════════

    def _evaluator(self) -> Evaluator:
        return Evaluator(self.state.variables)

    def _record(self, label, output="", changed=None):
        self.state.trace.append(TraceRow(label, output, dict(changed or {})))

    def _step_top(self):
        s = self.state
        step = self.program.steps[s.program_counter]
        command = step.command

        if isinstance(command, Conditional):
            self._enter_conditional(command)
            return

        outcome = self._execute(command, str(step.number))
        if outcome == _Outcome.ADVANCE:
            s.program_counter += 1

    def _enter_conditional(self, command: Conditional):
        s = self.state
        if self._evaluator().evaluate_condition(command.condition):
            s.frames = [BlockFrame((s.program_counter,), 0)]
            s.sub_index = 0
            self._unwind()
        else:
            s.program_counter += 1

    def _step_block(self):
        s = self.state
        frame = s.frames[-1]
        item = self.program.block_at(frame.path)[frame.index]

        if isinstance(item, NestedConditional):
            frame.index += 1
            if self._evaluator().evaluate_condition(item.condition):
                s.frames.append(BlockFrame(frame.path + (frame.index - 1,), 0))
            else:
                # Labels still count the skipped lines
                s.sub_index += len(item.items)
            self._unwind()
            return

        if isinstance(item.command, (StartCmd, StopCmd, Conditional)):
            raise InterpreterError(f"Unsupported command in if block: {item.line.strip()}")

        outcome = self._execute(item.command, self._sub_label())
        if outcome == _Outcome.ADVANCE:
            self._advance_block()

    def _sub_label(self) -> str:
        number = self.program.steps[self.state.program_counter].number
        return f"{number}{chr(ord('a') + self.state.sub_index)}"

    def _advance_block(self):
        s = self.state
        s.frames[-1].index += 1
        s.sub_index += 1
        self._unwind()

    def _unwind(self):
        """Pop finished blocks; leaving the outermost one moves past the conditional."""
        s = self.state
        while s.frames and s.frames[-1].index >= len(self.program.block_at(s.frames[-1].path)):
            s.frames.pop()
        if not s.frames:
            s.sub_index = 0
            s.program_counter += 1

    def _execute(self, command: Command, label: str) -> _Outcome:
        handler = self._dispatch.get(type(command))
        if handler is None:
            text = getattr(command, 'text', type(command).__name__)
            raise InterpreterError(f"Unknown command type: {text}")
        return handler(command, label)

    # ── Command handlers ──

    def _exec_marker(self, command, label):
        self._record(label)
        return _Outcome.ADVANCE

    def _exec_print(self, command: PrintCmd, label):
        output = format_value(self._evaluator().evaluate_expression(command.expr))
        self.state.console += output
        self._record(label, output)
        return _Outcome.ADVANCE

    def _exec_assign(self, command: AssignCmd, label):
        value = self._evaluator().evaluate_expression(command.expr)
        self.state.variables.assign(command.name, value)
        self._record(label, "", {command.name: value})
        return _Outcome.ADVANCE

    def _exec_read(self, command: ReadCmd, label):
        s = self.state
        s.waiting = True
        s.waiting_variable = command.name
        s.waiting_label = label
        return _Outcome.WAIT

    def _exec_goto(self, command: GotoCmd, label):
        target = self.program.index_of(command.target)
        if target is None:
            raise InterpreterError(f"Invalid goto target: step-{command.target}")
        s = self.state
        s.frames = []
        s.sub_index = 0
        s.program_counter = target
        logger.debug("Jumped to step-%d", command.target)
        return _Outcome.JUMP


def create_session(program: Program) -> Session:
    return Session(program)
