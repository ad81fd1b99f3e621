import logging
import re
from typing import List, Optional, Tuple

from ast_nodes import *
from constants import NESTED_INDENT, block_column

logger = logging.getLogger(__name__)

# Lenient on purpose: the validator enforces the exact surface syntax
_STEP_RE = re.compile(r'^step-(\d+):\s*(.+)$')
_GOTO_RE = re.compile(r'^goto step-(\d+)$')


class ParseError(Exception):
    def __init__(self, message, line: Optional[int] = None):
        super().__init__(f"Line {line}: {message}" if line else message)
        self.line = line


def indentation(line: str) -> int:
    """Number of leading whitespace characters."""
    return len(line) - len(line.lstrip())


def split_assignment(command: str) -> Optional[Tuple[str, str]]:
    """Split ``Name = expr`` at the first '=' outside a string literal."""
    in_quote = False
    for idx, ch in enumerate(command):
        if ch == '"':
            in_quote = not in_quote
        elif ch == '=' and not in_quote:
            return command[:idx].strip(), command[idx + 1:].strip()
    return None


def condition_text(command: str) -> str:
    """``if (X > 0):`` -> ``(X > 0)``; the trailing colon is optional."""
    condition = command[3:].strip()
    if condition.endswith(":"):
        condition = condition[:-1].strip()
    return condition


def classify(command: str) -> Command:
    """Map the text after ``step-<N>: `` to a command node. Pure."""
    if command == "start":
        return StartCmd()
    if command == "stop":
        return StopCmd()
    if command.startswith("if "):
        return Conditional(condition_text(command))
    if command.startswith("print "):
        return PrintCmd(command[6:].strip())
    if command.startswith("read "):
        return ReadCmd(command[5:].strip())
    if command.startswith("goto "):
        match = _GOTO_RE.match(command)
        if match:
            return GotoCmd(int(match.group(1)))
        return UnknownCmd(command)
    if "=" in command:
        parts = split_assignment(command)
        if parts and parts[0]:
            return AssignCmd(parts[0], parts[1])
    return UnknownCmd(command)


class Parser:
    """Turns program text into a Program; the first problem found wins."""

    def __init__(self, source: str):
        self.source = source
        self.lines = [line.rstrip() for line in source.split("\n")]
        self.pos = 0

    def error(self, message, line_index: int):
        raise ParseError(message, line_index + 1)

    def parse(self) -> Program:
        steps: List[Step] = []
        while self.pos < len(self.lines):
            raw = self.lines[self.pos]
            if not raw:
                self.pos += 1
                continue
            if indentation(raw) > 0:
                # Indented, but no conditional above consumed it
                self.error(f"Unexpected indented line: {raw.strip()}", self.pos)
            steps.append(self.parse_step())

        if not steps:
            raise ParseError("Program has no steps")
        logger.debug("Parsed %d steps", len(steps))
        return Program(tuple(steps), self.source)

    def parse_step(self) -> Step:
        raw = self.lines[self.pos]
        line_index = self.pos
        match = _STEP_RE.match(raw)
        if not match:
            self.error(f"Invalid step format: {raw}", line_index)

        number = int(match.group(1))
        command = classify(match.group(2).strip())
        self.pos += 1

        if isinstance(command, Conditional):
            items = self._parse_block(block_column(number))
            command = Conditional(command.condition, items)
        return Step(number, command, raw, line_index + 1)

    def _parse_block(self, min_indent: int) -> Tuple[BlockItem, ...]:
        """Consume following lines indented at least ``min_indent`` columns."""
        items = []
        while self.pos < len(self.lines):
            raw = self.lines[self.pos]
            indent = indentation(raw)
            if not raw or indent < min_indent:
                break
            text = raw.strip()
            line_number = self.pos + 1
            self.pos += 1

            if text.startswith("if "):
                nested = self._parse_block(indent + NESTED_INDENT)
                items.append(NestedConditional(condition_text(text), nested, raw, line_number))
            else:
                items.append(BlockLine(classify(text), raw, line_number))
        return tuple(items)


def parse(text: str) -> Program:
    return Parser(text).parse()
