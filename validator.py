"""
Pre-flight checks for step-language programs.

The checks run in a fixed priority order and stop at the first problem, so
a learner is shown one corrective message at a time:

  1. text present, no tabs, no blank lines between steps
  2. exact ``step-<N>: <content>`` surface syntax and keyword spelling
  3. sequential step numbers starting at 1 (at most 99)
  4. ``start`` first, ``stop`` last, nothing after ``stop``
  5. block indentation and nesting depth
  6. the content of every step and block line
  7. number of distinct variables
  8. goto targets

Rule 6 only checks the ``goto step-<N>`` form. Whether step N exists is
decided once by rule 8, after every other rule has passed, so a program
with too many variables reports that before a missing goto target.
"""
import re
from collections import namedtuple
from dataclasses import dataclass, field
from typing import List, Optional

from constants import (
    COMPARISON_OPERATORS, KEYWORDS, MAX_STEP_NUMBER, MAX_VARIABLES,
    MAX_VARIABLE_NAME_LENGTH, NESTED_INDENT, VARIABLE_NAME_PATTERN, block_column,
)
from lexer import Lexer, LexerError
from parser import indentation, split_assignment

_STEP_EXACT = re.compile(r'^step-(\d+): (\S.*)$')
_GOTO_EXACT = re.compile(r'^goto step-(\d+)$')
_IF_EXACT = re.compile(r'^if \((.*)\):$')
_NAME_RE = re.compile(VARIABLE_NAME_PATTERN)
_IS_CONDITIONAL = re.compile(r'^if(\s|\(|:|$)')

_Line = namedtuple('_Line', 'number raw indent content')
_StepLine = namedtuple('_StepLine', 'line step content')
_BlockLine = namedtuple('_BlockLine', 'line step level')


class ValidationError(Exception):
    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


@dataclass
class ValidationResult:
    ok: bool
    errors: List[str] = field(default_factory=list)


def is_valid_name(name: str) -> bool:
    return bool(_NAME_RE.match(name)) and len(name) <= MAX_VARIABLE_NAME_LENGTH


def _first_word(content: str) -> str:
    match = re.match(r'[A-Za-z]+', content)
    return match.group() if match else ""


def _is_assignment(content: str) -> bool:
    parts = split_assignment(content)
    return bool(parts) and bool(_NAME_RE.match(parts[0]))


# ── Surface-syntax diagnosis (rule 2) ──

def _diagnose_step_prefix(text: str) -> str:
    """Explain why a line is not ``step-<N>: <content>``."""
    head = text[:4]
    if head.lower() == "step" and head != "step":
        return f"'step' must be lowercase (found '{head}')"
    match = re.match(r'^step[ ]*(\d+)', text)
    if match:
        return f"use a hyphen between 'step' and the number: 'step-{match.group(1)}:'"
    if not text.startswith("step-"):
        return f"invalid step format '{text}' (expected 'step-<N>: <command>')"
    match = re.match(r'^step-(\d+)(.*)$', text)
    if not match:
        return "'step-' must be followed by a step number"
    number, rest = match.groups()
    if re.match(r'^\s+:', rest):
        return f"no space is allowed before the colon in 'step-{number}:'"
    if not rest.startswith(":"):
        return f"missing colon after 'step-{number}'"
    if not rest[1:].strip():
        return f"step-{number} has no command"
    if not rest[1:].startswith(" "):
        return f"missing space after the colon in 'step-{number}:'"
    return f"use exactly one space after the colon in 'step-{number}:'"


def _diagnose_keywords(content: str) -> Optional[str]:
    """Catch misspelled keywords before the content is checked in detail."""
    if re.match(r'^go\s+to\b', content, re.IGNORECASE):
        return "use 'goto' (one word) instead of 'go to'"
    match = re.match(r'^goto\s+step\s+(\d+)', content)
    if match:
        return f"write 'goto step-{match.group(1)}' instead of 'goto step {match.group(1)}'"
    match = re.match(r'^goto\s+(\d+)$', content)
    if match:
        return f"write 'goto step-{match.group(1)}' instead of 'goto {match.group(1)}'"
    if _is_assignment(content):
        return None
    word = _first_word(content)
    if word.lower() in KEYWORDS and word != word.lower():
        return f"keywords are lowercase: use '{word.lower()}' instead of '{word}'"
    for keyword in ("print", "read", "goto"):
        if content.startswith(keyword) and len(content) > len(keyword) \
                and not content[len(keyword)].isspace():
            return f"missing space after '{keyword}'"
    return None


# ── Content checks (rule 6) ──

def _check_name(name: str) -> Optional[str]:
    if not _NAME_RE.match(name):
        return (f"invalid variable name '{name}': names must start with an uppercase "
                f"letter and contain only letters and digits")
    if len(name) > MAX_VARIABLE_NAME_LENGTH:
        return (f"variable name '{name}' is too long ({len(name)} characters, "
                f"at most {MAX_VARIABLE_NAME_LENGTH})")
    return None


def _check_expression(expr: str) -> Optional[str]:
    try:
        Lexer(expr).tokenize()
    except LexerError as e:
        return f"invalid expression '{expr}': {str(e).splitlines()[0]}"
    return None


def _check_start(content, in_block):
    if in_block:
        return "'start' cannot be used inside an 'if' block"
    if content != "start":
        return "'start' takes no arguments"
    return None


def _check_stop(content, in_block):
    if in_block:
        return "'stop' cannot be used inside an 'if' block"
    if content != "stop":
        return "'stop' takes no arguments"
    return None


def _check_print(content, in_block):
    expr = content[len("print"):].strip()
    if not expr:
        return "'print' requires an expression"
    return _check_expression(expr)


def _check_read(content, in_block):
    name = content[len("read"):].strip()
    if not name:
        return "'read' requires a variable name"
    return _check_name(name)


def _check_goto(content, in_block):
    if not _GOTO_EXACT.match(content):
        return f"invalid goto '{content}': use 'goto step-<N>'"
    return None


def _check_if(content, in_block):
    if content.startswith("if(") or content.startswith("if:") or content == "if":
        return "missing space after 'if': use 'if (<condition>):'"
    if not content.endswith(":"):
        return "'if' statement must end with a colon: 'if (<condition>):'"
    condition = content[3:-1].strip()
    if not (condition.startswith("(") and condition.endswith(")")):
        return "the condition must be wrapped in parentheses: 'if (<condition>):'"
    match = _IF_EXACT.match(content)
    if not match:
        return "write the condition as 'if (<condition>):' with a single space after 'if'"
    inner = match.group(1).strip()
    if not inner:
        return "'if' condition is empty"
    if not any(op in inner for op in COMPARISON_OPERATORS):
        return f"the condition must use one of {', '.join(COMPARISON_OPERATORS)}"
    return None


def _check_assignment(content, in_block):
    name, expr = split_assignment(content)
    problem = _check_name(name)
    if problem:
        return problem
    if expr.startswith("="):
        return "'==' compares values; use '=' to assign"
    if not re.match(r'^\S+ = ', content + " "):
        return f"use spaces around '=' in assignments: '{name} = ...'"
    if not expr:
        return f"assignment to {name} has no expression"
    return _check_expression(expr)


_CONTENT_CHECKS = {
    "start": _check_start,
    "stop": _check_stop,
    "print": _check_print,
    "read": _check_read,
    "goto": _check_goto,
    "if": _check_if,
}


def _check_content(content: str, in_block: bool) -> Optional[str]:
    word = _first_word(content)
    check = _CONTENT_CHECKS.get(word)
    if check is not None and not _is_assignment(content):
        return check(content, in_block)
    parts = split_assignment(content)
    if parts and parts[0]:
        return _check_assignment(content, in_block)
    return f"unrecognized command '{content}'"


class Validator:
    """Checks program text against the language rules; first failure wins."""

    def __init__(self, text: str):
        self.text = text
        self.lines: List[_Line] = []
        self.steps: List[_StepLine] = []
        self.block_lines: List[_BlockLine] = []

    def error(self, message, line: Optional[_Line] = None):
        if line is not None:
            message = f"Line {line.number}: {message}"
        raise ValidationError([message])

    def check(self):
        """Raise ValidationError describing the first rule the text breaks."""
        self._check_text()
        self._check_step_syntax()
        self._check_numbering()
        self._check_start_stop()
        self._check_indentation()
        self._check_contents()
        self._check_variable_count()
        self._check_goto_targets()

    def validate(self) -> ValidationResult:
        try:
            self.check()
        except ValidationError as e:
            return ValidationResult(False, e.errors)
        return ValidationResult(True, [])

    # ── Rule 1 ──

    def _check_text(self):
        if not self.text.strip():
            self.error("Please enter an algorithm")

        raw_lines = [line.rstrip("\r") for line in self.text.split("\n")]
        for idx, raw in enumerate(raw_lines):
            if "\t" in raw:
                self.error(f"Line {idx + 1}: tab characters are not allowed; indent with spaces")

        filled = [idx for idx, raw in enumerate(raw_lines) if raw.strip()]
        first, last = filled[0], filled[-1]
        for idx in range(first, last + 1):
            raw = raw_lines[idx].rstrip()
            if not raw:
                self.error(f"Line {idx + 1}: blank lines are not allowed between steps")
            self.lines.append(_Line(idx + 1, raw, indentation(raw), raw.strip()))

    # ── Rule 2 ──

    def _check_step_syntax(self):
        first = self.lines[0]
        if first.indent > 0:
            self.error("the first line must be a step starting at column 1 "
                       f"(found {first.indent} leading spaces)", first)
        for line in self.lines:
            if line.indent == 0:
                match = _STEP_EXACT.match(line.raw)
                if not match:
                    self.error(_diagnose_step_prefix(line.raw), line)
                content = match.group(2)
                self.steps.append(_StepLine(line, int(match.group(1)), content))
            else:
                content = line.content
            problem = _diagnose_keywords(content)
            if problem:
                self.error(problem, line)

    # ── Rule 3 ──

    def _check_numbering(self):
        for expected, step in enumerate(self.steps, start=1):
            if step.step > MAX_STEP_NUMBER:
                self.error(f"step numbers cannot exceed {MAX_STEP_NUMBER} "
                           f"(found step-{step.step})", step.line)
            if step.step != expected:
                self.error(f"step numbers must be sequential starting at 1: "
                           f"expected step-{expected} but found step-{step.step}", step.line)

    # ── Rule 4 ──

    def _check_start_stop(self):
        first = self.steps[0]
        if first.content != "start":
            self.error(f"The first step must be 'start' (found '{first.content}')")

        for idx, step in enumerate(self.steps):
            if step.content.startswith("stop") and idx < len(self.steps) - 1:
                following = self.steps[idx + 1]
                self.error(f"no step may follow 'stop' (step-{following.step} follows "
                           f"step-{step.step})", following.line)

        last = self.steps[-1]
        if not last.content.startswith("stop"):
            self.error(f"The last step must be 'stop' (found '{last.content}')")

    # ── Rule 5 ──

    def _check_indentation(self):
        owner: Optional[_StepLine] = None    # conditional step whose block is open
        column = 0
        block_size = 0
        nested: Optional[_Line] = None       # open nested conditional inside the block
        nested_size = 0
        steps_by_line = {s.line.number: s for s in self.steps}

        for line in self.lines:
            if line.indent == 0:
                self._close_block(owner, block_size, nested, nested_size)
                step = steps_by_line[line.number]
                owner = step if _IS_CONDITIONAL.match(step.content) else None
                column = block_column(step.step) if owner else 0
                block_size, nested, nested_size = 0, None, 0
                continue

            if owner is None:
                self.error("indented line does not belong to an 'if' step", line)

            if line.indent == column:
                if nested is not None and nested_size == 0:
                    self.error("nested 'if' has no indented block", nested)
                block_size += 1
                nested = line if _IS_CONDITIONAL.match(line.content) else None
                nested_size = 0
                self.block_lines.append(_BlockLine(line, owner.step, 1))
            elif nested is not None and line.indent == column + NESTED_INDENT:
                if _IS_CONDITIONAL.match(line.content):
                    self.error("'if' blocks can only be nested one level deep", line)
                nested_size += 1
                self.block_lines.append(_BlockLine(line, owner.step, 2))
            elif nested is not None:
                self.error(f"lines of the nested 'if' block must be indented exactly "
                           f"{column + NESTED_INDENT} spaces (found {line.indent})", line)
            else:
                self.error(f"block lines of step-{owner.step} must be indented exactly "
                           f"{column} spaces (found {line.indent})", line)

        self._close_block(owner, block_size, nested, nested_size)

    def _close_block(self, owner, block_size, nested, nested_size):
        if owner is None:
            return
        if block_size == 0:
            self.error(f"step-{owner.step} 'if' has no indented block", owner.line)
        if nested is not None and nested_size == 0:
            self.error("nested 'if' has no indented block", nested)

    # ── Rule 6 ──

    def _check_contents(self):
        block_by_line = {b.line.number: b for b in self.block_lines}
        steps_by_line = {s.line.number: s for s in self.steps}
        for line in self.lines:
            if line.number in steps_by_line:
                problem = _check_content(steps_by_line[line.number].content, in_block=False)
            else:
                problem = _check_content(block_by_line[line.number].line.content, in_block=True)
            if problem:
                self.error(problem, line)

    # ── Rule 7 ──

    def _contents(self):
        for step in self.steps:
            yield step.line, step.content
        for block_line in self.block_lines:
            yield block_line.line, block_line.line.content

    def _check_variable_count(self):
        names = []
        for line, content in sorted(self._contents(), key=lambda lc: lc[0].number):
            name = None
            if content.startswith("read "):
                name = content[5:].strip()
            elif _is_assignment(content):
                name = split_assignment(content)[0]
            if name and name not in names:
                names.append(name)
        if len(names) > MAX_VARIABLES:
            self.error(f"Too many variables: found {len(names)} ({', '.join(names)}); "
                       f"at most {MAX_VARIABLES} are allowed")

    # ── Rule 8 ──

    def _check_goto_targets(self):
        numbers = {step.step for step in self.steps}
        for line, content in sorted(self._contents(), key=lambda lc: lc[0].number):
            match = _GOTO_EXACT.match(content)
            if match and int(match.group(1)) not in numbers:
                self.error(f"goto target step-{match.group(1)} does not exist", line)


def validate(text: str) -> ValidationResult:
    return Validator(text).validate()
