from dataclasses import dataclass
from typing import List, Optional, Tuple, Union


@dataclass(frozen=True)
class Command:
    """Base class for all commands."""
    pass


@dataclass(frozen=True)
class StartCmd(Command):
    pass


@dataclass(frozen=True)
class StopCmd(Command):
    pass


@dataclass(frozen=True)
class PrintCmd(Command):
    expr: str


@dataclass(frozen=True)
class ReadCmd(Command):
    name: str


@dataclass(frozen=True)
class AssignCmd(Command):
    name: str
    expr: str


@dataclass(frozen=True)
class GotoCmd(Command):
    target: int


@dataclass(frozen=True)
class UnknownCmd(Command):
    """Text that matches no command form; fails when executed."""
    text: str


@dataclass(frozen=True)
class NestedConditional:
    """
    if (<condition>): inside a block.
    items: the lines indented below it (commands or further conditionals)
    """
    condition: str
    items: Tuple['BlockItem', ...]
    line: str = ""
    line_number: int = 0


@dataclass(frozen=True)
class BlockLine:
    """One command line of a block, with its original source text."""
    command: Command
    line: str = ""
    line_number: int = 0


BlockItem = Union[BlockLine, NestedConditional]


@dataclass(frozen=True)
class Conditional(Command):
    condition: str
    items: Tuple[BlockItem, ...] = ()


@dataclass(frozen=True)
class Step:
    number: int
    command: Command
    line: str = ""
    line_number: int = 0


@dataclass(frozen=True)
class Program:
    """Ordered steps plus the text they were parsed from."""
    steps: Tuple[Step, ...]
    source: str = ""

    def index_of(self, number: int) -> Optional[int]:
        """Position of step ``number`` in the step list, or None."""
        for idx, step in enumerate(self.steps):
            if step.number == number:
                return idx
        return None

    def block_at(self, path: Tuple[int, ...]) -> Tuple[BlockItem, ...]:
        """Resolve a block address: (step index, item index, item index, ...)."""
        items = self.steps[path[0]].command.items
        for idx in path[1:]:
            items = items[idx].items
        return items

    def source_lines(self) -> List[str]:
        """Original lines of every step and block line, in source order."""
        lines = []
        for step in self.steps:
            lines.append(step.line)
            if isinstance(step.command, Conditional):
                _collect_block_lines(step.command.items, lines)
        return lines

    def variable_names(self) -> List[str]:
        """Names assigned or read anywhere, in order of first appearance."""
        names = []
        for step in self.steps:
            _collect_names(step.command, names)
        return names


def _collect_block_lines(items, lines):
    for item in items:
        lines.append(item.line)
        if isinstance(item, NestedConditional):
            _collect_block_lines(item.items, lines)


def _collect_names(command, names):
    if isinstance(command, (AssignCmd, ReadCmd)):
        if command.name not in names:
            names.append(command.name)
    elif isinstance(command, Conditional):
        _collect_item_names(command.items, names)


def _collect_item_names(items, names):
    for item in items:
        if isinstance(item, NestedConditional):
            _collect_item_names(item.items, names)
        else:
            _collect_names(item.command, names)
