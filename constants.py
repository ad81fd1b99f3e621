"""Language limits for the step language: shared by the validator, parser and engine."""

STEP_PREFIX = "step-"

MAX_STEP_NUMBER = 99
MAX_VARIABLES = 6
MAX_VARIABLE_NAME_LENGTH = 42

# Nested blocks sit this many columns right of their conditional's block.
NESTED_INDENT = 2

VARIABLE_NAME_PATTERN = r"^[A-Z][a-zA-Z0-9]*$"

# ORDER IS SEMANTIC: two-character operators must be tried before < and >
COMPARISON_OPERATORS = ("<=", ">=", "==", "!=", "<", ">")

KEYWORDS = ("start", "stop", "print", "read", "goto", "if")

CONSOLE_SPACE_MARKER = "·"


def block_column(step_number: int) -> int:
    """Indentation of a conditional's block: the width of ``step-<N>: if``."""
    return len(f"{STEP_PREFIX}{step_number}: if")
