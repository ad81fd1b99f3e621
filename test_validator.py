import pytest
from session import load_program
from validator import ValidationError, ValidationResult, Validator, is_valid_name, validate

VALID = (
    'step-1: start\n'
    'step-2: read N\n'
    'step-3: if (N > 0):\n'
    '          print "N is " + N\n'
    '          if (N > 10):\n'
    '            print "big"\n'
    '          goto step-2\n'
    'step-4: stop\n'
)


def _errors(text):
    result = validate(text)
    assert not result.ok
    assert len(result.errors) == 1
    return result.errors[0]


def _program(*steps):
    return "\n".join(f"step-{i}: {content}" for i, content in enumerate(steps, start=1))


def test_valid_program():
    assert validate(VALID) == ValidationResult(True, [])


def test_trailing_newlines_are_allowed():
    assert validate("\n" + VALID + "\n\n").ok


def test_check_raises_validation_error():
    with pytest.raises(ValidationError) as excinfo:
        Validator("").check()
    assert excinfo.value.errors == ["Please enter an algorithm"]


def test_validation_is_deterministic():
    text = _program("start", "X == 1", "stop")
    assert validate(text) == validate(text)


# ── Rule 1: text ──

@pytest.mark.parametrize("text", ["", "   \n  "])
def test_empty_text(text):
    assert _errors(text) == "Please enter an algorithm"


def test_tabs_rejected():
    assert _errors("step-1:\tstart\nstep-2: stop") == \
        "Line 1: tab characters are not allowed; indent with spaces"


def test_blank_line_between_steps():
    assert _errors("step-1: start\n\nstep-2: stop") == \
        "Line 2: blank lines are not allowed between steps"


# ── Rule 2: surface syntax ──

@pytest.mark.parametrize("first_line, message", [
    ("Step-1: start", "'step' must be lowercase (found 'Step')"),
    ("step 1: start", "use a hyphen between 'step' and the number: 'step-1:'"),
    ("step-1 : start", "no space is allowed before the colon in 'step-1:'"),
    ("step-1 start", "missing colon after 'step-1'"),
    ("step-1:start", "missing space after the colon in 'step-1:'"),
    ("step-1:  start", "use exactly one space after the colon in 'step-1:'"),
    ("step-1:", "step-1 has no command"),
    ("step-: start", "'step-' must be followed by a step number"),
    ("begin", "invalid step format 'begin' (expected 'step-<N>: <command>')"),
])
def test_step_prefix_diagnostics(first_line, message):
    assert _errors(first_line + "\nstep-2: stop") == f"Line 1: {message}"


@pytest.mark.parametrize("content, message", [
    ("go to step-1", "use 'goto' (one word) instead of 'go to'"),
    ("goto step 1", "write 'goto step-1' instead of 'goto step 1'"),
    ("goto 1", "write 'goto step-1' instead of 'goto 1'"),
    ("Print 5", "keywords are lowercase: use 'print' instead of 'Print'"),
    ('print"hi"', "missing space after 'print'"),
    ("readX", "missing space after 'read'"),
])
def test_keyword_diagnostics(content, message):
    assert _errors(_program("start", content, "stop")) == f"Line 2: {message}"


def test_capitalised_variable_named_like_keyword_is_assignment():
    assert validate(_program("start", "Print = 5", "print Print", "stop")).ok


# ── Rule 3: numbering ──

def test_steps_must_be_sequential():
    assert _errors("step-1: start\nstep-3: stop") == (
        "Line 2: step numbers must be sequential starting at 1: "
        "expected step-2 but found step-3")


def test_steps_must_start_at_one():
    assert _errors("step-0: start\nstep-1: stop").startswith("Line 1: step numbers must be")


def test_step_number_limit():
    contents = ["start"] + ["X = 1"] * 98 + ["stop"]
    assert _errors(_program(*contents)) == \
        "Line 100: step numbers cannot exceed 99 (found step-100)"


def test_ninety_nine_steps_allowed():
    contents = ["start"] + ["X = 1"] * 97 + ["stop"]
    assert validate(_program(*contents)).ok


# ── Rule 4: start / stop ──

def test_first_step_must_be_start():
    assert _errors(_program("X = 1", "stop")) == \
        "The first step must be 'start' (found 'X = 1')"


def test_last_step_must_be_stop():
    assert _errors(_program("start", "X = 1")) == \
        "The last step must be 'stop' (found 'X = 1')"


def test_nothing_after_stop():
    assert _errors(_program("start", "stop", "stop")) == \
        "Line 3: no step may follow 'stop' (step-3 follows step-2)"


# ── Rule 5: indentation ──

def test_block_at_wrong_column():
    text = ("step-1: start\n"
            "step-2: if (1 > 0):\n"
            "      print 1\n"
            "step-3: stop")
    assert _errors(text) == "Line 3: block lines of step-2 must be indented exactly 10 spaces (found 6)"


def test_block_column_grows_with_step_number():
    contents = ["start"] + ["X = 1"] * 8 + ["if (X > 0):"]
    text = _program(*contents) + "\n           print X\nstep-11: stop"
    assert validate(text).ok


def test_empty_block():
    assert _errors(_program("start", "if (1 > 0):", "stop")) == \
        "Line 2: step-2 'if' has no indented block"


def test_empty_nested_block():
    text = ("step-1: start\n"
            "step-2: if (1 > 0):\n"
            "          if (2 > 0):\n"
            "step-3: stop")
    assert _errors(text) == "Line 3: nested 'if' has no indented block"


def test_nesting_limited_to_one_level():
    text = ("step-1: start\n"
            "step-2: if (1 > 0):\n"
            "          if (2 > 0):\n"
            "            if (3 > 0):\n"
            "              print 1\n"
            "step-3: stop")
    assert _errors(text) == "Line 4: 'if' blocks can only be nested one level deep"


def test_nested_block_at_wrong_column():
    text = ("step-1: start\n"
            "step-2: if (1 > 0):\n"
            "          if (2 > 0):\n"
            "               print 1\n"
            "step-3: stop")
    assert _errors(text) == \
        "Line 4: lines of the nested 'if' block must be indented exactly 12 spaces (found 15)"


def test_indented_line_without_conditional():
    assert _errors("step-1: start\n   print 1\nstep-2: stop") == \
        "Line 2: indented line does not belong to an 'if' step"


@pytest.mark.parametrize("text, spaces", [
    ("   step-1: start\n   step-2: stop", 3),
    ("  hello", 2),
    ("\n    step-1: start\nstep-2: stop", 4),
])
def test_indented_first_line_is_reported(text, spaces):
    message = _errors(text)
    assert message.endswith(
        f"the first line must be a step starting at column 1 (found {spaces} leading spaces)")


def test_indented_first_line_rejected_by_load_program():
    with pytest.raises(ValidationError):
        load_program("   step-1: start\n   step-2: stop")


# ── Rule 6: contents ──

@pytest.mark.parametrize("content, message", [
    ("start now", "'start' takes no arguments"),
    ("print", "'print' requires an expression"),
    ('print "abc', "invalid expression '\"abc': Unterminated string literal: \"abc at column 1"),
    ("read", "'read' requires a variable name"),
    ("read count", "invalid variable name 'count': names must start with an uppercase "
                   "letter and contain only letters and digits"),
    ("x = 1", "invalid variable name 'x': names must start with an uppercase "
              "letter and contain only letters and digits"),
    ("X == 1", "'==' compares values; use '=' to assign"),
    ("X=1", "use spaces around '=' in assignments: 'X = ...'"),
    ("X =", "assignment to X has no expression"),
    ("goto step-x", "invalid goto 'goto step-x': use 'goto step-<N>'"),
    ("jump 3", "unrecognized command 'jump 3'"),
])
def test_step_content(content, message):
    assert _errors(_program("start", content, "stop")) == f"Line 2: {message}"


def test_long_variable_name():
    name = "A" * 43
    assert _errors(_program("start", f"{name} = 1", "stop")) == \
        f"Line 2: variable name '{name}' is too long (43 characters, at most 42)"
    assert validate(_program("start", f"{'A' * 42} = 1", "stop")).ok


@pytest.mark.parametrize("condition, message", [
    ("if(X > 0):", "missing space after 'if': use 'if (<condition>):'"),
    ("if (X > 0)", "'if' statement must end with a colon: 'if (<condition>):'"),
    ("if X > 0:", "the condition must be wrapped in parentheses: 'if (<condition>):'"),
    ("if ():", "'if' condition is empty"),
    ("if (X):", "the condition must use one of <=, >=, ==, !=, <, >"),
])
def test_conditional_content(condition, message):
    text = (_program("start", "X = 1", condition)
            + "\n          print X\nstep-4: stop")
    assert _errors(text) == f"Line 3: {message}"


def test_start_inside_block():
    text = ("step-1: start\n"
            "step-2: if (1 > 0):\n"
            "          start\n"
            "step-3: stop")
    assert _errors(text) == "Line 3: 'start' cannot be used inside an 'if' block"


def test_stop_inside_block():
    text = ("step-1: start\n"
            "step-2: if (1 > 0):\n"
            "          stop\n"
            "step-3: stop")
    assert _errors(text) == "Line 3: 'stop' cannot be used inside an 'if' block"


# ── Rule 7: variable count ──

def test_six_variables_allowed():
    assert validate(_program("start", "A = 1", "B = 1", "C = 1",
                             "D = 1", "E = 1", "read F", "stop")).ok


def test_seven_variables_rejected():
    text = _program("start", "A = 1", "B = 1", "C = 1", "D = 1",
                    "E = 1", "F = 1", "read G", "stop")
    assert _errors(text) == \
        "Too many variables: found 7 (A, B, C, D, E, F, G); at most 6 are allowed"


def test_reassignment_counts_once():
    assert validate(_program("start", "A = 1", "A = A + 1", "read A", "stop")).ok


# ── Rule 8: goto targets ──

def test_goto_target_must_exist():
    assert _errors(_program("start", "goto step-5", "stop")) == \
        "Line 2: goto target step-5 does not exist"


def test_goto_target_inside_block_checked():
    text = ("step-1: start\n"
            "step-2: if (1 > 0):\n"
            "          goto step-9\n"
            "step-3: stop")
    assert _errors(text) == "Line 3: goto target step-9 does not exist"


# ── Priority ──

def test_first_failing_rule_wins():
    # Tab (rule 1) beats bad numbering (rule 3)
    assert "tab characters" in _errors("step-1: start\nstep-5:\tstop")
    # Variable count (rule 7) beats missing goto target (rule 8)
    text = _program("start", "A = 1", "B = 1", "C = 1", "D = 1",
                    "E = 1", "F = 1", "G = 1", "goto step-99", "stop")
    assert _errors(text).startswith("Too many variables")


def test_is_valid_name():
    assert is_valid_name("Total2")
    assert not is_valid_name("total")
    assert not is_valid_name("Has_Underscore")
    assert not is_valid_name("A" * 43)
