from enum import Enum, auto
from typing import Dict, Optional, Union

Value = Union[int, str]


class DataType(Enum):
    """Runtime types a step-language value can carry."""
    INTEGER = auto()
    STRING = auto()


def type_of(value: Value) -> DataType:
    """Tag a Python value with its step-language type."""
    # IMPORTANT: check bool first because bool is a subclass of int in Python
    if isinstance(value, bool):
        raise TypeError(f"Unsupported value type: {type(value).__name__}")
    if isinstance(value, int):
        return DataType.INTEGER
    if isinstance(value, str):
        return DataType.STRING
    raise TypeError(f"Unsupported value type: {type(value).__name__}")


def format_value(value: Value) -> str:
    """String form used by print and by string concatenation."""
    return value if isinstance(value, str) else str(value)


class Environment:
    """
    Variable environment of a session: name -> integer or string.
    Variables come into existence on first assignment; there are no
    declarations and no scopes.
    """

    def __init__(self, values: Optional[Dict[str, Value]] = None):
        self._values: Dict[str, Value] = dict(values) if values else {}

    def is_bound(self, name: str) -> bool:
        return name in self._values

    def get(self, name: str) -> Value:
        if name not in self._values:
            raise NameError(f"Unknown token or variable: {name}")
        return self._values[name]

    def assign(self, name: str, value: Value):
        type_of(value)
        self._values[name] = value

    def as_dict(self) -> Dict[str, Value]:
        return dict(self._values)

    def __eq__(self, other):
        if isinstance(other, Environment):
            return self._values == other._values
        if isinstance(other, dict):
            return self._values == other
        return NotImplemented

    def __repr__(self):
        return f"Environment({self._values!r})"
