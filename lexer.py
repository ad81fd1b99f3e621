import re
from enum import Enum, auto


class TokenType(Enum):
    # Literals and references
    INTEGER = auto()
    STRING = auto()
    IDENTIFIER = auto()

    # Arithmetic operators
    PLUS = auto()
    MINUS = auto()
    MULTIPLY = auto()
    DIVIDE = auto()
    MODULO = auto()

    # Grouping
    LPAREN = auto()
    RPAREN = auto()

    EOF = auto()


# Token types that act as binary operators
OPERATOR_TYPES = frozenset({
    TokenType.PLUS, TokenType.MINUS, TokenType.MULTIPLY,
    TokenType.DIVIDE, TokenType.MODULO,
})


class Token:
    def __init__(self, type_, value, column):
        self.type = type_
        self.value = value
        self.column = column

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, col={self.column})"


class LexerError(Exception):
    pass


_INTEGER_RE = re.compile(r'[0-9]+')

# Escapes understood inside string literals; anything else stays verbatim
_ESCAPES = {'n': '\n', '"': '"'}


def _unescape(body):
    out = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == '\\' and i + 1 < len(body) and body[i + 1] in _ESCAPES:
            out.append(_ESCAPES[body[i + 1]])
            i += 2
            continue
        out.append(ch)
        i += 1
    return ''.join(out)


class Lexer:
    """Tokenizer for the expressions found in print, assignment and if lines."""

    # =====================================================================
    # ORDER IS SEMANTIC: earlier patterns have higher priority in alternation
    # =====================================================================
    TOKEN_SPECS = [
        ('WHITESPACE', r'[ \t]+'),
        ('STRING', r'"(?:\\.|[^"\\])*"'),       # "..." with \" and \n escapes
        ('PLUS', r'\+'),
        ('MINUS', r'-'),
        ('MULTIPLY', r'\*'),
        ('DIVIDE', r'/'),
        ('MODULO', r'%'),
        ('LPAREN', r'\('),
        ('RPAREN', r'\)'),
        # Maximal run of non-delimiters: integer literal or variable name
        ('WORD', r'[^\s"+\-*/%()]+'),
    ]

    _TOKEN_TYPE_MAP = {
        'PLUS': TokenType.PLUS, 'MINUS': TokenType.MINUS,
        'MULTIPLY': TokenType.MULTIPLY, 'DIVIDE': TokenType.DIVIDE,
        'MODULO': TokenType.MODULO,
        'LPAREN': TokenType.LPAREN, 'RPAREN': TokenType.RPAREN,
    }

    def __init__(self, source):
        self.source = source
        self.pos = 0
        self.tokens = []

    @property
    def _regex(self):
        cls = self.__class__
        if '_MASTER_REGEX' not in cls.__dict__:
            pattern_parts = [f'(?P<{name}>{regex})' for name, regex in cls.TOKEN_SPECS]
            cls._MASTER_REGEX = re.compile('|'.join(pattern_parts))
        return cls._MASTER_REGEX

    def _get_context(self) -> str:
        """Echo the expression with a ^ under the current position."""
        pointer = ' ' * self.pos + '^'
        return f"\n  {self.source}\n  {pointer}"

    def error(self, message):
        raise LexerError(f"{message} at column {self.pos + 1}{self._get_context()}")

    def tokenize(self):
        while self.pos < len(self.source):
            match = self._regex.match(self.source, self.pos)

            if not match:
                if self.source[self.pos] == '"':
                    self.error(f"Unterminated string literal: {self.source[self.pos:]}")
                self.error(f"Unexpected character: {self.source[self.pos]!r}")

            kind = match.lastgroup
            start = self.pos
            self.pos = match.end()

            if kind == 'WHITESPACE':
                continue

            self.tokens.append(self._create_token(kind, match.group(), start + 1))

        self.tokens.append(Token(TokenType.EOF, None, len(self.source) + 1))
        return self.tokens

    def _create_token(self, kind, value, col):
        if kind == 'STRING':
            return Token(TokenType.STRING, _unescape(value[1:-1]), col)
        if kind == 'WORD':
            if _INTEGER_RE.fullmatch(value):
                return Token(TokenType.INTEGER, int(value), col)
            return Token(TokenType.IDENTIFIER, value, col)

        mapped = self._TOKEN_TYPE_MAP.get(kind)
        if mapped is not None:
            return Token(mapped, value, col)

        raise RuntimeError(f"Unhandled token kind: {kind}")


def tokenize(source):
    return Lexer(source).tokenize()
