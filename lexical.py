# lexical.py

import io
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, List, Optional, TextIO, Tuple, Union

from errors import CompilationError


class TokenKind(Enum):
    # reserved words
    PROGRAM = "program"
    BEGIN = "begin"
    END = "end"
    TYPE = "type"
    INT = "int"
    FLOAT = "float"
    CHAR = "char"
    BOOL = "bool"
    IF = "if"
    THEN = "then"
    ELSE = "else"
    WHILE = "while"
    DO = "do"
    REPEAT = "repeat"
    UNTIL = "until"
    IN = "in"
    OUT = "out"

    # operators
    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    ASSIGN = "="
    PLUS = "+"
    MINUS = "-"
    OR = "||"
    TIMES = "*"
    DIV = "/"
    AND = "&&"
    NOT = "!"

    # delimiters
    SEMICOLON = ";"
    COLON = ":"
    COMMA = ","
    LPAREN = "("
    RPAREN = ")"

    # literal classes
    NUM = "NUM"
    REAL = "REAL"
    CHAR_CONST = "CHAR_CONST"
    LITERAL = "LITERAL"
    ID = "ID"

    # any other single character
    SYMBOL = "SYMBOL"

    @property
    def group(self) -> str:
        """Coarse class of the kind, shared by the token table and the editor."""
        return KIND_GROUPS[self]


RESERVED_WORDS = {
    "if": TokenKind.IF,
    "program": TokenKind.PROGRAM,
    "begin": TokenKind.BEGIN,
    "end": TokenKind.END,
    "type": TokenKind.TYPE,
    "int": TokenKind.INT,
    "float": TokenKind.FLOAT,
    "char": TokenKind.CHAR,
    "bool": TokenKind.BOOL,
    "then": TokenKind.THEN,
    "else": TokenKind.ELSE,
    "while": TokenKind.WHILE,
    "do": TokenKind.DO,
    "repeat": TokenKind.REPEAT,
    "until": TokenKind.UNTIL,
    "in": TokenKind.IN,
    "out": TokenKind.OUT,
}

SINGLE_CHAR_TOKENS = {
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.TIMES,
    "/": TokenKind.DIV,
    ";": TokenKind.SEMICOLON,
    ":": TokenKind.COLON,
    ",": TokenKind.COMMA,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
}

KIND_GROUPS = {kind: "reserved" for kind in RESERVED_WORDS.values()}
KIND_GROUPS.update({kind: "delimiter" for kind in SINGLE_CHAR_TOKENS.values()})
KIND_GROUPS.update({
    TokenKind.PLUS: "arithmetic",
    TokenKind.MINUS: "arithmetic",
    TokenKind.TIMES: "arithmetic",
    TokenKind.DIV: "arithmetic",
    TokenKind.ASSIGN: "assignment",
    TokenKind.EQ: "relational",
    TokenKind.NE: "relational",
    TokenKind.LT: "relational",
    TokenKind.LE: "relational",
    TokenKind.GT: "relational",
    TokenKind.GE: "relational",
    TokenKind.AND: "logical",
    TokenKind.OR: "logical",
    TokenKind.NOT: "logical",
    TokenKind.NUM: "number",
    TokenKind.REAL: "number",
    TokenKind.CHAR_CONST: "string",
    TokenKind.LITERAL: "string",
    TokenKind.ID: "identifier",
    TokenKind.SYMBOL: "unknown",
})

WHITESPACE = {" ", "\t", "\r", "\b", "\n"}


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: Any = None

    def __str__(self) -> str:
        if self.value is None:
            return self.kind.value
        return str(self.value)


# Two-character operators carry no per-occurrence data and are shared.
AND = Token(TokenKind.AND, "&&")
OR = Token(TokenKind.OR, "||")
EQ = Token(TokenKind.EQ, "==")
NE = Token(TokenKind.NE, "!=")
LE = Token(TokenKind.LE, "<=")
GE = Token(TokenKind.GE, ">=")

# first char -> (expected second char, two-char token, one-char fallback)
TWO_CHAR_TOKENS = {
    "&": ("&", AND, Token(TokenKind.SYMBOL, "&")),
    "|": ("|", OR, Token(TokenKind.SYMBOL, "|")),
    "=": ("=", EQ, Token(TokenKind.ASSIGN)),
    "!": ("=", NE, Token(TokenKind.NOT)),
    "<": ("=", LE, Token(TokenKind.LT)),
    ">": ("=", GE, Token(TokenKind.GT)),
}


class LexicalError(CompilationError):
    category = "Lexical"


def is_letter(c: Optional[str]) -> bool:
    return c is not None and (c.isalpha() or c == "_")


def is_digit(c: Optional[str]) -> bool:
    return c is not None and "0" <= c <= "9"


class CharacterSource:
    """Forward-only reader handing out one character at a time.

    ``read()`` returns ``None`` once the stream is exhausted, which no real
    character can be mistaken for.
    """

    def __init__(self, stream: TextIO) -> None:
        self.stream = stream

    @classmethod
    def from_string(cls, text: str) -> "CharacterSource":
        return cls(io.StringIO(text))

    def read(self) -> Optional[str]:
        c = self.stream.read(1)
        return c if c else None

    def close(self) -> None:
        self.stream.close()

    def __enter__(self) -> "CharacterSource":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class Lexer:
    def __init__(self, source: Union[CharacterSource, TextIO, str]) -> None:
        if isinstance(source, str):
            source = CharacterSource.from_string(source)
        elif not isinstance(source, CharacterSource):
            source = CharacterSource(source)
        self.source = source
        self.line = 1
        self.ch: Optional[str] = " "
        self.words = {}
        for lexeme, kind in RESERVED_WORDS.items():
            self.reserve(Token(kind, lexeme))

    def reserve(self, word: Token) -> None:
        self.words[word.value] = word

    def readch(self) -> None:
        self.ch = self.source.read()

    def readch_if(self, c: str) -> bool:
        """Advance one character and consume it too if it is ``c``."""
        self.readch()
        if self.ch != c:
            return False
        self.readch()
        return True

    def error(self, cause: str) -> LexicalError:
        return LexicalError(cause, self.line)

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.scan()
            if token is None:
                return
            yield token

    def scan(self) -> Optional[Token]:
        """Return the next token, or ``None`` at end of input."""
        token = self._scan()
        logging.debug(f"line {self.line}: {token.kind.name if token else 'EOF'} {token}")
        return token

    def _scan(self) -> Optional[Token]:
        while True:
            while self.ch in WHITESPACE:
                if self.ch == "\n":
                    self.line += 1
                self.readch()

            if self.ch == "{":
                self.skip_block_comment()
                continue
            if self.ch == "%":
                self.skip_line_comment()
                continue
            break

        c = self.ch
        if c in TWO_CHAR_TOKENS:
            second, pair, single = TWO_CHAR_TOKENS[c]
            return pair if self.readch_if(second) else single

        if c in SINGLE_CHAR_TOKENS:
            self.readch()
            return Token(SINGLE_CHAR_TOKENS[c])

        if c == "'":
            return self.scan_char_const()
        if c == '"':
            return self.scan_literal()
        if is_digit(c):
            return self.scan_number()
        if is_letter(c):
            return self.scan_word()

        if c is None:
            return None

        self.readch()
        return Token(TokenKind.SYMBOL, c)

    def skip_block_comment(self) -> None:
        while True:
            self.readch()
            if self.ch is None:
                raise self.error("unterminated block comment")
            if self.ch == "\n":
                self.line += 1
            elif self.ch == "}":
                break
        self.readch()

    def skip_line_comment(self) -> None:
        while True:
            self.readch()
            if self.ch is None:
                return
            if self.ch == "\n":
                self.line += 1
                self.readch()
                return

    def scan_char_const(self) -> Token:
        self.readch()
        value = self.ch
        if value is None:
            raise self.error("malformed character constant")
        if value == "\n":
            self.line += 1
        self.readch()
        if self.ch != "'":
            raise self.error("malformed character constant")
        self.readch()
        return Token(TokenKind.CHAR_CONST, value)

    def scan_literal(self) -> Token:
        chars = []
        self.readch()
        while self.ch not in ('"', "\n", None):
            chars.append(self.ch)
            self.readch()
        if self.ch != '"':
            raise self.error("unterminated string literal")
        self.readch()
        return Token(TokenKind.LITERAL, "".join(chars))

    def scan_number(self) -> Token:
        value = 0
        while is_digit(self.ch):
            value = 10 * value + int(self.ch)
            self.readch()
        if self.ch != ".":
            return Token(TokenKind.NUM, value)

        x = float(value)
        d = 10.0
        self.readch()
        if not is_digit(self.ch):
            raise self.error("decimal point not followed by a digit in float literal")
        while is_digit(self.ch):
            x += int(self.ch) / d
            d *= 10
            self.readch()
        return Token(TokenKind.REAL, x)

    def scan_word(self) -> Token:
        chars = []
        while is_letter(self.ch) or is_digit(self.ch):
            chars.append(self.ch)
            self.readch()
        lexeme = "".join(chars).lower()
        word = self.words.get(lexeme)
        if word is None:
            word = Token(TokenKind.ID, lexeme)
            self.reserve(word)
        return word


def tokenize(code: str) -> Tuple[List[Tuple[int, Token]], Optional[LexicalError]]:
    """Scan ``code`` up to its end or its first lexical error.

    Returns the ``(line, token)`` pairs read so far and the error, if any.
    """
    lexer = Lexer(code)
    rows = []
    try:
        for token in lexer:
            rows.append((lexer.line, token))
    except LexicalError as exc:
        return rows, exc
    return rows, None


def format_token_table(rows: List[Tuple[int, Token]]) -> str:
    table = "{:<20}{:<14}{:<14}{}\n".format("Lexeme", "Kind", "Group", "Line")
    table += "-" * 54 + "\n"
    for line, token in rows:
        table += "{:<20}{:<14}{:<14}{}\n".format(str(token), token.kind.name, token.kind.group, line)
    return table


def format_lexical_error(error: Optional[LexicalError]) -> str:
    if error is None:
        return "No lexical errors."
    return str(error)
