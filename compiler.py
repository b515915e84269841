import sys
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional, TextIO, Union

from errors import CompilationError
from lexical import CharacterSource, Lexer
from syntactic import Parser, SyntacticError

SUCCESS_MESSAGE = "Compilation finished without errors."

# Each nested '(' or statement body costs a handful of Python frames.
RECURSION_LIMIT = 10000


@dataclass
class CompilationResult:
    accepted: bool
    error: Optional[CompilationError] = None
    symbol_table_text: str = ""

    @property
    def message(self) -> str:
        return SUCCESS_MESSAGE if self.accepted else str(self.error)


@contextmanager
def recursion_limit(limit: int) -> Iterator[None]:
    """Raise the interpreter recursion limit to at least ``limit`` for the block."""
    previous = sys.getrecursionlimit()
    sys.setrecursionlimit(max(previous, limit))
    try:
        yield
    finally:
        sys.setrecursionlimit(previous)


def compile_source(source: Union[CharacterSource, TextIO, str]) -> CompilationResult:
    """Run the lexer, parser and type checks over ``source``.

    The first lexical, syntax or semantic error ends the run and is carried
    in the result. Nesting deeper than the parser can recurse is rejected as
    a syntax error.
    """
    lexer = Lexer(source)
    try:
        parser = Parser(lexer)
        with recursion_limit(RECURSION_LIMIT):
            parser.parse()
    except RecursionError:
        error = SyntacticError("nesting too deep", lexer.line, parser.look)
        return CompilationResult(accepted=False, error=error)
    except CompilationError as exc:
        return CompilationResult(accepted=False, error=exc)
    return CompilationResult(accepted=True, symbol_table_text=parser.symbol_table.format())


def compile_file(path: str, encoding: str = "utf-8") -> CompilationResult:
    with CharacterSource(open(path, "r", encoding=encoding)) as source:
        return compile_source(source)
