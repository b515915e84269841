import pytest

from lexical import Lexer
from syntactic import Parser


def scan_all(source):
    """Every token of ``source`` up to end of input."""
    return list(Lexer(source))


def float_by_accumulation(integer_part, fraction_digits):
    x = float(int(integer_part))
    d = 10.0
    for digit in fraction_digits:
        x += int(digit) / d
        d *= 10
    return x


@pytest.fixture
def parser_for():
    def make(source):
        return Parser(Lexer(source))
    return make
