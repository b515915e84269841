"""Tests for the character source and the lexer."""

import io

import pytest

import lexical
from conftest import float_by_accumulation, scan_all
from lexical import (
    RESERVED_WORDS, CharacterSource, Lexer, LexicalError, Token, TokenKind,
    format_lexical_error, format_token_table, tokenize,
)


def _kinds(source):
    return [token.kind for token in scan_all(source)]


class TestCharacterSource:
    def test_reads_one_character_at_a_time(self):
        source = CharacterSource.from_string("ab")
        assert source.read() == "a"
        assert source.read() == "b"

    def test_end_of_input_is_none(self):
        source = CharacterSource.from_string("")
        assert source.read() is None
        assert source.read() is None

    def test_context_manager_closes_stream(self):
        stream = io.StringIO("x")
        with CharacterSource(stream) as source:
            assert source.read() == "x"
        assert stream.closed


class TestReservedWords:
    @pytest.mark.parametrize("lexeme,kind", sorted(RESERVED_WORDS.items()))
    def test_lowercase_spelling(self, lexeme, kind):
        assert _kinds(lexeme) == [kind]

    @pytest.mark.parametrize("lexeme", ["ProGram", "BEGIN", "End", "wHiLe", "OUT"])
    def test_case_folding(self, lexeme):
        assert _kinds(lexeme) == [RESERVED_WORDS[lexeme.lower()]]

    def test_reserved_word_is_interned(self):
        lexer = Lexer("program PROGRAM")
        first, second = lexer.scan(), lexer.scan()
        assert first is second
        assert first is lexer.words["program"]


class TestIdentifiers:
    def test_identifier_is_lowercased(self):
        token = scan_all("Total_1")[0]
        assert token == Token(TokenKind.ID, "total_1")

    def test_repeated_identifier_is_interned(self):
        lexer = Lexer("count COUNT other")
        first, second, third = lexer.scan(), lexer.scan(), lexer.scan()
        assert first is second
        assert first.kind is third.kind is TokenKind.ID
        assert str(first) != str(third)

    def test_leading_underscore(self):
        assert scan_all("_tmp")[0] == Token(TokenKind.ID, "_tmp")

    def test_keyword_prefix_is_an_identifier(self):
        assert scan_all("endif")[0] == Token(TokenKind.ID, "endif")


class TestNumbers:
    @pytest.mark.parametrize("digits", ["0", "7", "42", "000123", "9876543210"])
    def test_integer_literal(self, digits):
        assert scan_all(digits) == [Token(TokenKind.NUM, int(digits))]

    @pytest.mark.parametrize("integer_part,fraction", [
        ("3", "14"), ("0", "5"), ("12", "0625"), ("1", "1"), ("100", "333333"),
    ])
    def test_float_literal_uses_incremental_accumulation(self, integer_part, fraction):
        token = scan_all(f"{integer_part}.{fraction}")[0]
        assert token.kind is TokenKind.REAL
        assert token.value == float_by_accumulation(integer_part, fraction)

    def test_minus_is_never_part_of_a_literal(self):
        assert scan_all("-5") == [Token(TokenKind.MINUS), Token(TokenKind.NUM, 5)]

    @pytest.mark.parametrize("source", ["3.", "3.x", "3. 5"])
    def test_point_without_digit_is_an_error(self, source):
        with pytest.raises(LexicalError, match="decimal point"):
            scan_all(source)


class TestOperators:
    @pytest.mark.parametrize("text", ["+", "-", "*", "/", ";", ":", ",", "(", ")", "=", "<", ">", "!"])
    def test_single_character_round_trip(self, text):
        token = scan_all(text)[0]
        assert token.kind is not TokenKind.SYMBOL
        assert scan_all(str(token))[0].kind is token.kind

    @pytest.mark.parametrize("text,shared", [
        ("&&", lexical.AND), ("||", lexical.OR), ("==", lexical.EQ),
        ("!=", lexical.NE), ("<=", lexical.LE), (">=", lexical.GE),
    ])
    def test_two_character_operators_are_shared(self, text, shared):
        assert scan_all(text)[0] is shared

    def test_lone_ampersand_is_its_own_token(self):
        assert scan_all("& x") == [Token(TokenKind.SYMBOL, "&"), Token(TokenKind.ID, "x")]

    def test_second_character_is_not_lost(self):
        assert _kinds("=x") == [TokenKind.ASSIGN, TokenKind.ID]
        assert _kinds("<5") == [TokenKind.LT, TokenKind.NUM]

    def test_unknown_character(self):
        assert scan_all("#") == [Token(TokenKind.SYMBOL, "#")]


class TestCharAndString:
    def test_char_constant(self):
        assert scan_all("'a'") == [Token(TokenKind.CHAR_CONST, "a")]

    def test_newline_char_constant_counts_the_line(self):
        lexer = Lexer("'\n' x")
        assert lexer.scan() == Token(TokenKind.CHAR_CONST, "\n")
        assert lexer.line == 2

    @pytest.mark.parametrize("source", ["'ab'", "'a", "'"])
    def test_malformed_char_constant(self, source):
        with pytest.raises(LexicalError, match="malformed character constant"):
            scan_all(source)

    def test_string_literal(self):
        assert scan_all('"hello, world"') == [Token(TokenKind.LITERAL, "hello, world")]

    def test_empty_string_literal(self):
        assert scan_all('""') == [Token(TokenKind.LITERAL, "")]

    @pytest.mark.parametrize("source", ['"abc', '"abc\ndef"'])
    def test_unterminated_string(self, source):
        with pytest.raises(LexicalError, match="unterminated string literal") as excinfo:
            scan_all(source)
        assert excinfo.value.line == 1


class TestCommentsAndLines:
    def test_block_comment_is_skipped(self):
        assert _kinds("{ anything: 1 + 2 } x") == [TokenKind.ID]

    def test_unterminated_block_comment(self):
        with pytest.raises(LexicalError) as excinfo:
            scan_all("x { comment never closed")
        assert str(excinfo.value) == "Lexical error at line 1: unterminated block comment"

    def test_line_comment_is_skipped(self):
        assert _kinds("% note\nx") == [TokenKind.ID]

    def test_line_comment_at_end_of_input(self):
        assert _kinds("x % trailing") == [TokenKind.ID]

    def test_line_counter(self):
        lexer = Lexer("a\n\nb\r\n\tc")
        lexer.scan()
        assert lexer.line == 1
        lexer.scan()
        assert lexer.line == 3
        lexer.scan()
        assert lexer.line == 4

    def test_newlines_in_comments_are_counted(self):
        lexer = Lexer("{ one\ntwo }\n% three\nx")
        lexer.scan()
        assert lexer.line == 4

    def test_end_of_input_repeats(self):
        lexer = Lexer("  \n ")
        assert lexer.scan() is None
        assert lexer.scan() is None


class TestTokenTable:
    @pytest.mark.parametrize("kind,group", [
        (TokenKind.WHILE, "reserved"),
        (TokenKind.PLUS, "arithmetic"),
        (TokenKind.LE, "relational"),
        (TokenKind.NOT, "logical"),
        (TokenKind.SEMICOLON, "delimiter"),
        (TokenKind.REAL, "number"),
        (TokenKind.LITERAL, "string"),
        (TokenKind.SYMBOL, "unknown"),
    ])
    def test_kind_group(self, kind, group):
        assert kind.group == group

    def test_every_kind_has_a_group(self):
        assert all(kind.group for kind in TokenKind)

    def test_rows_carry_lines(self):
        rows, error = tokenize("program\nbegin")
        assert error is None
        assert [(line, str(token)) for line, token in rows] == [(1, "program"), (2, "begin")]

    def test_stops_at_first_error(self):
        rows, error = tokenize("x 'ab'")
        assert [str(token) for _, token in rows] == ["x"]
        assert isinstance(error, LexicalError)
        assert format_lexical_error(error).startswith("Lexical error at line 1")

    def test_format(self):
        rows, _ = tokenize("x = 1")
        table = format_token_table(rows)
        assert "ASSIGN" in table
        assert "assignment" in table
        assert "NUM" in table
        assert format_lexical_error(None) == "No lexical errors."
