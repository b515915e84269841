# syntactic.py
#
# Recursive-descent parser with the type checks evaluated in the same pass.
# No tree is built: every expression procedure returns the Type it produced.
# The first lexical, syntax or semantic error raised ends the pass.

from typing import Optional

from errors import CompilationError
from lexical import Lexer, Token, TokenKind
from semantic import SemanticError, SymbolTable, Type, is_comparable, is_numeric, promote

TYPE_KEYWORDS = {
    TokenKind.INT: Type.INT,
    TokenKind.FLOAT: Type.FLOAT,
    TokenKind.CHAR: Type.CHAR,
}

CONSTANT_TYPES = {
    TokenKind.NUM: Type.INT,
    TokenKind.REAL: Type.FLOAT,
    TokenKind.CHAR_CONST: Type.CHAR,
}

RELOPS = {TokenKind.EQ, TokenKind.GT, TokenKind.GE, TokenKind.LT, TokenKind.LE, TokenKind.NE}
ADDOPS = {TokenKind.PLUS, TokenKind.MINUS, TokenKind.OR}
MULOPS = {TokenKind.TIMES, TokenKind.DIV, TokenKind.AND}


class SyntacticError(CompilationError):
    category = "Syntax"

    def __init__(self, message: str, line: int, found: Optional[Token]) -> None:
        self.message = message
        self.found = "EOF" if found is None else str(found)
        super().__init__(f"{message} (found: {self.found})", line)


class Parser:
    def __init__(self, lexer: Lexer) -> None:
        self.lexer = lexer
        self.look: Optional[Token] = None
        self.symbol_table = SymbolTable()
        self.move()
        self.symbol_table.enter_scope("global")

    # ------------------------------------------------------------------
    # token handling and diagnostics

    def move(self) -> None:
        self.look = self.lexer.scan()

    def check(self, *kinds: TokenKind) -> bool:
        return self.look is not None and self.look.kind in kinds

    def error_syntax(self, message: str) -> SyntacticError:
        return SyntacticError(message, self.lexer.line, self.look)

    def error_semantic(self, message: str) -> SemanticError:
        return SemanticError(message, self.lexer.line)

    def match(self, kind: TokenKind) -> Token:
        token = self.look
        if token is None or token.kind is not kind:
            raise self.error_syntax(f"expected '{kind.value}'")
        self.move()
        return token

    def declare(self, name: str, sym_type: Type) -> None:
        self.symbol_table.declare(name, sym_type, self.lexer.line)

    def lookup(self, name: str) -> Type:
        entry = self.symbol_table.lookup(name)
        if entry is None:
            raise self.error_semantic(f"identifier '{name}' not declared")
        return entry.type

    # ------------------------------------------------------------------
    # type rules

    def arithmetic(self, left: Type, right: Type) -> Type:
        result = promote(left, right)
        if result is Type.ERROR:
            raise self.error_semantic(f"incompatible types in arithmetic operation ({left} x {right})")
        return result

    def require_bool(self, sym_type: Type, what: str) -> None:
        if sym_type is not Type.BOOL:
            raise self.error_semantic(f"{what} must be Bool (found: {sym_type})")

    # ------------------------------------------------------------------
    # entry point

    def parse(self) -> None:
        """Recognise a whole program and nothing after it."""
        self.program()
        if self.look is not None:
            raise self.error_syntax("unexpected tokens after 'end'")
        self.symbol_table.exit_scope()

    # ------------------------------------------------------------------
    # declarations and statements

    def program(self) -> None:
        """program ::= PROGRAM [decl-list] BEGIN stmt-list END"""
        self.match(TokenKind.PROGRAM)
        if self.check(*TYPE_KEYWORDS):
            self.decl_list()
        self.match(TokenKind.BEGIN)
        self.stmt_list()
        self.match(TokenKind.END)

    def decl_list(self) -> None:
        self.decl()
        while self.check(*TYPE_KEYWORDS):
            self.decl()

    def decl(self) -> None:
        """decl ::= type ':' ident-list ';'"""
        sym_type = self.type_spec()
        self.match(TokenKind.COLON)
        self.ident_list(sym_type)
        self.match(TokenKind.SEMICOLON)

    def ident_list(self, sym_type: Type) -> None:
        self.declare(self.match(TokenKind.ID).value, sym_type)
        while self.check(TokenKind.COMMA):
            self.match(TokenKind.COMMA)
            self.declare(self.match(TokenKind.ID).value, sym_type)

    def type_spec(self) -> Type:
        if not self.check(*TYPE_KEYWORDS):
            raise self.error_syntax("expected a type")
        sym_type = TYPE_KEYWORDS[self.look.kind]
        self.move()
        return sym_type

    def block(self, hint: str) -> None:
        """[decl-list] stmt-list, inside a scope of its own."""
        self.symbol_table.enter_scope(hint)
        if self.check(*TYPE_KEYWORDS):
            self.decl_list()
        self.stmt_list()
        self.symbol_table.exit_scope()

    def stmt_list(self) -> None:
        self.stmt()
        while self.check(TokenKind.SEMICOLON):
            self.match(TokenKind.SEMICOLON)
            self.stmt()

    def stmt(self) -> None:
        if self.look is None:
            raise self.error_syntax("expected a statement")
        handler = {
            TokenKind.ID: self.assign_stmt,
            TokenKind.IF: self.if_stmt,
            TokenKind.WHILE: self.while_stmt,
            TokenKind.REPEAT: self.repeat_stmt,
            TokenKind.IN: self.read_stmt,
            TokenKind.OUT: self.write_stmt,
        }.get(self.look.kind)
        if handler is None:
            raise self.error_syntax("invalid start of statement")
        handler()

    def assign_stmt(self) -> None:
        """assign ::= ID '=' simple-expr"""
        name = self.match(TokenKind.ID).value
        target_type = self.lookup(name)
        self.match(TokenKind.ASSIGN)
        expr_type = self.simple_expr()
        if expr_type is not target_type:
            raise self.error_semantic(
                f"expression type ({expr_type}) incompatible with '{name}' ({target_type})")

    def if_stmt(self) -> None:
        self.match(TokenKind.IF)
        self.require_bool(self.condition(), "'if' condition")
        self.match(TokenKind.THEN)
        self.block("if_then")
        if self.check(TokenKind.ELSE):
            self.match(TokenKind.ELSE)
            self.block("if_else")
        self.match(TokenKind.END)

    def while_stmt(self) -> None:
        self.match(TokenKind.WHILE)
        self.require_bool(self.condition(), "'while' condition")
        self.match(TokenKind.DO)
        self.block("while_body")
        self.match(TokenKind.END)

    def repeat_stmt(self) -> None:
        self.match(TokenKind.REPEAT)
        self.block("repeat_body")
        self.match(TokenKind.UNTIL)
        self.require_bool(self.condition(), "'until' condition")

    def read_stmt(self) -> None:
        """read-stmt ::= IN '(' ID ')'"""
        self.match(TokenKind.IN)
        self.match(TokenKind.LPAREN)
        self.lookup(self.match(TokenKind.ID).value)
        self.match(TokenKind.RPAREN)

    def write_stmt(self) -> None:
        """write-stmt ::= OUT '(' writable ')'"""
        self.match(TokenKind.OUT)
        self.match(TokenKind.LPAREN)
        self.writable()
        self.match(TokenKind.RPAREN)

    def writable(self) -> None:
        if self.check(TokenKind.LITERAL):
            self.match(TokenKind.LITERAL)
        else:
            self.simple_expr()

    # ------------------------------------------------------------------
    # expressions

    def condition(self) -> Type:
        return self.expression()

    def expression(self) -> Type:
        """expression ::= simple-expr [relop simple-expr]"""
        left = self.simple_expr()
        if not self.check(*RELOPS):
            return left
        self.move()
        right = self.simple_expr()
        if not is_comparable(left, right):
            raise self.error_semantic(f"incompatible types in relational operator ({left} x {right})")
        return Type.BOOL

    def simple_expr(self) -> Type:
        """simple-expr ::= term {addop term}"""
        result = self.term()
        while self.check(*ADDOPS):
            op = self.look.kind
            self.move()
            result = self.binary(op, result, self.term())
        return result

    def term(self) -> Type:
        """term ::= factor-a {mulop factor-a}"""
        result = self.factor_a()
        while self.check(*MULOPS):
            op = self.look.kind
            self.move()
            result = self.binary(op, result, self.factor_a())
        return result

    def binary(self, op: TokenKind, left: Type, right: Type) -> Type:
        # || and && are boolean only when both sides already are
        if op in (TokenKind.OR, TokenKind.AND) and left is Type.BOOL and right is Type.BOOL:
            return Type.BOOL
        return self.arithmetic(left, right)

    def factor_a(self) -> Type:
        """factor-a ::= ['!' | '-'] factor"""
        if self.check(TokenKind.NOT):
            self.move()
            self.require_bool(self.factor(), "operand of '!'")
            return Type.BOOL
        if self.check(TokenKind.MINUS):
            self.move()
            operand = self.factor()
            if is_numeric(operand) or operand is Type.CHAR:
                return operand
            raise self.error_semantic(f"operand of unary '-' must be numeric or Char (found: {operand})")
        return self.factor()

    def factor(self) -> Type:
        """factor ::= ID | constant | '(' expression ')'"""
        if self.check(TokenKind.ID):
            return self.lookup(self.match(TokenKind.ID).value)
        if self.check(*CONSTANT_TYPES):
            return self.constant()
        if self.check(TokenKind.LPAREN):
            self.match(TokenKind.LPAREN)
            inner = self.expression()
            self.match(TokenKind.RPAREN)
            return inner
        raise self.error_syntax("expected a factor")

    def constant(self) -> Type:
        if not self.check(*CONSTANT_TYPES):
            raise self.error_syntax("expected a constant")
        sym_type = CONSTANT_TYPES[self.look.kind]
        self.move()
        return sym_type
