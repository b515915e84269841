import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from errors import CompilationError


class Type(Enum):
    INT = "Int"
    FLOAT = "Float"
    CHAR = "Char"
    BOOL = "Bool"
    # "no valid result" from promote(); never the type of a declared name
    ERROR = "Error"

    def __str__(self) -> str:
        return self.value


class SemanticError(CompilationError):
    category = "Semantic"


@dataclass
class SymbolTableEntry:
    name: str
    type: Type
    scope: str
    level: int
    line: Optional[int]


class SymbolTable:
    """Stack of scopes, innermost last, each mapping a name to its entry."""

    def __init__(self) -> None:
        self.scopes: List[Dict[str, SymbolTableEntry]] = []
        self.scope_names: List[str] = []
        self.entries: List[SymbolTableEntry] = []
        self.scope_counter: int = 0

    @property
    def depth(self) -> int:
        return len(self.scopes)

    def enter_scope(self, hint: str) -> str:
        if not self.scopes:
            scope_name = "global"
        else:
            self.scope_counter += 1
            scope_name = f"{hint or 'scope'}#{self.scope_counter}"
        self.scopes.append({})
        self.scope_names.append(scope_name)
        logging.info(f"ENTER scope {scope_name}")
        return scope_name

    def exit_scope(self) -> None:
        self.scopes.pop()
        logging.info(f"LEAVE scope {self.scope_names.pop()}")

    def declare(self, name: str, sym_type: Type, line: Optional[int]) -> SymbolTableEntry:
        current_scope = self.scopes[-1]
        if name in current_scope:
            raise SemanticError(f"identifier '{name}' already declared in this block", line)
        entry = SymbolTableEntry(
            name=name,
            type=sym_type,
            scope=self.scope_names[-1],
            level=len(self.scopes) - 1,
            line=line,
        )
        current_scope[name] = entry
        self.entries.append(entry)
        logging.info(f"Insert: {name} ({sym_type}) in {entry.scope}")
        return entry

    def lookup(self, name: str) -> Optional[SymbolTableEntry]:
        logging.info(f"Lookup: {name}. (Scope name: {self.scope_names[-1]})")
        for scope in reversed(self.scopes):
            entry = scope.get(name)
            if entry:
                return entry
        return None

    def format(self) -> str:
        if not self.entries:
            return "Empty symbol table."
        header = "{:<20}{:<10}{:<18}{:<8}{}\n".format("Name", "Type", "Scope", "Level", "Line")
        lines = [header, "-" * 64 + "\n"]
        for entry in self.entries:
            line_text = "-" if entry.line is None else str(entry.line)
            lines.append("{:<20}{:<10}{:<18}{:<8}{}\n".format(
                entry.name, str(entry.type), entry.scope, entry.level, line_text))
        return "".join(lines)


def is_numeric(sym_type: Type) -> bool:
    return sym_type in {Type.INT, Type.FLOAT}


def promote(left: Type, right: Type) -> Type:
    """Result type of an arithmetic operation, or ``Type.ERROR``.

    Int/Float mix to Float, Int with Int stays Int, and a Char next to an
    Int (either side) is read as an Int. Everything else is rejected.
    """
    if is_numeric(left) and is_numeric(right):
        return Type.FLOAT if Type.FLOAT in {left, right} else Type.INT
    if {left, right} == {Type.CHAR, Type.INT}:
        return Type.INT
    return Type.ERROR


def is_comparable(left: Type, right: Type) -> bool:
    return promote(left, right) is not Type.ERROR
