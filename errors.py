class CompilationError(Exception):
    """First fault found in a source program; aborts the whole pass."""

    category = "Compilation"

    def __init__(self, cause: str, line: int) -> None:
        self.cause = cause
        self.line = line
        super().__init__(f"{self.category} error at line {line}: {cause}")
