class MacroCalcError(Exception):
    kind = "Error"

    def __init__(self, message: str, line: int | None = None, column: int | None = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    def format(self, indent: str = "") -> str:
        text = f"{indent}{self.kind}: {self.message}"
        if self.line is not None and self.column is not None:
            text += f" (line {self.line}, col {self.column})"
        elif self.line is not None:
            text += f" (line {self.line})"
        return text

    def __str__(self) -> str:
        return self.format()


class MacroCalcSyntaxError(MacroCalcError):
    kind = "Syntax error"


class MacroCalcRuntimeError(MacroCalcError):
    kind = "Runtime error"


class UndefinedVariableError(MacroCalcRuntimeError):
    pass


class UninitializedVariableError(MacroCalcRuntimeError):
    pass


class RedeclarationError(MacroCalcRuntimeError):
    pass


class DivisionByZeroError(MacroCalcRuntimeError):
    pass


class ModulusByZeroError(MacroCalcRuntimeError):
    pass


class ScopeError(MacroCalcRuntimeError):
    pass


class MalformedTreeError(MacroCalcError):
    # Raised for parser bugs, never for user mistakes.
    kind = "Internal error"
