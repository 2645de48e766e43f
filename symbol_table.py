from errors import (
    RedeclarationError,
    ScopeError,
    UndefinedVariableError,
    UninitializedVariableError,
)


class VariableInfo:
    def __init__(self, name, line_declared, value=0.0):
        self.name = name
        self.value = value
        self.line_declared = line_declared
        self.initialized = False

    def __repr__(self):
        state = self.value if self.initialized else "<unset>"
        return f"VariableInfo({self.name}={state}, line={self.line_declared})"


class SymbolTable:
    """Nested name scopes over a flat, append-only list of variable records.

    A variable's id is its index in the record list. Ids are handed out once,
    at declaration, and stay valid for the lifetime of the table, so the
    parser can resolve names up front and the interpreter only ever touches
    records by id.
    """

    def __init__(self):
        self.scopes = [{}]      # name -> var id, innermost last
        self.variables = []     # list[VariableInfo]

    def __len__(self):
        return len(self.variables)

    @property
    def depth(self):
        return len(self.scopes)

    def push_scope(self):
        self.scopes.append({})

    def pop_scope(self):
        if not self.scopes:
            raise ScopeError("tried to pop nonexistent scope")
        if len(self.scopes) == 1:
            raise ScopeError("tried to pop outermost scope")
        self.scopes.pop()

    def has_var(self, name):
        return any(name in scope for scope in self.scopes)

    def declare(self, name, line=None):
        scope = self.scopes[-1]
        if name in scope:
            first = self.variables[scope[name]].line_declared
            where = f" (first declared on line {first})" if first is not None else ""
            raise RedeclarationError(f"variable '{name}' already declared in this scope{where}", line=line)

        var_id = len(self.variables)
        self.variables.append(VariableInfo(name, line))
        scope[name] = var_id
        return var_id

    def resolve(self, name, line=None):
        for scope in reversed(self.scopes):
            if name in scope:
                return scope[name]
        raise UndefinedVariableError(f"undefined variable '{name}'", line=line)

    def get(self, var_id, token=None):
        info = self.variables[var_id]
        if not info.initialized:
            line = token.line if token is not None else None
            raise UninitializedVariableError(
                f"variable '{info.name}' used before it was given a value", line=line
            )
        return info.value

    def set(self, var_id, value):
        info = self.variables[var_id]
        info.value = value
        info.initialized = True

    def checkpoint(self):
        return len(self.variables), len(self.scopes)

    def rollback(self, mark):
        # Forget every declaration made since checkpoint(); older records keep their values.
        count, depth = mark
        del self.scopes[max(depth, 1):]
        for scope in self.scopes:
            for name in [n for n, var_id in scope.items() if var_id >= count]:
                del scope[name]
        del self.variables[count:]

    def reset(self):
        # Keeps every id valid so an already-built AST can run again.
        del self.scopes[1:]
        for info in self.variables:
            info.value = 0.0
            info.initialized = False
