from errors import MalformedTreeError


UNARY_OPS = ("!", "-")
BINARY_OPS = (
    "**", "*", "/", "%", "+", "-",
    "<", ">", "<=", ">=", "==", "!=",
    "&&", "||",
)


class ASTNode:
    # Optional source line (1-based). Parser may set this.
    line: int | None = None

    @property
    def children(self):
        return []


def _check_node(node, context):
    if not isinstance(node, ASTNode):
        raise MalformedTreeError(f"{context} must be an AST node, got {type(node).__name__}")
    return node


def _check_expr(node, context):
    _check_node(node, context)
    if not isinstance(node, EXPRESSION_NODES):
        raise MalformedTreeError(f"{context} must be an expression, got {type(node).__name__}")
    return node


def _check_statement(node, context):
    _check_node(node, context)
    if isinstance(node, String):
        raise MalformedTreeError(f"{context} cannot be a string literal")
    return node


class Empty(ASTNode):
    pass


class Scope(ASTNode):
    def __init__(self, statements=None):
        self.statements = [_check_statement(s, "scope statement") for s in statements or []]

    @property
    def children(self):
        return list(self.statements)


class Print(ASTNode):
    def __init__(self, items=None):
        # items: String pieces and expressions, printed in order
        checked = []
        for item in items or []:
            if not isinstance(item, String):
                _check_expr(item, "print item")
            checked.append(item)
        self.items = checked

    @property
    def children(self):
        return list(self.items)


class Assign(ASTNode):
    def __init__(self, target, value):
        if not isinstance(target, Identifier):
            raise MalformedTreeError("assignment target must be an identifier")
        self.target = target
        self.value = _check_expr(value, "assigned value")

    @property
    def children(self):
        return [self.target, self.value]


class Identifier(ASTNode):
    def __init__(self, var_id, token=None):
        if not isinstance(var_id, int) or var_id < 0:
            raise MalformedTreeError(f"invalid variable id: {var_id!r}")
        self.var_id = var_id
        self.token = token  # source position for error messages
        if token is not None:
            self.line = token.line

    @property
    def name(self):
        return self.token.value if self.token is not None else None


class Conditional(ASTNode):
    def __init__(self, condition, then_branch, else_branch=None):
        self.condition = _check_expr(condition, "if condition")
        self.then_branch = _check_statement(then_branch, "if branch")
        self.else_branch = None
        if else_branch is not None:
            self.else_branch = _check_statement(else_branch, "else branch")

    @property
    def children(self):
        kids = [self.condition, self.then_branch]
        if self.else_branch is not None:
            kids.append(self.else_branch)
        return kids


class Operation(ASTNode):
    def __init__(self, op, operands):
        operands = list(operands)
        if len(operands) == 1:
            if op not in UNARY_OPS:
                raise MalformedTreeError(f"unknown unary operator: {op}")
        elif len(operands) == 2:
            if op not in BINARY_OPS:
                raise MalformedTreeError(f"unknown binary operator: {op}")
        else:
            raise MalformedTreeError(f"operator {op} expects 1 or 2 operands, got {len(operands)}")
        self.op = op
        self.operands = [_check_expr(o, f"operand of {op}") for o in operands]

    @property
    def children(self):
        return list(self.operands)


class Number(ASTNode):
    def __init__(self, value):
        self.value = float(value)


class While(ASTNode):
    def __init__(self, condition, body):
        self.condition = _check_expr(condition, "while condition")
        self.body = _check_statement(body, "while body")

    @property
    def children(self):
        return [self.condition, self.body]


class String(ASTNode):
    def __init__(self, text):
        if not isinstance(text, str):
            raise MalformedTreeError("string literal text must be a str")
        self.text = text


EXPRESSION_NODES = (Assign, Identifier, Operation, Number)
