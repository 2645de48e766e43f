import math
import sys

from colorama import Style

from ast_nodes import (
    Empty, Scope, Print, Assign, Identifier, Conditional, Operation, Number, While, String,
)
from errors import DivisionByZeroError, MacroCalcRuntimeError, MalformedTreeError, ModulusByZeroError


def format_number(value: float) -> str:
    # Same text a C++ ostream prints for a double by default.
    return format(value, "g")


def _truth(value: float) -> float:
    return 1.0 if value != 0 else 0.0


def _power(left: float, right: float) -> float:
    try:
        return math.pow(left, right)
    except OverflowError:
        if left < 0 and right.is_integer() and int(right) % 2 == 1:
            return -math.inf
        return math.inf
    except ValueError:
        # math.pow rejects what C pow maps to inf/nan
        if left == 0 and right < 0:
            return math.inf
        return math.nan


def _modulus(left: float, right: float, line=None) -> float:
    if not (math.isfinite(left) and math.isfinite(right)):
        raise MacroCalcRuntimeError("Modulus needs finite operands", line=line)
    a = int(left)
    b = int(right)
    if b == 0:
        raise ModulusByZeroError("Modulus by zero", line=line)
    # remainder takes the sign of the dividend
    return float(int(math.fmod(a, b)))


class Interpreter:
    """Walks an AST against a SymbolTable.

    Statements evaluate to ``None``; expressions evaluate to a float.
    """

    def __init__(self, out=None, trace: bool = False, trace_out=None, color: bool = False):
        self.out = out if out is not None else sys.stdout
        self.trace_enabled = trace
        self.trace_out = trace_out if trace_out is not None else sys.stderr
        self.color = color
        self.depth = 0

    def run(self, root, symbols):
        if not isinstance(root, Scope):
            raise MalformedTreeError("program root must be a scope")
        self.depth = 0
        self.evaluate(root, symbols)

    def _trace(self, node):
        text = f"TRACE {type(node).__name__} line={node.line} depth={self.depth}"
        if self.color:
            text = f"{Style.DIM}{text}{Style.RESET_ALL}"
        print(text, file=self.trace_out)

    def evaluate(self, node, symbols):
        if self.trace_enabled:
            self._trace(node)

        self.depth += 1
        try:
            if isinstance(node, Number):
                return node.value
            if isinstance(node, Identifier):
                return symbols.get(node.var_id, node.token)
            if isinstance(node, Operation):
                return self.eval_operation(node, symbols)
            if isinstance(node, Assign):
                return self.eval_assign(node, symbols)
            if isinstance(node, Scope):
                self.eval_scope(node, symbols)
                return None
            if isinstance(node, Print):
                self.eval_print(node, symbols)
                return None
            if isinstance(node, Conditional):
                self.eval_conditional(node, symbols)
                return None
            if isinstance(node, While):
                self.eval_while(node, symbols)
                return None
            if isinstance(node, (Empty, String)):
                return None
            raise MalformedTreeError(f"Unknown node type: {type(node).__name__}")
        finally:
            self.depth -= 1

    def evaluate_expect(self, node, symbols) -> float:
        value = self.evaluate(node, symbols)
        if value is None:
            raise MalformedTreeError(f"{type(node).__name__} node did not produce a value", line=node.line)
        return value

    # -------- statements --------
    def eval_scope(self, node, symbols):
        symbols.push_scope()
        try:
            for stmt in node.statements:
                self.evaluate(stmt, symbols)
        finally:
            symbols.pop_scope()

    def eval_print(self, node, symbols):
        parts = []
        for item in node.items:
            if isinstance(item, String):
                parts.append(item.text)
            else:
                parts.append(format_number(self.evaluate_expect(item, symbols)))
        self.out.write("".join(parts) + "\n")

    def eval_conditional(self, node, symbols):
        if self.evaluate_expect(node.condition, symbols) != 0:
            self.evaluate(node.then_branch, symbols)
        elif node.else_branch is not None:
            self.evaluate(node.else_branch, symbols)

    def eval_while(self, node, symbols):
        while self.evaluate_expect(node.condition, symbols) != 0:
            self.evaluate(node.body, symbols)

    # -------- expressions --------
    def eval_assign(self, node, symbols):
        value = self.evaluate_expect(node.value, symbols)
        symbols.set(node.target.var_id, value)
        return value

    def eval_operation(self, node, symbols):
        op = node.op
        operands = node.operands

        left = self.evaluate_expect(operands[0], symbols)

        if len(operands) == 1:
            if op == "!":
                return 1.0 if left == 0 else 0.0
            if op == "-":
                return -left
            raise MalformedTreeError(f"Tried to run unknown unary operator {op}", line=node.line)

        # short-circuit before touching the right operand
        if op == "&&":
            if left == 0:
                return 0.0
            return _truth(self.evaluate_expect(operands[1], symbols))
        if op == "||":
            if left != 0:
                return 1.0
            return _truth(self.evaluate_expect(operands[1], symbols))

        right = self.evaluate_expect(operands[1], symbols)

        if op == "**":
            return _power(left, right)
        if op == "*":
            return left * right
        if op == "/":
            if right == 0:
                raise DivisionByZeroError("Division by zero", line=node.line)
            return left / right
        if op == "%":
            return _modulus(left, right, line=node.line)
        if op == "+":
            return left + right
        if op == "-":
            return left - right
        if op == "<":
            return _truth(left < right)
        if op == ">":
            return _truth(left > right)
        if op == "<=":
            return _truth(left <= right)
        if op == ">=":
            return _truth(left >= right)
        if op == "==":
            return _truth(left == right)
        if op == "!=":
            return _truth(left != right)

        raise MalformedTreeError(f"Tried to run unknown operator {op}", line=node.line)