from errors import RedeclarationError, ScopeError, UndefinedVariableError, UninitializedVariableError
from lexer import Token
from symbol_table import SymbolTable


def expect_error(fn, err_type):
    try:
        fn()
    except err_type as e:
        return e
    raise AssertionError(f"Expected {err_type.__name__}")


def test_ids_are_sequential_and_stable():
    table = SymbolTable()
    a = table.declare("a", 1)
    table.push_scope()
    b = table.declare("b", 2)
    table.pop_scope()
    c = table.declare("c", 3)
    if (a, b, c) != (0, 1, 2):
        raise AssertionError(f"unexpected ids: {(a, b, c)}")
    # records outlive the scope that declared them
    table.set(b, 4.0)
    if table.get(b) != 4.0 or len(table) != 3:
        raise AssertionError("record for b should still be usable")


def test_shadowing_resolves_innermost_first():
    table = SymbolTable()
    outer = table.declare("x", 1)
    table.push_scope()
    inner = table.declare("x", 2)
    if table.resolve("x") != inner:
        raise AssertionError("inner declaration should win")
    table.pop_scope()
    if table.resolve("x") != outer:
        raise AssertionError("outer declaration should be visible again")


def test_redeclare_in_same_scope_fails():
    table = SymbolTable()
    table.declare("x", 1)
    err = expect_error(lambda: table.declare("x", 4), RedeclarationError)
    if err.line != 4:
        raise AssertionError(f"error should carry line 4, got {err.line}")


def test_undefined_name_carries_line():
    table = SymbolTable()
    err = expect_error(lambda: table.resolve("nope", 12), UndefinedVariableError)
    if err.line != 12 or "nope" not in err.message:
        raise AssertionError(f"unexpected error: {err}")


def test_get_before_set_fails_with_token_line():
    table = SymbolTable()
    x = table.declare("x", 1)
    err = expect_error(lambda: table.get(x, Token("IDENT", "x", line=7)), UninitializedVariableError)
    if err.line != 7:
        raise AssertionError(f"error should carry line 7, got {err.line}")
    table.set(x, 0.0)
    if table.get(x) != 0.0:
        raise AssertionError("x should be initialized after set")


def test_cannot_pop_outermost_scope():
    table = SymbolTable()
    table.push_scope()
    table.pop_scope()
    expect_error(table.pop_scope, ScopeError)
    if table.depth != 1:
        raise AssertionError("outermost scope must survive a failed pop")


def test_has_var():
    table = SymbolTable()
    table.push_scope()
    table.declare("y", 1)
    if not table.has_var("y"):
        raise AssertionError("y should be visible")
    table.pop_scope()
    if table.has_var("y"):
        raise AssertionError("y should be gone after its scope is popped")


def test_reset_keeps_ids_but_clears_values():
    table = SymbolTable()
    x = table.declare("x", 1)
    table.set(x, 3.0)
    table.push_scope()
    table.push_scope()
    table.reset()
    if table.depth != 1 or len(table) != 1:
        raise AssertionError("reset should leave one scope and keep records")
    expect_error(lambda: table.get(x), UninitializedVariableError)
    if table.resolve("x") != x:
        raise AssertionError("outermost names should survive reset")


def test_rollback_forgets_later_declarations():
    table = SymbolTable()
    x = table.declare("x", 1)
    table.set(x, 1.0)
    mark = table.checkpoint()
    table.declare("y", 2)
    table.push_scope()
    table.declare("x", 3)
    table.set(x, 5.0)
    table.rollback(mark)
    if table.depth != 1 or len(table) != 1 or table.has_var("y"):
        raise AssertionError("rollback should drop everything declared after the mark")
    if table.resolve("x") != x or table.get(x) != 5.0:
        raise AssertionError("older records keep their current values")
    if table.declare("y", 4) != 1:
        raise AssertionError("ids are reused after rollback")


if __name__ == "__main__":
    test_ids_are_sequential_and_stable()
    test_shadowing_resolves_innermost_first()
    test_redeclare_in_same_scope_fails()
    test_undefined_name_carries_line()
    test_get_before_set_fails_with_token_line()
    test_cannot_pop_outermost_scope()
    test_has_var()
    test_reset_keeps_ids_but_clears_values()
    test_rollback_forgets_later_declarations()
    print("ok")
