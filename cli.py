import sys
import traceback

import colorama
from colorama import Fore, Style

from ast_nodes import Identifier, Number, Operation, Print
from errors import MacroCalcError, MacroCalcSyntaxError
from interpreter import Interpreter, format_number
from lexer import Lexer
from parser import Parser
from symbol_table import SymbolTable


USAGE = """Usage:
  python cli.py run <file.mc>
  python cli.py parse <file.mc>
  python cli.py tokens <file.mc>
  python cli.py repl
  (optional) --debug to show Python traceback
  (optional) --trace to log every evaluated node to stderr
  (optional) --no-color to disable colored diagnostics"""


# Simple AST printer (so you can SEE what the parser built)
def ast_to_dict(node):
    if node is None:
        return None

    t = node.__class__.__name__
    d = {"type": t}
    if node.line is not None:
        d["line"] = node.line

    if t == "Scope":
        d["statements"] = [ast_to_dict(s) for s in node.statements]
    elif t == "Print":
        d["items"] = [ast_to_dict(i) for i in node.items]
    elif t == "Assign":
        d["target"] = ast_to_dict(node.target)
        d["value"] = ast_to_dict(node.value)
    elif t == "Identifier":
        d["name"] = node.name
        d["var_id"] = node.var_id
    elif t == "Conditional":
        d["condition"] = ast_to_dict(node.condition)
        d["then"] = ast_to_dict(node.then_branch)
        d["else"] = ast_to_dict(node.else_branch)
    elif t == "While":
        d["condition"] = ast_to_dict(node.condition)
        d["body"] = ast_to_dict(node.body)
    elif t == "Operation":
        d["op"] = node.op
        d["operands"] = [ast_to_dict(o) for o in node.operands]
    elif t == "Number":
        d["value"] = format_number(node.value)
    elif t == "String":
        d["text"] = repr(node.text)
    elif t == "Empty":
        pass
    else:
        d["raw"] = str(node)

    return d


def pretty(node, indent=0):
    # One line per node: "Kind field=value ... line=N", children indented below.
    # Single-child slots (then/else/body/...) get a "slot:" label line; absent ones are omitted.
    sp = "  " * indent
    fields = []
    children = []
    for key, value in node.items():
        if key in ("type", "line") or value is None:
            continue
        if isinstance(value, (dict, list)):
            children.append((key, value))
        else:
            fields.append(f"{key}={value}")
    if "line" in node:
        fields.append(f"line={node['line']}")

    lines = [" ".join([sp + node["type"]] + fields)]
    for key, value in children:
        if isinstance(value, list):
            lines.extend(pretty(item, indent + 1) for item in value)
        else:
            lines.append(f"{sp}  {key}:")
            lines.append(pretty(value, indent + 2))
    return "\n".join(lines)


def report_error(err, debug=False, color=False):
    if debug:
        traceback.print_exc()
        return
    if isinstance(err, MacroCalcError):
        text = err.format()
    elif isinstance(err, OSError):
        text = f"Error: cannot read {err.filename}: {err.strerror}"
    else:
        text = f"Internal error: {err}"
    if color:
        text = f"{Fore.RED}{text}{Style.RESET_ALL}"
    print(text, file=sys.stderr)


def read_source(path):
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def cmd_tokens(path, debug=False, color=False):
    try:
        tokens = Lexer(read_source(path)).tokenize()
    except Exception as e:
        report_error(e, debug, color)
        sys.exit(1)

    for tok in tokens:
        print(f"{tok.line:4d}:{tok.column:<3d} {tok!r}")


def cmd_parse(path, debug=False, color=False):
    try:
        parser = Parser(Lexer(read_source(path)))
        program = parser.parse()
    except Exception as e:
        report_error(e, debug, color)
        sys.exit(1)

    print(pretty(ast_to_dict(program)))


def cmd_run(path, debug=False, trace=False, color=False):
    try:
        code = read_source(path)

        symbols = SymbolTable()
        parser = Parser(Lexer(code), symbols)
        program = parser.parse()

        interpreter = Interpreter(trace=trace, color=color)
        interpreter.run(program, symbols)
    except Exception as e:
        sys.stdout.flush()
        report_error(e, debug, color)
        sys.exit(1)


def _count_braces_delta(line: str) -> int:
    # Minimal brace balancer for REPL multiline input.
    # Ignores braces inside "..." strings and after a # comment.
    delta = 0
    in_string = False
    i = 0
    while i < len(line):
        ch = line[i]
        if in_string and ch == "\\":
            i += 2
            continue
        if ch == "#" and not in_string:
            break
        if ch == '"':
            in_string = not in_string
        elif not in_string:
            if ch == "{":
                delta += 1
            elif ch == "}":
                delta -= 1
        i += 1
    return delta


def _parse_snippet(source, symbols):
    # First, try parsing as a normal program (statements).
    mark = symbols.checkpoint()
    try:
        program = Parser(Lexer(source), symbols).parse()
    except MacroCalcSyntaxError as parse_err:
        # If that fails, try parsing as a single expression and auto-print it.
        symbols.rollback(mark)
        try:
            expr = Parser(Lexer(source), symbols).parse_expression()
        except MacroCalcError:
            raise parse_err
        return _auto_print(expr)

    if len(program.statements) == 1:
        return _auto_print(program.statements[0])
    return program


def _auto_print(node):
    if isinstance(node, (Identifier, Operation, Number)):
        return Print([node])
    return node


def cmd_repl(debug=False, trace=False, color=False):
    # One symbol table lives for the whole session so declarations persist.
    symbols = SymbolTable()
    interpreter = Interpreter(trace=trace, color=color)

    print("MacroCalc REPL. Type :q to quit.")

    buffer_lines = []
    brace_depth = 0
    while True:
        prompt = "calc> " if not buffer_lines else "...> "
        try:
            line = input(prompt)
        except (EOFError, KeyboardInterrupt):
            print()
            break

        stripped = line.strip()
        if not buffer_lines and stripped in (":q", ":quit", "quit", "exit"):
            break

        if not stripped and brace_depth == 0 and not buffer_lines:
            continue

        buffer_lines.append(line)
        brace_depth += _count_braces_delta(line)

        # Wait for block completion if braces aren't balanced yet.
        if brace_depth > 0:
            continue

        source = "\n".join(buffer_lines) + "\n"
        buffer_lines = []
        brace_depth = 0

        # A failed snippet leaves no declarations behind, so it can be retyped.
        mark = symbols.checkpoint()
        try:
            node = _parse_snippet(source, symbols)
            interpreter.evaluate(node, symbols)
        except Exception as e:
            symbols.rollback(mark)
            report_error(e, debug, color)


def main(argv=None):
    args = list(sys.argv[1:] if argv is None else argv)

    flags = {"--debug": False, "--trace": False, "--no-color": False}
    for flag in flags:
        if flag in args:
            flags[flag] = True
            args.remove(flag)

    debug = flags["--debug"]
    trace = flags["--trace"]
    color = not flags["--no-color"] and sys.stderr.isatty()
    if color:
        colorama.just_fix_windows_console()

    if not args:
        print(USAGE)
        sys.exit(1)

    cmd = args[0]

    if cmd == "repl":
        if len(args) != 1:
            print(USAGE)
            sys.exit(1)
        cmd_repl(debug=debug, trace=trace, color=color)
        return

    if len(args) != 2:
        print(USAGE)
        sys.exit(1)

    path = args[1]

    if cmd == "run":
        cmd_run(path, debug=debug, trace=trace, color=color)
    elif cmd == "parse":
        cmd_parse(path, debug=debug, color=color)
    elif cmd == "tokens":
        cmd_tokens(path, debug=debug, color=color)
    else:
        print(f"Unknown command: {cmd}")
        sys.exit(1)


if __name__ == "__main__":
    main()
