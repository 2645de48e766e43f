from ast_nodes import (
    Empty, Scope, Print, Assign, Identifier, Conditional, Operation, Number, While, String,
)
from errors import MacroCalcSyntaxError
from lexer import Lexer, StringLexer
from symbol_table import SymbolTable


class Parser:
    def __init__(self, lexer, symbols=None):
        self.lexer = lexer
        self.symbols = symbols if symbols is not None else SymbolTable()
        self.string_lexer = StringLexer()
        self.current_token = self.lexer.get_next_token()
        self.next_token = self.lexer.get_next_token()

    # move to next token, but only if it matches what we expect
    def eat(self, token_type):
        tok = self.current_token
        if tok.type == token_type:
            self.current_token = self.next_token
            self.next_token = self.lexer.get_next_token()
            return tok
        raise MacroCalcSyntaxError(
            f"Expected {token_type}, got {self._describe(tok)}", line=tok.line, column=tok.column
        )

    def error_here(self, message):
        tok = self.current_token
        raise MacroCalcSyntaxError(message, line=tok.line, column=tok.column)

    def _describe(self, tok):
        if tok.type == "EOF":
            return "end of input"
        if tok.value is not None:
            return f"{tok.type} '{tok.value}'"
        return tok.type

    # ---------- TOP LEVEL ----------
    def parse(self):
        statements = []
        while self.current_token.type != "EOF":
            statements.append(self.statement())
        return Scope(statements)

    # ---------- STATEMENTS ----------
    def statement(self):
        t = self.current_token.type

        if t == "LBRACE":
            return self.block()
        if t == "VAR":
            return self.declaration()
        if t == "PRINT":
            return self.print_statement()
        if t == "IF":
            return self.if_statement()
        if t == "WHILE":
            return self.while_statement()
        if t == "ELSE":
            self.error_here("else used without a preceding if")

        if t == "SEMI":
            tok = self.eat("SEMI")
            node = Empty()
            node.line = tok.line
            return node

        node = self.expr()
        self.eat("SEMI")
        return node

    def block(self):
        tok = self.eat("LBRACE")
        self.symbols.push_scope()
        try:
            statements = []
            while self.current_token.type != "RBRACE":
                if self.current_token.type == "EOF":
                    raise MacroCalcSyntaxError(
                        f"Unclosed '{{' (opened at line {tok.line}, col {tok.column})",
                        line=self.current_token.line,
                        column=self.current_token.column,
                    )
                statements.append(self.statement())
            self.eat("RBRACE")
        finally:
            self.symbols.pop_scope()

        node = Scope(statements)
        node.line = tok.line
        return node

    def declaration(self):
        # var NAME ;  |  var NAME = expr ;
        self.eat("VAR")
        name_tok = self.eat("IDENT")

        if self.current_token.type == "SEMI":
            self.eat("SEMI")
            self.symbols.declare(name_tok.value, name_tok.line)
            node = Empty()
            node.line = name_tok.line
            return node

        self.eat("ASSIGN")
        value = self.expr()
        self.eat("SEMI")

        # declare only after the initializer resolved its names:
        # `var x = x;` must refer to an outer x
        var_id = self.symbols.declare(name_tok.value, name_tok.line)
        node = Assign(Identifier(var_id, name_tok), value)
        node.line = name_tok.line
        return node

    def print_statement(self):
        tok = self.eat("PRINT")
        self.eat("LPAREN")

        items = []
        if self.current_token.type != "RPAREN":
            items.extend(self.print_item())
            while self.current_token.type == "COMMA":
                self.eat("COMMA")
                items.extend(self.print_item())

        self.eat("RPAREN")
        self.eat("SEMI")
        node = Print(items)
        node.line = tok.line
        return node

    def print_item(self):
        if self.current_token.type != "STRING":
            return [self.expr()]

        str_tok = self.eat("STRING")
        items = []
        for piece in self.string_lexer.tokenize(str_tok.value, str_tok.line, str_tok.column):
            if piece.type == "TEXT":
                node = String(piece.value)
                node.line = piece.line
                items.append(node)
            else:
                var_id = self.symbols.resolve(piece.value, piece.line)
                items.append(Identifier(var_id, piece))
        return items

    def if_statement(self):
        # IF ( expr ) statement (ELSE statement)?
        # else-if chains are nested Conditionals in the else branch
        tok = self.eat("IF")
        self.eat("LPAREN")
        if self.current_token.type == "RPAREN":
            self.error_here("Expected condition body, found empty condition")
        condition = self.expr()
        self.eat("RPAREN")
        then_branch = self.statement()

        else_branch = None
        if self.current_token.type == "ELSE":
            self.eat("ELSE")
            else_branch = self.statement()

        node = Conditional(condition, then_branch, else_branch)
        node.line = tok.line
        return node

    def while_statement(self):
        tok = self.eat("WHILE")
        self.eat("LPAREN")
        if self.current_token.type == "RPAREN":
            self.error_here("Expected loop condition, found empty condition")
        condition = self.expr()
        self.eat("RPAREN")
        body = self.statement()
        node = While(condition, body)
        node.line = tok.line
        return node

    # ---------- EXPRESSIONS ----------
    def parse_expression(self):
        # Single expression up to end of input (used by the REPL).
        node = self.expr()
        if self.current_token.type == "SEMI":
            self.eat("SEMI")
        if self.current_token.type != "EOF":
            self.error_here(f"Unexpected {self._describe(self.current_token)} after expression")
        return node

    # expr -> assign
    def expr(self):
        return self.assign()

    # assign -> or_expr ('=' assign)?
    def assign(self):
        left = self.or_expr()
        if self.current_token.type != "ASSIGN":
            return left

        tok = self.current_token
        if not isinstance(left, Identifier):
            self.error_here("Left side of '=' must be a variable name")
        self.eat("ASSIGN")
        right = self.assign()
        node = Assign(left, right)
        node.line = tok.line
        return node

    # or_expr -> and_expr ('||' and_expr)*
    def or_expr(self):
        node = self.and_expr()
        while self.current_token.type == "OR":
            node = self._binary(node, self.and_expr)
        return node

    # and_expr -> equality ('&&' equality)*
    def and_expr(self):
        node = self.equality()
        while self.current_token.type == "AND":
            node = self._binary(node, self.equality)
        return node

    # equality -> comparison (('=='|'!=') comparison)?
    def equality(self):
        node = self.comparison()
        if self.current_token.type in ("EQEQ", "NOTEQ"):
            node = self._binary(node, self.comparison)
        return node

    # comparison -> term (('<'|'<='|'>'|'>=') term)?
    def comparison(self):
        node = self.term()
        if self.current_token.type in ("LT", "LTE", "GT", "GTE"):
            node = self._binary(node, self.term)
        return node

    # term -> factor (('+'|'-') factor)*
    def term(self):
        node = self.factor()
        while self.current_token.type in ("PLUS", "MINUS"):
            node = self._binary(node, self.factor)
        return node

    # factor -> power (('*'|'/'|'%') power)*
    def factor(self):
        node = self.power()
        while self.current_token.type in ("STAR", "SLASH", "PERCENT"):
            node = self._binary(node, self.power)
        return node

    # power -> unary ('**' power)?   (right-associative)
    def power(self):
        node = self.unary()
        if self.current_token.type == "POWER":
            node = self._binary(node, self.power)
        return node

    # unary -> ('-' | '!') unary | primary
    def unary(self):
        if self.current_token.type in ("MINUS", "NOT"):
            tok = self.current_token
            self.eat(tok.type)
            node = Operation(tok.value, [self.unary()])
            node.line = tok.line
            return node
        return self.primary()

    # primary -> NUMBER | IDENT | '(' expr ')'
    def primary(self):
        tok = self.current_token

        if tok.type == "NUMBER":
            self.eat("NUMBER")
            node = Number(tok.value)
            node.line = tok.line
            return node

        if tok.type == "IDENT":
            self.eat("IDENT")
            var_id = self.symbols.resolve(tok.value, tok.line)
            return Identifier(var_id, tok)

        if tok.type == "LPAREN":
            self.eat("LPAREN")
            node = self.expr()
            self.eat("RPAREN")
            return node

        if tok.type == "STRING":
            self.error_here("String literals are only allowed inside print(...)")

        self.error_here(f"Unexpected {self._describe(tok)} in expression")

    # ---------- HELPERS ----------
    def _binary(self, left, parse_right):
        op_tok = self.current_token
        self.eat(op_tok.type)
        right = parse_right()
        node = Operation(op_tok.value, [left, right])
        node.line = op_tok.line
        return node


def parse_source(text, symbols=None):
    parser = Parser(Lexer(text), symbols)
    return parser.parse(), parser.symbols

