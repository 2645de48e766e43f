from errors import MacroCalcSyntaxError


KEYWORDS = {
    "var": "VAR",
    "print": "PRINT",
    "if": "IF",
    "else": "ELSE",
    "while": "WHILE",
}

# two-character operators are tried before single characters
DOUBLE_OPS = {
    "**": "POWER",
    "==": "EQEQ",
    "!=": "NOTEQ",
    "<=": "LTE",
    ">=": "GTE",
    "&&": "AND",
    "||": "OR",
}

SINGLE_OPS = {
    "=": "ASSIGN",
    "<": "LT",
    ">": "GT",
    "+": "PLUS",
    "-": "MINUS",
    "*": "STAR",
    "/": "SLASH",
    "%": "PERCENT",
    "!": "NOT",
    "(": "LPAREN",
    ")": "RPAREN",
    "{": "LBRACE",
    "}": "RBRACE",
    ";": "SEMI",
    ",": "COMMA",
}


class Token:
    def __init__(self, type, value=None, line=1, column=1):
        self.type = type
        self.value = value
        self.line = line
        self.column = column

    def __repr__(self):
        if self.value is not None:
            return f"{self.type}({self.value!r})"
        return f"{self.type}"


class Lexer:
    def __init__(self, text):
        self.text = text
        self.pos = 0
        self.current_char = text[0] if text else None
        self.line = 1
        self.column = 1

    def error(self, message, line=None, column=None):
        raise MacroCalcSyntaxError(
            message,
            line=self.line if line is None else line,
            column=self.column if column is None else column,
        )

    def advance(self):
        # track line/column based on current_char before moving
        if self.current_char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.pos += 1
        if self.pos >= len(self.text):
            self.current_char = None
        else:
            self.current_char = self.text[self.pos]

    def peek(self):
        nxt = self.pos + 1
        if nxt >= len(self.text):
            return None
        return self.text[nxt]

    def skip_whitespace(self):
        while self.current_char and self.current_char in " \t\r\n":
            self.advance()

    def skip_comment(self):
        while self.current_char and self.current_char != "\n":
            self.advance()

    def read_identifier(self):
        start_line, start_col = self.line, self.column
        result = ""
        while self.current_char and (self.current_char.isalnum() or self.current_char == "_"):
            result += self.current_char
            self.advance()

        keyword = KEYWORDS.get(result)
        if keyword is not None:
            return Token(keyword, result, line=start_line, column=start_col)
        return Token("IDENT", result, line=start_line, column=start_col)

    def read_number(self):
        start_line, start_col = self.line, self.column
        result = ""
        has_dot = False

        while self.current_char and (_is_digit(self.current_char) or self.current_char == "."):
            if self.current_char == ".":
                if has_dot:
                    break
                has_dot = True
            result += self.current_char
            self.advance()

        return Token("NUMBER", float(result), line=start_line, column=start_col)

    def read_string(self):
        # Escapes and {name} pieces are left raw here; StringLexer handles them.
        start_line, start_col = self.line, self.column
        self.advance()  # skip opening quote
        result = ""

        while self.current_char and self.current_char not in '"\n':
            if self.current_char == "\\" and self.peek() is not None and self.peek() != "\n":
                result += self.current_char
                self.advance()
            result += self.current_char
            self.advance()

        if self.current_char != '"':
            self.error(f"Unclosed string (started at line {start_line}, col {start_col})", start_line, start_col)

        self.advance()  # skip closing quote
        return Token("STRING", result, line=start_line, column=start_col)

    def get_next_token(self):
        while self.current_char:

            if self.current_char in " \t\r\n":
                self.skip_whitespace()
                continue

            if self.current_char == "#":
                self.skip_comment()
                continue

            if self.current_char.isalpha() or self.current_char == "_":
                return self.read_identifier()

            if _is_digit(self.current_char) or (self.current_char == "." and _is_digit(self.peek())):
                return self.read_number()

            if self.current_char == '"':
                return self.read_string()

            start_line, start_col = self.line, self.column

            pair = self.current_char + (self.peek() or "")
            if pair in DOUBLE_OPS:
                self.advance()
                self.advance()
                return Token(DOUBLE_OPS[pair], pair, line=start_line, column=start_col)

            ch = self.current_char
            if ch in SINGLE_OPS:
                self.advance()
                return Token(SINGLE_OPS[ch], ch, line=start_line, column=start_col)

            self.error(f"Unknown character: {ch!r}")

        return Token("EOF", line=self.line, column=self.column)

    def tokenize(self):
        tokens = []
        while True:
            tok = self.get_next_token()
            tokens.append(tok)
            if tok.type == "EOF":
                return tokens


class StringLexer:
    """Splits the raw body of a print string into TEXT and INTERP tokens.

    ``"x = {x}\\n"`` becomes ``TEXT('x = ')``, ``INTERP('x')``, ``TEXT('\\n')``.
    Adjacent text (including escapes) is merged into one TEXT token.
    """

    ESCAPES = {
        "n": "\n",
        "t": "\t",
        "\\": "\\",
        '"': '"',
        "{": "{",
        "}": "}",
        "0": "\0",
    }

    def tokenize(self, raw, line=1, column=1):
        tokens = []
        text = ""
        i = 0
        n = len(raw)
        while i < n:
            ch = raw[i]
            if ch == "\\" and i + 1 < n:
                esc = raw[i + 1]
                # unknown escape: keep literally
                text += self.ESCAPES.get(esc, "\\" + esc)
                i += 2
                continue

            if ch == "{":
                j = raw.find("}", i + 1)
                if j == -1:
                    raise MacroCalcSyntaxError("Unclosed '{' in string", line=line, column=column)
                name = raw[i + 1 : j].strip()
                if not _is_ident(name):
                    raise MacroCalcSyntaxError(
                        f"Expected a variable name inside '{{}}', got {raw[i + 1 : j]!r}", line=line, column=column
                    )
                if text:
                    tokens.append(Token("TEXT", text, line=line, column=column))
                    text = ""
                tokens.append(Token("INTERP", name, line=line, column=column))
                i = j + 1
                continue

            if ch == "}":
                raise MacroCalcSyntaxError("Unmatched '}' in string (use \\} for a literal brace)", line=line, column=column)

            text += ch
            i += 1

        if text:
            tokens.append(Token("TEXT", text, line=line, column=column))
        return tokens


def _is_digit(ch) -> bool:
    # ASCII only: str.isdigit() also accepts superscripts that float() rejects
    return ch is not None and "0" <= ch <= "9"


def _is_ident(s: str) -> bool:
    if not s:
        return False
    if not (s[0].isalpha() or s[0] == "_"):
        return False
    for ch in s[1:]:
        if not (ch.isalnum() or ch == "_"):
            return False
    return True
