"""Tokenizer for a single CodeSync source line.

Statements never span lines, so the lexer works on one trimmed line at a time
and tracks only the 1-based column of each token. A `#` outside a string
starts a comment that runs to the end of the line.
"""

import re
from dataclasses import dataclass
from typing import List

from .errors import ScriptSyntaxError


@dataclass
class Token:
    kind: str
    lexeme: str
    col: int


TOKEN_SPEC = [
    ("NUMBER", r"(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?"),
    ("STRING", r'"(?:[^"\\\n]|\\.)*"|\'(?:[^\'\\\n]|\\.)*\''),
    ("NAME", r"[A-Za-z_][A-Za-z0-9_]*"),
    ("OP", r"[+\-*/]"),
    ("LPAREN", r"\("),
    ("RPAREN", r"\)"),
    ("COLON", r":"),
    ("EQ", r"="),
]

MASTER = re.compile("|".join(f"(?P<{k}>{p})" for k, p in TOKEN_SPEC))
WS = re.compile(r"[ \t\r\f]+")


def tokenize(text: str) -> List[Token]:
    """Split `text` into tokens, always ending with an EOF token.

    Raises:
        ScriptSyntaxError: on an unterminated string or an unknown character.
    """
    tokens: List[Token] = []
    i = 0
    n = len(text)
    while i < n:
        m = WS.match(text, i)
        if m:
            i = m.end()
            continue
        if text[i] == "#":
            break
        m = MASTER.match(text, i)
        if not m:
            ch = text[i]
            if ch in "\"'":
                raise ScriptSyntaxError("unterminated string literal", column=i + 1, text=text)
            raise ScriptSyntaxError(f"invalid character '{ch}'", column=i + 1, text=text)
        tokens.append(Token(m.lastgroup, m.group(0), i + 1))
        i = m.end()
    tokens.append(Token("EOF", "", n + 1))
    return tokens
