"""Statement classification.

A trimmed source line is tokenized once and turned into exactly one of four
statement variants. Shapes are tried in a fixed priority order:

1. `name = input(prompt?)`      -> InputAssignment
2. `for name in range(expr):`   -> ForRange
3. `name = expr`                -> Assignment
4. `print(expr?)`               -> Print

An input assignment is only recognized when the input call is the whole
right-hand side; `x = input("a") + 1` is an ordinary assignment.
"""

from dataclasses import dataclass
from typing import Optional, Union

from .errors import ScriptSyntaxError
from .expressions import Expr, ExpressionParser, InputCall
from .lexer import tokenize


@dataclass
class InputAssignment:
    target: str
    prompt: Optional[Expr]


@dataclass
class ForRange:
    var: str
    limit: Expr
    limit_text: str


@dataclass
class Assignment:
    target: str
    value: Expr


@dataclass
class Print:
    value: Optional[Expr]


Statement = Union[InputAssignment, ForRange, Assignment, Print]


def parse_statement(line: str) -> Statement:
    """Classify a single trimmed, non-blank, non-comment line.

    Raises:
        ScriptSyntaxError: when the line matches none of the statement shapes
        or an embedded expression is malformed.
    """
    tokens = tokenize(line)
    parser = ExpressionParser(tokens)
    first = tokens[0]

    if first.kind == "NAME" and tokens[1].kind == "EQ":
        if tokens[2].kind == "EOF":
            raise ScriptSyntaxError("invalid syntax", column=tokens[2].col, text=line)
        parser.pos = 2
        value = parser.parse_expression()
        parser.expect("EOF")
        if isinstance(value, InputCall):
            return InputAssignment(target=first.lexeme, prompt=value.prompt)
        return Assignment(target=first.lexeme, value=value)

    if first.kind == "NAME" and first.lexeme == "for":
        return _parse_for(line, parser)

    if first.kind == "NAME" and first.lexeme == "print" and tokens[1].kind == "LPAREN":
        parser.pos = 2
        value = None
        if parser.peek().kind != "RPAREN":
            value = parser.parse_expression()
        parser.expect("RPAREN")
        parser.expect("EOF")
        return Print(value=value)

    raise ScriptSyntaxError("invalid or unsupported syntax", column=1, text=line)


def _parse_for(line: str, parser: ExpressionParser) -> ForRange:
    # for <name> in range ( <expr> ) :
    parser.expect("NAME", "for")
    var = parser.expect("NAME").lexeme
    parser.expect("NAME", "in")
    parser.expect("NAME", "range")
    lparen = parser.expect("LPAREN")
    if parser.peek().kind == "RPAREN":
        raise parser.error("range expected 1 argument, got 0")
    limit = parser.parse_expression()
    rparen = parser.expect("RPAREN")
    parser.expect("COLON")
    parser.expect("EOF")
    limit_text = line[lparen.col:rparen.col - 1].strip()
    return ForRange(var=var, limit=limit, limit_text=limit_text)
