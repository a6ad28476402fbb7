"""Expression parsing and evaluation.

Expressions are parsed from tokens by a small recursive-descent parser into a
tree of dataclass nodes and then evaluated against a scope dict:

    expr  := term (('+' | '-') term)*
    term  := unary (('*' | '/') unary)*
    unary := ('-' | '+') unary | atom
    atom  := NUMBER | STRING | NAME | 'input' '(' expr? ')'

Both binary levels fold left, so `10 - 3 - 2` is `(10 - 3) - 2`. Arithmetic is
strictly numeric: `"a" + "b"` is a TypeError, not a concatenation. Grouping
parentheses are not part of the language.
"""

import ast
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from .errors import (
    ScriptNameError,
    ScriptOverflowError,
    ScriptSyntaxError,
    ScriptTypeError,
    ScriptZeroDivisionError,
)
from .lexer import Token, tokenize

Value = Union[int, float, str]


@dataclass
class Expr:
    col: int


@dataclass
class Literal(Expr):
    value: Value


@dataclass
class Var(Expr):
    name: str


@dataclass
class UnOp(Expr):
    op: str
    operand: Expr


@dataclass
class BinOp(Expr):
    op: str
    left: Expr
    right: Expr


@dataclass
class InputCall(Expr):
    prompt: Optional[Expr]


class ExpressionParser:
    """Recursive-descent parser over a token list.

    The parser consumes tokens starting at `pos` and stops at the first token
    that cannot continue an expression, leaving it for the caller. This lets
    statement parsing embed expressions between fixed punctuation such as
    `print(` ... `)`.
    """

    def __init__(self, tokens: List[Token], pos: int = 0):
        self.tokens = tokens
        self.pos = pos

    def peek(self) -> Token:
        return self.tokens[self.pos]

    def match(self, kind: str, lexeme: Optional[str] = None) -> Optional[Token]:
        t = self.peek()
        if t.kind == kind and (lexeme is None or t.lexeme == lexeme):
            self.pos += 1
            return t
        return None

    def expect(self, kind: str, lexeme: Optional[str] = None) -> Token:
        t = self.match(kind, lexeme)
        if t is None:
            raise self.error()
        return t

    def error(self, message: str = "invalid syntax") -> ScriptSyntaxError:
        return ScriptSyntaxError(message, column=self.peek().col)

    def parse_expression(self) -> Expr:
        node = self.parse_term()
        while self.peek().kind == "OP" and self.peek().lexeme in "+-":
            op = self.tokens[self.pos]
            self.pos += 1
            node = BinOp(op.col, op=op.lexeme, left=node, right=self.parse_term())
        return node

    def parse_term(self) -> Expr:
        node = self.parse_unary()
        while self.peek().kind == "OP" and self.peek().lexeme in "*/":
            op = self.tokens[self.pos]
            self.pos += 1
            node = BinOp(op.col, op=op.lexeme, left=node, right=self.parse_unary())
        return node

    def parse_unary(self) -> Expr:
        t = self.peek()
        if t.kind == "OP" and t.lexeme in "+-":
            self.pos += 1
            return UnOp(t.col, op=t.lexeme, operand=self.parse_unary())
        return self.parse_atom()

    def parse_atom(self) -> Expr:
        t = self.peek()
        if t.kind == "NUMBER":
            self.pos += 1
            if t.lexeme.isdigit():
                return Literal(t.col, value=int(t.lexeme))
            return Literal(t.col, value=_finite(float(t.lexeme), t.col))
        if t.kind == "STRING":
            self.pos += 1
            try:
                return Literal(t.col, value=ast.literal_eval(t.lexeme))
            except (ValueError, SyntaxError):
                raise ScriptSyntaxError("invalid string literal", column=t.col, text=t.lexeme)
        if t.kind == "NAME":
            self.pos += 1
            if self.peek().kind != "LPAREN":
                return Var(t.col, name=t.lexeme)
            if t.lexeme != "input":
                raise ScriptNameError(f"name '{t.lexeme}' is not defined", column=t.col)
            self.pos += 1
            prompt = None
            if self.peek().kind != "RPAREN":
                prompt = self.parse_expression()
            self.expect("RPAREN")
            return InputCall(t.col, prompt=prompt)
        if t.kind == "LPAREN":
            raise self.error("parenthesized expressions are not supported")
        raise self.error()


def parse_expression(text: str) -> Expr:
    """Parse a complete expression string; trailing tokens are a syntax error."""
    parser = ExpressionParser(tokenize(text))
    node = parser.parse_expression()
    parser.expect("EOF")
    return node


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _type_name(value: Any) -> str:
    return type(value).__name__


def _finite(value: Value, col: int) -> Value:
    # inf/nan cannot be shown in the trace or carried in JSON
    if isinstance(value, float) and not math.isfinite(value):
        raise ScriptOverflowError("numerical result out of range", column=col)
    return value


class Evaluator:
    """Evaluate expression trees against a read-only scope."""

    def __init__(self, scope: Dict[str, Any]):
        self.scope = scope

    def visit(self, node: Expr) -> Value:
        method = getattr(self, f"visit_{type(node).__name__}")
        return method(node)

    def visit_Literal(self, node: Literal) -> Value:
        return node.value

    def visit_Var(self, node: Var) -> Value:
        if node.name in self.scope:
            return self.scope[node.name]
        raise ScriptNameError(f"name '{node.name}' is not defined", column=node.col)

    def visit_InputCall(self, node: InputCall) -> Value:
        # As a plain expression, input() yields its prompt; the actual read is
        # only performed by the input-assignment statement.
        if node.prompt is None:
            return ""
        return self.visit(node.prompt)

    def visit_UnOp(self, node: UnOp) -> Value:
        operand = self.visit(node.operand)
        if not _is_number(operand):
            raise ScriptTypeError(f"bad operand type for unary {node.op}: '{_type_name(operand)}'", column=node.col)
        return -operand if node.op == "-" else +operand

    def visit_BinOp(self, node: BinOp) -> Value:
        left = self.visit(node.left)
        right = self.visit(node.right)
        if not (_is_number(left) and _is_number(right)):
            raise ScriptTypeError(
                f"unsupported operand type(s) for {node.op}: '{_type_name(left)}' and '{_type_name(right)}'",
                column=node.col,
            )
        if node.op == "/" and right == 0:
            raise ScriptZeroDivisionError("division by zero", column=node.col)
        try:
            if node.op == "+":
                result = left + right
            elif node.op == "-":
                result = left - right
            elif node.op == "*":
                result = left * right
            else:
                result = left / right
        except OverflowError as e:
            raise ScriptOverflowError(str(e), column=node.col) from e
        return _finite(result, node.col)


def evaluate(node: Expr, scope: Dict[str, Any]) -> Value:
    return Evaluator(scope).visit(node)


def eval_expr(expr: str, scope: Dict[str, Any]) -> Value:
    """Parse and evaluate a single expression string.

    Args:
        expr: expression source text (e.g. "count + 1").
        scope: mapping of variable names to values; never mutated.

    Returns:
        The resulting int, float or str.

    Raises:
        ScriptError: any of its subclasses, for malformed input or a failed
        operation.
    """
    return evaluate(parse_expression(expr.strip()), scope)
