"""Term model, printer and parser for the untyped lambda calculus.

A term is a tree of ``Term`` nodes tagged 'VAR', 'LAM' or 'APP'.
Nothing in this package mutates a node after construction, and every
operation that produces a term builds a fresh tree, so subtrees are
never shared between two live terms.

Surface syntax::

    expr  ::= 'λ' name '.' expr | atom atom*
    atom  ::= 'λ' name '.' expr | '(' expr ')' | digits | name

Application is left-associative and abstraction bodies extend as far
right as possible. A run of digits is a Church numeral literal, and a
backslash may be written for 'λ'.
"""

import logging

from lambda_checks import (
    LambdaSyntaxError,
    arg_type,
    arg_value,
    is_non_negative,
)

LAMBDA = 'λ'
LAMBDA_ALIASES = (LAMBDA, '\\')
RESERVED_CHARS = frozenset('().') | frozenset(LAMBDA_ALIASES)

logger = logging.getLogger("LambdaParser")


class Term:
    def __init__(self, term_type, value=None, left=None, right=None):
        self.term_type = term_type  # 'VAR', 'LAM', 'APP'
        self.value = value
        self.left = left
        self.right = right

    def __eq__(self, other):
        if not isinstance(other, Term):
            return NotImplemented
        return (self.term_type == other.term_type
                and self.value == other.value
                and self.left == other.left
                and self.right == other.right)

    __hash__ = None

    def __repr__(self):
        return render(self)

    def __str__(self):
        return render(self)


def is_valid_name(name) -> bool:
    """Non-empty, no whitespace, none of '(', ')', '.', 'λ', '\\'."""
    return (isinstance(name, str) and bool(name)
            and not any(ch.isspace() or ch in RESERVED_CHARS for ch in name))


@arg_type(0, str)
@arg_value(0, is_valid_name, "Invalid variable name")
def make_variable(name):
    return Term('VAR', name)


@arg_type(0, str)
@arg_value(0, is_valid_name, "Invalid parameter name")
@arg_type(1, Term)
def make_abstraction(param, body):
    return Term('LAM', param, right=body)


@arg_type(0, Term)
@arg_type(1, Term)
def make_application(function, argument):
    return Term('APP', left=function, right=argument)


def copy_term(term):
    """Deep copy of ``term``; the copy shares no node with the original."""
    if term is None:
        return None
    if term.term_type == 'VAR':
        return Term('VAR', term.value)
    if term.term_type == 'LAM':
        return Term('LAM', term.value, right=copy_term(term.right))
    return Term('APP', left=copy_term(term.left), right=copy_term(term.right))


@arg_type(0, int)
@arg_value(0, is_non_negative, "A Church numeral cannot be negative")
def church_n(n):
    x = Term('VAR', 'x')
    body = x
    for _ in range(n):
        body = Term('APP', left=Term('VAR', 'f'), right=body)
    return Term(
        'LAM', 'f',
        right=Term('LAM', 'x', right=body)
    )


def _render(term, parts):
    if term.term_type == 'VAR':
        parts.append(term.value)
    elif term.term_type == 'LAM':
        parts.append(f"{LAMBDA}{term.value}.")
        _render_child(term.right, parts, term.right.term_type == 'LAM')
    elif term.term_type == 'APP':
        _render_child(term.left, parts, term.left.term_type == 'LAM')
        parts.append(" ")
        _render_child(term.right, parts, term.right.term_type != 'VAR')
    else:
        raise ValueError(f"Unknown term type: {term.term_type}")


def _render_child(term, parts, parenthesize):
    if parenthesize:
        parts.append("(")
        _render(term, parts)
        parts.append(")")
    else:
        _render(term, parts)


@arg_type(0, Term)
def render(term: Term) -> str:
    """Text that ``parse_lambda_expr`` reads back into an equal term.

    An abstraction body is parenthesized only when it is itself an
    abstraction. In an application the function is parenthesized only
    when it is an abstraction, and the argument unless it is a variable.
    """
    parts = []
    _render(term, parts)
    return "".join(parts)


class LambdaParser:
    def __init__(self, text):
        self.text = text
        self.pos = 0

    def _error(self, message):
        char = self.peek()
        offset = len(self.text[:self.pos].encode('utf-8'))
        raise LambdaSyntaxError(f"{message} at {offset}", char, offset)

    def peek(self):
        return self.text[self.pos] if self.pos < len(self.text) else ''

    def consume(self):
        char = self.peek()
        if char:
            self.pos += 1
        return char

    def at_lambda(self):
        return self.peek() in LAMBDA_ALIASES

    def skip_whitespace(self):
        while self.peek().isspace():
            self.pos += 1

    def parse(self):
        self.skip_whitespace()
        term = self.parse_expr()
        self.skip_whitespace()
        if self.peek():
            self._error(f"Unexpected '{self.peek()}'")
        return term

    def parse_expr(self):
        self.skip_whitespace()
        if self.at_lambda():
            return self.parse_abs()
        return self.parse_app()

    def parse_abs(self):
        self.consume()
        param = self.parse_varname()
        self.skip_whitespace()
        if self.peek() != '.':
            self._error(f"Expected '.' after {LAMBDA}")
        self.consume()
        body = self.parse_expr()
        return Term('LAM', param, right=body)

    def parse_app(self):
        self.skip_whitespace()
        term = self.parse_atom()
        self.skip_whitespace()
        while self.peek() and self.peek() not in [')', '.']:
            term = Term('APP', left=term, right=self.parse_atom())
            self.skip_whitespace()
        return term

    def parse_atom(self):
        self.skip_whitespace()
        if self.at_lambda():
            return self.parse_abs()

        char = self.peek()
        if char == '(':
            self.consume()
            term = self.parse_expr()
            self.skip_whitespace()
            if self.peek() != ')':
                self._error("Expected ')'")
            self.consume()
            return term

        if '0' <= char <= '9':
            return church_n(self.parse_number())

        return Term('VAR', self.parse_varname())

    def parse_number(self):
        start = self.pos
        while '0' <= self.peek() <= '9':
            self.pos += 1
        if start == self.pos:
            self._error("Expected digit")
        return int(self.text[start:self.pos])

    def _ends_name(self, char):
        return not char or char.isspace() or char in RESERVED_CHARS

    def parse_varname(self):
        self.skip_whitespace()
        if self._ends_name(self.peek()):
            self._error("Invalid var start")
        start = self.pos
        while not self._ends_name(self.peek()):
            self.pos += 1
        return self.text[start:self.pos]


@arg_type(0, str)
def parse_lambda_expr(expr_str):
    term = LambdaParser(expr_str).parse()
    logger.debug("Parsed %r as %s", expr_str, term)
    return term
