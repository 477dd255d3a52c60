import functools
import itertools
import logging
import string
import sys
from collections import namedtuple
from types import MappingProxyType

from lambda_checks import (
    LambdaValueError,
    arg_type,
    arg_value,
    is_positive_or_none,
)
from lambda_terms import Term, copy_term, parse_lambda_expr, render

ReductionEvent = namedtuple(
    "ReductionEvent",
    ["clock", "term", "rule"]
)

DELTA = 'δ'
BETA = 'β'

# Entries refer to each other by name; those names are unfolded by
# delta-reduction, never at table construction.
DELTA_DEFINITIONS = (
    ("⊤", "λx.λy.x"),
    ("⊥", "λx.λy.y"),
    ("∧", "λp.λq.p q p"),
    ("∨", "λp.λq.p p q"),
    ("↓", "λn.λf.λx.n (λg.λh.h (g f)) (λu.x) (λu.u)"),
    ("↑", "λn.λf.λx.f (n f x)"),
    ("+", "λm.λn.m ↑ n"),
    ("*", "λm.λn.m (+ n) 0"),
    ("is_zero", "λn.n (λx.⊥) ⊤"),
    ("-", "λm.λn.n ↓ m"),
    ("≤", "λm.λn.is_zero (- m n)"),
    ("pair", "λx.λy.λf.f x y"),
    ("¬", "λp.p ⊥ ⊤"),
    ("=", "λm.λn.∧ (≤ m n) (≤ n m)"),
    (">", "λm.λn.¬ (≤ m n)"),
    ("<", "λm.λn.¬ (≤ n m)"),
    ("⊼", "λp.λq.¬ (∧ p q)"),
    ("⊽", "λp.λq.¬ (∨ p q)"),
    ("⊕", "λp.λq.p (¬ q) q"),
    ("⊙", "λp.λq.p q (¬ q)"),
)


def build_delta_table(definitions=DELTA_DEFINITIONS):
    """Parse ``(name, source)`` pairs into a read-only name -> term mapping."""
    table = {}
    for name, source in definitions:
        table[name] = parse_lambda_expr(source)
    return MappingProxyType(table)


@functools.lru_cache(maxsize=None)
def default_delta_table():
    return build_delta_table()


def _collect_free_vars(term, acc):
    if term.term_type == 'VAR':
        acc.setdefault(term.value)
    elif term.term_type == 'LAM':
        inner = {}
        _collect_free_vars(term.right, inner)
        inner.pop(term.value, None)
        for name in inner:
            acc.setdefault(name)
    elif term.term_type == 'APP':
        _collect_free_vars(term.left, acc)
        _collect_free_vars(term.right, acc)


def _free_vars(term):
    acc = {}
    _collect_free_vars(term, acc)
    return acc.keys()


@arg_type(0, Term)
def free_vars(term):
    """Free variable names of ``term``, ordered by first occurrence.

    The result is a set-like view: it supports ``in``, ``==`` against a
    set and the usual set operators.
    """
    return _free_vars(term)


def fresh_name(forbidden):
    """First of a..z, a1..z1, a2..z2, ... that is not in ``forbidden``."""
    for letter in string.ascii_lowercase:
        if letter not in forbidden:
            return letter
    for idx in itertools.count(1):
        for letter in string.ascii_lowercase:
            candidate = f"{letter}{idx}"
            if candidate not in forbidden:
                return candidate


def _substitute(term, var, replacement):
    if term.term_type == 'VAR':
        if term.value == var:
            return copy_term(replacement)
        return Term('VAR', term.value)

    elif term.term_type == 'LAM':
        if term.value == var:
            return copy_term(term)
        free_in_repl = _free_vars(replacement)
        if term.value in free_in_repl:
            forbidden = set(_free_vars(term)) | {term.value} | set(free_in_repl)
            # a binder renamed to var would be replaced by the second pass
            if term.value in _free_vars(term.right):
                forbidden.add(var)
            new_var = fresh_name(forbidden)
            new_body = _substitute(term.right, term.value, Term('VAR', new_var))
            new_body = _substitute(new_body, var, replacement)
            return Term('LAM', new_var, right=new_body)
        new_body = _substitute(term.right, var, replacement)
        return Term('LAM', term.value, right=new_body)

    elif term.term_type == 'APP':
        new_left = _substitute(term.left, var, replacement)
        new_right = _substitute(term.right, var, replacement)
        return Term('APP', left=new_left, right=new_right)

    raise ValueError(f"Unknown term type: {term.term_type}")


@arg_type(0, Term)
@arg_type(1, str)
@arg_type(2, Term)
def substitute(term, var, replacement):
    """Replace the free occurrences of ``var`` in ``term`` by ``replacement``.

    A binder of ``term`` whose parameter is free in ``replacement`` is
    renamed to a fresh name first, so no free variable of
    ``replacement`` is captured. Neither argument is modified.
    """
    return _substitute(term, var, replacement)


def is_church_numeral(term):
    if term.term_type != 'LAM' or term.right.term_type != 'LAM':
        return False
    f_var = term.value
    x_var = term.right.value
    cur = term.right.right
    while (cur.term_type == 'APP'
           and cur.left.term_type == 'VAR'
           and cur.left.value == f_var):
        cur = cur.right
    return cur.term_type == 'VAR' and cur.value == x_var


def count_applications(term):
    """Number of ``f`` applications in a term already known to be a numeral."""
    f_var = term.value
    cur = term.right.right
    count = 0
    while (cur.term_type == 'APP'
           and cur.left.term_type == 'VAR'
           and cur.left.value == f_var):
        count += 1
        cur = cur.right
    return count


def abstract_numerals(term):
    """Copy of ``term`` with each maximal Church numeral shown as digits."""
    if is_church_numeral(term):
        return Term('VAR', str(count_applications(term)))
    if term.term_type == 'LAM':
        return Term('LAM', term.value, right=abstract_numerals(term.right))
    if term.term_type == 'APP':
        return Term('APP',
                    left=abstract_numerals(term.left),
                    right=abstract_numerals(term.right))
    return Term('VAR', term.value)


@arg_type(0, Term)
def church_to_int(term):
    if not is_church_numeral(term):
        raise LambdaValueError(f"Not a Church numeral: {term}")
    return count_applications(term)


@arg_type(0, Term)
def church_bool_to_int(term):
    if term.term_type != 'LAM' or term.right.term_type != 'LAM':
        raise LambdaValueError(f"Not a Church boolean: {term}")
    inner = term.right
    body = inner.right
    if body.term_type == 'VAR':
        if body.value == inner.value:
            return 0
        if body.value == term.value:
            return 1
    raise LambdaValueError(f"Not a Church boolean: {term}")


class LambdaInterpreter:
    """Normal-order reducer with delta-rules taking priority over beta.

    ``show_step_rule`` adds the rule tag to each transcript line and
    ``delta_abstract`` appends the normal form with its Church numerals
    written as digits.
    """

    @arg_type(1, bool)
    @arg_type(2, bool)
    def __init__(self, show_step_rule=True, delta_abstract=True,
                 delta_table=None):
        self.show_step_rule = show_step_rule
        self.delta_abstract = delta_abstract
        if delta_table is None:
            self.delta_table = default_delta_table()
        else:
            self.delta_table = MappingProxyType(dict(delta_table))
        self.logger = logging.getLogger("LambdaInterpreter")
        self.indent_level = 0

    def _log(self, msg, *args):
        self.logger.debug("%s" + msg, "  " * self.indent_level, *args)

    @arg_type(1, Term)
    def delta_reduction(self, term):
        if term.term_type == 'VAR' and term.value in self.delta_table:
            self._log("δ success: %s", term.value)
            return copy_term(self.delta_table[term.value]), DELTA
        return None, None

    @arg_type(1, Term)
    def beta_reduction(self, term):
        if term.term_type != 'APP' or term.left.term_type != 'LAM':
            return None, None

        lambda_term = term.left
        reduced_body = substitute(lambda_term.right,
                                  lambda_term.value,
                                  copy_term(term.right))
        self._log("β success: %s → %s", lambda_term.value, term.right)
        return reduced_body, BETA

    def _reduce_step(self, term):
        self._log("reduce_step input: %s", term)

        reduced, rule = self.delta_reduction(term)
        if reduced is not None:
            return reduced, rule

        reduced, rule = self.beta_reduction(term)
        if reduced is not None:
            return reduced, rule

        self.indent_level += 1
        try:
            if term.term_type == 'APP':
                reduced_left, rule = self._reduce_step(term.left)
                if reduced_left is not None:
                    return (Term('APP', left=reduced_left,
                                 right=copy_term(term.right)), rule)

                reduced_right, rule = self._reduce_step(term.right)
                if reduced_right is not None:
                    return (Term('APP', left=copy_term(term.left),
                                 right=reduced_right), rule)

            elif term.term_type == 'LAM':
                reduced_body, rule = self._reduce_step(term.right)
                if reduced_body is not None:
                    return Term('LAM', term.value, right=reduced_body), rule
        finally:
            self.indent_level -= 1

        return None, None

    @arg_type(1, Term)
    def reduce_step(self, term):
        """One leftmost-outermost step: ``(new_term, rule)`` or ``(None, None)``."""
        self.indent_level = 0
        return self._reduce_step(term)

    @arg_type(1, Term)
    def steps(self, term):
        """Yield a ``ReductionEvent`` per step until a normal form is reached.

        Only the current term is kept alive, and a term without a normal
        form makes this generator infinite.
        """
        clock = 0
        while True:
            reduced, rule = self.reduce_step(term)
            if reduced is None:
                return
            clock += 1
            term = reduced
            yield ReductionEvent(clock, term, rule)

    def _format_step(self, event):
        if self.show_step_rule:
            return f"Step {event.clock} ({event.rule}): {render(event.term)}"
        return f"Step {event.clock}: {render(event.term)}"

    @arg_type(1, (Term, str))
    @arg_type(2, (int, type(None)))
    @arg_value(2, is_positive_or_none,
               "limit must be a positive number or None")
    def normalize(self, term_or_str, limit=None, out=None):
        """Reduce to normal form, writing one transcript line per step.

        Returns ``(final_term, steps_taken)``. With ``limit`` set, stops
        after that many steps unless the last of them reached a normal form.
        """
        if isinstance(term_or_str, str):
            term = parse_lambda_expr(term_or_str)
        else:
            term = term_or_str
        if out is None:
            out = sys.stdout

        print(f"Step 0: {render(term)}", file=out)

        clock = 0
        for event in self.steps(term):
            term, clock = event.term, event.clock
            print(self._format_step(event), file=out)
            if (limit is not None and clock >= limit
                    and self.reduce_step(term)[0] is not None):
                self.logger.warning("Stopped after %d steps without reaching "
                                    "a normal form", clock)
                return term, clock

        print("→ normal form reached.", file=out)
        self.logger.info("Normal form reached after %d steps", clock)

        if self.delta_abstract:
            print(file=out)
            print(f"δ-abstracted: {render(abstract_numerals(term))}", file=out)

        return term, clock
