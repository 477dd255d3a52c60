"""Command-line front end: reduce one λ-term and print every step.

The words given on the command line are joined with spaces into the
term; without any, one line is read from standard input.
"""

import argparse
import logging
import sys

from lambda_checks import LambdaSyntaxError
from lambda_reduce import LambdaInterpreter
from lambda_terms import parse_lambda_expr

PROMPT = "λ-expr> "
RECURSION_LIMIT = 10000

logger = logging.getLogger("lambda_cli")


def build_arg_parser():
    parser = argparse.ArgumentParser(
        prog="lambda-calcu",
        description="Reduce a lambda term to normal form using δ- and β-rules.")
    parser.add_argument("expr", nargs="*",
                        help="term to reduce (if empty, read one line from stdin)")
    parser.add_argument("--no-step-rule", dest="show_step_rule",
                        action="store_false",
                        help="do not tag each step with its rule")
    parser.add_argument("--no-abstract", dest="delta_abstract",
                        action="store_false",
                        help="do not print the result with numerals as digits")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="log every reduction attempt")
    return parser


def read_input(args, stdin, stdout):
    if args.expr:
        return " ".join(args.expr)
    stdout.write(PROMPT)
    stdout.flush()
    line = stdin.readline()
    if not line:
        return None
    return line.rstrip("\n")


def main(argv=None, stdin=None, stdout=None):
    """Runs the reducer; returns the process exit status."""
    stdin = sys.stdin if stdin is None else stdin
    stdout = sys.stdout if stdout is None else stdout
    args = build_arg_parser().parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(message)s')
    sys.setrecursionlimit(max(sys.getrecursionlimit(), RECURSION_LIMIT))

    text = read_input(args, stdin, stdout)
    if text is None:
        return 0

    try:
        term = parse_lambda_expr(text)
    except LambdaSyntaxError as exc:
        logger.error("%s", exc)
        return 1

    interpreter = LambdaInterpreter(show_step_rule=args.show_step_rule,
                                    delta_abstract=args.delta_abstract)
    interpreter.normalize(term, out=stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
