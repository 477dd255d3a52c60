import io
import logging

from lambda_cli import PROMPT, build_arg_parser, main


def run(argv, stdin_text=""):
    out = io.StringIO()
    status = main(argv, stdin=io.StringIO(stdin_text), stdout=out)
    return status, out.getvalue()


def test_arguments_are_joined():
    status, output = run(["(λx.x)", "(λy.y)"])
    assert status == 0
    assert output == (
        "Step 0: (λx.x) (λy.y)\n"
        "Step 1 (β): λy.y\n"
        "→ normal form reached.\n"
        "\n"
        "δ-abstracted: λy.y\n"
    )


def test_reads_line_from_stdin():
    status, output = run([], "(λx.x) y\n")
    assert status == 0
    assert output.startswith(PROMPT + "Step 0: (λx.x) y\nStep 1 (β): y\n")


def test_end_of_input():
    assert run([], "") == (0, PROMPT)


def test_flags():
    status, output = run(["--no-step-rule", "--no-abstract", "(λx.x)", "z"])
    assert status == 0
    assert output == "Step 0: (λx.x) z\nStep 1: z\n→ normal form reached.\n"


def test_flag_defaults():
    args = build_arg_parser().parse_args([])
    assert args.show_step_rule and args.delta_abstract
    assert not args.verbose
    assert args.expr == []


def test_plus():
    status, output = run(["+", "2", "3"])
    assert status == 0
    assert output.splitlines()[-1] == "δ-abstracted: 5"


def test_syntax_error(caplog):
    with caplog.at_level(logging.ERROR):
        status, output = run(["λx", "x"])
    assert status == 1
    assert output == ""
    assert "Expected '.' after λ at 4" in caplog.text


def test_verbose_logs_search(caplog):
    with caplog.at_level(logging.DEBUG, logger="LambdaInterpreter"):
        status, _ = run(["-v", "(λx.x)", "y"])
    assert status == 0
    messages = [r.getMessage() for r in caplog.records if r.name == "LambdaInterpreter"]
    assert any("reduce_step input: (λx.x) y" in m for m in messages)
    assert any("β success: x → y" in m for m in messages)
