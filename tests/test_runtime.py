import pytest
from monkey.monkey_runtime import ScriptRunner, ExecutionResult
from monkey.monkey_datatypes import Integer, String, Error, NULL, new_environment


@pytest.fixture
def runner():
    return ScriptRunner()


def test_success_result(runner):
    result = runner.handle_script("let x = 2; x * 21")
    assert result.status == 'success'
    assert result.value == Integer(42)
    assert result.error_message is None
    assert result.format_error() == ""


def test_bindings_persist_between_scripts(runner):
    assert runner.handle_script("let greeting = \"hi\";").value is NULL
    result = runner.handle_script('greeting + " there"')
    assert result.value == String("hi there")


def test_runner_accepts_existing_environment():
    env = new_environment()
    env.set("seed", Integer(10))
    runner = ScriptRunner(env=env)
    assert runner.handle_script("seed + 1").value == Integer(11)
    runner.handle_script("let out = 5;")
    assert env.get("out") == Integer(5)


def test_parse_error_is_reported_with_location(runner):
    result = runner.handle_script("let x = 1;\nlet = 2;")
    assert result.status == 'error'
    assert result.value is None
    assert result.error_message.startswith(
        "ParseError: expected next token to be IDENT, got = instead (line 2, col 5)"
    )
    assert "> 2 | let = 2;" in result.error_message
    assert "    ^" in result.error_message
    assert result.error_token["line"] == 2
    # The report already carries its location, so it is not repeated.
    assert result.format_error() == result.error_message


def test_every_parse_error_is_listed(runner):
    result = runner.handle_script("let = 1; let y 2;")
    lines = result.error_message.splitlines()
    assert lines[0].startswith("ParseError: expected next token to be IDENT, got = instead")
    assert lines[-1] == "ParseError: expected next token to be =, got INT instead"


def test_parse_error_skips_evaluation(runner):
    result = runner.handle_script('puts("never"); let = 1;')
    assert result.status == 'error'
    assert [e for e in result.side_effects if e["topics"] == ["stdout"]] == []


def test_runtime_error_report(runner):
    result = runner.handle_script("let a = 1;\na + true")
    assert result.status == 'error'
    assert result.value == Error("type mismatch: INTEGER + BOOLEAN")
    msg = result.error_message
    assert msg.splitlines()[0] == "RuntimeError: type mismatch: INTEGER + BOOLEAN"
    assert "(line 2, col 3)" in msg
    assert "> 2 | a + true" in msg
    assert (result.error_token["line"], result.error_token["col"]) == (2, 3)


def test_runtime_error_includes_monkey_stacktrace(runner):
    src = "let inner = fn(v) { v / 0 };\nlet outer = fn(w) { inner(w + 1) };\nouter(1)"
    result = runner.handle_script(src)
    assert result.status == 'error'
    assert "RuntimeError: division by zero" in result.error_message
    assert result.error_message.splitlines()[-1] == "Monkey stacktrace: (outer 1) (inner 2)"
    assert runner.evaluator.call_stack == []


def test_errors_emit_stderr_side_effect(runner):
    result = runner.handle_script("missing")
    assert result.side_effects[-1]["topics"] == ["stderr"]
    assert result.side_effects[-1]["message"] == result.error_message


def test_puts_side_effects_are_collected_per_run(runner):
    first = runner.handle_script('puts("a"); puts("b"); 1')
    assert [e["message"] for e in first.side_effects] == ["a", "b"]
    second = runner.handle_script("2")
    assert second.side_effects == []


def test_unbounded_recursion_is_reported_not_raised(runner):
    result = runner.handle_script("let f = fn(n) { f(n + 1) };\nf(0)")
    assert result.status == 'error'
    lines = result.error_message.splitlines()
    assert lines[0] == "RecursionError: maximum recursion depth exceeded"
    assert lines[1].startswith("Monkey stacktrace: (f ")
    assert "more)" in lines[1]
    assert runner.evaluator.call_stack == []
    # The runner stays usable.
    assert runner.handle_script("f").status == 'success'


def test_format_error_without_location():
    result = ExecutionResult(status='error', error_message="boom")
    assert result.format_error() == "boom"


def test_parse_only(runner):
    program, parser = runner.parse("1 + 2 * 3")
    assert parser.errors == []
    assert str(program) == "(1 + (2 * 3))"


def test_format_error_adds_location_to_first_line():
    result = ExecutionResult(status='error', error_message="boom\ndetail",
                             error_token={'line': 3, 'col': 7})
    assert result.format_error() == "boom (line 3, col 7)\ndetail"


def test_source_context_shows_leading_lines_only(runner):
    src = "let a = 1;\nlet b = 2;\nlet c = 3;\na + true;\nlet d = 4;"
    context = runner._source_context(src, 4, 3)
    assert context.splitlines() == [
        "  2 | let b = 2;",
        "  3 | let c = 3;",
        "> 4 | a + true;",
        "    |   ^",
    ]


def test_source_context_caret_follows_tabs(runner):
    context = runner._source_context("\t\tx + true", 1, 5)
    assert context.splitlines()[-1] == "    | \t\t  ^"


def test_recursion_five_hundred_levels(runner):
    src = "let down = fn(n) { if (n == 0) { 0 } else { down(n - 1) } };\ndown(500)"
    result = runner.handle_script(src)
    assert result.status == 'success'
    assert result.value == Integer(0)


def test_recursion_report_shows_innermost_frames(runner):
    result = runner.handle_script("let f = fn(n) { f(n + 1) };\nf(0)")
    stack_line = result.error_message.splitlines()[1]
    frames = stack_line[len("Monkey stacktrace: "):].split(" ... ")[0]
    assert frames.count("(f ") == 5
    # Innermost frames carry the largest arguments.
    assert "(f 0)" not in frames
