import pytest
from types import MappingProxyType
from monkey.monkey_parser import parse
from monkey.monkey_interpreter import Evaluator
from monkey.monkey_builtins import BUILTINS
from monkey.monkey_datatypes import Integer, String, Array, Error, NULL, new_environment


def run_with(src: str):
    program, errors = parse(src)
    assert errors == []
    ev = Evaluator()
    return ev.eval(program, new_environment()), ev


def run(src: str):
    return run_with(src)[0]


def test_registry_is_read_only():
    assert isinstance(BUILTINS, MappingProxyType)
    assert set(BUILTINS) == {"len", "first", "last", "rest", "push", "puts"}
    with pytest.raises(TypeError):
        BUILTINS["len"] = None


@pytest.mark.parametrize("src, expected", [
    ('len("")', 0),
    ('len("four")', 4),
    ('len("hello world")', 11),
    ('len("héllo")', 5),
    ("len([1, 2, 3])", 3),
    ("len([])", 0),
    ("first([1, 2, 3])", 1),
    ("last([1, 2, 3])", 3),
])
def test_builtin_integer_results(src, expected):
    assert run(src) == Integer(expected)


@pytest.mark.parametrize("src", ["first([])", "last([])", "rest([])"])
def test_empty_array_gives_null(src):
    assert run(src) is NULL


def test_rest_and_push_return_new_arrays():
    env = new_environment()
    program, _ = parse("let a = [1, 2, 3]; let b = rest(a); let c = push(a, 4); [a, b, c]")
    res = Evaluator().eval(program, env)
    a, b, c = res.elements
    assert a == Array([Integer(1), Integer(2), Integer(3)])
    assert b == Array([Integer(2), Integer(3)])
    assert c == Array([Integer(1), Integer(2), Integer(3), Integer(4)])
    assert run("rest([1])") == Array([])
    assert run("push([], 1)") == Array([Integer(1)])


@pytest.mark.parametrize("src, message", [
    ("len(1)", "argument to `len` not supported, got INTEGER"),
    ('len("one", "two")', "wrong number of arguments. got=2, want=1"),
    ("len()", "wrong number of arguments. got=0, want=1"),
    ("first(1)", "argument to `first` must be ARRAY, got INTEGER"),
    ('last("abc")', "argument to `last` must be ARRAY, got STRING"),
    ("rest({})", "argument to `rest` must be ARRAY, got HASH"),
    ("push(1, 1)", "argument to `push` must be ARRAY, got INTEGER"),
    ("push([1])", "wrong number of arguments. got=1, want=2"),
    ("first([1], [2])", "wrong number of arguments. got=2, want=1"),
])
def test_builtin_errors(src, message):
    res = run(src)
    assert isinstance(res, Error)
    assert res.message == message


def test_builtin_error_gets_call_site_location():
    res = run("\n  len(1)")
    assert res.loc["line"] == 2
    assert [f["name"] for f in res.stacktrace] == ["len"]


def test_puts_emits_stdout_side_effects_and_returns_null():
    res, ev = run_with('puts("hello", 1, [true])')
    assert res is NULL
    assert ev.side_effects == [
        {"topics": ["stdout"], "message": "hello"},
        {"topics": ["stdout"], "message": "1"},
        {"topics": ["stdout"], "message": "[true]"},
    ]


def test_puts_with_no_arguments():
    res, ev = run_with("puts()")
    assert res is NULL
    assert ev.side_effects == []


def test_builtins_can_be_passed_as_values():
    assert run("let apply = fn(f, x) { f(x) }; apply(len, [1, 2])") == Integer(2)
    assert run("let l = len; l(\"ab\")") == Integer(2)


def test_builtins_called_directly():
    assert BUILTINS["len"].fn(String("abc")) == Integer(3)
    assert BUILTINS["puts"].needs_evaluator is True
    assert BUILTINS["len"].needs_evaluator is False
