"""
Native functions available to every Monkey program.

`BUILTINS` is built once at import time and is read-only afterwards. The
evaluator consults it only after a name is not found in the environment.
"""
import inspect
from types import MappingProxyType
from typing import Callable, Dict

from monkey.monkey_datatypes import (
    MonkeyObject, Builtin, Integer, String, Array, Error, NULL, ARRAY_OBJ
)

_REGISTRY: Dict[str, Builtin] = {}


def builtin(name: str):
    """Registers the decorated function as the built-in `name`."""
    def decorator(fn: Callable[..., MonkeyObject]):
        needs_evaluator = 'evaluator' in inspect.signature(fn).parameters
        _REGISTRY[name] = Builtin(name, fn, needs_evaluator=needs_evaluator)
        return fn
    return decorator


def _wrong_arg_count(got: int, want: int) -> Error:
    return Error(f"wrong number of arguments. got={got}, want={want}")


def _expect_array(name: str, arg: MonkeyObject):
    if not isinstance(arg, Array):
        return Error(f"argument to `{name}` must be {ARRAY_OBJ}, got {arg.type()}")
    return None


@builtin("len")
def _len(*args):
    if len(args) != 1:
        return _wrong_arg_count(len(args), 1)
    arg = args[0]
    match arg:
        case String():
            return Integer(len(arg.value))
        case Array():
            return Integer(len(arg.elements))
        case _:
            return Error(f"argument to `len` not supported, got {arg.type()}")


@builtin("first")
def _first(*args):
    if len(args) != 1:
        return _wrong_arg_count(len(args), 1)
    err = _expect_array("first", args[0])
    if err:
        return err
    elements = args[0].elements
    return elements[0] if elements else NULL


@builtin("last")
def _last(*args):
    if len(args) != 1:
        return _wrong_arg_count(len(args), 1)
    err = _expect_array("last", args[0])
    if err:
        return err
    elements = args[0].elements
    return elements[-1] if elements else NULL


@builtin("rest")
def _rest(*args):
    if len(args) != 1:
        return _wrong_arg_count(len(args), 1)
    err = _expect_array("rest", args[0])
    if err:
        return err
    elements = args[0].elements
    if not elements:
        return NULL
    return Array(elements[1:])


@builtin("push")
def _push(*args):
    if len(args) != 2:
        return _wrong_arg_count(len(args), 2)
    err = _expect_array("push", args[0])
    if err:
        return err
    # The argument array is left untouched.
    return Array(args[0].elements + [args[1]])


@builtin("puts")
def _puts(*args, evaluator=None):
    """Emits each argument on stdout as a side effect."""
    for arg in args:
        if evaluator is not None:
            evaluator.emit("stdout", arg.inspect())
    return NULL


BUILTINS = MappingProxyType(dict(_REGISTRY))
