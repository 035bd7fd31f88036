"""
The core Monkey interpreter: a tree-walking Evaluator.

Evaluation never raises for language-level problems. Errors are `Error`
values and `return` is a `ReturnValue` wrapper; both are checked after
every sub-evaluation and propagated upward unchanged.
"""
import os
import sys
from typing import Any, Dict, List, Mapping, Optional, Sequence

from monkey.monkey_ast import (
    Node, Program, LetStatement, ReturnStatement, ExpressionStatement, BlockStatement,
    Identifier, IntegerLiteral, StringLiteral, Boolean as BooleanLiteral,
    PrefixExpression, InfixExpression, IfExpression, FunctionLiteral, CallExpression,
    ArrayLiteral, IndexExpression, HashLiteral
)
from monkey.monkey_datatypes import (
    MonkeyObject, Integer, String, Array, Hash, HashPair, Hashable, Function, Builtin,
    ReturnValue, Error, Environment, TRUE, FALSE, NULL,
    native_bool_to_boolean, new_enclosed_environment
)
from monkey.monkey_builtins import BUILTINS

# Each Monkey call nests about ten Python frames.
RECURSION_LIMIT = int(os.environ.get("MONKEY_RECURSION_LIMIT", "10000"))
if sys.getrecursionlimit() < RECURSION_LIMIT:
    sys.setrecursionlimit(RECURSION_LIMIT)


def is_stop(obj: MonkeyObject) -> bool:
    """True for the values that end evaluation of every enclosing construct."""
    return isinstance(obj, (Error, ReturnValue))


def is_truthy(obj: MonkeyObject) -> bool:
    """Only `false` and `null` are falsy."""
    if obj is NULL or obj is FALSE:
        return False
    return True


def unwrap_return(obj: MonkeyObject) -> MonkeyObject:
    return obj.value if isinstance(obj, ReturnValue) else obj


def _int_div(a: int, b: int) -> int:
    # Truncates toward zero.
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


class Evaluator:
    """The Monkey execution engine."""

    def __init__(self, builtins: Optional[Mapping[str, Builtin]] = None):
        self.builtins: Mapping[str, Builtin] = BUILTINS if builtins is None else builtins
        self.side_effects: List[Dict[str, Any]] = []
        self.call_stack: List[Dict[str, Any]] = []

    def _dbg(self, *parts):
        if os.environ.get("MONKEY_DEBUG"):
            print("[DBG]", *parts, file=sys.stderr)

    def emit(self, topic: str, message: str):
        """Records an output event for the host application."""
        self.side_effects.append({"topics": [topic], "message": message})

    def _push_frame(self, name, func, args, call_site_node):
        self.call_stack.append({
            'name': name,
            'func': func,
            'args': args,
            'call_site': call_site_node.loc if call_site_node is not None else None,
        })

    def _new_error(self, node: Optional[Node], message: str) -> Error:
        self._dbg("error", repr(message), "at", node.loc if node is not None else None)
        loc = node.loc if node is not None else None
        frames = [{'name': f['name'], 'args': list(f['args'])} for f in self.call_stack]
        return Error(message, loc=loc, stacktrace=frames)

    def eval(self, node: Node, env: Environment) -> MonkeyObject:
        """Public entry point for evaluation. Unwraps `return` wrappers."""
        return unwrap_return(self._eval(node, env))

    def _eval(self, node: Node, env: Environment) -> MonkeyObject:
        """Recursive dispatcher for evaluating any AST node."""
        match node:
            # Statements
            case Program():
                return self._eval_program(node, env)

            case BlockStatement():
                return self._eval_block_statement(node, env)

            case ExpressionStatement():
                return self._eval(node.expression, env)

            case ReturnStatement():
                if node.return_value is None:
                    return ReturnValue(NULL)
                val = self._eval(node.return_value, env)
                if is_stop(val):
                    return val
                return ReturnValue(val)

            case LetStatement():
                val = self._eval(node.value, env)
                if is_stop(val):
                    return val
                env.set(node.name.value, val)
                return NULL

            # Literals
            case IntegerLiteral():
                return Integer(node.value)

            case StringLiteral():
                return String(node.value)

            case BooleanLiteral():
                return native_bool_to_boolean(node.value)

            case ArrayLiteral():
                elements = self._eval_expressions(node.elements, env)
                if len(elements) == 1 and is_stop(elements[0]):
                    return elements[0]
                return Array(elements)

            case HashLiteral():
                return self._eval_hash_literal(node, env)

            case FunctionLiteral():
                return Function(node.parameters, node.body, env)

            # Expressions
            case Identifier():
                return self._eval_identifier(node, env)

            case PrefixExpression():
                right = self._eval(node.right, env)
                if is_stop(right):
                    return right
                return self._eval_prefix_expression(node, node.operator, right)

            case InfixExpression():
                left = self._eval(node.left, env)
                if is_stop(left):
                    return left
                right = self._eval(node.right, env)
                if is_stop(right):
                    return right
                return self._eval_infix_expression(node, node.operator, left, right)

            case IfExpression():
                condition = self._eval(node.condition, env)
                if is_stop(condition):
                    return condition
                if is_truthy(condition):
                    return self._eval(node.consequence, env)
                if node.alternative is not None:
                    return self._eval(node.alternative, env)
                return NULL

            case CallExpression():
                function = self._eval(node.function, env)
                if is_stop(function):
                    return function
                args = self._eval_expressions(node.arguments, env)
                if len(args) == 1 and is_stop(args[0]):
                    return args[0]
                return self.call(function, args, node)

            case IndexExpression():
                left = self._eval(node.left, env)
                if is_stop(left):
                    return left
                index = self._eval(node.index, env)
                if is_stop(index):
                    return index
                return self._eval_index_expression(node, left, index)

            case _:
                return self._new_error(None, f"unknown node: {type(node).__name__}")

    # -----------------------------------------------------------------
    # Statements
    # -----------------------------------------------------------------

    def _eval_program(self, program: Program, env: Environment) -> MonkeyObject:
        result: MonkeyObject = NULL
        for stmt in program.statements:
            result = self._eval(stmt, env)
            match result:
                case ReturnValue():
                    return result.value
                case Error():
                    return result
        return result

    def _eval_block_statement(self, block: BlockStatement, env: Environment) -> MonkeyObject:
        result: MonkeyObject = NULL
        for stmt in block.statements:
            result = self._eval(stmt, env)
            # Leave the wrapper on so enclosing blocks stop too.
            if isinstance(result, (ReturnValue, Error)):
                return result
        return result

    # -----------------------------------------------------------------
    # Expressions
    # -----------------------------------------------------------------

    def _eval_expressions(self, exprs: Sequence[Node], env: Environment) -> List[MonkeyObject]:
        """Evaluates left to right. On an Error or `return` returns a one-element list holding it."""
        result = []
        for expr in exprs:
            evaluated = self._eval(expr, env)
            if is_stop(evaluated):
                return [evaluated]
            result.append(evaluated)
        return result

    def _eval_identifier(self, node: Identifier, env: Environment) -> MonkeyObject:
        val = env.get(node.value)
        if val is not None:
            return val
        builtin = self.builtins.get(node.value)
        if builtin is not None:
            return builtin
        return self._new_error(node, f"identifier not found: {node.value}")

    def _eval_prefix_expression(self, node: Node, operator: str, right: MonkeyObject) -> MonkeyObject:
        match operator:
            case "!":
                return FALSE if is_truthy(right) else TRUE
            case "-":
                if not isinstance(right, Integer):
                    return self._new_error(node, f"unknown operator: -{right.type()}")
                return Integer(-right.value)
            case _:
                return self._new_error(node, f"unknown operator: {operator}{right.type()}")

    def _eval_infix_expression(self, node: Node, operator: str, left: MonkeyObject, right: MonkeyObject) -> MonkeyObject:
        if isinstance(left, Integer) and isinstance(right, Integer):
            return self._eval_integer_infix_expression(node, operator, left, right)
        if isinstance(left, String) and isinstance(right, String):
            return self._eval_string_infix_expression(node, operator, left, right)
        # TRUE, FALSE and NULL are singletons, so identity is equality here.
        if operator == "==":
            return native_bool_to_boolean(left is right)
        if operator == "!=":
            return native_bool_to_boolean(left is not right)
        if left.type() != right.type():
            return self._new_error(node, f"type mismatch: {left.type()} {operator} {right.type()}")
        return self._new_error(node, f"unknown operator: {left.type()} {operator} {right.type()}")

    def _eval_integer_infix_expression(self, node: Node, operator: str, left: Integer, right: Integer) -> MonkeyObject:
        a, b = left.value, right.value
        match operator:
            case "+":
                return Integer(a + b)
            case "-":
                return Integer(a - b)
            case "*":
                return Integer(a * b)
            case "/":
                if b == 0:
                    return self._new_error(node, "division by zero")
                return Integer(_int_div(a, b))
            case "<":
                return native_bool_to_boolean(a < b)
            case ">":
                return native_bool_to_boolean(a > b)
            case "==":
                return native_bool_to_boolean(a == b)
            case "!=":
                return native_bool_to_boolean(a != b)
            case _:
                return self._new_error(node, f"unknown operator: {left.type()} {operator} {right.type()}")

    def _eval_string_infix_expression(self, node: Node, operator: str, left: String, right: String) -> MonkeyObject:
        if operator != "+":
            return self._new_error(node, f"unknown operator: {left.type()} {operator} {right.type()}")
        return String(left.value + right.value)

    def _eval_index_expression(self, node: Node, left: MonkeyObject, index: MonkeyObject) -> MonkeyObject:
        match left:
            case Array() if isinstance(index, Integer):
                idx = index.value
                if idx < 0 or idx > len(left.elements) - 1:
                    return NULL
                return left.elements[idx]
            case Hash():
                if not isinstance(index, Hashable):
                    return self._new_error(node, f"unusable as hash key: {index.type()}")
                val = left.get(index)
                return NULL if val is None else val
            case _:
                return self._new_error(node, f"index operator not supported: {left.type()}")

    def _eval_hash_literal(self, node: HashLiteral, env: Environment) -> MonkeyObject:
        pairs = {}
        for key_node, value_node in node.pairs:
            key = self._eval(key_node, env)
            if is_stop(key):
                return key
            if not isinstance(key, Hashable):
                return self._new_error(key_node, f"unusable as hash key: {key.type()}")
            value = self._eval(value_node, env)
            if is_stop(value):
                return value
            pairs[key.hash_key()] = HashPair(key, value)
        return Hash(pairs)

    # -----------------------------------------------------------------
    # Calls
    # -----------------------------------------------------------------

    def call(self, func: MonkeyObject, args: List[MonkeyObject], call_site: Optional[Node] = None) -> MonkeyObject:
        """Calls a Function or Builtin with already evaluated arguments."""
        self._dbg("Evaluator.call", type(func).__name__, "argc", len(args))
        match func:
            case Function():
                name = str(call_site.function) if isinstance(call_site, CallExpression) else "fn"
                self._push_frame(name, func, args, call_site)
                try:
                    extended_env = self._extend_function_env(func, args)
                    evaluated = self._eval(func.body, extended_env)
                except RecursionError as exc:
                    # Frames pop while the exception unwinds; keep the deepest copy.
                    if not getattr(exc, "monkey_stack", None):
                        exc.monkey_stack = list(self.call_stack)
                    raise
                finally:
                    self.call_stack.pop()
                return unwrap_return(evaluated)

            case Builtin():
                self._push_frame(func.name, func, args, call_site)
                try:
                    if func.needs_evaluator:
                        result = func.fn(*args, evaluator=self)
                    else:
                        result = func.fn(*args)
                    if isinstance(result, Error) and result.loc is None:
                        result.loc = call_site.loc if call_site is not None else None
                        result.stacktrace = [{'name': f['name'], 'args': list(f['args'])} for f in self.call_stack]
                finally:
                    self.call_stack.pop()
                return result

            case _:
                return self._new_error(call_site, f"not a function: {func.type()}")

    def _extend_function_env(self, func: Function, args: List[MonkeyObject]) -> Environment:
        env = new_enclosed_environment(func.env)
        # Parameters without a matching argument stay unbound.
        for param, arg in zip(func.parameters, args):
            env.set(param.value, arg)
        return env


def evaluate(node: Node, env: Environment, evaluator: Optional[Evaluator] = None) -> MonkeyObject:
    """Evaluates `node` in `env` with a fresh (or the given) Evaluator."""
    return (evaluator or Evaluator()).eval(node, env)
