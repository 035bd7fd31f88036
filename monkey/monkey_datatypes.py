"""
Defines the runtime value types for the Monkey language.

This module provides every value the evaluator produces or consumes, the
`HashKey` fingerprint used by hashes, and the `Environment` that holds
bindings for lexical scoping.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple

from monkey.monkey_ast import Identifier, BlockStatement

INTEGER_OBJ = "INTEGER"
BOOLEAN_OBJ = "BOOLEAN"
NULL_OBJ = "NULL"
RETURN_VALUE_OBJ = "RETURN_VALUE"
ERROR_OBJ = "ERROR"
FUNCTION_OBJ = "FUNCTION"
STRING_OBJ = "STRING"
BUILTIN_OBJ = "BUILTIN"
ARRAY_OBJ = "ARRAY"
HASH_OBJ = "HASH"

_UINT64_MASK = 0xFFFFFFFFFFFFFFFF
_FNV64_OFFSET_BASIS = 0xCBF29CE484222325
_FNV64_PRIME = 0x100000001B3


def wrap_int64(value: int) -> int:
    """Wraps an arbitrary Python int into the signed 64-bit range."""
    value &= _UINT64_MASK
    if value >= 1 << 63:
        value -= 1 << 64
    return value


def fnv1a_64(data: bytes) -> int:
    h = _FNV64_OFFSET_BASIS
    for byte in data:
        h ^= byte
        h = (h * _FNV64_PRIME) & _UINT64_MASK
    return h


# =================================================================
# Abstract Base Classes
# =================================================================

class MonkeyObject(ABC):
    """Abstract base class for all Monkey runtime values."""
    TYPE: str = ""

    def type(self) -> str:
        return self.TYPE

    def inspect(self) -> str:
        from monkey.monkey_printer import Printer
        return Printer().pformat(self)

    def __str__(self) -> str:
        return self.inspect()


class HashKey(NamedTuple):
    type: str
    value: int


class Hashable(ABC):
    """Values that may be used as hash keys."""
    @abstractmethod
    def hash_key(self) -> HashKey:
        raise NotImplementedError


# =================================================================
# Core Runtime Types
# =================================================================

class Integer(MonkeyObject, Hashable):
    TYPE = INTEGER_OBJ

    def __init__(self, value: int):
        self.value = wrap_int64(value)

    def hash_key(self) -> HashKey:
        return HashKey(self.TYPE, self.value & _UINT64_MASK)

    def __repr__(self) -> str:
        return f"Integer({self.value})"

    def __eq__(self, other):
        return isinstance(other, Integer) and self.value == other.value


class Boolean(MonkeyObject, Hashable):
    """Only two instances exist, `TRUE` and `FALSE`; compare with `is`."""
    TYPE = BOOLEAN_OBJ

    def __init__(self, value: bool):
        self.value = value

    def hash_key(self) -> HashKey:
        return HashKey(self.TYPE, 1 if self.value else 0)

    def __repr__(self) -> str:
        return f"Boolean({self.value})"


class _NullType(MonkeyObject):
    TYPE = NULL_OBJ

    def __repr__(self) -> str:
        return "NULL"


class String(MonkeyObject, Hashable):
    TYPE = STRING_OBJ

    def __init__(self, value: str):
        self.value = value

    def hash_key(self) -> HashKey:
        return HashKey(self.TYPE, fnv1a_64(self.value.encode("utf-8")))

    def __repr__(self) -> str:
        return f"String({self.value!r})"

    def __eq__(self, other):
        return isinstance(other, String) and self.value == other.value


class Array(MonkeyObject):
    TYPE = ARRAY_OBJ

    def __init__(self, elements: List[MonkeyObject]):
        self.elements = list(elements)

    def __repr__(self) -> str:
        return f"Array({self.elements!r})"

    def __eq__(self, other):
        return isinstance(other, Array) and self.elements == other.elements


class HashPair(NamedTuple):
    key: MonkeyObject
    value: MonkeyObject


class Hash(MonkeyObject):
    """Maps `HashKey` to the original key value and its value."""
    TYPE = HASH_OBJ

    def __init__(self, pairs: Optional[Dict[HashKey, HashPair]] = None):
        self.pairs: Dict[HashKey, HashPair] = dict(pairs or {})

    def get(self, key: Hashable) -> Optional[MonkeyObject]:
        pair = self.pairs.get(key.hash_key())
        return pair.value if pair is not None else None

    def __repr__(self) -> str:
        inner = ", ".join(f"{p.key!r}: {p.value!r}" for p in self.pairs.values())
        return f"Hash({{{inner}}})"

    def __eq__(self, other):
        return isinstance(other, Hash) and self.pairs == other.pairs


class Function(MonkeyObject):
    """A closure: parameters and body plus the environment it was defined in."""
    TYPE = FUNCTION_OBJ

    def __init__(self, parameters: Tuple[Identifier, ...], body: BlockStatement, env: 'Environment'):
        self.parameters = tuple(parameters)
        self.body = body
        self.env = env

    def __repr__(self) -> str:
        params = ", ".join(p.value for p in self.parameters)
        return f"Function(fn({params}))"

    def __eq__(self, other):
        if not isinstance(other, Function):
            return NotImplemented
        # The captured environment is not compared.
        return self.parameters == other.parameters and self.body == other.body


class Builtin(MonkeyObject):
    """A native function. When `fn` accepts an `evaluator` keyword it is passed in."""
    TYPE = BUILTIN_OBJ

    def __init__(self, name: str, fn: Callable[..., MonkeyObject], needs_evaluator: bool = False):
        self.name = name
        self.fn = fn
        self.needs_evaluator = needs_evaluator

    def __repr__(self) -> str:
        return f"<Builtin {self.name}>"


class ReturnValue(MonkeyObject):
    """Carries a `return`ed value up to the nearest call boundary."""
    TYPE = RETURN_VALUE_OBJ

    def __init__(self, value: MonkeyObject):
        self.value = value

    def __repr__(self) -> str:
        return f"ReturnValue({self.value!r})"


class Error(MonkeyObject):
    """An evaluation error. Location and stacktrace are diagnostics only."""
    TYPE = ERROR_OBJ

    def __init__(self, message: str, loc: Optional[dict] = None, stacktrace: Optional[List[dict]] = None):
        self.message = message
        self.loc = loc
        self.stacktrace = list(stacktrace or [])

    def __repr__(self) -> str:
        return f"Error({self.message!r})"

    def __eq__(self, other):
        return isinstance(other, Error) and self.message == other.message


# Singleton instances
TRUE = Boolean(True)
FALSE = Boolean(False)
NULL = _NullType()


def native_bool_to_boolean(value: bool) -> Boolean:
    return TRUE if value else FALSE


# =================================================================
# Environment
# =================================================================

class Environment:
    """A scope of name bindings with an optional enclosing scope.

    Lookups walk outward through `outer`; assignments always bind in the
    scope they are made on. Function calls get a fresh environment enclosed
    by the function's captured one, which is what makes closures lexical.
    """
    def __init__(self, outer: Optional['Environment'] = None):
        self.store: Dict[str, MonkeyObject] = {}
        self.outer = outer

    def find_owner(self, name: str) -> Optional['Environment']:
        """Finds the Environment in the chain that binds `name`."""
        env = self
        while env is not None:
            if name in env.store:
                return env
            env = env.outer
        return None

    def get(self, name: str, default: Any = None) -> Any:
        owner = self.find_owner(name)
        if owner is not None:
            return owner.store[name]
        return default

    def set(self, name: str, value: MonkeyObject) -> MonkeyObject:
        self.store[name] = value
        return value

    def __repr__(self) -> str:
        keys = ', '.join(self.store.keys())
        outer_id = f", outer=#{id(self.outer)}" if self.outer else ""
        return f"<Environment bindings=[{keys}]{outer_id}>"


def new_environment() -> Environment:
    return Environment()


def new_enclosed_environment(outer: Environment) -> Environment:
    return Environment(outer=outer)
