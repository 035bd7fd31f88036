from __future__ import annotations

import json
from typing import Any

import yaml

from monkey.monkey_datatypes import (
    MonkeyObject, Integer, Boolean, String, Array, Hash, Error, ReturnValue, NULL
)


# --------------------------
# Helpers
# --------------------------

def to_builtin(obj: Any) -> Any:
    """Converts a Monkey value into plain Python data.

    Functions and built-ins have no data form and become their `inspect()` text.
    """
    if obj is NULL:
        return None
    match obj:
        case Integer() | String():
            return obj.value
        case Boolean():
            return bool(obj.value)
        case Array():
            return [to_builtin(e) for e in obj.elements]
        case Hash():
            return {to_builtin(p.key): to_builtin(p.value) for p in obj.pairs.values()}
        case ReturnValue():
            return to_builtin(obj.value)
        case Error():
            return {"error": obj.message}
        case MonkeyObject():
            return obj.inspect()
    return obj


# --------------------------
# Public API
# --------------------------

def serialize(value: Any,
              *,
              fmt: str,
              pretty: bool = True) -> str:
    """
    Convert a Monkey value into a textual representation.
    - fmt: 'json' | 'yaml'
    """
    f = (fmt or '').lower()
    built = to_builtin(value)
    if f == 'json':
        return json.dumps(built, ensure_ascii=False, indent=2 if pretty else None)
    if f == 'yaml':
        return yaml.safe_dump(built, sort_keys=False)
    raise ValueError(f"Unsupported serialization format: {fmt!r}")


__all__ = [
    "serialize",
    "to_builtin",
]
