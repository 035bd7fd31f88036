"""
A pretty-printer for Monkey runtime values.
"""
from monkey.monkey_datatypes import (
    Integer, Boolean, String, Array, Hash, Function, Builtin, ReturnValue, Error,
    NULL
)


class Printer:
    """Formats Monkey values the way the REPL shows them (`inspect()`)."""

    def __init__(self, null_text: str = "null"):
        self.null_text = null_text
        self._handlers = self._create_handlers()

    def pformat(self, obj) -> str:
        """Public entry point to format an object."""
        handler = self._get_handler(obj)
        return handler(obj)

    def _get_handler(self, obj):
        """Dispatcher to find the correct formatting method."""
        # Fast path for singletons
        if obj is NULL: return self._pformat_null

        obj_type = type(obj)
        if obj_type in self._handlers:
            return self._handlers[obj_type]
        # Default to Python's repr for unknown types
        return lambda o: repr(o)

    def _create_handlers(self):
        return {
            Integer: self._pformat_primitive,
            Boolean: self._pformat_bool,
            String: self._pformat_str,
            Array: self._pformat_array,
            Hash: self._pformat_hash,
            Function: self._pformat_function,
            Builtin: self._pformat_builtin,
            ReturnValue: self._pformat_return_value,
            Error: self._pformat_error,
        }

    def _pformat_primitive(self, obj):
        return str(obj.value)

    def _pformat_bool(self, obj):
        return 'true' if obj.value else 'false'

    def _pformat_str(self, obj):
        # Strings print verbatim, without quotes.
        return obj.value

    def _pformat_null(self, obj):
        return self.null_text

    def _pformat_array(self, obj):
        return "[" + ", ".join(self.pformat(e) for e in obj.elements) + "]"

    def _pformat_hash(self, obj):
        pairs = [f"{self.pformat(p.key)}: {self.pformat(p.value)}" for p in obj.pairs.values()]
        return "{" + ", ".join(pairs) + "}"

    def _pformat_function(self, obj):
        params = ", ".join(str(p) for p in obj.parameters)
        return f"fn({params}) {{\n{obj.body}\n}}"

    def _pformat_builtin(self, obj):
        return "builtin function"

    def _pformat_return_value(self, obj):
        return self.pformat(obj.value)

    def _pformat_error(self, obj):
        return f"ERROR: {obj.message}"
