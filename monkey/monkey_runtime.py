"""
Parses and executes Monkey source, packaging the outcome as an
`ExecutionResult` with formatted, location-aware error messages.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from monkey.monkey_lexer import Lexer
from monkey.monkey_parser import Parser
from monkey.monkey_interpreter import Evaluator
from monkey.monkey_datatypes import MonkeyObject, Environment, Error, new_environment
from monkey.monkey_printer import Printer

# Innermost frames shown when the host stack overflows.
_MAX_OVERFLOW_FRAMES = 5


@dataclass
class ExecutionResult:
    """The structured result of a script execution."""
    status: Literal['success', 'error']
    value: Optional[MonkeyObject] = None
    error_message: Optional[str] = None
    error_token: Optional[Dict[str, Any]] = None
    side_effects: List[Dict] = field(default_factory=list)

    def format_error(self) -> str:
        """The error report with its line and column on the first line."""
        if self.status != 'error':
            return ""
        msg = self.error_message or "unknown error"
        if not self.error_token or not self.error_token.get('line'):
            return msg
        where = f"(line {self.error_token['line']}, col {self.error_token.get('col', 0)})"
        if where in msg:
            return msg
        head, sep, rest = msg.partition("\n")
        return f"{head} {where}{sep}{rest}"


class ScriptRunner:
    """Parses and evaluates Monkey code against one persistent top-level environment."""

    def __init__(self, env: Optional[Environment] = None):
        self.env = env if env is not None else new_environment()
        self.evaluator = Evaluator()

    def _format_parse_errors(self, parser: Parser, source: str) -> str:
        first_tok = parser.error_tokens[0] if parser.error_tokens else None
        msg = f"ParseError: {parser.errors[0]}"
        if first_tok is not None and first_tok.line:
            msg = f"{msg} (line {first_tok.line}, col {first_tok.col})"
            context = self._source_context(source, first_tok.line, first_tok.col)
            if context:
                msg = f"{msg}\n{context}"
        for extra in parser.errors[1:]:
            msg += f"\nParseError: {extra}"
        return msg

    def _format_runtime_error(self, err: Error, source: str) -> str:
        msg = f"RuntimeError: {err.message}"
        loc = err.loc
        if loc and isinstance(loc, dict):
            line = loc.get('line'); col = loc.get('col')
            if line and col is not None:
                msg = f"{msg}\n(line {line}, col {col})\n{self._source_context(source, line, col)}"
        st = self._format_stacktrace(err.stacktrace)
        if st:
            msg += "\n" + st
        return msg

    def _source_context(self, source: str, line: int, col: Optional[int], before: int = 2) -> str:
        """The offending line and up to `before` lines leading to it, with a caret under `col`."""
        lines = source.splitlines()
        if not line or line < 1 or line > len(lines):
            return ""
        first = max(1, line - before)
        width = len(str(line))
        out = [f"  {n:>{width}} | {text}" for n, text in enumerate(lines[first - 1:line - 1], first)]
        target = lines[line - 1]
        out.append(f"> {line:>{width}} | {target}")
        if col is not None:
            # Tabs are copied so the caret lines up however they render.
            pad = "".join("\t" if ch == "\t" else " " for ch in target[:max(col - 1, 0)])
            out.append(f"  {' ' * width} | {pad}^")
        return "\n".join(out)

    def _format_stacktrace(self, stack: List[Dict[str, Any]]) -> str:
        if not stack:
            return ""
        pf = Printer().pformat

        frames = []
        for frame in stack:
            name = frame.get('name') or '<call>'
            args_s = " ".join(pf(a) for a in frame.get('args') or []).strip()
            frame_str = f"({name}"
            if args_s:
                frame_str += f" {args_s}"
            frame_str += ")"
            frames.append(frame_str)

        return "Monkey stacktrace: " + " ".join(frames)

    def _error_result(self, msg: str, token: Optional[Dict[str, Any]] = None,
                      value: Optional[MonkeyObject] = None) -> ExecutionResult:
        # Emit consolidated stderr side-effect
        self.evaluator.emit('stderr', msg)
        return ExecutionResult(
            status='error',
            value=value,
            error_message=msg,
            error_token=token,
            side_effects=self.evaluator.side_effects
        )

    def parse(self, source_code: str):
        """Parses without evaluating. Returns the program and the parser."""
        parser = Parser(Lexer(source_code))
        program = parser.parse_program()
        return program, parser

    def handle_script(self, source_code: str) -> ExecutionResult:
        """The main entry point to execute a script."""
        # Clear side effects for each run
        self.evaluator.side_effects = []

        # 1. Parse
        program, parser = self.parse(source_code)
        if parser.errors:
            msg = self._format_parse_errors(parser, source_code)
            token = parser.error_tokens[0].loc() if parser.error_tokens else None
            return self._error_result(msg, token)

        # 2. Evaluate
        try:
            result = self.evaluator.eval(program, self.env)
        except RecursionError as exc:
            full_stack = getattr(exc, "monkey_stack", None) or self.evaluator.call_stack
            stack = full_stack[-_MAX_OVERFLOW_FRAMES:]
            msg = "RecursionError: maximum recursion depth exceeded"
            st = self._format_stacktrace(stack)
            if st:
                skipped = len(full_stack) - len(stack)
                msg += "\n" + st + (f" ... ({skipped} more)" if skipped > 0 else "")
            return self._error_result(msg)

        if isinstance(result, Error):
            msg = self._format_runtime_error(result, source_code)
            return self._error_result(msg, result.loc, value=result)

        return ExecutionResult(
            status='success',
            value=result,
            side_effects=self.evaluator.side_effects
        )
