from monkey.monkey_lexer import Lexer, Token, TokenKind
from monkey.monkey_parser import Parser, parse
from monkey.monkey_interpreter import Evaluator, evaluate
from monkey.monkey_datatypes import Environment, new_environment, new_enclosed_environment
from monkey.monkey_runtime import ScriptRunner, ExecutionResult
from monkey.monkey_printer import Printer

__all__ = [
    "Lexer", "Token", "TokenKind",
    "Parser", "parse",
    "Evaluator", "evaluate",
    "Environment", "new_environment", "new_enclosed_environment",
    "ScriptRunner", "ExecutionResult",
    "Printer",
]
