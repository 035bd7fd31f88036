import argparse
import sys
from pathlib import Path

from monkey.monkey_lexer import Lexer, TokenKind
from monkey.monkey_runtime import ScriptRunner, ExecutionResult
from monkey.monkey_printer import Printer
from monkey.monkey_serialize import serialize
from monkey.monkey_datatypes import NULL

PROMPT = ">> "

# A basic input prompt.
def read_line(prompt: str) -> str:
    sys.stdout.write(prompt)
    sys.stdout.flush()
    return sys.stdin.readline()

def format_value(value, fmt: str = "inspect") -> str:
    if fmt == "inspect":
        return Printer().pformat(value)
    return serialize(value, fmt=fmt).rstrip("\n")

def print_tokens(source: str):
    for tok in Lexer(source):
        if tok.kind is TokenKind.EOF:
            break
        print(f"{{Type:{tok.kind} Literal:{tok.literal}}}")

def print_parser_errors(errors):
    print("Parser errors:")
    for msg in errors:
        print("\t" + msg)

def print_side_effects(result: ExecutionResult):
    # Print side effects (from `puts`)
    for effect in result.side_effects:
        if effect.get('topics') == ['stdout']:
            print(effect.get('message', ''))

def run_script_file(file_path: str, fmt: str = "inspect", show_ast: bool = False, show_tokens: bool = False):
    """Run a Monkey script file non-interactively and exit with appropriate status."""
    runner = ScriptRunner()
    p = Path(file_path)
    try:
        source = p.read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: file not found: {file_path}", file=sys.stderr)
        raise SystemExit(1)

    if show_tokens:
        print_tokens(source)
    program, parser = runner.parse(source)
    if parser.errors:
        print_parser_errors(parser.errors)
        raise SystemExit(1)
    if show_ast:
        print(program)
        return

    result = runner.handle_script(source)
    print_side_effects(result)
    if result.status == 'error':
        print(result.format_error(), file=sys.stderr)
        raise SystemExit(1)
    if result.value is not None and result.value is not NULL:
        print(format_value(result.value, fmt))

def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="monkey", description="Run a Monkey script, or start the REPL.")
    ap.add_argument("path", nargs="?", help="script file to run; starts the REPL when omitted")
    ap.add_argument("--format", choices=["inspect", "json", "yaml"], default="inspect",
                    help="how to print the final value")
    ap.add_argument("--ast", action="store_true", help="print the parsed program instead of evaluating it")
    ap.add_argument("--tokens", action="store_true", help="print the token stream before running")
    return ap

def main(argv=None):
    """Run a script file when provided, otherwise start the interactive REPL."""
    args = build_arg_parser().parse_args(argv)
    if args.path:
        run_script_file(args.path, fmt=args.format, show_ast=args.ast, show_tokens=args.tokens)
        return

    print("Monkey REPL v0.1")
    print("Type 'exit' or press Ctrl+D to quit.")

    # Bindings persist across lines.
    runner = ScriptRunner()

    # REPL Loop
    while True:
        try:
            raw = read_line(PROMPT)
            if raw == "":
                raise EOFError
            line = raw.strip()

            if not line:
                continue
            if line == "exit":
                break

            if args.tokens:
                print_tokens(line)
            if args.ast:
                program, parser = runner.parse(line)
                if parser.errors:
                    print_parser_errors(parser.errors)
                else:
                    print(program)
                continue

            result = runner.handle_script(line)
            print_side_effects(result)

            if result.status == 'error':
                # Pretty, location-aware message
                print(result.format_error(), file=sys.stderr)
                continue

            # Print final result; null prints nothing
            if result.value is not NULL:
                print(format_value(result.value, args.format))

        except EOFError:
            print("\nExiting.")
            break
        except Exception as e:
            print(f"Error: {e}", file=sys.stderr)

if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nExiting.")
