"""CLI entry point for the Lox interpreter.

Usage:
    python -m treelox [-v|-vv|-vvv] [script.lox]
    python -m treelox [-v...] --emit-ast <script.lox>
    python -m treelox [-v...] --ast <ast_json_file>

Options:
  -v            Increase debug verbosity (can be repeated)
  --emit-ast    Parse the given .lox file and emit an AST JSON file
  --ast         Execute a previously emitted AST JSON file

With no script the interpreter starts an interactive prompt; each line is
run as one unit, and a line that fails at runtime has its global
rebindings discarded. Debug information is written to `debug.txt` in the
current directory when verbosity is greater than zero.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .ast_json import program_from_obj, program_to_obj
from .errors import LoxParseError, LoxRuntimeError
from .interpreter import Interpreter
from .parser import parse_program


def read_source(path: Path) -> bytes:
    if not path.exists():
        print(f"Error: file {path} not found", file=sys.stderr)
        sys.exit(1)
    with open(path, 'rb') as f:
        return f.read()


def execute(statements: List, debug_level: int) -> None:
    interpreter = Interpreter(debug_level=debug_level)
    try:
        interpreter.run(statements)
    except LoxRuntimeError as e:
        print(f"Runtime error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        interpreter.close()


def parse_or_exit(source: bytes) -> List:
    try:
        return parse_program(source)
    except LoxParseError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)


def repl(debug_level: int) -> None:
    interpreter = Interpreter(debug_level=debug_level)
    try:
        while True:
            try:
                line = input('> ')
            except EOFError:
                print()
                break
            try:
                statements = parse_program(line)
            except LoxParseError as e:
                print(str(e), file=sys.stderr)
                continue
            snapshot = interpreter.globals.snapshot()
            try:
                interpreter.run(statements)
            except LoxRuntimeError as e:
                interpreter.globals.restore(snapshot)
                print(f"Runtime error: {e}", file=sys.stderr)
    finally:
        interpreter.close()


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog='treelox', description="Lox tree-walking interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--emit-ast', metavar='LOX_FILE', help='emit AST JSON for the given .lox file')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='execute AST from a JSON file')
    parser.add_argument('script', nargs='?', help='Lox script (.lox) to execute; omit for a prompt')
    args = parser.parse_args(argv)

    # Emit AST mode
    if args.emit_ast:
        script = Path(args.emit_ast)
        statements = parse_or_exit(read_source(script))
        out_path = script.with_name(script.name + '.ast.json')
        with open(out_path, 'w', encoding='utf-8') as out:
            json.dump(program_to_obj(statements), out, ensure_ascii=False, indent=2)
        print(str(out_path))
        return

    # Execute from AST JSON
    if args.ast:
        ast_path = Path(args.ast)
        if not ast_path.exists():
            print(f"Error: file {ast_path} not found", file=sys.stderr)
            sys.exit(1)
        with open(ast_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        execute(program_from_obj(data), args.v)
        return

    if not args.script:
        repl(args.v)
        return

    execute(parse_or_exit(read_source(Path(args.script))), args.v)


if __name__ == '__main__':
    main()
