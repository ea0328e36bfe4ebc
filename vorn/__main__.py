"""CLI entry point for the Vorn interpreter.

Usage:
    python -m vorn                         start the REPL
    python -m vorn [-d...] <program_file>  run a .vorn program
    python -m vorn --tokens <program_file>
    python -m vorn -a [--json] <program_file>

Options:
  -d            Increase debug verbosity (can be repeated)
  --tokens      Print the token kinds of the program, one statement per line
  -a, --ast     Print the parsed program, as JSON with --json
  -v            Print the version and exit

Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero.
"""

import argparse
import json
import sys
from pathlib import Path

from . import __version__
from . import token
from .ast_json import ast_to_obj
from .interpreter import Interpreter
from .lexer import Lexer, tokenize
from .parser import Parser
from .repl import start, print_syntax_errors
from .types import Error


def print_tokens(source: str) -> None:
    kinds = []
    for tok in tokenize(source):
        kinds.append(tok.type)
        if tok.type == token.SEMICOLON:
            print(' '.join(kinds))
            kinds = []
    if kinds:
        print(' '.join(kinds))


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog='vorn', description="Vorn language interpreter")
    parser.add_argument('-v', '--version', action='version', version=f"vorn {__version__}")
    parser.add_argument('-d', action='count', default=0, help='increase debug verbosity (can be repeated)')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--tokens', action='store_true', help='print the tokens of the program')
    group.add_argument('-a', '--ast', action='store_true', help='print the AST of the program')
    parser.add_argument('--json', action='store_true', help='with --ast, print the AST as JSON')
    parser.add_argument('program', nargs='?', help='Vorn program file (.vorn) to execute')
    args = parser.parse_args(argv)

    if not args.program:
        if args.tokens or args.ast:
            parser.error('--tokens and --ast need a program file')
        start(debug_level=args.d)
        return

    program_file = Path(args.program)
    if not program_file.exists():
        print(f"Error: file {program_file} not found", file=sys.stderr)
        sys.exit(1)
    with open(program_file, 'r', encoding='utf-8') as f:
        source = f.read()

    # Token dump mode
    if args.tokens:
        print_tokens(source)
        return

    vorn_parser = Parser(Lexer(source))
    program = vorn_parser.parse_program()
    if vorn_parser.errors:
        print_syntax_errors(sys.stdout, vorn_parser.errors)
        sys.exit(1)

    # AST dump mode
    if args.ast:
        if args.json:
            json.dump(ast_to_obj(program), sys.stdout, ensure_ascii=False, indent=2)
            print()
        else:
            print(program.string())
        return

    interpreter = Interpreter(debug_level=args.d)
    try:
        result = interpreter.run(program)
    finally:
        interpreter.close()
    if isinstance(result, Error):
        print(result.inspect())
        sys.exit(1)


if __name__ == '__main__':
    main()
