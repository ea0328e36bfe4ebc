"""Interactive read-eval-print loop.

Each line is parsed and evaluated on its own against one environment that
lives for the whole session, so bindings made on earlier lines stay
visible.
"""

import sys
from typing import TextIO

from .interpreter import Interpreter
from .lexer import Lexer
from .parser import Parser

PROMPT = '>> '


def print_syntax_errors(out: TextIO, errors) -> None:
    print('Syntax errors:', file=out)
    for message in errors:
        print(message, file=out)


def start(stdin: TextIO = None, stdout: TextIO = None, debug_level: int = 0) -> None:
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout
    interp = Interpreter(debug_level=debug_level, output=stdout)
    try:
        while True:
            stdout.write(PROMPT)
            stdout.flush()
            line = stdin.readline()
            if not line:
                stdout.write('\n')
                return

            parser = Parser(Lexer(line))
            program = parser.parse_program()
            if parser.errors:
                print_syntax_errors(stdout, parser.errors)
                continue
            if not program.statements:
                continue

            result = interp.run(program)
            print(result.inspect(), file=stdout)
    finally:
        interp.close()
