# Vorn language package
# This package provides a tree-walking interpreter for the Vorn language.
__version__ = '0.1.0'

from .interpreter import run_program, parse_program, Interpreter, VornError, ParseError

__all__ = [
    'run_program',
    'parse_program',
    'Interpreter',
    'VornError',
    'ParseError',
]
