"""Token definitions for the Vorn language.

Operator and delimiter kinds are spelled the way they appear in source,
keyword kinds are the upper-cased keyword. Parser error messages print
these kinds directly, e.g. ``expected ':', got } instead``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

# Special tokens
ILLEGAL = 'ILLEGAL'
EOF = 'EOF'
COMMENT = 'COMMENT'

# Identifiers and literals
IDENT = 'IDENT'
INT = 'INT'
FLOAT = 'FLOAT'
STRING = 'STRING'

# Operators
ASSIGN = '='
PLUS = '+'
MINUS = '-'
EXCLAMATION = '!'
ASTERISK = '*'
SLASH = '/'
PERCENT = '%'

LT = '<'
GT = '>'
LTE = '<='
GTE = '>='
EQ = '=='
NOT_EQ = '!='

AND = '&&'
OR = '||'

BITWISE_AND = '&'
BITWISE_OR = '|'
BITWISE_XOR = '^'
BITWISE_NOT = '~'
LEFT_SHIFT = '<<'
RIGHT_SHIFT = '>>'

INCREMENT = '++'
DECREMENT = '--'

PLUS_ASSIGN = '+='
MINUS_ASSIGN = '-='
ASTERISK_ASSIGN = '*='
SLASH_ASSIGN = '/='
PERCENT_ASSIGN = '%='
BITWISE_AND_ASSIGN = '&='
BITWISE_OR_ASSIGN = '|='
BITWISE_XOR_ASSIGN = '^='
LEFT_SHIFT_ASSIGN = '<<='
RIGHT_SHIFT_ASSIGN = '>>='

# Delimiters
COMMA = ','
SEMICOLON = ';'
COLON = ':'
DOT = '.'
LPAREN = '('
RPAREN = ')'
LBRACE = '{'
RBRACE = '}'
LBRACKET = '['
RBRACKET = ']'

# Keywords
FUNCTION = 'FUNCTION'
CONST = 'CONST'
LET = 'LET'
TRUE = 'TRUE'
FALSE = 'FALSE'
NULL = 'NULL'
IF = 'IF'
ELSE = 'ELSE'
RETURN = 'RETURN'
WHILE = 'WHILE'
FOR = 'FOR'
BREAK = 'BREAK'
CONTINUE = 'CONTINUE'

KEYWORDS: Dict[str, str] = {
    'func': FUNCTION,
    'const': CONST,
    'let': LET,
    'true': TRUE,
    'false': FALSE,
    'null': NULL,
    'if': IF,
    'else': ELSE,
    'return': RETURN,
    'while': WHILE,
    'for': FOR,
    'break': BREAK,
    'continue': CONTINUE,
}

# Assignment operator -> the binary operator it applies before storing
ASSIGNMENT_OPERATORS: Dict[str, str] = {
    ASSIGN: '',
    PLUS_ASSIGN: PLUS,
    MINUS_ASSIGN: MINUS,
    ASTERISK_ASSIGN: ASTERISK,
    SLASH_ASSIGN: SLASH,
    PERCENT_ASSIGN: PERCENT,
    BITWISE_AND_ASSIGN: BITWISE_AND,
    BITWISE_OR_ASSIGN: BITWISE_OR,
    BITWISE_XOR_ASSIGN: BITWISE_XOR,
    LEFT_SHIFT_ASSIGN: LEFT_SHIFT,
    RIGHT_SHIFT_ASSIGN: RIGHT_SHIFT,
}


@dataclass
class Token:
    type: str
    literal: str
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        return f"{self.type}({self.literal!r}) at {self.line}:{self.column}"


def lookup_ident(ident: str) -> str:
    """Return the keyword kind for `ident`, or IDENT if it is not a keyword."""
    return KEYWORDS.get(ident, IDENT)
