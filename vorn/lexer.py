"""Lexer for the Vorn language.

The lexer walks the source one character at a time and hands out a single
`Token` per `next_token()` call. Once the input is exhausted it keeps
returning EOF tokens.

Columns are counted from 1 and move forward on every character read,
including the read that primes the lexer, so the first character of each
line sits at column 2.
"""

from __future__ import annotations

from typing import List

from . import token
from .token import Token, lookup_ident


def is_letter(ch: str) -> bool:
    return ('a' <= ch <= 'z') or ('A' <= ch <= 'Z') or ch == '_'


def is_digit(ch: str) -> bool:
    return '0' <= ch <= '9'


# Operators that may be followed by '=' or doubled: first char -> (doubled, with '=', doubled with '=')
_COMPOUND = {
    '+': (token.INCREMENT, token.PLUS_ASSIGN, None),
    '-': (token.DECREMENT, token.MINUS_ASSIGN, None),
    '*': (None, token.ASTERISK_ASSIGN, None),
    '/': (None, token.SLASH_ASSIGN, None),
    '%': (None, token.PERCENT_ASSIGN, None),
    '=': (None, token.EQ, None),
    '!': (None, token.NOT_EQ, None),
    '<': (token.LEFT_SHIFT, token.LTE, token.LEFT_SHIFT_ASSIGN),
    '>': (token.RIGHT_SHIFT, token.GTE, token.RIGHT_SHIFT_ASSIGN),
    '&': (token.AND, token.BITWISE_AND_ASSIGN, None),
    '|': (token.OR, token.BITWISE_OR_ASSIGN, None),
    '^': (None, token.BITWISE_XOR_ASSIGN, None),
}

_SINGLE = {
    '+': token.PLUS,
    '-': token.MINUS,
    '*': token.ASTERISK,
    '/': token.SLASH,
    '%': token.PERCENT,
    '=': token.ASSIGN,
    '!': token.EXCLAMATION,
    '<': token.LT,
    '>': token.GT,
    '&': token.BITWISE_AND,
    '|': token.BITWISE_OR,
    '^': token.BITWISE_XOR,
    '~': token.BITWISE_NOT,
    ',': token.COMMA,
    ';': token.SEMICOLON,
    ':': token.COLON,
    '.': token.DOT,
    '(': token.LPAREN,
    ')': token.RPAREN,
    '{': token.LBRACE,
    '}': token.RBRACE,
    '[': token.LBRACKET,
    ']': token.RBRACKET,
}


class Lexer:
    def __init__(self, source: str):
        self.input = source
        self.position = 0
        self.read_position = 0
        self.char = ''
        self.line = 1
        self.column = 1
        self.read_char()

    def read_char(self) -> None:
        # Leaving a newline moves the counters to the next line
        if self.char == '\n':
            self.line += 1
            self.column = 1
        if self.read_position >= len(self.input):
            self.char = ''
        else:
            self.char = self.input[self.read_position]
        self.position = self.read_position
        self.read_position += 1
        self.column += 1

    def peek_char(self) -> str:
        if self.read_position >= len(self.input):
            return ''
        return self.input[self.read_position]

    def skip_whitespace(self) -> None:
        while self.char in (' ', '\t', '\n', '\r'):
            self.read_char()

    def skip_comment(self) -> bool:
        """Skip a comment starting at the current '/'.

        Returns False when the current '/' does not open a comment. An
        unterminated block comment leaves the lexer at end of input and
        raises `_UnterminatedComment` so the caller can emit ILLEGAL.
        """
        peek = self.peek_char()
        if peek == '/':
            while self.char != '\n' and self.char != '':
                self.read_char()
            return True
        if peek == '*':
            self.read_char()
            self.read_char()
            while True:
                if self.char == '':
                    raise _UnterminatedComment()
                if self.char == '*' and self.peek_char() == '/':
                    self.read_char()
                    self.read_char()
                    return True
                self.read_char()
        return False

    def next_token(self) -> Token:
        while True:
            self.skip_whitespace()
            if self.char != '/':
                break
            try:
                if not self.skip_comment():
                    break
            except _UnterminatedComment:
                return Token(token.ILLEGAL, '', self.line, self.column)

        line, column = self.line, self.column
        ch = self.char

        if ch == '':
            return Token(token.EOF, '', line, column)

        if is_letter(ch):
            literal = self.read_identifier()
            return Token(lookup_ident(literal), literal, line, column)

        if is_digit(ch):
            literal, kind = self.read_number()
            return Token(kind, literal, line, column)

        if ch == '"':
            literal = self.read_string()
            self.read_char()
            return Token(token.STRING, literal, line, column)

        if ch in _COMPOUND:
            doubled, with_assign, doubled_assign = _COMPOUND[ch]
            peek = self.peek_char()
            if doubled is not None and peek == ch:
                self.read_char()
                if doubled_assign is not None and self.peek_char() == '=':
                    self.read_char()
                    self.read_char()
                    return Token(doubled_assign, doubled_assign, line, column)
                self.read_char()
                return Token(doubled, doubled, line, column)
            if peek == '=':
                self.read_char()
                self.read_char()
                return Token(with_assign, with_assign, line, column)

        kind = _SINGLE.get(ch, token.ILLEGAL)
        self.read_char()
        return Token(kind, ch, line, column)

    def read_identifier(self) -> str:
        start = self.position
        while self.char != '' and (is_letter(self.char) or is_digit(self.char)):
            self.read_char()
        return self.input[start:self.position]

    def read_number(self):
        start = self.position
        kind = token.INT
        while self.char != '' and (is_digit(self.char) or (self.char == '.' and kind == token.INT)):
            if self.char == '.':
                kind = token.FLOAT
            self.read_char()
        return self.input[start:self.position], kind

    def read_string(self) -> str:
        start = self.position + 1
        while True:
            self.read_char()
            if self.char == '"' or self.char == '':
                break
        return self.input[start:self.position]


class _UnterminatedComment(Exception):
    pass


def tokenize(source: str) -> List[Token]:
    """Lex `source` completely and return every token up to and including EOF."""
    lexer = Lexer(source)
    tokens: List[Token] = []
    while True:
        tok = lexer.next_token()
        tokens.append(tok)
        if tok.type == token.EOF:
            return tokens
