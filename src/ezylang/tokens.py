## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from enum import Enum
from dataclasses import dataclass


class TokenKind(Enum):
    # Literals
    NUMBER_LITERAL = 'number literal'
    STRING_LITERAL = 'string literal'
    CHAR_LITERAL = 'char literal'
    BOOLEAN_LITERAL = 'boolean literal'
    VARIABLE = 'interpolated variable'     # `${name}` inside a string literal.
    IDENTIFIER = 'identifier'

    # Types
    NUMBER = 'number'
    STRING = 'string'
    CHAR = 'char'
    BOOLEAN = 'boolean'
    NULL = 'null'
    VOID = 'void'
    ARRAY = 'array'
    ARRAY_TYPE = 'array type'              # `word[]...` folded into one token.

    # Keywords
    PRINT = 'print'
    PRINTLN = 'println'
    IF = 'if'
    ELSE = 'else'
    ELSE_IF = 'else if'
    FOR = 'for'
    WHILE = 'while'
    IN = 'in'
    FUNC = 'func'
    RETURN = 'return'
    BREAK = 'break'
    CONTINUE = 'continue'
    IS = 'is'
    AS = 'as'

    # Arithmetic
    PLUS = '+'
    MINUS = '-'
    ASTERISK = '*'
    SLASH = '/'
    PERCENT = '%'
    PLUS_PLUS = '++'
    MINUS_MINUS = '--'

    # Relational & logical
    EQUAL_EQUAL = '=='
    NOT_EQUAL = '!='
    LESS_THAN = '<'
    GREATER_THAN = '>'
    LESS_THAN_OR_EQUAL = '<='
    GREATER_THAN_OR_EQUAL = '>='
    AND = '&&'
    OR = '||'
    BANG = '!'

    # Assignment
    EQUAL = '='
    PLUS_EQUAL = '+='
    MINUS_EQUAL = '-='
    ASTERISK_EQUAL = '*='
    SLASH_EQUAL = '/='
    PERCENT_EQUAL = '%='

    # Bitwise, reserved.
    BITWISE_AND = '&'
    BITWISE_OR = '|'
    BITWISE_XOR = '^'
    BITWISE_NOT = '~'
    LEFT_SHIFT = '<<'
    RIGHT_SHIFT = '>>'

    # Punctuation
    LEFT_PAREN = '('
    RIGHT_PAREN = ')'
    LEFT_BRACE = '{'
    RIGHT_BRACE = '}'
    LEFT_BRACKET = '['
    RIGHT_BRACKET = ']'
    DOLLAR = '$'
    ARROW = '->'
    COMMA = ','
    DOT = '.'
    DOT_DOT = '..'
    COLON = ':'
    SEMICOLON = ';'

    EOF = 'end of input'

    def __str__(self):
        return self.value


KEYWORDS: dict[str, TokenKind] = {
    'number': TokenKind.NUMBER, 'string': TokenKind.STRING, 'char': TokenKind.CHAR,
    'boolean': TokenKind.BOOLEAN, 'null': TokenKind.NULL, 'void': TokenKind.VOID,
    'array': TokenKind.ARRAY,
    'true': TokenKind.BOOLEAN_LITERAL, 'false': TokenKind.BOOLEAN_LITERAL,
    'print': TokenKind.PRINT, 'println': TokenKind.PRINTLN,
    'if': TokenKind.IF, 'else': TokenKind.ELSE,
    'for': TokenKind.FOR, 'while': TokenKind.WHILE, 'in': TokenKind.IN,
    'func': TokenKind.FUNC, 'return': TokenKind.RETURN,
    'break': TokenKind.BREAK, 'continue': TokenKind.CONTINUE,
    'is': TokenKind.IS, 'as': TokenKind.AS,
}

# Keyword kinds that name a type, usable after `:` in declarations and after `is` / `as`.
TYPE_KINDS = frozenset({
    TokenKind.NUMBER, TokenKind.STRING, TokenKind.CHAR, TokenKind.BOOLEAN,
    TokenKind.NULL, TokenKind.VOID, TokenKind.ARRAY, TokenKind.ARRAY_TYPE,
})

ASSIGNMENT_KINDS = frozenset({
    TokenKind.EQUAL, TokenKind.PLUS_EQUAL, TokenKind.MINUS_EQUAL,
    TokenKind.ASTERISK_EQUAL, TokenKind.SLASH_EQUAL, TokenKind.PERCENT_EQUAL,
})


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    text: str | None
    line: int
    column: int

    def __repr__(self):
        text = '' if self.text is None else f" {self.text!r}"
        return f"<{self.kind.name}{text} @{self.line}:{self.column}>"
