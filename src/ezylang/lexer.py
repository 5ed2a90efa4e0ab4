## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from functools import lru_cache

import lark
from .tokens import Token, TokenKind, KEYWORDS
from .errors import EzyLexError


# Operators and punctuation are generated from the vocabulary; lark orders string terminals
# by length so that `++` is tried before `+`, `==` before `=` and `..` before `.`.
_SYMBOLS = {kind.name: kind for kind in TokenKind if not kind.value[0].isalnum() and ' ' not in kind.value}

GRAMMAR = r"""start: _token*
_token: NUMBER | STRING | CHAR | ELSE_IF | WORD | STRAY | %(symbols)s

// LITERALS
NUMBER: /\d+(?:\.(?!\.)\d*)?/
STRING: /"(?:[^"\\]|\\[\s\S])*"?/
CHAR: /'(?:[^'\\]|\\[\s\S])*'?/
ELSE_IF.2: /else[ \t]+if(?!\w)/
WORD: /[^\W\d]\w*(?:\[\])*/

// OPERATORS
%(terminals)s

// Anything else is a single stray character, kept only to be reported or dropped.
STRAY.-1: /[\s\S]/

// COMMENTS & WHITESPACE
LINE_COMMENT: /\/\/[^\n]*/
BLOCK_COMMENT: /\/\*[\s\S]*?(?:\*\/|\Z)/
WS: /[ \t\f\r\n]+/

%%ignore WS
%%ignore LINE_COMMENT
%%ignore BLOCK_COMMENT
""" % {
    'symbols': ' | '.join(_SYMBOLS),
    'terminals': '\n'.join(f'{name}: "{kind.value}"' for name, kind in _SYMBOLS.items()),
}

_ESCAPES = {'\\': '\\', 'n': '\n', 'r': '\r', 't': '\t', 'b': '\b', 'f': '\f', "'": "'", '"': '"'}


@lru_cache(maxsize=1)
def _build_lexer() -> lark.Lark:
    return lark.Lark(GRAMMAR, parser='lalr', lexer='basic')


def _scan_quoted(raw: str, line: int, column: int, interpolate: bool):
    """Walk a quoted literal, decoding escapes and splitting out `${name}` references.

    Yields `(kind, text, line, column)` tuples; text pieces carry the literal's position and
    variable references the position of their first name character.
    """
    quote, i, buffer, emitted = raw[0], 1, [], False
    ln, col = line, column + 1

    def advance(ch):
        nonlocal ln, col
        if ch == '\n': ln, col = ln + 1, 1
        else: col += 1

    while i < len(raw) and raw[i] != quote:
        ch = raw[i]
        if ch == '\\' and i + 1 < len(raw):
            escaped = raw[i + 1]
            buffer.append(_ESCAPES.get(escaped, escaped))
            advance(ch); advance(escaped)
            i += 2
        elif interpolate and ch == '$' and raw[i + 1:i + 2] == '{':
            if buffer:
                yield TokenKind.STRING_LITERAL, ''.join(buffer), line, column
                buffer, emitted = [], True
            advance('$'); advance('{')
            i += 2
            name_line, name_col = ln, col
            start = i
            while i < len(raw) and raw[i] not in ('}', quote):
                advance(raw[i]); i += 1
            yield TokenKind.VARIABLE, raw[start:i].strip(), name_line, name_col
            emitted = True
            if i < len(raw) and raw[i] == '}':
                advance('}'); i += 1
        else:
            buffer.append(ch)
            advance(ch)
            i += 1

    if buffer or not emitted:
        kind = TokenKind.STRING_LITERAL if quote == '"' else TokenKind.CHAR_LITERAL
        yield kind, ''.join(buffer), line, column


def _convert(tok: lark.Token, strict: bool):
    match tok.type:
        case 'NUMBER':
            yield Token(TokenKind.NUMBER_LITERAL, str(tok), tok.line, tok.column)
        case 'STRING' | 'CHAR':
            for kind, text, line, column in _scan_quoted(str(tok), tok.line, tok.column, interpolate=tok.type == 'STRING'):
                yield Token(kind, text, line, column)
        case 'ELSE_IF':
            yield Token(TokenKind.ELSE_IF, 'else if', tok.line, tok.column)
        case 'WORD':
            word = str(tok)
            if word.endswith('[]'):
                yield Token(TokenKind.ARRAY_TYPE, word, tok.line, tok.column)
            elif (kind := KEYWORDS.get(word)) is not None:
                yield Token(kind, word, tok.line, tok.column)
            else:
                yield Token(TokenKind.IDENTIFIER, word, tok.line, tok.column)
        case 'STRAY':
            if strict:
                raise EzyLexError(f"Unexpected character {str(tok)!r}", line=tok.line, column=tok.column)
        case name:
            yield Token(_SYMBOLS[name], None, tok.line, tok.column)


def tokenize(source: str, strict: bool = False) -> list[Token]:
    """Convert source text into tokens, always terminated by a single EOF token.

    Unrecognized characters are dropped silently unless `strict` is set, in which case the
    first one raises `EzyLexError`.
    """
    tokens = []
    for tok in _build_lexer().lex(source):
        tokens.extend(_convert(tok, strict))

    lines = source.split('\n')
    tokens.append(Token(TokenKind.EOF, None, len(lines), len(lines[-1]) + 1))
    return tokens
