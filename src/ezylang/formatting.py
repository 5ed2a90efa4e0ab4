## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import re
from decimal import Decimal

from .types import Char, Array


def write_without_ansi(write_fn):
    """Wrapper function that strips ANSI codes before calling the original writer."""
    ansi_re = re.compile(r'\033\[[0-9;]*m')
    return lambda text: write_fn(ansi_re.sub('', text))


def format_number(value: Decimal) -> str:
    # Positional notation only, so `1E+4` prints as `10000` and `1.50` keeps its scale.
    text = format(value, 'f')
    return '0' if text == '-0' else text


def format_value(value, quoted: bool = False) -> str:
    """Textual form of a value, as `print` writes it; `quoted` marks strings and chars for messages."""
    if value is None: return 'null'
    if isinstance(value, bool): return 'true' if value else 'false'
    if isinstance(value, Decimal): return format_number(value)
    if isinstance(value, Array):
        return '[' + ', '.join(format_value(v, quoted=quoted) for v in value) + ']'
    if isinstance(value, Char): return f"'{value}'" if quoted else str(value)
    if isinstance(value, str): return f'"{value}"' if quoted else value
    raise TypeError(f"Cannot format {value!r}")


def format_diagnostic(error) -> str:
    """`<name>:<line>:<column>: error: <message>`, then the source line and a caret under the column."""
    name = error.filename if error.filename is not None else '<input>'
    source_line = error.source_line if error.source_line is not None else ''
    caret = ' ' * max(error.column - 1, 0) + '^'
    return f"{name}:{error.line}:{error.column}: error: {error.message}\n{source_line}\n{caret}"


def format_token(token) -> str:
    text = '' if token.text is None else repr(token.text)
    return f"\033[90m{token.line:>4}:{token.column:<4}\033[0m {token.kind.name:<22} {text}"


def show_tokens(tokens, file=None):
    for token in tokens:
        print(format_token(token), file=file)


def show_trace(token, depth: int, file=None):
    label = token.text if token.text is not None else token.kind.value
    print(f"\033[90m{token.line:>4}:{token.column:<4}{'  ' * depth} {label}\033[0m", file=file)
