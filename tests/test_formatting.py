## ezylang — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import io
from decimal import Decimal

from ezylang.types import Char, Array
from ezylang.errors import EzyZeroDivisionError
from ezylang.formatting import format_value, format_number, format_diagnostic, write_without_ansi, show_tokens
from ezylang.lexer import tokenize


def test_numbers_print_positionally():
    assert format_number(Decimal('1E+3')) == '1000'
    assert format_number(Decimal('2.50')) == '2.50'
    assert format_number(Decimal('-0')) == '0'


def test_values():
    assert format_value(None) == 'null'
    assert format_value(False) == 'false'
    assert format_value(Array([Decimal(1), Decimal(2)])) == '[1, 2]'
    assert format_value(Array([Char('a'), Char('b')]), quoted=True) == "['a', 'b']"
    assert format_value("hi", quoted=True) == '"hi"'


def test_diagnostic_layout():
    error = EzyZeroDivisionError("Division by zero", line=2, column=16, source_line="println(1 + 10 / 0)", filename="prog.ezy")
    assert format_diagnostic(error) == (
        "prog.ezy:2:16: error: Division by zero\n"
        "println(1 + 10 / 0)\n"
        "               ^")


def test_diagnostic_defaults_name():
    error = EzyZeroDivisionError("Division by zero", line=1, column=1, source_line="x")
    assert format_diagnostic(error).startswith("<input>:1:1: error:")


def test_write_without_ansi():
    written = []
    write_without_ansi(written.append)("\033[90mgrey\033[0m")
    assert written == ["grey"]


def test_show_tokens_lists_every_token():
    out = io.StringIO()
    show_tokens(tokenize("x = 1"), file=out)
    lines = out.getvalue().splitlines()
    assert len(lines) == 4
    assert 'IDENTIFIER' in lines[0] and "'x'" in lines[0]
    assert 'EOF' in lines[-1]
