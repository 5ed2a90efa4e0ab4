## ezylang — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import io
import decimal
from decimal import Decimal

from ezylang.runtime import Runtime
from ezylang.lexer import tokenize
from ezylang.interpreter import Interpreter
from ezylang.formatting import format_diagnostic
from ezylang.errors import (EzyError, EzyParseError, EzyNameError, EzyConstantError, EzyTypeError,
                            EzyIndexError, EzyValueError, EzyZeroDivisionError, EzyControlError)

import pytest


def run(source: str, **kwargs) -> str:
    out = io.StringIO()
    Runtime(output=out).run(source, **kwargs)
    return out.getvalue()


def test_println_interpolates_variables():
    assert run('name: string = "Ezy"\nprintln("Hello ${name}!")\n') == "Hello Ezy!\n"


def test_print_without_newline_and_concatenation():
    assert run('print("a" + 1 + true)\nprint(null)') == "a1truenull"


def test_number_output_is_exact_decimal():
    assert run("println(0.1 + 0.2)\nprintln(10 / 4)\nprintln(2 * 3)") == "0.3\n2.5\n6\n"
    assert run("println(1 / 3)") == "0." + "3" * 34 + "\n"


def test_remainder_and_unary_minus():
    assert run("println(-7 % 3)\nprintln(-(2 + 3))") == "-1\n-5\n"


def test_ascending_range_is_inclusive():
    assert run("for (i: number in 1..3) { print(i) }") == "123"


def test_descending_range_with_negative_step():
    assert run("for (i: number in 10..1..-3) print(i, \" \")") == "10 7 4 1 "


def test_range_with_start_past_end_does_not_iterate():
    assert run("for (i: number in 3..1) print(i)\nprint(\"done\")") == "done"


def test_zero_step_is_an_error():
    with pytest.raises(EzyValueError):
        run("for (i: number in 1..3..0) print(i)")


def test_for_over_array_literal():
    assert run("for (x: number in [4, 5]) { print(x * 2) }") == "810"


def test_loop_variable_must_conform():
    with pytest.raises(EzyTypeError):
        run("for (i: string in 1..2) { }")


def test_if_else_if_chain_takes_first_true_branch():
    source = 'x: number = 5\nif (x > 10) println("big") else if (x > 3) println("mid") else println("small")\n'
    assert run(source) == "mid\n"


def test_if_else_with_blocks():
    source = """
    n: number = 1
    if (n == 2) {
        println("two")
    } else if (n == 3) {
        println("three")
    } else {
        println("other")
    }
    println("end")
    """
    assert run(source) == "other\nend\n"


def test_untaken_branch_is_not_evaluated():
    assert run('if (false) { println(1 / 0) } else { println("safe") }') == "safe\n"


def test_condition_must_be_boolean():
    with pytest.raises(EzyTypeError):
        run('if (1) println("x")')


def test_function_declaration_and_call():
    source = "func add(a: number, b: number): number { return a + b }\nprintln(add(2, 3))\n"
    assert run(source) == "5\n"


def test_recursive_function():
    source = """
    func fact(n: number): number {
        if (n <= 1) { return 1 }
        return n * fact(n - 1)
    }
    println(fact(10))
    """
    assert run(source) == "3628800\n"


def test_void_function_called_as_statement():
    source = 'func greet(who) { println("hi ${who}") }\ngreet("bob")\ngreet("ann")'
    assert run(source) == "hi bob\nhi ann\n"


def test_function_sees_globals_but_not_caller_locals():
    assert run("g: number = 7\nfunc f(): number { return g }\nprintln(f())") == "7\n"
    source = "func f(): number { return z }\nif (true) {\n z: number = 1\n println(f())\n}"
    with pytest.raises(EzyNameError):
        run(source)


def test_wrong_argument_count():
    with pytest.raises(EzyTypeError):
        run("func f(a: number): number { return a }\nf(1, 2)")


def test_parameter_type_checked():
    with pytest.raises(EzyTypeError):
        run('func f(a: number): number { return a }\nf("x")')


def test_return_type_checked():
    with pytest.raises(EzyTypeError):
        run('func f(): number { return "a" }\nf()')


def test_missing_return_in_non_void_function():
    with pytest.raises(EzyControlError):
        run("func f(): number { x: number = 1 }\nf()")


def test_duplicate_function():
    with pytest.raises(EzyNameError):
        run("func f() { }\nfunc f() { }")


def test_undefined_function():
    with pytest.raises(EzyNameError):
        run("nope()")


def test_return_outside_function():
    with pytest.raises(EzyControlError):
        run("return 1")


def test_division_by_zero_diagnostic_points_at_operator():
    with pytest.raises(EzyZeroDivisionError) as info:
        run("x: number = 1 / 0", filename="test.ezy")
    assert format_diagnostic(info.value) == (
        "test.ezy:1:15: error: Division by zero\n"
        "x: number = 1 / 0\n"
        "              ^")


def test_output_before_error_is_kept():
    out = io.StringIO()
    with pytest.raises(EzyError):
        Runtime(output=out).run('println("before")\nprintln(missing)')
    assert out.getvalue() == "before\n"


def test_constant_cannot_be_reassigned():
    runtime = Runtime(output=io.StringIO())
    with pytest.raises(EzyConstantError) as info:
        runtime.run("$pi: number = 3.14\npi = 3")
    assert str(info.value) == "Cannot reassign constant variable: pi"
    assert (info.value.line, info.value.column) == (2, 1)


def test_constant_can_be_shadowed_in_inner_scope():
    assert run('$c: number = 1\nif (true) {\n c: string = "s"\n c = "t"\n println(c)\n}\nprintln(c)') == "t\n1\n"


def test_type_mismatch_on_declaration_points_at_value():
    with pytest.raises(EzyTypeError) as info:
        run('x: number = "a"')
    assert info.value.column == 13


def test_type_mismatch_on_reassignment():
    with pytest.raises(EzyTypeError):
        run('x: number = 1\nx = "a"')


def test_duplicate_declaration_in_same_scope():
    with pytest.raises(EzyNameError):
        run("x: number = 1\nx: number = 2")


def test_block_scoped_variables_disappear():
    with pytest.raises(EzyNameError) as info:
        run("if (true) { y: number = 1 }\nprintln(y)")
    assert str(info.value) == "Undefined variable: y"


def test_compound_assignment_and_increment():
    assert run("n: number = 5\nn *= 2\nn++\nn -= 4\nprintln(n)") == "7\n"


def test_while_loop():
    assert run("n: number = 0\nwhile (n < 3) { n += 1 }\nprintln(n)") == "3\n"


def test_while_loop_that_never_runs():
    assert run('while (false) { println("x") }\nprintln("y")') == "y\n"


def test_break_and_continue():
    source = """
    for (i: number in 1..10) {
        if (i == 3) continue
        if (i == 5) break
        print(i)
    }
    """
    assert run(source) == "124"


def test_break_outside_loop():
    with pytest.raises(EzyControlError):
        run("break")


def test_return_from_inside_loop():
    source = """
    func first_even(xs: number[]): number {
        for (x: number in xs) {
            if (x % 2 == 0) { return x }
        }
        return -1
    }
    println(first_even([3, 5, 8, 10]))
    println(first_even([1]))
    """
    assert run(source) == "8\n-1\n"


def test_arrays_index_length_and_update():
    source = "a: number[] = [1, 2, 3]\nprintln(a.length)\nprintln(a[1])\na[0] = 9\nprintln(a)"
    assert run(source) == "3\n2\n[9, 2, 3]\n"


def test_array_index_out_of_bounds():
    with pytest.raises(EzyIndexError) as info:
        run("a: number[] = [1, 2, 3]\nprintln(a[3])")
    assert str(info.value) == "Array index out of bounds: 3"
    assert (info.value.line, info.value.column) == (2, 11)


def test_array_element_type_checked():
    with pytest.raises(EzyTypeError):
        run('a: number[] = [1, "two"]')
    with pytest.raises(EzyTypeError):
        run('a: number[] = [1]\na[0] = "x"')


def test_nested_arrays():
    source = "m: number[][] = [[1, 2], [3, 4]]\nm[1][0] = 7\nprintln(m)\nprintln(m[1].length)"
    assert run(source) == "[[1, 2], [7, 4]]\n2\n"


def test_text_indexing_yields_char():
    assert run('s: string = "abc"\nc: char = s[1]\nprintln(c)\nprintln(s.length)') == "b\n3\n"


def test_is_and_as():
    assert run('println(5 is number)\nprintln("x" is char)\nprintln(("12" as number) + 1)') == "true\nfalse\n13\n"


def test_invalid_cast():
    with pytest.raises(EzyValueError):
        run('x: number = "abc" as number')


def test_null_equality():
    assert run("x: string = \"a\"\nprintln(x == null)\nprintln(null == null)") == "false\ntrue\n"


def test_logical_operators():
    assert run("println(true && !false)\nprintln(false || false)") == "true\nfalse\n"


def test_stray_characters_are_skipped():
    assert run("x: number = 1 @\nprintln(x)") == "1\n"


def test_invalid_start_of_statement():
    with pytest.raises(EzyParseError):
        run("+ 1")


def test_unclosed_block():
    with pytest.raises(EzyParseError):
        run("if (true) { println(1)")


def test_verbose_traces_top_level_statements(capsys):
    run('x: number = 1\nif (true) { println(x) }', verbosity=1)
    err = capsys.readouterr().err
    assert "x" in err and "if" in err
    assert "println" not in err


def test_stats_count_statements():
    stats = {'steps': 0}
    run("for (i: number in 1..3) { print(i) }", stats=stats)
    assert stats['steps'] == 4


def test_evaluate_returns_globals():
    assert Runtime().evaluate("x: number = 2 * 3\ny: boolean = x > 5") == {'x': Decimal(6), 'y': True}


def test_statement_after_single_statement_loop_body_runs():
    assert run('for (i: number in 1..2) print(i) print("x")') == "12x"
    assert run('n: number = 0\nwhile (n < 2) n += 1 print(n)') == "2"


def test_statement_after_untaken_single_statement_branch_runs():
    assert run('if (false) print("a") print("b")') == "b"
    assert run('if (true) print("a") else print("b") print("c")') == "ac"


def test_single_statement_bodies_may_span_lines():
    assert run("n: number = 0\nfor (i: number in 1..2) n = n +\n 1\nprintln(n)") == "2\n"
    assert run('if (false) x = 1 +\n 2\nprintln("ok")') == "ok\n"


def test_loop_exited_before_completing_an_iteration():
    assert run('while (true) { break }\nprintln("after")') == "after\n"
    assert run('for (i: number in 1..3) { continue }\nprintln("after")') == "after\n"


def test_return_value_on_following_line():
    assert run("func f(): number {\n return\n 5\n}\nprintln(f())") == "5\n"
    assert run('func g() {\n return\n println("unreached")\n}\ng()\nprintln("done")') == "done\n"


def test_division_keeps_exponents_beyond_decimal128_range():
    source = "x: number = 1\nfor (i: number in 1..6200) { x *= 10 }\nprintln(x / 1 == x)\nprintln(1 / x * x == 1)"
    assert run(source) == "true\ntrue\n"


def test_numeric_faults_become_positioned_diagnostics():
    interpreter = Interpreter(tokenize("x"), source="x")
    def overflow(*_): raise decimal.Overflow()
    with pytest.raises(EzyValueError) as info:
        interpreter.apply(interpreter.current, overflow)
    assert (info.value.line, info.value.column, info.value.source_line) == (1, 1, "x")


def test_cast_rejects_huge_exponents():
    with pytest.raises(EzyValueError):
        run('x: number = "1e7000" as number / 3')


def test_array_write_out_of_bounds():
    with pytest.raises(EzyIndexError) as info:
        run("a: number[] = [1, 2, 3]\na[3] = 1")
    assert str(info.value) == "Array index out of bounds: 3"


def test_negative_indices_are_out_of_bounds():
    with pytest.raises(EzyIndexError) as info:
        run("a: number[] = [1, 2, 3]\na[-1] = 3")
    assert str(info.value) == "Array index out of bounds: -1"
    with pytest.raises(EzyIndexError):
        run("a: number[] = [1, 2, 3]\nprintln(a[-1])")
