## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import decimal
import operator
from decimal import Decimal

from .types import Value, Char, Array, type_name
from .tokens import TokenKind as K
from .errors import EzyTypeError, EzyValueError, EzyZeroDivisionError
from .formatting import format_value


# Sums, differences, products and remainders are exact; only quotients are rounded, to 34
# significant digits with banker's rounding.
EXACT = decimal.Context(prec=decimal.MAX_PREC, Emax=decimal.MAX_EMAX, Emin=decimal.MIN_EMIN,
                        traps=[decimal.InvalidOperation, decimal.DivisionByZero, decimal.Overflow])
DIVISION = decimal.Context(prec=34, rounding=decimal.ROUND_HALF_EVEN, Emax=decimal.MAX_EMAX, Emin=decimal.MIN_EMIN,
                           traps=[decimal.InvalidOperation, decimal.DivisionByZero, decimal.Overflow])

ZERO = Decimal(0)

# Text converted with `as number` may not carry a decimal exponent beyond this magnitude.
CAST_EXPONENT_LIMIT = 6144


def _mismatch(op: K, left: Value, right: Value) -> EzyTypeError:
    return EzyTypeError(f"Invalid operation between types: {type_name(left)} {op} {type_name(right)}")

def _as_text(value: Value) -> str:
    return value if isinstance(value, str) else format_value(value)


## ARITHMETIC
def op_add(left: Value, right: Value) -> Value:
    match left, right:
        case Decimal(), Decimal(): return EXACT.add(left, right)
        case (str(), _) | (_, str()): return str(_as_text(left) + _as_text(right))
    raise _mismatch(K.PLUS, left, right)

def op_sub(left: Value, right: Value) -> Decimal:
    match left, right:
        case Decimal(), Decimal(): return EXACT.subtract(left, right)
    raise _mismatch(K.MINUS, left, right)

def op_mul(left: Value, right: Value) -> Decimal:
    match left, right:
        case Decimal(), Decimal(): return EXACT.multiply(left, right)
    raise _mismatch(K.ASTERISK, left, right)

def op_div(left: Value, right: Value) -> Decimal:
    match left, right:
        case Decimal(), Decimal():
            if right == ZERO: raise EzyZeroDivisionError("Division by zero")
            return DIVISION.divide(left, right)
    raise _mismatch(K.SLASH, left, right)

def op_rem(left: Value, right: Value) -> Decimal:
    # Truncating: the result takes the sign of the dividend.
    match left, right:
        case Decimal(), Decimal():
            if right == ZERO: raise EzyZeroDivisionError("Division by zero")
            return EXACT.remainder(left, right)
    raise _mismatch(K.PERCENT, left, right)

## COMPARISON
def op_equal(left: Value, right: Value) -> bool:
    if left is None or right is None:
        return left is right
    if type_name(left) != type_name(right):
        raise _mismatch(K.EQUAL_EQUAL, left, right)
    return left == right

def op_differ(left: Value, right: Value) -> bool:
    try:
        return not op_equal(left, right)
    except EzyTypeError:
        raise _mismatch(K.NOT_EQUAL, left, right) from None

def _compare(op: K, fn, left: Value, right: Value) -> bool:
    if (tag := type_name(left)) == type_name(right) and tag in ('number', 'string', 'char'):
        return fn(left, right)
    raise _mismatch(op, left, right)

def op_lt(left: Value, right: Value) -> bool: return _compare(K.LESS_THAN, operator.lt, left, right)
def op_gt(left: Value, right: Value) -> bool: return _compare(K.GREATER_THAN, operator.gt, left, right)
def op_lte(left: Value, right: Value) -> bool: return _compare(K.LESS_THAN_OR_EQUAL, operator.le, left, right)
def op_gte(left: Value, right: Value) -> bool: return _compare(K.GREATER_THAN_OR_EQUAL, operator.ge, left, right)

## BOOLEAN LOGIC
def op_and(left: Value, right: Value) -> bool:
    match left, right:
        case bool(), bool(): return left and right
    raise _mismatch(K.AND, left, right)

def op_or(left: Value, right: Value) -> bool:
    match left, right:
        case bool(), bool(): return left or right
    raise _mismatch(K.OR, left, right)

## UNARY
def op_neg(value: Value) -> Decimal:
    if isinstance(value, Decimal): return EXACT.minus(value)
    raise EzyTypeError(f"Invalid operand for unary -: {type_name(value)}")

def op_not(value: Value) -> bool:
    if isinstance(value, bool): return not value
    raise EzyTypeError(f"Invalid operand for !: {type_name(value)}")


BINARY = {
    K.PLUS: op_add, K.MINUS: op_sub, K.ASTERISK: op_mul, K.SLASH: op_div, K.PERCENT: op_rem,
    K.EQUAL_EQUAL: op_equal, K.NOT_EQUAL: op_differ,
    K.LESS_THAN: op_lt, K.GREATER_THAN: op_gt, K.LESS_THAN_OR_EQUAL: op_lte, K.GREATER_THAN_OR_EQUAL: op_gte,
    K.AND: op_and, K.OR: op_or,
}

# Compound assignment operators map onto their binary counterpart.
COMPOUND = {
    K.PLUS_EQUAL: op_add, K.MINUS_EQUAL: op_sub, K.ASTERISK_EQUAL: op_mul,
    K.SLASH_EQUAL: op_div, K.PERCENT_EQUAL: op_rem,
}


def cast(value: Value, target: str) -> Value:
    """Convert `value` for `value as target`; unsupported targets raise EzyTypeError."""
    def _fail():
        return EzyValueError(f"Cannot convert {type_name(value)} {format_value(value, quoted=True)} to {target}")

    match target:
        case 'string':
            return str(format_value(value))
        case 'number':
            if isinstance(value, Decimal): return value
            if isinstance(value, str):
                try:
                    number = Decimal(value.strip())
                except decimal.InvalidOperation:
                    raise _fail() from None
                if not number.is_finite() or abs(number.adjusted()) > CAST_EXPONENT_LIMIT: raise _fail()
                return number
            raise _fail()
        case 'char':
            if isinstance(value, str) and len(value) == 1: return Char(value)
            raise _fail()
        case 'boolean':
            if isinstance(value, bool): return value
            if isinstance(value, str) and not isinstance(value, Char) and value in ('true', 'false'):
                return value == 'true'
            raise _fail()
        case 'array':
            if isinstance(value, Array): return value
            raise _fail()
    raise EzyTypeError(f"Unsupported type: {target}")
