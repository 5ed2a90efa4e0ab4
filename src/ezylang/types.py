## ezylang — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from decimal import Decimal
from dataclasses import dataclass


class Char(str):
    """A single character value, distinct from a one-character string."""
    __slots__ = ()

    def __repr__(self):
        return f"Char({str(self)!r})"


class Array(list):
    """Ordered, mutable sequence whose elements all conform to `element_type` once declared."""

    def __init__(self, items=(), element_type: 'DeclaredType | None' = None):
        super().__init__(items)
        self.element_type = element_type

    def __repr__(self):
        return f"Array({list.__repr__(self)}, {self.element_type})"


Value = Decimal | str | Char | bool | None | Array

BASE_TYPES = ('number', 'string', 'boolean', 'char', 'null', 'void')


@dataclass(frozen=True)
class DeclaredType:
    base: str
    dimensions: int = 0

    @classmethod
    def from_name(cls, name: str) -> 'DeclaredType':
        """Build from a type word such as `number`, `string[]` or `char[][]`."""
        base = name.rstrip('[]')
        return cls(base, (len(name) - len(base)) // 2)

    @property
    def is_array(self) -> bool:
        return self.dimensions > 0

    @property
    def element(self) -> 'DeclaredType':
        assert self.dimensions > 0
        return DeclaredType(self.base, self.dimensions - 1)

    def __str__(self):
        return self.base + '[]' * self.dimensions


NUMBER, VOID = DeclaredType('number'), DeclaredType('void')


def type_name(value: Value) -> str:
    """Runtime tag of a value, as spelled in the language."""
    match value:
        case None: return 'null'
        case bool(): return 'boolean'
        case Decimal(): return 'number'
        case Char(): return 'char'
        case str(): return 'string'
        case Array(): return 'array'
    raise AssertionError(f"Not a language value: {value!r}")


def describe(value: Value) -> str:
    """Tag of a value including array element type when known, used in messages."""
    if isinstance(value, Array) and value.element_type is not None:
        return f"{value.element_type}[]"
    return type_name(value)


def conforms(value: Value, declared: DeclaredType) -> bool:
    if declared.is_array:
        return isinstance(value, Array) and all(conforms(v, declared.element) for v in value)
    if declared.base == 'void':
        return value is None
    return type_name(value) == declared.base


def retag(value: Value, declared: DeclaredType) -> Value:
    """Stamp declared element types onto an array value and its nested arrays."""
    if declared.is_array and isinstance(value, Array):
        value.element_type = declared.element
        for item in value:
            retag(item, declared.element)
    return value


def is_type(value: Value, name: str) -> bool | None:
    """Result of `value is name`, or None for type names the test does not support."""
    if name == 'array' or name.endswith('[]'):
        if not isinstance(value, Array): return False
        return True if name == 'array' else conforms(value, DeclaredType.from_name(name))
    if name not in ('number', 'string', 'boolean', 'char', 'null'):
        return None
    return type_name(value) == name
