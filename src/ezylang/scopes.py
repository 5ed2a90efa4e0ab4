## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from dataclasses import dataclass, field

from .tokens import Token
from .types import Value, DeclaredType


@dataclass
class Binding:
    value: Value
    type: DeclaredType | None         # None for untyped parameters.
    constant: bool = False


class Scope(dict):
    """Variable name to `Binding`, unique keys, for one block, iteration or call."""
    pass


class ScopeStack:
    """Innermost scope last; the global scope at index zero is never popped."""

    def __init__(self, globals_: Scope | None = None):
        self.scopes: list[Scope] = [globals_ if globals_ is not None else Scope()]

    @property
    def globals(self) -> Scope:
        return self.scopes[0]

    @property
    def current(self) -> Scope:
        return self.scopes[-1]

    def __len__(self):
        return len(self.scopes)

    def push(self) -> Scope:
        self.scopes.append(scope := Scope())
        return scope

    def pop(self) -> Scope:
        assert len(self.scopes) > 1, "The global scope is never popped."
        return self.scopes.pop()

    def lookup(self, name: str) -> Binding | None:
        """First match from the innermost scope outward."""
        for scope in reversed(self.scopes):
            if (binding := scope.get(name)) is not None:
                return binding
        return None

    def declare(self, name: str, binding: Binding) -> bool:
        """Insert into the current scope only; False when the name is already there."""
        if name in self.current:
            return False
        self.current[name] = binding
        return True


@dataclass
class FunctionInfo:
    name: str
    parameters: list[tuple[str, DeclaredType | None]]
    return_type: DeclaredType
    start: int                    # Index of the body's first token.
    finish: int                   # Index just past the body's last token.
    tokens: list[Token] = field(repr=False, default_factory=list)

    @property
    def body(self) -> list[Token]:
        return self.tokens[self.start:self.finish]

    @property
    def arity(self) -> int:
        return len(self.parameters)


class FunctionTable(dict):
    """Function name to `FunctionInfo`, filled as declarations execute and never shrunk."""

    def register(self, info: FunctionInfo) -> bool:
        if info.name in self:
            return False
        self[info.name] = info
        return True
