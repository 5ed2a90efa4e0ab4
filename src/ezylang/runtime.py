## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from typing import TextIO

from .tokens import Token
from .types import Value
from .errors import EzyError
from .lexer import tokenize as _tokenize
from .interpreter import Interpreter


class Runtime:
    """Minimal runtime facade focused on embedding: tokenize or run whole programs."""

    def __init__(self, strict: bool = False, output: TextIO | None = None):
        self.strict = strict
        self.output = output

    def tokenize(self, source: str) -> list[Token]:
        return _tokenize(source, strict=self.strict)

    def run(self, source: str, filename: str | None = None, verbosity: int = 0, stats: dict | None = None) -> Interpreter:
        """Execute a program, returning the finished interpreter so its globals can be inspected.

        Any `EzyError` escapes with its filename and offending source line filled in.
        """
        try:
            interpreter = Interpreter(self.tokenize(source), source=source, output=self.output,
                                      verbosity=verbosity, stats=stats)
            interpreter.run()
        except EzyError as exc:
            exc.filename = filename if filename is not None else '<input>'
            if exc.source_line is None:
                lines = source.split('\n')
                exc.source_line = lines[exc.line - 1].rstrip('\r') if 0 < exc.line <= len(lines) else ''
            raise
        return interpreter

    def evaluate(self, source: str) -> dict[str, Value]:
        """Run a program and return the values of its global variables by name."""
        interpreter = self.run(source)
        return {name: binding.value for name, binding in interpreter.scopes.globals.items()}
