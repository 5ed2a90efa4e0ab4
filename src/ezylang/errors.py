## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import lark


class EzyError(Exception):
    def __init__(self, message: str = "", *, line: int = 0, column: int = 0, source_line: str | None = None, filename: str | None = None):
        """Base class for all diagnostics raised while tokenizing or running a program."""
        super().__init__(message)
        self.message: str = message
        self.line: int = line
        self.column: int = column
        self.source_line: str | None = source_line
        self.filename: str | None = filename

    def __str__(self):
        return self.message


class EzyLexError(EzyError, lark.exceptions.LexError):
    """Stray characters in the source, only raised when tokenizing strictly."""
    pass

class EzyParseError(EzyError):
    pass

class EzyNameError(EzyError, NameError):
    pass

class EzyConstantError(EzyError, AttributeError):
    pass

class EzyTypeError(EzyError, TypeError):
    pass

class EzyIndexError(EzyError, IndexError):
    pass

class EzyValueError(EzyError, ValueError):
    pass

class EzyZeroDivisionError(EzyError, ZeroDivisionError):
    pass

class EzyControlError(EzyError, RuntimeError):
    """Control transfer used where it has no target, e.g. `break` outside of a loop."""
    pass
