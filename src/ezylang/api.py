## ezylang — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from .types import Value, Char, Array, DeclaredType
from .errors import *
from .formatting import format_diagnostic, format_value
from .runtime import Runtime

_RUNTIME = Runtime()

def __getattr__(name):
    return getattr(_RUNTIME, name)
