## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘
#
# Single-pass interpreter: statements and expressions are recognized by recursive descent over
# the token list and evaluated as soon as they are recognized. Loop and function bodies are
# re-interpreted from their tokens on every iteration or call, by moving the cursor back to the
# body's first token; `break`, `continue` and `return` travel back up as a `Signal`.
#

import sys
import decimal
from enum import Enum
from decimal import Decimal

from .tokens import Token, TokenKind as K, TYPE_KINDS, ASSIGNMENT_KINDS
from .types import Value, Char, Array, DeclaredType, BASE_TYPES, VOID, conforms, retag, describe, is_type
from .scopes import Binding, ScopeStack, FunctionInfo, FunctionTable
from .errors import (EzyError, EzyParseError, EzyNameError, EzyConstantError, EzyTypeError,
                     EzyIndexError, EzyValueError, EzyControlError)
from .operators import BINARY, COMPOUND, EXACT, cast, op_add, op_sub, op_neg, op_not
from .formatting import format_value, show_trace


class Signal(Enum):
    NORMAL = 0
    BREAK = 1
    CONTINUE = 2
    RETURN = 3


COMPARISONS = frozenset({K.EQUAL_EQUAL, K.NOT_EQUAL, K.LESS_THAN, K.GREATER_THAN, K.LESS_THAN_OR_EQUAL, K.GREATER_THAN_OR_EQUAL})
EXPRESSION_STARTS = frozenset({K.NUMBER_LITERAL, K.STRING_LITERAL, K.VARIABLE, K.CHAR_LITERAL, K.BOOLEAN_LITERAL, K.NULL,
                               K.LEFT_PAREN, K.LEFT_BRACKET, K.IDENTIFIER, K.DOLLAR, K.MINUS, K.BANG})
MAX_CALL_DEPTH = 512
ONE = Decimal(1)


class Interpreter:
    def __init__(self, tokens: list[Token], source: str = "", output=None, verbosity: int = 0, stats: dict | None = None):
        assert tokens and tokens[-1].kind is K.EOF, "Token sequence must end with EOF."
        self.tokens = tokens
        self.lines = [line.rstrip('\r') for line in source.split('\n')]
        self.output = output
        self.verbosity = verbosity
        self.stats = stats

        self.position = 0
        self.scopes = ScopeStack()
        self.functions = FunctionTable()
        self.frames: list[FunctionInfo] = []
        self.loop_depth = 0
        self.return_value: Value = None

    # Cursor ──────────────────────────────────────────────────────────────────────────────────
    @property
    def current(self) -> Token:
        return self.tokens[min(self.position, len(self.tokens) - 1)]

    def peek(self, offset: int = 1) -> Token:
        return self.tokens[min(self.position + offset, len(self.tokens) - 1)]

    def at_end(self) -> bool:
        return self.current.kind is K.EOF

    def check(self, *kinds: K) -> bool:
        return self.current.kind in kinds

    def advance(self) -> Token:
        token = self.current
        if token.kind is not K.EOF:
            self.position += 1
        return token

    def match(self, *kinds: K) -> Token | None:
        return self.advance() if self.current.kind in kinds else None

    def expect(self, kind: K) -> Token:
        if self.current.kind is not kind:
            raise self.error(EzyParseError, f"Expected '{kind}', found '{self.current.kind}'")
        return self.advance()

    # Diagnostics ─────────────────────────────────────────────────────────────────────────────
    def source_line(self, line: int) -> str:
        return self.lines[line - 1] if 0 < line <= len(self.lines) else ""

    def error(self, cls: type[EzyError], message: str, token: Token | None = None) -> EzyError:
        token = token or self.current
        return cls(message, line=token.line, column=token.column, source_line=self.source_line(token.line))

    def located(self, exc: EzyError, token: Token) -> EzyError:
        """Attach a position to errors raised by position-less helpers such as operators."""
        if not exc.line:
            exc.line, exc.column, exc.source_line = token.line, token.column, self.source_line(token.line)
        return exc

    def apply(self, token: Token, fn, *operands: Value) -> Value:
        try:
            return fn(*operands)
        except EzyError as exc:
            raise self.located(exc, token)
        except decimal.DecimalException as exc:
            raise self.error(EzyValueError, f"Numeric result out of range ({type(exc).__name__})", token) from None

    # Program ─────────────────────────────────────────────────────────────────────────────────
    def run(self) -> None:
        limit = sys.getrecursionlimit()
        sys.setrecursionlimit(max(limit, MAX_CALL_DEPTH * 40))
        try:
            while not self.at_end():
                self.statement()
        finally:
            sys.setrecursionlimit(limit)

    def write(self, text: str) -> None:
        (self.output if self.output is not None else sys.stdout).write(text)

    # Statements ──────────────────────────────────────────────────────────────────────────────
    def statement(self) -> Signal:
        token = self.current
        if self.verbosity >= 2 or (self.verbosity == 1 and len(self.scopes) == 1 and not self.frames):
            show_trace(token, len(self.scopes) - 1, file=sys.stderr)
        if self.stats is not None:
            self.stats['steps'] = self.stats.get('steps', 0) + 1

        match token.kind:
            case K.PRINT | K.PRINTLN:
                self.print_statement()
            case K.IF:
                return self.if_statement()
            case K.FOR:
                return self.for_statement()
            case K.WHILE:
                return self.while_statement()
            case K.FUNC:
                self.function_declaration()
            case K.RETURN:
                return self.return_statement()
            case K.BREAK | K.CONTINUE:
                return self.jump_statement()
            case K.LEFT_BRACE:
                return self.execute_body()
            case K.DOLLAR:
                self.variable_declaration()
            case K.IDENTIFIER:
                following = self.peek().kind
                if following is K.COLON:
                    self.variable_declaration()
                elif following is K.LEFT_PAREN:
                    self.call()
                elif following in ASSIGNMENT_KINDS or following in (K.LEFT_BRACKET, K.PLUS_PLUS, K.MINUS_MINUS):
                    self.assignment()
                else:
                    raise self.error(EzyParseError, "Invalid start of statement")
            case K.SEMICOLON:
                pass
            case _:
                raise self.error(EzyParseError, "Invalid start of statement")

        self.match(K.SEMICOLON)
        return Signal.NORMAL

    def execute_body(self, bindings: dict[str, Binding] | None = None) -> Signal:
        """Run a braced block or a single statement inside a freshly pushed scope."""
        scope = self.scopes.push()
        try:
            scope.update(bindings or {})
            if not self.match(K.LEFT_BRACE):
                return self.statement()
            while not self.check(K.RIGHT_BRACE):
                if self.at_end():
                    raise self.error(EzyParseError, f"Expected '{K.RIGHT_BRACE}', found '{self.current.kind}'")
                if (signal := self.statement()) is not Signal.NORMAL:
                    return signal
            self.advance()
            return Signal.NORMAL
        finally:
            self.scopes.pop()

    def print_statement(self) -> None:
        newline = self.advance().kind is K.PRINTLN
        self.expect(K.LEFT_PAREN)
        parts = []
        while not self.check(K.RIGHT_PAREN):
            if self.at_end():
                raise self.error(EzyParseError, f"Expected '{K.RIGHT_PAREN}', found '{self.current.kind}'")
            parts.append(format_value(self.expression()))
            self.match(K.COMMA)
        self.expect(K.RIGHT_PAREN)
        self.write(''.join(parts) + ('\n' if newline else ''))

    # Declarations & assignment ───────────────────────────────────────────────────────────────
    def type_annotation(self) -> DeclaredType:
        token = self.current
        if token.kind not in TYPE_KINDS:
            raise self.error(EzyParseError, f"Expected a type, found '{token.kind}'")
        self.advance()
        declared = DeclaredType.from_name(token.text)
        if declared.base not in BASE_TYPES:
            raise self.error(EzyTypeError, f"Unsupported type: {token.text}", token)
        return declared

    def variable_declaration(self) -> None:
        constant = self.match(K.DOLLAR) is not None
        name = self.expect(K.IDENTIFIER)
        if name.text in self.scopes.current:
            raise self.error(EzyNameError, f"Variable '{name.text}' already declared", name)

        self.expect(K.COLON)
        declared = self.type_annotation()
        if declared == VOID:
            raise self.error(EzyTypeError, f"Cannot declare variable '{name.text}' of type void", name)
        self.expect(K.EQUAL)

        start = self.current
        if declared.is_array and self.check(K.LEFT_BRACKET):
            value = self.array_literal(declared.element)
        else:
            value = self.expression()
        if not conforms(value, declared):
            raise self.error(EzyTypeError, f"Type mismatch: Cannot assign {describe(value)} to {declared}", start)

        self.scopes.declare(name.text, Binding(retag(value, declared), declared, constant))

    def assignment(self) -> None:
        name = self.advance()
        if (binding := self.scopes.lookup(name.text)) is None:
            raise self.error(EzyNameError, f"Undefined variable: {name.text}", name)

        indices = []
        while self.check(K.LEFT_BRACKET):
            self.advance()
            indices.append((self.current, self.expression()))
            self.expect(K.RIGHT_BRACKET)

        operator = self.current
        if operator.kind not in ASSIGNMENT_KINDS and operator.kind not in (K.PLUS_PLUS, K.MINUS_MINUS):
            raise self.error(EzyParseError, f"Expected '{K.EQUAL}', found '{operator.kind}'")
        self.advance()
        if binding.constant:
            raise self.error(EzyConstantError, f"Cannot reassign constant variable: {name.text}", name)

        # Resolve the container holding the target slot before evaluating the right-hand side.
        container, slot = None, None
        if indices:
            container = binding.value
            for token, index in indices[:-1]:
                container = self.element_at(container, index, token)
            token, index = indices[-1]
            if not isinstance(container, Array):
                raise self.error(EzyTypeError, f"Variable '{name.text}' is not an array", name)
            slot = self.checked_index(container, index, token)

        def current_value():
            return container[slot] if indices else binding.value

        start = self.current
        match operator.kind:
            case K.PLUS_PLUS:
                value = self.apply(operator, op_add, current_value(), ONE)
            case K.MINUS_MINUS:
                value = self.apply(operator, op_sub, current_value(), ONE)
            case K.EQUAL:
                value = self.expression()
            case kind:
                value = self.apply(operator, COMPOUND[kind], current_value(), self.expression())

        if indices:
            expected = container.element_type
            if binding.type is not None and binding.type.dimensions >= len(indices):
                expected = DeclaredType(binding.type.base, binding.type.dimensions - len(indices))
            if expected is not None and not conforms(value, expected):
                raise self.error(EzyTypeError, f"Type mismatch: Cannot assign {describe(value)} to {expected}", start)
            container[slot] = retag(value, expected) if expected is not None else value
        else:
            if binding.type is not None:
                if not conforms(value, binding.type):
                    raise self.error(EzyTypeError, f"Type mismatch: Cannot assign {describe(value)} to {binding.type}", start)
                retag(value, binding.type)
            binding.value = value

    # Control flow ────────────────────────────────────────────────────────────────────────────
    def condition(self) -> bool:
        start = self.current
        value = self.expression()
        if not isinstance(value, bool):
            raise self.error(EzyTypeError, f"Expected a boolean expression, found {describe(value)}", start)
        return value

    def parenthesized_condition(self) -> bool:
        self.expect(K.LEFT_PAREN)
        value = self.condition()
        self.expect(K.RIGHT_PAREN)
        return value

    def if_statement(self) -> Signal:
        self.expect(K.IF)
        taken = False
        # Conditions of later branches are still evaluated; only their bodies are skipped.
        if self.parenthesized_condition():
            taken = True
            if (signal := self.execute_body()) is not Signal.NORMAL:
                return signal
        else:
            self.skip_body()

        while self.match(K.ELSE_IF):
            if self.parenthesized_condition() and not taken:
                taken = True
                if (signal := self.execute_body()) is not Signal.NORMAL:
                    return signal
            else:
                self.skip_body()

        if self.match(K.ELSE):
            if not taken:
                return self.execute_body()
            self.skip_body()
        return Signal.NORMAL

    def for_statement(self) -> Signal:
        self.expect(K.FOR)
        self.expect(K.LEFT_PAREN)
        name = self.expect(K.IDENTIFIER)
        self.expect(K.COLON)
        declared = self.type_annotation()
        self.expect(K.IN)

        start = self.current
        first = self.expression()
        if self.match(K.DOT_DOT):
            end_token = self.current
            end = self.expression()
            step_token, step = None, ONE
            if self.match(K.DOT_DOT):
                step_token = self.current
                step = self.expression()
            for token, bound in ((start, first), (end_token, end), (step_token, step)):
                if token is not None and not isinstance(bound, Decimal):
                    raise self.error(EzyTypeError, f"Range bounds must be numbers, found {describe(bound)}", token)
            if step == 0:
                raise self.error(EzyValueError, "Step cannot be zero", step_token)
            values = self.numeric_range(first, end, step)
        elif isinstance(first, Array):
            values = list(first)
        elif isinstance(first, str) and not isinstance(first, Char):
            values = [Char(c) for c in first]
        else:
            raise self.error(EzyTypeError, f"Cannot iterate over {describe(first)}", start)
        self.expect(K.RIGHT_PAREN)

        body_start = self.position
        body_finish = None
        for value in values:
            if not conforms(value, declared):
                raise self.error(EzyTypeError, f"Type mismatch: Expected {declared}, found {describe(value)}", name)
            self.position = body_start
            signal = self.loop_iteration({name.text: Binding(value, declared)})
            if signal is Signal.NORMAL and body_finish is None:
                body_finish = self.position
            if signal is Signal.BREAK:
                break
            if signal is Signal.RETURN:
                return signal

        self.position = body_finish if body_finish is not None else self.body_end(body_start)
        return Signal.NORMAL

    @staticmethod
    def numeric_range(start: Decimal, end: Decimal, step: Decimal):
        value = start
        while (value <= end) if step > 0 else (value >= end):
            yield value
            value = EXACT.add(value, step)

    def while_statement(self) -> Signal:
        self.expect(K.WHILE)
        header = self.position
        body_finish = None
        while True:
            self.position = header
            if not self.parenthesized_condition():
                break
            signal = self.loop_iteration()
            if signal is Signal.NORMAL and body_finish is None:
                body_finish = self.position
            if signal is Signal.BREAK:
                break
            if signal is Signal.RETURN:
                return signal

        if body_finish is None:
            self.position = header
            self.skip_balanced(K.LEFT_PAREN, K.RIGHT_PAREN)
            body_finish = self.body_end(self.position)
        self.position = body_finish
        return Signal.NORMAL

    def loop_iteration(self, bindings: dict[str, Binding] | None = None) -> Signal:
        self.loop_depth += 1
        try:
            return self.execute_body(bindings)
        finally:
            self.loop_depth -= 1

    def jump_statement(self) -> Signal:
        token = self.advance()
        if self.loop_depth == 0:
            raise self.error(EzyControlError, f"'{token.kind}' outside of loop", token)
        self.match(K.SEMICOLON)
        return Signal.BREAK if token.kind is K.BREAK else Signal.CONTINUE

    def returns_value(self, token: Token) -> bool:
        """Whether the `return` at `token` is followed by a value expression."""
        if self.current.kind not in EXPRESSION_STARTS:
            return False
        if self.current.line == token.line:
            return True
        # On a later line, only a function that must produce a value takes it.
        return bool(self.frames) and self.frames[-1].return_type != VOID

    def return_statement(self) -> Signal:
        token = self.advance()
        if not self.frames:
            raise self.error(EzyControlError, "'return' outside of function", token)
        function = self.frames[-1]

        has_value = self.returns_value(token)
        start = self.current
        value = self.expression() if has_value else None
        if not has_value and function.return_type != VOID:
            raise self.error(EzyControlError, f"Function '{function.name}' must return a value of type {function.return_type}", token)
        if has_value and not conforms(value, function.return_type):
            raise self.error(EzyTypeError, f"Type mismatch: Function '{function.name}' returns {function.return_type}, found {describe(value)}", start)

        self.return_value = retag(value, function.return_type)
        self.match(K.SEMICOLON)
        return Signal.RETURN

    # Skipping untaken bodies ─────────────────────────────────────────────────────────────────
    def body_end(self, start: int) -> int:
        """Index just past the body starting at `start`, leaving the cursor unchanged."""
        saved, self.position = self.position, start
        self.skip_body()
        end, self.position = self.position, saved
        return end

    def skip_balanced(self, opening: K, closing: K) -> None:
        self.expect(opening)
        depth = 1
        while depth > 0:
            if self.at_end():
                raise self.error(EzyParseError, f"Expected '{closing}', found '{self.current.kind}'")
            kind = self.advance().kind
            if kind is opening: depth += 1
            elif kind is closing: depth -= 1

    def skip_body(self) -> None:
        if self.check(K.LEFT_BRACE):
            self.skip_balanced(K.LEFT_BRACE, K.RIGHT_BRACE)
        else:
            self.skip_statement()

    def skip_statement(self) -> None:
        """Step over one statement by its grammar, without evaluating anything."""
        token = self.current
        match token.kind:
            case K.IF:
                self.advance()
                self.skip_balanced(K.LEFT_PAREN, K.RIGHT_PAREN)
                self.skip_body()
                while self.match(K.ELSE_IF):
                    self.skip_balanced(K.LEFT_PAREN, K.RIGHT_PAREN)
                    self.skip_body()
                if self.match(K.ELSE):
                    self.skip_body()
            case K.FOR | K.WHILE:
                self.advance()
                self.skip_balanced(K.LEFT_PAREN, K.RIGHT_PAREN)
                self.skip_body()
            case K.FUNC:
                while not self.check(K.LEFT_BRACE, K.EOF):
                    self.advance()
                self.skip_balanced(K.LEFT_BRACE, K.RIGHT_BRACE)
            case K.LEFT_BRACE:
                self.skip_balanced(K.LEFT_BRACE, K.RIGHT_BRACE)
            case K.PRINT | K.PRINTLN:
                self.advance()
                self.skip_balanced(K.LEFT_PAREN, K.RIGHT_PAREN)
            case K.BREAK | K.CONTINUE:
                self.advance()
            case K.RETURN:
                self.advance()
                if self.returns_value(token):
                    self.skip_expression()
            case K.DOLLAR:
                self.skip_declaration()
            case K.IDENTIFIER if self.peek().kind is K.COLON:
                self.skip_declaration()
            case K.IDENTIFIER if self.peek().kind is K.LEFT_PAREN:
                self.advance()
                self.skip_balanced(K.LEFT_PAREN, K.RIGHT_PAREN)
            case K.IDENTIFIER:
                self.advance()
                while self.check(K.LEFT_BRACKET):
                    self.skip_balanced(K.LEFT_BRACKET, K.RIGHT_BRACKET)
                if self.match(K.PLUS_PLUS, K.MINUS_MINUS) is None:
                    if self.current.kind not in ASSIGNMENT_KINDS:
                        raise self.error(EzyParseError, f"Expected '{K.EQUAL}', found '{self.current.kind}'")
                    self.advance()
                    self.skip_expression()
            case K.SEMICOLON:
                pass
            case _:
                raise self.error(EzyParseError, "Invalid start of statement")
        self.match(K.SEMICOLON)

    def skip_declaration(self) -> None:
        self.match(K.DOLLAR)
        self.expect(K.IDENTIFIER)
        self.expect(K.COLON)
        self.type_annotation()
        self.expect(K.EQUAL)
        self.skip_expression()

    def skip_expression(self) -> None:
        """Step over an expression: unary-prefixed operands with postfix forms, joined by binary operators."""
        while True:
            while self.match(K.MINUS, K.BANG):
                pass
            self.skip_primary()
            while True:
                if self.check(K.LEFT_BRACKET):
                    self.skip_balanced(K.LEFT_BRACKET, K.RIGHT_BRACKET)
                elif self.match(K.DOT):
                    self.expect(K.IDENTIFIER)
                elif self.match(K.IS, K.AS):
                    if self.current.kind not in TYPE_KINDS:
                        raise self.error(EzyTypeError, f"Unsupported type: {self.current.text or self.current.kind}")
                    self.advance()
                else:
                    break
            if self.match(*BINARY) is None:
                return

    def skip_primary(self) -> None:
        token = self.current
        match token.kind:
            case K.NUMBER_LITERAL | K.CHAR_LITERAL | K.BOOLEAN_LITERAL | K.NULL:
                self.advance()
            case K.STRING_LITERAL | K.VARIABLE:
                while self.match(K.STRING_LITERAL, K.VARIABLE):
                    pass
            case K.LEFT_PAREN:
                self.skip_balanced(K.LEFT_PAREN, K.RIGHT_PAREN)
            case K.LEFT_BRACKET:
                self.skip_balanced(K.LEFT_BRACKET, K.RIGHT_BRACKET)
            case K.IDENTIFIER:
                self.advance()
                if self.check(K.LEFT_PAREN):
                    self.skip_balanced(K.LEFT_PAREN, K.RIGHT_PAREN)
            case K.DOLLAR:
                self.advance()
                self.expect(K.IDENTIFIER)
            case _:
                raise self.error(EzyParseError, f"Unexpected token '{token.kind}' in expression")

    # Functions ───────────────────────────────────────────────────────────────────────────────
    def function_declaration(self) -> None:
        self.expect(K.FUNC)
        name = self.expect(K.IDENTIFIER)
        self.expect(K.LEFT_PAREN)
        parameters = []
        while not self.check(K.RIGHT_PAREN):
            param = self.expect(K.IDENTIFIER)
            if any(param.text == p for p, _ in parameters):
                raise self.error(EzyNameError, f"Duplicate parameter '{param.text}' in function '{name.text}'", param)
            parameters.append((param.text, self.type_annotation() if self.match(K.COLON) else None))
            if not self.match(K.COMMA):
                break
        self.expect(K.RIGHT_PAREN)
        return_type = self.type_annotation() if self.match(K.COLON) else VOID

        if not self.check(K.LEFT_BRACE):
            raise self.error(EzyParseError, f"Expected '{K.LEFT_BRACE}', found '{self.current.kind}'")
        start = self.position + 1
        self.skip_balanced(K.LEFT_BRACE, K.RIGHT_BRACE)
        info = FunctionInfo(name.text, parameters, return_type, start, self.position - 1, self.tokens)

        # Re-running the same declaration, e.g. inside a loop, is not a redefinition.
        existing = self.functions.get(name.text)
        if existing is not None and existing.start == start:
            return
        if not self.functions.register(info):
            raise self.error(EzyNameError, f"Function '{name.text}' already declared", name)

    def call(self) -> Value:
        name = self.expect(K.IDENTIFIER)
        self.expect(K.LEFT_PAREN)
        arguments = []
        while not self.check(K.RIGHT_PAREN):
            arguments.append((self.current, self.expression()))
            if not self.match(K.COMMA):
                break
        self.expect(K.RIGHT_PAREN)

        if (function := self.functions.get(name.text)) is None:
            raise self.error(EzyNameError, f"Undefined function: {name.text}", name)
        if len(arguments) != function.arity:
            raise self.error(EzyTypeError, f"Function '{name.text}' expects {function.arity} argument(s), got {len(arguments)}", name)
        for (param, declared), (token, value) in zip(function.parameters, arguments):
            if declared is not None and not conforms(value, declared):
                raise self.error(EzyTypeError, f"Type mismatch: Parameter '{param}' of '{name.text}' expects {declared}, found {describe(value)}", token)
        if len(self.frames) >= MAX_CALL_DEPTH:
            raise self.error(EzyControlError, f"Maximum call depth of {MAX_CALL_DEPTH} exceeded", name)

        return self.invoke(function, [value for _, value in arguments], name)

    def invoke(self, function: FunctionInfo, arguments: list[Value], token: Token) -> Value:
        """Re-interpret the function body with the cursor redirected, then restore the caller."""
        caller = (self.position, self.scopes, self.loop_depth)
        self.scopes = ScopeStack(caller[1].globals)
        frame = self.scopes.push()
        for (param, declared), value in zip(function.parameters, arguments):
            frame[param] = Binding(retag(value, declared) if declared else value, declared)

        self.frames.append(function)
        self.position, self.loop_depth, self.return_value = function.start, 0, None
        try:
            signal = Signal.NORMAL
            while self.position < function.finish and signal is Signal.NORMAL:
                signal = self.statement()
            value = self.return_value
        finally:
            self.frames.pop()
            self.position, self.scopes, self.loop_depth = caller

        if signal is not Signal.RETURN and function.return_type != VOID:
            raise self.error(EzyControlError, f"Function '{function.name}' must return a value of type {function.return_type}", token)
        return value if signal is Signal.RETURN else None

    # Expressions ─────────────────────────────────────────────────────────────────────────────
    def expression(self) -> Value:
        return self.logical_or()

    def logical_or(self) -> Value:
        left = self.logical_and()
        while self.check(K.OR):
            operator = self.advance()
            left = self.apply(operator, BINARY[K.OR], left, self.logical_and())
        return left

    def logical_and(self) -> Value:
        left = self.comparison()
        while self.check(K.AND):
            operator = self.advance()
            left = self.apply(operator, BINARY[K.AND], left, self.comparison())
        return left

    def comparison(self) -> Value:
        # Non-chaining: at most one comparison operator per level.
        left = self.type_test()
        if self.current.kind in COMPARISONS:
            operator = self.advance()
            left = self.apply(operator, BINARY[operator.kind], left, self.type_test())
        return left

    def type_test(self) -> Value:
        left = self.additive()
        while self.check(K.IS, K.AS):
            operator = self.advance()
            target = self.current
            if target.kind not in TYPE_KINDS:
                raise self.error(EzyTypeError, f"Unsupported type: {target.text or target.kind}", target)
            self.advance()
            if operator.kind is K.IS:
                if (result := is_type(left, target.text)) is None:
                    raise self.error(EzyTypeError, f"Unsupported type: {target.text}", target)
                left = result
            else:
                left = self.apply(target, cast, left, target.text)
        return left

    def additive(self) -> Value:
        left = self.multiplicative()
        while self.check(K.PLUS, K.MINUS):
            operator = self.advance()
            left = self.apply(operator, BINARY[operator.kind], left, self.multiplicative())
        return left

    def multiplicative(self) -> Value:
        left = self.unary()
        while self.check(K.ASTERISK, K.SLASH, K.PERCENT):
            operator = self.advance()
            left = self.apply(operator, BINARY[operator.kind], left, self.unary())
        return left

    def unary(self) -> Value:
        if self.check(K.MINUS):
            operator = self.advance()
            return self.apply(operator, op_neg, self.unary())
        if self.check(K.BANG):
            operator = self.advance()
            return self.apply(operator, op_not, self.unary())
        return self.postfix(self.primary())

    def postfix(self, value: Value) -> Value:
        while True:
            if self.check(K.LEFT_BRACKET):
                self.advance()
                token = self.current
                index = self.expression()
                self.expect(K.RIGHT_BRACKET)
                value = self.element_at(value, index, token)
            elif self.check(K.DOT):
                self.advance()
                member = self.expect(K.IDENTIFIER)
                if member.text != 'length':
                    raise self.error(EzyNameError, f"Unknown property: {member.text}", member)
                if not isinstance(value, (Array, str)) or isinstance(value, Char):
                    raise self.error(EzyTypeError, f"Cannot get length of {describe(value)}", member)
                value = Decimal(len(value))
            else:
                return value

    def primary(self) -> Value:
        token = self.current
        match token.kind:
            case K.NUMBER_LITERAL:
                self.advance()
                return Decimal(token.text)
            case K.STRING_LITERAL | K.VARIABLE:
                return self.string_literal()
            case K.CHAR_LITERAL:
                self.advance()
                if not token.text:
                    raise self.error(EzyValueError, "Empty character literal", token)
                return Char(token.text[0])
            case K.BOOLEAN_LITERAL:
                self.advance()
                return token.text == 'true'
            case K.NULL:
                self.advance()
                return None
            case K.LEFT_PAREN:
                self.advance()
                value = self.expression()
                self.expect(K.RIGHT_PAREN)
                return value
            case K.LEFT_BRACKET:
                return self.array_literal()
            case K.IDENTIFIER if self.peek().kind is K.LEFT_PAREN:
                return self.call()
            case K.IDENTIFIER:
                self.advance()
                return self.variable(token)
            case K.DOLLAR:
                self.advance()
                return self.variable(self.expect(K.IDENTIFIER))
        raise self.error(EzyParseError, f"Unexpected token '{token.kind}' in expression")

    def variable(self, name: Token) -> Value:
        if (binding := self.scopes.lookup(name.text)) is None:
            raise self.error(EzyNameError, f"Undefined variable: {name.text}", name)
        return binding.value

    def string_literal(self) -> str:
        """Adjacent text pieces and `${name}` references, as split by the lexer, join into one string."""
        parts = []
        while self.check(K.STRING_LITERAL, K.VARIABLE):
            token = self.advance()
            parts.append(token.text if token.kind is K.STRING_LITERAL else format_value(self.variable(token)))
        return ''.join(parts)

    def array_literal(self, element: DeclaredType | None = None) -> Array:
        """Bracketed, comma-separated elements; checked against `element` when declared."""
        self.expect(K.LEFT_BRACKET)
        items = []
        while not self.check(K.RIGHT_BRACKET):
            token = self.current
            if element is not None and element.is_array and self.check(K.LEFT_BRACKET):
                value = self.array_literal(element.element)
            else:
                value = self.expression()
            if element is not None and not conforms(value, element):
                raise self.error(EzyTypeError, f"Type mismatch: Cannot assign {describe(value)} to {element}", token)
            items.append(value)
            if not self.match(K.COMMA):
                break
        self.expect(K.RIGHT_BRACKET)

        if element is None and items:
            tags = {describe(v) for v in items}
            if len(tags) > 1:
                raise self.error(EzyTypeError, f"Array elements must share one type, found {', '.join(sorted(tags))}")
            if (tag := tags.pop()) != 'array':
                element = DeclaredType.from_name(tag)
        return Array(items, element)

    # Indexing ────────────────────────────────────────────────────────────────────────────────
    def checked_index(self, container: Array | str, index: Value, token: Token) -> int:
        if not isinstance(index, Decimal):
            raise self.error(EzyTypeError, f"Array index must be a number, found {describe(index)}", token)
        if index != index.to_integral_value():
            raise self.error(EzyIndexError, f"Array index must be an integer: {format_value(index)}", token)
        if not 0 <= (position := int(index)) < len(container):
            raise self.error(EzyIndexError, f"Array index out of bounds: {position}", token)
        return position

    def element_at(self, container: Value, index: Value, token: Token) -> Value:
        if isinstance(container, Array):
            return container[self.checked_index(container, index, token)]
        if isinstance(container, str) and not isinstance(container, Char):
            return Char(container[self.checked_index(container, index, token)])
        raise self.error(EzyTypeError, f"Cannot index into {describe(container)}", token)
