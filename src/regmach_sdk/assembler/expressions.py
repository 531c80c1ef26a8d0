"""
Assembly Expression Evaluator
=============================

This module evaluates the arithmetic expressions that appear as instruction
operands and directive arguments.

Supported Operations
--------------------
- Addition (+)
- Subtraction (-)
- Multiplication (*)
- Grouping with parentheses
- Unary plus and minus

Operands are decimal literals and label names. A label evaluates to the
address recorded for it in the label table.

Expression Grammar
------------------
The evaluator is a recursive descent parser with conventional precedence
(from lowest to highest):

1. Addition/Subtraction: + -   (left associative)
2. Multiplication: *           (left associative)
3. Unary: + -
4. Primary: number, label, (grouped expression)

Example Usage
-------------
>>> from regmach_sdk.assembler.expressions import ExpressionEvaluator
>>> from regmach_sdk.assembler.lexer import Lexer, TokenType
>>> tokens = [t for t in Lexer("table + 2*3").tokenize() if t.type != TokenType.LINE]
>>> evaluator = ExpressionEvaluator({"TABLE": 40})
>>> evaluator.evaluate(tokens)
46

When Evaluation Happens
-----------------------
Arguments are never evaluated while the code generator walks the program
for the first time, because a label may be declared after it is used. The
code generator records every argument as a deferred relocation and calls
the evaluator once per relocation after the walk, when the label table is
complete.
"""

from typing import Optional

from regmach_sdk.errors import (
    ExpressionError,
    UndefinedSymbolError,
    SourceLocation,
)
from regmach_sdk.assembler.lexer import Token, TokenType


class ExpressionEvaluator:
    """
    Evaluates assembly expressions against a label table.

    Attributes:
        symbols: Dictionary of label names to addresses
    """

    def __init__(self, symbols: Optional[dict[str, int]] = None):
        self._symbols: dict[str, int] = {}
        for name, value in (symbols or {}).items():
            self.set_symbol(name, value)
        self._tokens: list[Token] = []
        self._pos = 0
        self._location: Optional[SourceLocation] = None

    # =========================================================================
    # Symbol Table Management
    # =========================================================================

    def set_symbol(self, name: str, value: int) -> None:
        self._symbols[name.upper()] = value

    def get_symbol(self, name: str) -> Optional[int]:
        return self._symbols.get(name.upper())

    def has_symbol(self, name: str) -> bool:
        return name.upper() in self._symbols

    # =========================================================================
    # Main Evaluation Interface
    # =========================================================================

    def evaluate(
        self,
        tokens: list[Token] | tuple[Token, ...],
        location: Optional[SourceLocation] = None,
    ) -> int:
        """
        Evaluate an expression from a list of tokens.

        Args:
            tokens: Token list representing the expression
            location: Source location for error reporting (defaults to
                      the location of the offending token)

        Returns:
            The integer result of the expression

        Raises:
            ExpressionError: If the expression is malformed or nested deeper
                than the interpreter stack allows
            UndefinedSymbolError: If a label is not in the table
        """
        if not tokens:
            raise ExpressionError("empty expression", location)

        self._tokens = list(tokens)
        self._pos = 0
        self._location = location

        try:
            result = self._parse_additive()
        except RecursionError:
            raise ExpressionError(
                "expression nested too deeply", location or self._tokens[0].location
            ) from None

        if self._pos < len(self._tokens):
            tok = self._current()
            raise ExpressionError(
                f"unexpected token '{tok.text}' in expression",
                location or tok.location,
            )

        return result

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _current(self) -> Optional[Token]:
        if self._pos >= len(self._tokens):
            return None
        return self._tokens[self._pos]

    def _advance(self) -> Token:
        token = self._tokens[self._pos]
        self._pos += 1
        return token

    def _match(self, operator: str) -> bool:
        """Consume the current token if it is the given operator."""
        tok = self._current()
        if tok is not None and tok.type == TokenType.OPERATOR and tok.value == operator:
            self._pos += 1
            return True
        return False

    def _error_location(self) -> Optional[SourceLocation]:
        if self._location:
            return self._location
        tok = self._current() or self._tokens[-1]
        return tok.location

    # =========================================================================
    # Recursive Descent Parser with Evaluation
    # =========================================================================

    def _parse_additive(self) -> int:
        """Parse addition and subtraction (lowest precedence)."""
        left = self._parse_multiplicative()

        while True:
            if self._match("+"):
                left = left + self._parse_multiplicative()
            elif self._match("-"):
                left = left - self._parse_multiplicative()
            else:
                break

        return left

    def _parse_multiplicative(self) -> int:
        left = self._parse_unary()

        while self._match("*"):
            left = left * self._parse_unary()

        return left

    def _parse_unary(self) -> int:
        if self._match("+"):
            return self._parse_unary()
        if self._match("-"):
            return -self._parse_unary()

        return self._parse_primary()

    def _parse_primary(self) -> int:
        """Parse primary expressions (numbers, labels, groups)."""
        tok = self._current()

        if tok is None:
            raise ExpressionError("unexpected end of expression", self._error_location())

        if tok.type == TokenType.NUMBER:
            self._advance()
            return tok.value

        if tok.type == TokenType.IDENTIFIER:
            self._advance()
            return self._resolve_symbol(tok.value, tok.location)

        if self._match("("):
            result = self._parse_additive()
            if not self._match(")"):
                raise ExpressionError(
                    "expected ')' to close expression", self._error_location()
                )
            return result

        raise ExpressionError(
            f"expected value, got '{tok.text}'",
            self._location or tok.location,
        )

    # =========================================================================
    # Symbol Resolution
    # =========================================================================

    def _resolve_symbol(self, name: str, location: SourceLocation) -> int:
        if name in self._symbols:
            return self._symbols[name]

        raise UndefinedSymbolError(
            name,
            location=self._location or location,
            similar_symbols=self._find_similar_symbols(name),
        )

    def _find_similar_symbols(self, name: str) -> list[str]:
        """
        Find labels with similar names for error hints.

        Uses simple edit distance heuristic.
        """
        similar = []

        for sym in self._symbols:
            if abs(len(sym) - len(name)) <= 1 and self._edit_distance(name, sym) <= 2:
                similar.append(sym)

        return similar[:3]

    def _edit_distance(self, s1: str, s2: str) -> int:
        """Calculate Levenshtein edit distance between two strings."""
        if len(s1) < len(s2):
            s1, s2 = s2, s1

        distances = range(len(s2) + 1)
        for i, c1 in enumerate(s1):
            new_distances = [i + 1]
            for j, c2 in enumerate(s2):
                if c1 == c2:
                    new_distances.append(distances[j])
                else:
                    new_distances.append(1 + min((
                        distances[j],
                        distances[j + 1],
                        new_distances[-1]
                    )))
            distances = new_distances

        return distances[-1]


# =============================================================================
# Convenience Functions
# =============================================================================

def evaluate_expression(
    tokens: list[Token] | tuple[Token, ...],
    symbols: dict[str, int],
    location: Optional[SourceLocation] = None,
) -> int:
    """
    Evaluate one expression against a label table.

    Args:
        tokens: Token list representing the expression
        symbols: Label table
        location: Source location for errors

    Returns:
        Expression result
    """
    return ExpressionEvaluator(symbols).evaluate(tokens, location)
