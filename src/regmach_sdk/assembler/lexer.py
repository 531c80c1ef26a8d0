"""
Register Machine Assembly Lexer
===============================

This module implements the lexer (tokenizer) for register machine assembly.
It converts source text into a list of tokens that the parser can process.

Token Types
-----------
- IDENTIFIER: Label names
- NUMBER: Non-negative decimal literals
- OPERATOR: One of + - * ( )
- LABEL_MARKER: The ':' after a label name
- MNEMONIC: An instruction name (value is its opcode)
- DIRECTIVE: A '#' directive (value is its table index)
- LINE: Start of a source line (value is the 1-based line number)
- COMMA: Argument separator

Line Markers
------------
Statements never span lines, so line boundaries are part of the token
stream. The stream always opens with LINE(1), and every newline emits a
LINE token carrying the number of the line it opens. A newline is
appended to the source before scanning, so the last line is always
terminated and the stream always ends with a LINE token.

Source text is case-insensitive: everything is upper-cased before it is
classified, so ``take 5`` and ``TAKE 5`` produce the same tokens.

Example
-------
>>> from regmach_sdk.assembler.lexer import Lexer
>>> for token in Lexer("loop: inc 7 ; count").tokenize():
...     print(token)
Token(LINE, 1, 1:1)
Token(IDENTIFIER, 'LOOP', 1:1)
Token(LABEL_MARKER, 1:5)
Token(MNEMONIC, 7, 1:7)
Token(NUMBER, 7, 1:11)
Token(LINE, 2, 2:1)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional
import string

from regmach_sdk.cpu import (
    MNEMONICS,
    DIRECTIVES,
    get_instruction_info,
    get_directive_info,
)
from regmach_sdk.errors import LexicalError, SourceLocation


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Categories of lexical elements in register machine assembly."""

    IDENTIFIER = auto()    # Label names
    NUMBER = auto()        # Decimal literal
    OPERATOR = auto()      # + - * ( )
    LABEL_MARKER = auto()  # :
    MNEMONIC = auto()      # Instruction name
    DIRECTIVE = auto()     # #ORG, #TIMES, #DV
    LINE = auto()          # Line boundary
    COMMA = auto()         # ,


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    Represents a single token from the source code.

    Attributes:
        type: The TokenType classification
        value: Name for identifiers, int for numbers/mnemonics/directives/lines,
               the operator character for operators, None otherwise
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source file
    """
    type: TokenType
    value: str | int | None
    line: int
    column: int
    filename: str = "<input>"

    def __repr__(self) -> str:
        if self.value is not None:
            return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)

    @property
    def text(self) -> str:
        """Source spelling of the token, used in error messages."""
        if self.type == TokenType.MNEMONIC:
            return get_instruction_info(self.value).name
        if self.type == TokenType.DIRECTIVE:
            return "#" + get_directive_info(self.value).name
        if self.type == TokenType.LABEL_MARKER:
            return ":"
        if self.type == TokenType.COMMA:
            return ","
        if self.type == TokenType.LINE:
            return "end of line"
        return str(self.value)


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes register machine assembly source code.

    Usage:
        lexer = Lexer(source_text, filename)
        tokens = list(lexer.tokenize())

    Attributes:
        source: The normalized (upper-cased, newline-terminated) source
        filename: Name of the source file (for error reporting)
    """

    LETTERS = string.ascii_uppercase
    DIGITS = string.digits
    IDENT_CHARS = string.ascii_uppercase + string.digits

    OPERATORS = "+-*()"
    # Newline is a token; every other whitespace character is skipped
    LINE_BREAK = "\n"

    def __init__(self, source: str, filename: str = "<input>"):
        """
        Initialize the lexer with source code.

        Args:
            source: The assembly source code to tokenize
            filename: Name of the source file (for error messages)
        """
        self.source = source.upper() + "\n"
        self.filename = filename

        self._pos = 0
        self._line = 1
        self._column = 1

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens from the source code.

        Yields:
            Token objects representing each lexical element

        Raises:
            LexicalError: If a character cannot be classified or a
                directive name is unknown
        """
        yield self._make_token(TokenType.LINE, self._line)

        while not self._at_end():
            char = self._peek()

            if char.isspace() and char != self.LINE_BREAK:
                self._advance()
                continue

            if char == ";":
                self._skip_comment()
                continue

            yield self._scan_token()

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self) -> str:
        """Current character, or empty string past the end of source."""
        if self._at_end():
            return ""
        return self.source[self._pos]

    def _advance(self) -> str:
        """Consume and return the current character, tracking line/column."""
        if self._at_end():
            raise self._error("unexpected end of input")

        char = self.source[self._pos]
        self._pos += 1

        if char == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1

        return char

    def _collect_while(self, charset: str) -> str:
        """Consume the longest run of characters drawn from charset."""
        chars = []
        # '' is a member of every string, so check for end of input first
        while self._peek() and self._peek() in charset:
            chars.append(self._advance())
        return "".join(chars)

    # =========================================================================
    # Token Creation
    # =========================================================================

    def _make_token(
        self,
        token_type: TokenType,
        value: str | int | None,
        start_column: Optional[int] = None,
    ) -> Token:
        return Token(
            type=token_type,
            value=value,
            line=self._line,
            column=start_column or self._column,
            filename=self.filename,
        )

    def _error(self, message: str, column: Optional[int] = None) -> LexicalError:
        location = SourceLocation(self.filename, self._line, column or self._column)
        return LexicalError(message, location, stage="lexing")

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _skip_comment(self) -> None:
        """Skip from ';' up to, not including, the next newline."""
        while self._peek() and self._peek() != "\n":
            self._advance()

    def _scan_token(self) -> Token:
        start_column = self._column
        char = self._advance()

        if char == "\n":
            return self._make_token(TokenType.LINE, self._line)

        if char in self.DIGITS:
            digits = char + self._collect_while(self.DIGITS)
            return self._make_token(TokenType.NUMBER, int(digits), start_column)

        if char in self.OPERATORS:
            return self._make_token(TokenType.OPERATOR, char, start_column)

        if char in self.LETTERS:
            return self._scan_word(char, start_column)

        if char == ":":
            return self._make_token(TokenType.LABEL_MARKER, None, start_column)

        if char == "#":
            return self._scan_directive(start_column)

        if char == ",":
            return self._make_token(TokenType.COMMA, None, start_column)

        raise self._error(f"unexpected character {char!r}", start_column)

    def _scan_word(self, first: str, start_column: int) -> Token:
        """Scan a mnemonic or identifier."""
        name = first + self._collect_while(self.IDENT_CHARS)
        opcode = MNEMONICS.get(name)
        if opcode is None:
            return self._make_token(TokenType.IDENTIFIER, name, start_column)
        return self._make_token(TokenType.MNEMONIC, opcode, start_column)

    def _scan_directive(self, start_column: int) -> Token:
        """Scan the letters after '#' and look them up."""
        name = self._collect_while(self.LETTERS)
        index = DIRECTIVES.get(name)
        if index is None:
            raise self._error(
                f"no such compiler directive '#{name}' at line {self._line}",
                start_column,
            )
        return self._make_token(TokenType.DIRECTIVE, index, start_column)


def tokenize(source: str, filename: str = "<input>") -> list[Token]:
    """Tokenize a complete source text into a list."""
    return list(Lexer(source, filename).tokenize())
