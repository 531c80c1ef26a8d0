"""
Register Machine Assembly Parser
================================

This module implements the structural parser for register machine assembly.
It groups the lexer's token stream into an ordered list of statements that
the code generator walks.

Statement Types
---------------
1. **LineMarker**: Start of a source line (keeps line tracking in order)

2. **LabelDef**: Label definition
   ```asm
   loop:           ; label on its own line
   end: HLT        ; label followed by an instruction
   ```

3. **Instruction**: Machine instruction with its arguments
   ```asm
   TAKE 5
   JMP loop + 2
   HLT
   ```

4. **Directive**: Assembler directive
   ```asm
   #ORG 100        ; set origin
   #TIMES 3        ; repeat the next statement
   #DV counter*2   ; declare a data value
   ```

Arguments
---------
Arguments are comma-separated groups of tokens. A group is never evaluated
by the parser: it is wrapped in an UnevaluatedExpression and only computed
by the expression evaluator during the relocation pass, once every label
address is known. That is what lets an operand be any arithmetic over
labels, including labels declared further down the source.
"""

from dataclasses import dataclass, field
from typing import Optional

from regmach_sdk.cpu import (
    INSTRUCTION_TABLE,
    DIRECTIVE_TABLE,
    DirectiveKind,
    InstructionInfo,
    DirectiveInfo,
)
from regmach_sdk.errors import (
    AssemblerError,
    AssemblySyntaxError,
    SourceLocation,
)
from regmach_sdk.assembler.lexer import Token, TokenType, Lexer


# =============================================================================
# Argument Node
# =============================================================================

@dataclass(frozen=True)
class UnevaluatedExpression:
    """
    Raw argument tokens, evaluated lazily during relocation.

    Attributes:
        tokens: Non-empty token list as written in the source
    """
    tokens: tuple[Token, ...]

    @property
    def location(self) -> SourceLocation:
        return self.tokens[0].location

    def as_literal(self) -> Optional[int]:
        """Return the value if the argument is a single number, else None."""
        if len(self.tokens) == 1 and self.tokens[0].type == TokenType.NUMBER:
            return self.tokens[0].value
        return None

    def __str__(self) -> str:
        return " ".join(tok.text for tok in self.tokens)


# =============================================================================
# Statement Data Classes
# =============================================================================

@dataclass
class Statement:
    """
    Base class for all parsed statements.

    Every statement has a source location for error reporting.
    """
    location: SourceLocation


@dataclass
class LineMarker(Statement):
    """Start of a source line."""
    line: int


@dataclass
class LabelDef(Statement):
    """
    Label definition statement.

    Attributes:
        name: Label name (uppercase)
    """
    name: str


@dataclass
class Instruction(Statement):
    """
    Machine instruction statement.

    Attributes:
        opcode: Index into the instruction table
        arguments: One UnevaluatedExpression per declared argument
    """
    opcode: int
    arguments: list[UnevaluatedExpression] = field(default_factory=list)

    @property
    def info(self) -> InstructionInfo:
        return INSTRUCTION_TABLE[self.opcode]


@dataclass
class Directive(Statement):
    """
    Assembler directive statement.

    Attributes:
        index: Index into the directive table
        arguments: One UnevaluatedExpression per declared argument
    """
    index: int
    arguments: list[UnevaluatedExpression] = field(default_factory=list)

    @property
    def info(self) -> DirectiveInfo:
        return DIRECTIVE_TABLE[self.index]

    @property
    def kind(self) -> DirectiveKind:
        return self.info.kind


# =============================================================================
# Parser Implementation
# =============================================================================

class Parser:
    """
    Parses a register machine token stream into statements.

    Usage:
        tokens = list(Lexer(source, filename).tokenize())
        statements = Parser(tokens, filename).parse()
    """

    def __init__(self, tokens: list[Token], filename: str = "<input>"):
        """
        Initialize the parser.

        Args:
            tokens: List of tokens from the lexer
            filename: Source filename for error reporting
        """
        self._tokens = tokens
        self._filename = filename
        self._pos = 0
        self._line = 0

    def parse(self) -> list[Statement]:
        """
        Parse all tokens into statements.

        Returns:
            List of Statement objects in source order

        Raises:
            AssemblySyntaxError: If the token stream is not valid assembly.
                The error carries the source line being parsed.
        """
        statements: list[Statement] = []

        try:
            while not self._at_end():
                statements.append(self._parse_statement())
        except AssemblerError as e:
            raise e.attach("parsing", self._location())

        return statements

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self._tokens)

    def _current(self) -> Optional[Token]:
        if self._at_end():
            return None
        return self._tokens[self._pos]

    def _advance(self) -> Token:
        token = self._current()
        if token is None:
            raise AssemblySyntaxError("unexpected end of input")
        self._pos += 1
        return token

    def _check(self, *types: TokenType) -> bool:
        token = self._current()
        return token is not None and token.type in types

    def _expect_any_of(self, *types: TokenType) -> Token:
        """Consume the current token if its type is one of types."""
        token = self._current()
        if token is None or token.type not in types:
            expected = " or ".join(t.name.lower().replace("_", " ") for t in types)
            found = token.text if token else "end of input"
            raise AssemblySyntaxError(
                f"expected {expected}, got '{found}'",
                token.location if token else None,
            )
        return self._advance()

    def _location(self) -> SourceLocation:
        return SourceLocation(self._filename, self._line)

    # =========================================================================
    # Statement Parsing
    # =========================================================================

    def _parse_statement(self) -> Statement:
        token = self._expect_any_of(
            TokenType.DIRECTIVE,
            TokenType.MNEMONIC,
            TokenType.IDENTIFIER,
            TokenType.LINE,
        )

        if token.type == TokenType.LINE:
            self._line = token.value
            return LineMarker(location=token.location, line=token.value)

        if token.type == TokenType.IDENTIFIER:
            self._expect_any_of(TokenType.LABEL_MARKER)
            return LabelDef(location=token.location, name=token.value)

        if token.type == TokenType.DIRECTIVE:
            info = DIRECTIVE_TABLE[token.value]
            arguments = self._collect_comma_separated(
                f"directive #{info.name}", info.arg_count
            )
            return Directive(location=token.location, index=token.value, arguments=arguments)

        info = INSTRUCTION_TABLE[token.value]
        arguments = self._collect_comma_separated(
            f"instruction {info.name}", info.arg_count
        )
        return Instruction(location=token.location, opcode=token.value, arguments=arguments)

    def _collect_comma_separated(self, name: str, count: int) -> list[UnevaluatedExpression]:
        """
        Collect argument groups up to the end of the line.

        Tokens accumulate into the current group until a comma closes it
        or a line marker ends the statement. The line marker is left for
        the top-level loop. A trailing non-empty group is closed implicitly.
        """
        groups: list[list[Token]] = []
        buffer: list[Token] = []

        while not self._at_end() and not self._check(TokenType.LINE):
            token = self._advance()
            if token.type == TokenType.COMMA:
                groups.append(buffer)
                buffer = []
            else:
                buffer.append(token)

        if buffer:
            groups.append(buffer)

        if len(groups) != count:
            raise AssemblySyntaxError(
                f"invalid number of arguments for {name} - expected {count} got {len(groups)}",
                self._location(),
            )

        for group in groups:
            if not group:
                raise AssemblySyntaxError(f"empty argument for {name}", self._location())

        return [UnevaluatedExpression(tuple(group)) for group in groups]


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_source(source: str, filename: str = "<input>") -> list[Statement]:
    """
    Tokenize and parse source text in one step.

    Args:
        source: Assembly source code
        filename: Filename for error messages

    Returns:
        List of parsed statements

    Raises:
        LexicalError: If the text cannot be tokenized
        AssemblySyntaxError: If the tokens do not form valid statements
    """
    tokens = list(Lexer(source, filename).tokenize())
    return Parser(tokens, filename).parse()

