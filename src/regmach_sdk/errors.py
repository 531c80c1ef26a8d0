"""
Register Machine SDK Error Hierarchy
====================================

This module defines the exception hierarchy for the entire SDK. All
exceptions inherit from RegmachError, allowing callers to catch every
SDK-related error with a single except clause if desired.

Exception Hierarchy
-------------------
RegmachError (base)
├── AssemblerError (assembler-related)
│   ├── LexicalError - unexpected character or unknown directive
│   ├── AssemblySyntaxError - unexpected token or wrong argument count
│   ├── CapacityError - write cursor ran past the end of memory
│   ├── UndefinedSymbolError - reference to an undefined label
│   ├── DuplicateSymbolError - label defined twice (strict mode only)
│   ├── ExpressionError - malformed arithmetic in an argument
│   │   └── OperandRangeError - operand does not fit beside the opcode
│   └── DirectiveError - misuse of #ORG, #TIMES or #DV
└── MachineError (RAM sink and snapshot handling)

Design Philosophy
-----------------
Each assembler exception records the pipeline stage that raised it
(lexing, parsing, assembling, relocating) and the source location active
at the time. Outer stages fill in whatever an inner stage could not know,
so the final message always names the stage and the line.

Error messages follow this format:
    filename:line: stage error: description
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class RegmachError(Exception):
    """
    Base exception for all Register Machine SDK errors.

        try:
            assembler.assemble_file("program.asm")
        except RegmachError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed, 0 when unknown)
    """
    filename: str
    line: int
    column: int = 0

    def __str__(self) -> str:
        if self.column > 0:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.filename}:{self.line}"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(RegmachError):
    """
    Base exception for all assembler-related errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        stage: Pipeline stage that failed (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        stage: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.stage = stage
        super().__init__(self._format_message())

    @property
    def line(self) -> Optional[int]:
        """Source line of the error, if known."""
        return self.location.line if self.location else None

    def attach(self, stage: str, location: Optional[SourceLocation]) -> "AssemblerError":
        """
        Fill in the stage and location if the raising code did not.

        Called by each pipeline stage before letting an error propagate,
        so the outermost message always carries the line that stage was
        working on. Returns self to allow ``raise err.attach(...)``.
        """
        if self.stage is None:
            self.stage = stage
        if self.location is None:
            self.location = location
        self.args = (self._format_message(),)
        return self

    def _format_message(self) -> str:
        """
        Format the error message with location, stage and hint.

        Example output:
            loop.asm:4: relocating error: undefined symbol 'LOPP'
            hint: did you mean 'LOOP'?
        """
        kind = f"{self.stage} error" if self.stage else "error"
        if self.location:
            parts = [f"{self.location}: {kind}: {self.message}"]
        else:
            parts = [f"{kind}: {self.message}"]

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class LexicalError(AssemblerError):
    """
    The tokenizer met input it cannot classify.

    Examples:
        - A character outside the source vocabulary ('$', '_', '"')
        - A '#' directive name that is not ORG, TIMES or DV
    """
    pass


class AssemblySyntaxError(AssemblerError):
    """
    Token sequence does not form a valid statement.

    Examples:
        - An identifier that is not followed by ':'
        - An operator or number at the start of a statement
        - Wrong number of arguments for an instruction or directive
    """
    pass


class CapacityError(AssemblerError):
    """
    The write cursor moved past the last memory cell.

    The memory image never wraps around; the first write at or beyond
    the capacity aborts code generation.
    """

    def __init__(
        self,
        address: int,
        capacity: int,
        location: Optional[SourceLocation] = None,
    ):
        self.address = address
        self.capacity = capacity
        super().__init__(
            f"cannot write to address {address}: memory holds {capacity} cells",
            location=location,
            hint="check #ORG values and #TIMES counts",
        )


class UndefinedSymbolError(AssemblerError):
    """
    Reference to a label that was never declared.

    Raised during the relocation pass, after every label is known. The
    assembler suggests similarly-named labels to help catch typos.
    """

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        similar_symbols: Optional[list[str]] = None,
    ):
        self.symbol = symbol
        self.similar_symbols = similar_symbols or []

        if not hint and self.similar_symbols:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_symbols[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"undefined symbol '{symbol}'",
            location=location,
            hint=hint,
        )


class DuplicateSymbolError(AssemblerError):
    """
    Label declared more than once.

    Only raised when the assembler runs with ``strict_labels=True``; by
    default a later declaration silently replaces the earlier address.
    """

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
    ):
        self.symbol = symbol
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{symbol}' was first defined at {original_location}"

        super().__init__(
            f"duplicate symbol '{symbol}'",
            location=location,
            hint=hint,
        )


class ExpressionError(AssemblerError):
    """
    Argument tokens do not form valid arithmetic.

    Typical causes:
    - Empty argument
    - Dangling operator ("5 +")
    - Unbalanced parentheses
    - A mnemonic or label marker inside an argument
    """
    pass


class OperandRangeError(ExpressionError):
    """
    Instruction operand does not fit in the operand field.

    Words are packed as ``opcode * 1000 | operand``, which is only
    meaningful for operands from 0 to 999.
    """

    def __init__(
        self,
        value: int,
        limit: int,
        location: Optional[SourceLocation] = None,
    ):
        self.value = value
        self.limit = limit
        super().__init__(
            f"operand {value} out of range 0..{limit - 1}",
            location=location,
        )


class DirectiveError(AssemblerError):
    """
    Error in an assembler directive.

    Examples:
        - #ORG or #TIMES with a symbolic argument (must be a literal)
        - #TIMES as the last statement, with nothing to repeat
    """
    pass


# =============================================================================
# Machine Exceptions
# =============================================================================

class MachineError(RegmachError):
    """
    Error committing or persisting machine memory.

    Raised when:
    - A write targets an address outside the RAM
    - A snapshot file is missing fields or has the wrong size
    """
    pass
