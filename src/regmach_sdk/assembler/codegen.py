"""
Register Machine Code Generator
===============================

This module turns parsed statements into a memory image for the register
machine. It implements a two-pass process over a single walk of the
statement list.

Pass 1 (Emission)
-----------------
- Walk the statements in order, tracking the source line
- Record each label's address as the current origin
- Apply #ORG (move the origin) and #TIMES (repeat the next statement)
- Emit the base word of each instruction (opcode * 1000) and a zero for
  each #DV cell
- Record every argument as a deferred relocation, even plain literals

Pass 2 (Relocation)
-------------------
- Evaluate each deferred argument against the complete label table
- Merge the result into its cell with bitwise OR

Word Packing
------------
Instruction words are ``opcode * 1000 | operand``. The OR only yields the
intended ``opcode * 1000 + operand`` while the operand stays within
0..999, so instruction operands outside that range are rejected with
OperandRangeError. #DV cells start at zero and accept any value.

All state for one run lives in an AssemblySession, so a CodeGenerator can
be reused and every generate() call starts from a zeroed memory image.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

from regmach_sdk.errors import (
    AssemblerError,
    CapacityError,
    DirectiveError,
    DuplicateSymbolError,
    OperandRangeError,
    SourceLocation,
)
from regmach_sdk.assembler.parser import (
    Statement,
    LineMarker,
    LabelDef,
    Instruction,
    Directive,
    UnevaluatedExpression,
)
from regmach_sdk.assembler.expressions import ExpressionEvaluator
from regmach_sdk.cpu import (
    DEFAULT_CAPACITY,
    OPCODE_MULTIPLIER,
    DirectiveKind,
    decode_word,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Session State
# =============================================================================

@dataclass
class Relocation:
    """
    Deferred relocation entry.

    Attributes:
        address: Memory cell to patch
        expression: Argument to evaluate once all labels are known
        location: Statement that recorded the entry
        is_operand: True for instruction operands (range checked),
                    False for #DV cells
    """
    address: int
    expression: UnevaluatedExpression
    location: SourceLocation
    is_operand: bool = True


@dataclass
class EmittedWord:
    """One written cell, kept for the listing."""
    address: int
    location: SourceLocation
    text: str


@dataclass
class AssemblySession:
    """
    Mutable state of one code generation run.

    Attributes:
        memory: Memory image, one int per cell
        origin: Write cursor (next cell to write)
        labels: Label name -> address
        label_locations: Label name -> where it was (last) declared
        relocations: Deferred relocations in recording order
        line: Source line currently being processed
        filename: Source filename for error locations
    """
    memory: list[int]
    origin: int = 0
    labels: dict[str, int] = field(default_factory=dict)
    label_locations: dict[str, SourceLocation] = field(default_factory=dict)
    relocations: list[Relocation] = field(default_factory=list)
    emitted: list[EmittedWord] = field(default_factory=list)
    line: int = 0
    filename: str = "<input>"

    @classmethod
    def fresh(cls, capacity: int, filename: str = "<input>") -> "AssemblySession":
        """Create a session with a zero-initialized memory image."""
        return cls(memory=[0] * capacity, filename=filename)

    @property
    def capacity(self) -> int:
        return len(self.memory)

    def location(self) -> SourceLocation:
        """Location of the line currently being processed."""
        return SourceLocation(self.filename, self.line)

    def emit(self, value: int, location: SourceLocation, text: str) -> int:
        """
        Write value at the origin and advance the origin by one.

        Returns:
            The address written

        Raises:
            CapacityError: If the origin is past the last cell
        """
        address = self.origin
        if address >= self.capacity:
            raise CapacityError(address, self.capacity, self.location())

        logger.debug(f"To {address} write {value}")
        self.memory[address] = value
        self.emitted.append(EmittedWord(address, location, text))
        self.origin += 1
        return address


# =============================================================================
# Code Generator
# =============================================================================

class CodeGenerator:
    """
    Generates a register machine memory image from parsed statements.

    Usage:
        codegen = CodeGenerator(capacity=1000)
        memory = codegen.generate(statements)
        labels = codegen.get_symbols()
    """

    # Deepest chain of #TIMES directives each repeating the next
    MAX_TIMES_DEPTH = 100

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        strict_labels: bool = False,
        filename: str = "<input>",
    ):
        """
        Initialize the code generator.

        Args:
            capacity: Number of memory cells in the image
            strict_labels: If True, declaring a label twice raises
                DuplicateSymbolError instead of replacing the address
            filename: Source filename for error locations
        """
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")

        self._capacity = capacity
        self._strict_labels = strict_labels
        self._filename = filename
        self._statements: list[Statement] = []
        self._times_depth = 0
        self._session: Optional[AssemblySession] = None

    # =========================================================================
    # Public Interface
    # =========================================================================

    @property
    def capacity(self) -> int:
        return self._capacity

    def generate(self, statements: list[Statement]) -> list[int]:
        """
        Generate the memory image from parsed statements.

        Args:
            statements: Parser output, in source order

        Returns:
            Memory image with exactly `capacity` cells

        Raises:
            AssemblerError: On the first failure in either pass; no image
                is produced in that case
        """
        session = AssemblySession.fresh(self._capacity, self._filename)
        self._session = session
        self._times_depth = 0
        self._statements = statements

        try:
            try:
                index = 0
                while index < len(statements):
                    index = self._emit_statement(index)
            except AssemblerError as e:
                raise e.attach("assembling", session.location())

            self._relocate()
        except AssemblerError:
            # A failed run leaves no image behind
            self._session = None
            raise

        logger.info(
            f"Assembled {len(session.emitted)} words, "
            f"{len(session.labels)} labels, {len(session.relocations)} relocations"
        )
        return list(session.memory)

    def get_memory(self) -> list[int]:
        """Return the memory image of the last run (empty before any run)."""
        return list(self._session.memory) if self._session else []

    def get_symbols(self) -> dict[str, int]:
        """Return the label table of the last run."""
        return dict(self._session.labels) if self._session else {}

    def get_word_count(self) -> int:
        """Number of cell writes made by the last run, repeats included."""
        return len(self._session.emitted) if self._session else 0

    def get_relocations(self) -> list[Relocation]:
        """Return the relocations recorded by the last run."""
        return list(self._session.relocations) if self._session else []

    def get_listing(self) -> str:
        """
        Format the last run as a listing.

        Each written cell gets one line with its address, final word, the
        word decoded as an instruction, any labels pointing at it, and the
        statement that produced it.
        """
        if self._session is None:
            return ""

        session = self._session
        width = len(str(session.capacity - 1))
        labels_at: dict[int, list[str]] = {}
        for name, address in session.labels.items():
            labels_at.setdefault(address, []).append(name)

        lines = []
        for word in session.emitted:
            names = labels_at.get(word.address, [])
            label_text = " ".join(f"{name}:" for name in sorted(names))
            value = session.memory[word.address]
            lines.append(
                f"{word.address:0{width}d}  {value:>6}  {_decode_text(value):<10} "
                f"{label_text:<12} {word.text}".rstrip()
            )
        return "\n".join(lines)

    # =========================================================================
    # Pass 1: Emission
    # =========================================================================

    def _emit_statement(self, index: int) -> int:
        """
        Process the statement at index.

        Returns:
            Index of the next statement to process
        """
        stmt = self._statements[index]
        session = self._session

        if isinstance(stmt, LineMarker):
            session.line = stmt.line

        elif isinstance(stmt, LabelDef):
            self._define_label(stmt)

        elif isinstance(stmt, Directive):
            if stmt.kind == DirectiveKind.TIMES:
                return self._repeat_next(index, stmt)
            self._emit_directive(stmt)

        elif isinstance(stmt, Instruction):
            self._emit_instruction(stmt)

        return index + 1

    def _define_label(self, label: LabelDef) -> None:
        session = self._session
        if self._strict_labels and label.name in session.labels:
            raise DuplicateSymbolError(
                label.name,
                location=label.location,
                original_location=session.label_locations[label.name],
            )

        if label.name in session.labels:
            logger.warning(
                f"{label.location}: label '{label.name}' redefined, "
                f"{session.labels[label.name]} -> {session.origin}"
            )

        logger.debug(f"Label: {label.name} = {session.origin}")
        session.labels[label.name] = session.origin
        session.label_locations[label.name] = label.location

    def _emit_instruction(self, inst: Instruction) -> None:
        session = self._session
        info = inst.info

        if info.arg_count:
            argument = inst.arguments[0]
            session.relocations.append(
                Relocation(session.origin, argument, inst.location, is_operand=True)
            )
            text = f"{info.name} {argument}"
        else:
            text = info.name

        session.emit(info.base_word, inst.location, text)

    def _emit_directive(self, directive: Directive) -> None:
        session = self._session
        argument = directive.arguments[0]

        if directive.kind == DirectiveKind.ORG:
            session.origin = self._literal_argument(directive)
            logger.debug(f"Origin set to {session.origin}")

        elif directive.kind == DirectiveKind.DV:
            session.relocations.append(
                Relocation(session.origin, argument, directive.location, is_operand=False)
            )
            session.emit(0, directive.location, f"#DV {argument}")

    def _repeat_next(self, index: int, directive: Directive) -> int:
        """
        Handle #TIMES: process the next statement `count` times.

        Line markers between the directive and the statement it repeats
        are processed once and are not repeated. Whatever the repeated
        statement does internally, processing resumes after it.
        """
        count = self._literal_argument(directive)

        target = index + 1
        while target < len(self._statements) and isinstance(self._statements[target], LineMarker):
            self._session.line = self._statements[target].line
            target += 1

        if target >= len(self._statements):
            raise DirectiveError("#TIMES has no statement to repeat", directive.location)

        if self._times_depth >= self.MAX_TIMES_DEPTH:
            raise DirectiveError(
                f"#TIMES nested too deeply (limit {self.MAX_TIMES_DEPTH})",
                directive.location,
            )

        logger.debug(f"Repeating statement {target} {count} times")
        self._times_depth += 1
        try:
            for _ in range(count):
                self._emit_statement(target)
        finally:
            self._times_depth -= 1

        return target + 1

    def _literal_argument(self, directive: Directive) -> int:
        """Return a directive argument that must be a plain number."""
        argument = directive.arguments[0]
        value = argument.as_literal()
        if value is None:
            raise DirectiveError(
                f"#{directive.info.name} argument must be a literal number, got '{argument}'",
                directive.location,
            )
        return value

    # =========================================================================
    # Pass 2: Relocation
    # =========================================================================

    def _relocate(self) -> None:
        """Evaluate every deferred argument and merge it into memory."""
        session = self._session
        evaluator = ExpressionEvaluator(session.labels)

        for reloc in session.relocations:
            session.line = reloc.location.line
            try:
                value = evaluator.evaluate(reloc.expression.tokens)
                if reloc.is_operand and not 0 <= value < OPCODE_MULTIPLIER:
                    raise OperandRangeError(value, OPCODE_MULTIPLIER, reloc.location)
            except AssemblerError as e:
                raise e.attach("relocating", reloc.location)

            logger.debug(f"Relocate {reloc.address}: {reloc.expression} = {value}")
            session.memory[reloc.address] |= value


def _decode_text(word: int) -> str:
    """Render a packed word as 'MNEMONIC operand', or '' for data."""
    info, operand = decode_word(word)
    if info is None:
        return ""
    if info.arg_count == 0:
        return info.name if operand == 0 else ""
    return f"{info.name} {operand}"
