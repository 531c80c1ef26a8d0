"""
Register Machine Instruction Set
================================

Static descriptions of the decimal register machine's instruction set and
the assembler directives. Both tables are closed: source text can only use
the names listed here.

Word Format
-----------
A memory word packs an opcode and an operand in decimal:

    word = opcode * 1000 + operand      (0 <= operand < 1000)

so ``TAKE 5`` (opcode 1) assembles to 1005 and ``HLT`` (opcode 10) to 10000.

Instructions
------------
| Opcode | Mnemonic | Args | Meaning                         |
|--------|----------|------|---------------------------------|
| 1      | TAKE     | 1    | Load cell into accumulator      |
| 2      | ADD      | 1    | Add cell to accumulator         |
| 3      | SUB      | 1    | Subtract cell from accumulator  |
| 4      | SAVE     | 1    | Store accumulator into cell     |
| 5      | JMP      | 1    | Jump to address                 |
| 6      | TST      | 1    | Skip next word if cell is zero  |
| 7      | INC      | 1    | Increment cell                  |
| 8      | DEC      | 1    | Decrement cell                  |
| 9      | NULL     | 1    | Clear cell                      |
| 10     | HLT      | 0    | Stop the machine                |

Opcode 0 is a placeholder ("~") so that table index and opcode coincide.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional


# Multiplier separating the opcode from the operand in a packed word
OPCODE_MULTIPLIER = 1000

# Default number of memory cells
DEFAULT_CAPACITY = 1000


@dataclass(frozen=True)
class InstructionInfo:
    """
    Descriptor for one machine instruction.

    Attributes:
        name: Mnemonic as written in source (uppercase)
        opcode: Numeric opcode (equal to its table index)
        arg_count: Number of arguments the instruction takes (0 or 1)
    """
    name: str
    opcode: int
    arg_count: int

    @property
    def base_word(self) -> int:
        """Packed word for this instruction with a zero operand."""
        return self.opcode * OPCODE_MULTIPLIER


class DirectiveKind(IntEnum):
    """Assembler directives, valued by their table index."""
    ORG = 0      # set-origin
    TIMES = 1    # repeat-next
    DV = 2       # declare-value


@dataclass(frozen=True)
class DirectiveInfo:
    """
    Descriptor for one assembler directive.

    Attributes:
        kind: Directive identity
        arg_count: Number of arguments the directive takes
    """
    kind: DirectiveKind
    arg_count: int

    @property
    def name(self) -> str:
        return self.kind.name

    @property
    def index(self) -> int:
        return int(self.kind)


# =============================================================================
# Tables
# =============================================================================

INSTRUCTION_TABLE: tuple[InstructionInfo, ...] = (
    InstructionInfo("~", 0, 0),
    InstructionInfo("TAKE", 1, 1),
    InstructionInfo("ADD", 2, 1),
    InstructionInfo("SUB", 3, 1),
    InstructionInfo("SAVE", 4, 1),
    InstructionInfo("JMP", 5, 1),
    InstructionInfo("TST", 6, 1),
    InstructionInfo("INC", 7, 1),
    InstructionInfo("DEC", 8, 1),
    InstructionInfo("NULL", 9, 1),
    InstructionInfo("HLT", 10, 0),
)

DIRECTIVE_TABLE: tuple[DirectiveInfo, ...] = (
    DirectiveInfo(DirectiveKind.ORG, 1),
    DirectiveInfo(DirectiveKind.TIMES, 1),
    DirectiveInfo(DirectiveKind.DV, 1),
)

# Name -> opcode, for the tokenizer (the "~" placeholder is not a mnemonic)
MNEMONICS: dict[str, int] = {info.name: info.opcode for info in INSTRUCTION_TABLE[1:]}

# Name -> directive index, for the tokenizer
DIRECTIVES: dict[str, int] = {info.name: info.index for info in DIRECTIVE_TABLE}


# =============================================================================
# Lookup Functions
# =============================================================================

def get_instruction_info(opcode: int) -> InstructionInfo:
    """Return the descriptor for an opcode (raises IndexError if unknown)."""
    return INSTRUCTION_TABLE[opcode]


def get_directive_info(index: int) -> DirectiveInfo:
    """Return the descriptor for a directive index."""
    return DIRECTIVE_TABLE[index]


def lookup_mnemonic(name: str) -> Optional[int]:
    """Return the opcode for a mnemonic, or None if it is not one."""
    return MNEMONICS.get(name.upper())


def lookup_directive(name: str) -> Optional[int]:
    """Return the table index for a directive name, or None."""
    return DIRECTIVES.get(name.upper())


def decode_word(word: int) -> tuple[Optional[InstructionInfo], int]:
    """
    Split a packed memory word into instruction and operand.

    Returns (None, word) when the opcode part does not name an
    instruction, which is the case for plain data cells.

    >>> info, operand = decode_word(1005)
    >>> info.name, operand
    ('TAKE', 5)
    """
    if word < 0:
        return None, word
    opcode, operand = divmod(word, OPCODE_MULTIPLIER)
    if 0 < opcode < len(INSTRUCTION_TABLE):
        return INSTRUCTION_TABLE[opcode], operand
    return None, word
