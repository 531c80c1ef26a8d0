"""
Register Machine SDK - Assembler Toolchain for a Teaching Register Machine
==========================================================================

This package assembles programs for a small decimal register machine.
Memory is a list of integer cells (1000 by default); an instruction word
packs its opcode and operand as ``opcode * 1000 + operand``.

Main Components
---------------
- **assembler**: Two-pass assembler (rmasm)
    Converts assembly source (.asm) into a memory image

- **cpu**: Instruction set tables and word decoding

- **machine**: Memory sinks and RAM snapshot persistence

Quick Start
-----------
Assemble a program:
    >>> from regmach_sdk import Assembler
    >>> asm = Assembler()
    >>> memory = asm.assemble_string("TAKE 5\\nHLT")
    >>> memory[:2]
    [1005, 10000]

Commit it into RAM:
    >>> from regmach_sdk import Ram
    >>> ram = Ram()
    >>> asm.load_into(ram)
    1000

Or use the command-line tool:
    $ rmasm count.asm -o count.json -l count.lst

Version History
---------------
1.0.0 - Initial release with assembler, RAM sink and snapshots
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from regmach_sdk.assembler import Assembler, assemble, assemble_file
from regmach_sdk.config import AssemblerConfig
from regmach_sdk.cpu import decode_word
from regmach_sdk.machine import MemorySink, Ram, save_snapshot, load_snapshot
from regmach_sdk.errors import (
    RegmachError,
    SourceLocation,
    AssemblerError,
    LexicalError,
    AssemblySyntaxError,
    CapacityError,
    UndefinedSymbolError,
    DuplicateSymbolError,
    ExpressionError,
    OperandRangeError,
    DirectiveError,
    MachineError,
)

__all__ = [
    # Version info
    "__version__",
    # Assembler
    "Assembler",
    "AssemblerConfig",
    "assemble",
    "assemble_file",
    "decode_word",
    # Machine
    "MemorySink",
    "Ram",
    "save_snapshot",
    "load_snapshot",
    # Exception hierarchy
    "RegmachError",
    "SourceLocation",
    "AssemblerError",
    "LexicalError",
    "AssemblySyntaxError",
    "CapacityError",
    "UndefinedSymbolError",
    "DuplicateSymbolError",
    "ExpressionError",
    "OperandRangeError",
    "DirectiveError",
    "MachineError",
]
