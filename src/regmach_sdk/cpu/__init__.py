"""
Register Machine SDK CPU Package
================================

Instruction set definitions shared by the assembler, the listing writer
and the command-line tools.

Usage:
    from regmach_sdk.cpu import (
        InstructionInfo,
        INSTRUCTION_TABLE,
        decode_word,
    )
"""

from regmach_sdk.cpu.instruction_set import (
    # Core types
    InstructionInfo,
    DirectiveInfo,
    DirectiveKind,
    # Constants
    OPCODE_MULTIPLIER,
    DEFAULT_CAPACITY,
    # Tables
    INSTRUCTION_TABLE,
    DIRECTIVE_TABLE,
    MNEMONICS,
    DIRECTIVES,
    # Lookup functions
    get_instruction_info,
    get_directive_info,
    lookup_mnemonic,
    lookup_directive,
    decode_word,
)

__all__ = [
    "InstructionInfo",
    "DirectiveInfo",
    "DirectiveKind",
    "OPCODE_MULTIPLIER",
    "DEFAULT_CAPACITY",
    "INSTRUCTION_TABLE",
    "DIRECTIVE_TABLE",
    "MNEMONICS",
    "DIRECTIVES",
    "get_instruction_info",
    "get_directive_info",
    "lookup_mnemonic",
    "lookup_directive",
    "decode_word",
]
