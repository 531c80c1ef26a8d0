# =============================================================================
# test_codegen.py - Code Generator Unit Tests
# =============================================================================
# Tests for the register machine assembler code generator.
#
# Test coverage includes:
#   - Instruction word packing (opcode * 1000 | operand)
#   - Labels, forward references and redefinition
#   - #ORG, #TIMES and #DV directives
#   - Memory capacity limits
#   - Relocation errors and operand range checks
#   - Listing output and logging
#   - Word decoding
# =============================================================================

import logging

import pytest
from regmach_sdk.assembler.codegen import CodeGenerator
from regmach_sdk.assembler.parser import parse_source
from regmach_sdk.cpu import decode_word, lookup_mnemonic, INSTRUCTION_TABLE, MNEMONICS
from regmach_sdk.errors import (
    CapacityError,
    DirectiveError,
    DuplicateSymbolError,
    OperandRangeError,
    UndefinedSymbolError,
)


# =============================================================================
# Helper Functions
# =============================================================================

def generate(source: str, **kwargs) -> list[int]:
    """Parse and generate in one step, returning the memory image."""
    codegen = CodeGenerator(**kwargs)
    return codegen.generate(parse_source(source, "<test>"))


def generator_for(source: str, **kwargs) -> CodeGenerator:
    """Run a generator over source and return it for inspection."""
    codegen = CodeGenerator(**kwargs)
    codegen.generate(parse_source(source, "<test>"))
    return codegen


# =============================================================================
# Instruction Encoding Tests
# =============================================================================

class TestInstructionEncoding:
    """Instruction words are opcode * 1000 | operand."""

    def test_take_and_halt(self):
        memory = generate("TAKE 5\nHLT")
        assert memory[:3] == [1005, 10000, 0]

    @pytest.mark.parametrize("mnemonic,opcode", [
        ("TAKE", 1), ("ADD", 2), ("SUB", 3), ("SAVE", 4), ("JMP", 5),
        ("TST", 6), ("INC", 7), ("DEC", 8), ("NULL", 9),
    ])
    def test_operand_instructions(self, mnemonic, opcode):
        memory = generate(f"{mnemonic} 42")
        assert memory[0] == opcode * 1000 + 42

    def test_largest_operand(self):
        assert generate("ADD 999")[0] == 2999

    def test_operand_expression(self):
        assert generate("TAKE 2 * (3 + 4)")[0] == 1014

    def test_image_length_equals_capacity(self):
        assert len(generate("HLT")) == 1000
        assert len(generate("HLT", capacity=16)) == 16

    def test_untouched_cells_are_zero(self):
        memory = generate("HLT")
        assert memory[1:] == [0] * 999

    def test_empty_program(self):
        assert generate("; nothing\n\n") == [0] * 1000


# =============================================================================
# Label Tests
# =============================================================================

class TestLabels:
    """Labels record the origin at the point of declaration."""

    def test_self_reference(self):
        assert generate("L: JMP L")[0] == 5000

    def test_self_reference_after_org(self):
        memory = generate("#ORG 7\nL: JMP L")
        assert memory[7] == 5007

    def test_forward_reference_in_dv(self):
        memory = generate("#DV L\nL: HLT")
        assert memory[:2] == [1, 10000]

    def test_forward_jump(self):
        memory = generate("JMP END\nHLT\nEND: HLT")
        assert memory[0] == 5002

    def test_label_arithmetic(self):
        memory = generate("TAKE END - START\nSTART: HLT\nEND: HLT")
        assert memory[0] == 1001

    def test_label_on_own_line(self):
        memory = generate("START:\n\n  TAKE START")
        assert memory[0] == 1000

    def test_symbol_table(self):
        codegen = generator_for("START: HLT\n#ORG 20\nDATA: #DV 5")
        assert codegen.get_symbols() == {"START": 0, "DATA": 20}

    def test_later_declaration_wins(self, caplog):
        with caplog.at_level(logging.WARNING, logger="regmach_sdk.assembler.codegen"):
            memory = generate("L: HLT\nL: HLT\nJMP L")
        assert memory[2] == 5001
        assert "label 'L' redefined" in caplog.text

    def test_strict_labels_rejects_duplicate(self):
        with pytest.raises(DuplicateSymbolError) as exc_info:
            generate("L: HLT\nL: HLT", strict_labels=True)
        err = exc_info.value
        assert err.line == 2
        assert err.original_location.line == 1

    def test_undefined_label(self):
        with pytest.raises(UndefinedSymbolError) as exc_info:
            generate("HLT\nJMP NOWHERE")
        err = exc_info.value
        assert err.stage == "relocating"
        assert err.line == 2


# =============================================================================
# Directive Tests
# =============================================================================

class TestOrg:
    """#ORG moves the write cursor."""

    def test_org_places_code(self):
        memory = generate("#ORG 10\nTAKE 1")
        assert memory[10] == 1001
        assert memory[:10] == [0] * 10

    def test_org_to_last_cell(self):
        assert generate("#ORG 999\nHLT")[999] == 10000

    def test_org_past_end_without_write(self):
        """Moving the cursor out of range is only an error once a word is written."""
        assert generate("#ORG 5000") == [0] * 1000

    def test_org_needs_literal(self):
        with pytest.raises(DirectiveError, match="#ORG argument must be a literal number"):
            generate("#ORG 5 + 5")


class TestTimes:
    """#TIMES repeats the next statement."""

    def test_times_repeats_instruction(self):
        memory = generate("#TIMES 3\nINC 9")
        assert memory[:4] == [7009, 7009, 7009, 0]

    def test_times_skips_blank_lines_and_comments(self):
        memory = generate("#TIMES 2\n\n; filler\nHLT")
        assert memory[:3] == [10000, 10000, 0]

    def test_times_zero(self):
        memory = generate("#TIMES 0\nHLT\nTAKE 1")
        assert memory[0] == 1001

    def test_times_data(self):
        memory = generate("#TIMES 4\n#DV 7")
        assert memory[:5] == [7, 7, 7, 7, 0]

    def test_times_repeats_only_next_statement(self):
        memory = generate("#TIMES 2\nDEC 1\nHLT")
        assert memory[:3] == [8001, 8001, 10000]

    def test_nested_times(self):
        """The inner repeat runs once per outer repeat, then once more."""
        memory = generate("#TIMES 2\n#TIMES 2\nHLT")
        assert memory[:6] == [10000] * 5 + [0]

    def test_times_operand_is_label(self):
        memory = generate("#TIMES 2\nJMP END\nEND: HLT")
        assert memory[:3] == [5002, 5002, 10000]

    def test_times_without_statement(self):
        with pytest.raises(DirectiveError, match="#TIMES has no statement to repeat") as exc_info:
            generate("HLT\n#TIMES 2")
        assert exc_info.value.line == 2
        assert exc_info.value.stage == "assembling"

    def test_times_needs_literal(self):
        with pytest.raises(DirectiveError):
            generate("#TIMES N\nHLT\nN: HLT")

    def test_times_chain_within_limit(self):
        depth = CodeGenerator.MAX_TIMES_DEPTH
        memory = generate("#TIMES 1\n" * depth + "HLT")
        assert memory[0] == 10000

    def test_times_chain_too_deep(self):
        depth = CodeGenerator.MAX_TIMES_DEPTH
        with pytest.raises(DirectiveError, match="#TIMES nested too deeply") as exc_info:
            generate("#TIMES 1\n" * 1500 + "HLT")
        err = exc_info.value
        assert err.stage == "assembling"
        assert err.line == depth + 1


class TestDv:
    """#DV declares a data cell."""

    def test_dv_value(self):
        assert generate("#DV 123")[0] == 123

    def test_dv_large_value(self):
        """Data cells are not limited to the operand range."""
        assert generate("#DV 123456")[0] == 123456

    def test_dv_negative_value(self):
        assert generate("#DV 0 - 5")[0] == -5

    def test_dv_advances_cursor(self):
        memory = generate("#DV 1\n#DV 2\nHLT")
        assert memory[:3] == [1, 2, 10000]


# =============================================================================
# Capacity Tests
# =============================================================================

class TestCapacity:
    """Writes past the last cell abort generation."""

    def test_overflow(self):
        with pytest.raises(CapacityError) as exc_info:
            generate("HLT\nHLT\nHLT", capacity=2)
        err = exc_info.value
        assert err.address == 2
        assert err.capacity == 2
        assert err.line == 3

    def test_org_to_capacity_then_write(self):
        with pytest.raises(CapacityError):
            generate("#ORG 1000\nHLT")

    def test_times_overflow(self):
        with pytest.raises(CapacityError) as exc_info:
            generate("#ORG 998\n#TIMES 3\nHLT")
        assert exc_info.value.line == 3

    def test_fill_exactly(self):
        memory = generate("#TIMES 4\nHLT", capacity=4)
        assert memory == [10000] * 4

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            CodeGenerator(capacity=0)


# =============================================================================
# Relocation Tests
# =============================================================================

class TestRelocation:
    """Arguments are evaluated after all labels are known."""

    def test_every_argument_is_deferred(self):
        codegen = generator_for("TAKE 5\n#DV 3\nHLT")
        relocations = codegen.get_relocations()
        assert [r.address for r in relocations] == [0, 1]
        assert [r.is_operand for r in relocations] == [True, False]

    def test_operand_too_large(self):
        with pytest.raises(OperandRangeError) as exc_info:
            generate("TAKE 1000")
        assert exc_info.value.value == 1000
        assert exc_info.value.stage == "relocating"

    def test_negative_operand(self):
        with pytest.raises(OperandRangeError):
            generate("TAKE 0 - 1")

    def test_failed_run_leaves_nothing(self):
        codegen = CodeGenerator()
        with pytest.raises(UndefinedSymbolError):
            codegen.generate(parse_source("L: JMP M"))
        assert codegen.get_memory() == []
        assert codegen.get_symbols() == {}

    def test_generator_reuse_starts_fresh(self):
        codegen = CodeGenerator()
        codegen.generate(parse_source("TAKE 1\nTAKE 2"))
        memory = codegen.generate(parse_source("HLT"))
        assert memory[:2] == [10000, 0]
        assert codegen.get_word_count() == 1


# =============================================================================
# Listing and Logging Tests
# =============================================================================

class TestListing:
    """Listing output."""

    def test_listing_lines(self):
        codegen = generator_for("L: TAKE 5\n#DV 12")
        lines = codegen.get_listing().splitlines()
        assert len(lines) == 2
        assert lines[0].startswith("000")
        assert "1005" in lines[0]
        assert "L:" in lines[0]
        assert lines[0].endswith("TAKE 5")
        assert lines[1].endswith("#DV 12")

    def test_listing_repeats(self):
        codegen = generator_for("#TIMES 3\nHLT")
        assert len(codegen.get_listing().splitlines()) == 3

    def test_listing_before_run(self):
        assert CodeGenerator().get_listing() == ""

    def test_debug_log(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="regmach_sdk.assembler.codegen"):
            generate("L: TAKE 5")
        assert "Label: L = 0" in caplog.text
        assert "To 0 write 1000" in caplog.text


class TestDecodeWord:
    """Packed words split back into instruction and operand."""

    def test_decode_instruction(self):
        info, operand = decode_word(1005)
        assert info.name == "TAKE"
        assert operand == 5

    def test_decode_halt(self):
        info, operand = decode_word(10000)
        assert info.name == "HLT"
        assert operand == 0

    @pytest.mark.parametrize("word", [0, 7, 999, 11000, -5])
    def test_decode_data(self, word):
        info, operand = decode_word(word)
        assert info is None
        assert operand == word

    def test_table_order(self):
        assert [info.name for info in INSTRUCTION_TABLE][1:] == [
            "TAKE", "ADD", "SUB", "SAVE", "JMP", "TST", "INC", "DEC", "NULL", "HLT",
        ]

    def test_placeholder_is_not_a_mnemonic(self):
        assert INSTRUCTION_TABLE[0].name == "~"
        assert "~" not in MNEMONICS
        assert lookup_mnemonic("~") is None
        assert lookup_mnemonic("take") == 1
