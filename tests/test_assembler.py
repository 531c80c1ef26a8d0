# =============================================================================
# test_assembler.py - Full Assembler Integration Tests
# =============================================================================
# End-to-end tests for the register machine assembler.
# These tests verify the full pipeline from source code to memory image.
#
# Test coverage includes:
#   - Complete program assembly
#   - Error reporting with stage and line numbers
#   - Image, listing and symbol file output
#   - Committing images into memory sinks
#   - Configuration
# =============================================================================

import json

import pytest
from regmach_sdk import (
    Assembler,
    AssemblerConfig,
    Ram,
    assemble,
    assemble_file,
)
from regmach_sdk.errors import (
    AssemblerError,
    AssemblySyntaxError,
    CapacityError,
    DuplicateSymbolError,
    LexicalError,
    RegmachError,
    UndefinedSymbolError,
)


COUNTDOWN = """
; count down from 3, then stop
        TAKE counter
loop:   TST counter
        JMP done
        DEC counter
        JMP loop
done:   HLT
counter: #DV 3
"""


class RecordingSink:
    """Memory sink that records every write."""

    def __init__(self):
        self.writes = []

    def write(self, value, address):
        self.writes.append((value, address))


# =============================================================================
# Full Assembly Pipeline Tests
# =============================================================================

class TestFullPipeline:
    """Test the complete assembly pipeline from source to image."""

    def test_minimal_program(self):
        memory = Assembler().assemble("TAKE 5\nHLT")
        assert memory[:3] == [1005, 10000, 0]
        assert len(memory) == 1000

    def test_complete_program(self):
        memory = Assembler().assemble_string(COUNTDOWN)
        assert memory[:7] == [1006, 6006, 5005, 8006, 5001, 10000, 3]

    def test_symbols(self):
        asm = Assembler()
        asm.assemble_string(COUNTDOWN)
        assert asm.get_symbols() == {"LOOP": 1, "DONE": 5, "COUNTER": 6}

    def test_get_memory_matches_result(self):
        asm = Assembler()
        memory = asm.assemble_string(COUNTDOWN)
        assert asm.get_memory() == memory

    def test_returned_image_is_a_copy(self):
        asm = Assembler()
        memory = asm.assemble_string("HLT")
        memory[0] = 0
        assert asm.get_memory()[0] == 10000

    def test_runs_are_independent(self):
        asm = Assembler()
        asm.assemble_string("#ORG 50\nHLT")
        memory = asm.assemble_string("HLT")
        assert memory[50] == 0

    def test_custom_capacity(self):
        asm = Assembler(capacity=10)
        assert len(asm.assemble_string("HLT")) == 10
        assert asm.capacity == 10

    def test_word_count(self):
        asm = Assembler()
        asm.assemble_string("#TIMES 5\nHLT")
        assert asm.get_word_count() == 5

    def test_convenience_function(self):
        assert assemble("TAKE 5\nHLT")[:2] == [1005, 10000]

    def test_convenience_function_capacity(self):
        assert len(assemble("HLT", capacity=3)) == 3


# =============================================================================
# Error Reporting Tests
# =============================================================================

class TestErrorReporting:
    """Errors name their stage and source line."""

    def test_lexical_error(self):
        with pytest.raises(LexicalError) as exc_info:
            assemble("#FOO 1")
        err = exc_info.value
        assert err.line == 1
        assert str(err).startswith("<input>:1:1: lexing error: no such compiler directive")

    def test_syntax_error(self):
        with pytest.raises(AssemblySyntaxError) as exc_info:
            assemble("HLT\nTAKE")
        assert exc_info.value.line == 2
        assert "parsing error" in str(exc_info.value)

    def test_capacity_error(self):
        with pytest.raises(CapacityError) as exc_info:
            assemble("#ORG 999\nHLT\nHLT")
        assert exc_info.value.line == 3
        assert "assembling error" in str(exc_info.value)
        assert "hint: check #ORG values" in str(exc_info.value)

    def test_symbol_error(self):
        with pytest.raises(UndefinedSymbolError) as exc_info:
            assemble("LOOP: HLT\nJMP LOPP")
        err = exc_info.value
        assert err.line == 2
        assert "relocating error: undefined symbol 'LOPP'" in str(err)
        assert "did you mean 'LOOP'?" in str(err)

    def test_all_errors_share_base(self):
        for source in ["$", "HLT 1", "JMP X", "#ORG 1000\nHLT"]:
            with pytest.raises(AssemblerError):
                assemble(source)

    def test_filename_in_message(self):
        with pytest.raises(AssemblerError) as exc_info:
            Assembler().assemble_string("TAKE @", "count.asm")
        assert str(exc_info.value).startswith("count.asm:1:6:")

    def test_failed_run_clears_result(self):
        asm = Assembler()
        asm.assemble_string("HLT")
        with pytest.raises(AssemblerError):
            asm.assemble_string("JMP NOWHERE")
        with pytest.raises(RegmachError, match="nothing assembled yet"):
            asm.get_memory()
        assert asm.get_symbols() == {}

    def test_nothing_assembled(self):
        with pytest.raises(RegmachError):
            Assembler().get_memory()


# =============================================================================
# File Input and Output Tests
# =============================================================================

class TestFileOutput:
    """Reading sources and writing image, listing and symbol files."""

    def test_assemble_file(self, tmp_path):
        source = tmp_path / "prog.asm"
        source.write_text("TAKE 5\nHLT\n")
        assert assemble_file(source)[:2] == [1005, 10000]

    def test_assemble_file_error_names_file(self, tmp_path):
        source = tmp_path / "bad.asm"
        source.write_text("HLT\nJMP NOWHERE\n")
        with pytest.raises(UndefinedSymbolError) as exc_info:
            Assembler().assemble_file(source)
        assert str(exc_info.value).startswith(f"{source}:2")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            assemble_file(tmp_path / "missing.asm")

    def test_write_json_image(self, tmp_path):
        asm = Assembler()
        asm.assemble_string("TAKE 5\nHLT")
        output = tmp_path / "prog.json"
        asm.write_image(output)
        memory = json.loads(output.read_text())
        assert memory[:2] == [1005, 10000]
        assert len(memory) == 1000

    def test_write_text_image(self, tmp_path):
        asm = Assembler()
        asm.assemble_string("TAKE 5\nHLT\n#ORG 20\n#DV 7")
        output = tmp_path / "prog.txt"
        asm.write_image(output, "text")
        assert output.read_text() == "000: 1005\n001: 10000\n020: 7\n"

    def test_write_words_image(self, tmp_path):
        asm = Assembler(capacity=3)
        asm.assemble_string("TAKE 5\nHLT")
        output = tmp_path / "prog.words"
        asm.write_image(output, "words")
        assert output.read_text() == "1005\n10000\n0\n"

    def test_unknown_format(self):
        asm = Assembler()
        asm.assemble_string("HLT")
        with pytest.raises(ValueError, match="unknown output format"):
            asm.format_image("hex")

    def test_write_symbols(self, tmp_path):
        asm = Assembler()
        asm.assemble_string("#ORG 10\nB: HLT\n#ORG 0\nA: HLT")
        output = tmp_path / "prog.sym"
        asm.write_symbols(output)
        assert output.read_text() == "A = 0\nB = 10\n"

    def test_write_listing(self, tmp_path):
        asm = Assembler()
        asm.assemble_string(COUNTDOWN)
        output = tmp_path / "prog.lst"
        asm.write_listing(output)
        lines = output.read_text().splitlines()
        assert len(lines) == 7
        assert "LOOP:" in lines[1]
        assert "TST 6" in lines[1]


# =============================================================================
# Memory Sink Tests
# =============================================================================

class TestLoadInto:
    """Committing an image writes every cell as (value, address)."""

    def test_every_cell_written(self):
        asm = Assembler(capacity=4)
        asm.assemble_string("TAKE 5\nHLT")
        sink = RecordingSink()
        assert asm.load_into(sink) == 4
        assert sink.writes == [(1005, 0), (10000, 1), (0, 2), (0, 3)]

    def test_load_into_ram(self):
        asm = Assembler()
        asm.assemble_string(COUNTDOWN)
        ram = Ram()
        asm.load_into(ram)
        assert ram.read(6) == 3
        assert ram.get_snapshot_data() == asm.get_memory()

    def test_load_before_assembly(self):
        with pytest.raises(RegmachError):
            Assembler().load_into(RecordingSink())


# =============================================================================
# Configuration Tests
# =============================================================================

class TestConfiguration:
    """Assembler options and AssemblerConfig."""

    def test_strict_labels_option(self):
        with pytest.raises(DuplicateSymbolError):
            Assembler(strict_labels=True).assemble_string("L: HLT\nL: HLT")

    def test_config_object(self):
        config = AssemblerConfig(capacity=8, strict_labels=True, filename="cfg.asm")
        asm = Assembler(config=config)
        assert asm.capacity == 8
        assert asm.strict_labels
        with pytest.raises(DuplicateSymbolError) as exc_info:
            asm.assemble_string("L: HLT\nL: HLT")
        assert str(exc_info.value).startswith("cfg.asm:2")

    def test_arguments_override_config(self):
        config = AssemblerConfig(capacity=8, strict_labels=True)
        asm = Assembler(capacity=20, strict_labels=False, config=config)
        assert asm.capacity == 20
        assert not asm.strict_labels
        assert config.capacity == 8

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            AssemblerConfig(capacity=0)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("REGMACH_CAPACITY", "64")
        monkeypatch.setenv("REGMACH_STRICT_LABELS", "yes")
        config = AssemblerConfig.from_env()
        assert config.capacity == 64
        assert config.strict_labels is True

    def test_from_env_defaults(self, monkeypatch):
        monkeypatch.delenv("REGMACH_CAPACITY", raising=False)
        monkeypatch.delenv("REGMACH_STRICT_LABELS", raising=False)
        config = AssemblerConfig.from_env()
        assert config.capacity == 1000
        assert config.strict_labels is False

    def test_from_env_ignores_invalid(self, monkeypatch, caplog):
        monkeypatch.setenv("REGMACH_CAPACITY", "-3")
        monkeypatch.setenv("REGMACH_STRICT_LABELS", "maybe")
        config = AssemblerConfig.from_env()
        assert config.capacity == 1000
        assert config.strict_labels is False
        assert "REGMACH_CAPACITY" in caplog.text
        assert "REGMACH_STRICT_LABELS" in caplog.text
