"""
Register Machine Assembler - Main Interface
===========================================

This module provides the main Assembler class, the primary interface for
turning register machine source code into a memory image. It coordinates
the lexer, parser and code generator, and writes the results to files.

Example Usage
-------------
>>> from regmach_sdk.assembler import Assembler
>>>
>>> asm = Assembler()
>>> memory = asm.assemble_string('''
...     TAKE counter
... loop:
...     INC counter
...     JMP loop
... counter: #DV 0
... ''')
>>> memory[:4]
[1003, 7003, 5001, 0]
>>> len(memory)
1000

Command-Line Usage
------------------
    $ rmasm program.asm -o program.json -l program.lst -s program.sym

See ``regmach_sdk.cli.rmasm`` for all options.
"""

from dataclasses import replace
from pathlib import Path
from typing import Optional
import json
import logging

from regmach_sdk.assembler.parser import parse_source
from regmach_sdk.assembler.codegen import CodeGenerator
from regmach_sdk.config import AssemblerConfig
from regmach_sdk.errors import RegmachError
from regmach_sdk.machine import MemorySink

logger = logging.getLogger(__name__)


class Assembler:
    """
    Main register machine assembler class.

    Every call to assemble_string() or assemble_file() is an independent
    run starting from a zeroed memory image; the results of the most
    recent successful run are available through the get_* and write_*
    methods.

    Attributes:
        capacity: Number of memory cells in the produced image
        strict_labels: Whether duplicate labels are rejected
    """

    OUTPUT_FORMATS = ("json", "text", "words")

    def __init__(
        self,
        capacity: Optional[int] = None,
        strict_labels: Optional[bool] = None,
        verbose: bool = False,
        config: Optional[AssemblerConfig] = None,
    ):
        """
        Initialize the assembler.

        Args:
            capacity: Number of memory cells (overrides config)
            strict_labels: Reject duplicate labels (overrides config)
            verbose: Print progress messages
            config: Base configuration (default: AssemblerConfig())
        """
        self._config = config or AssemblerConfig()
        if capacity is not None:
            self._config = replace(self._config, capacity=capacity)
        if strict_labels is not None:
            self._config = replace(self._config, strict_labels=strict_labels)

        self._verbose = verbose
        self._memory: Optional[list[int]] = None
        self._codegen: Optional[CodeGenerator] = None

    @property
    def capacity(self) -> int:
        return self._config.capacity

    @property
    def strict_labels(self) -> bool:
        return self._config.strict_labels

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def assemble(self, source: str, filename: Optional[str] = None) -> list[int]:
        """Assemble source code (alias for assemble_string)."""
        return self.assemble_string(source, filename)

    def assemble_string(self, source: str, filename: Optional[str] = None) -> list[int]:
        """
        Assemble source code from a string.

        The assembly pipeline is:
        1. Tokenize and parse source into statements
        2. Emit words and collect labels (pass 1)
        3. Resolve deferred arguments (pass 2)

        Args:
            source: Assembly source code
            filename: Virtual filename for error messages

        Returns:
            Memory image with `capacity` cells

        Raises:
            AssemblerError: If any stage fails
        """
        filename = filename or self._config.filename
        self._memory = None
        self._codegen = None

        statements = parse_source(source, filename)
        if self._verbose:
            print(f"Parsed {len(statements)} statements")

        codegen = CodeGenerator(
            capacity=self._config.capacity,
            strict_labels=self._config.strict_labels,
            filename=filename,
        )
        memory = codegen.generate(statements)

        self._codegen = codegen
        self._memory = memory

        if self._verbose:
            print(f"Generated {self.get_word_count()} words, {len(self.get_symbols())} labels")
        return list(memory)

    def assemble_file(self, filepath: str | Path) -> list[int]:
        """
        Assemble source code from a file.

        Args:
            filepath: Path to assembly source file

        Returns:
            Memory image with `capacity` cells

        Raises:
            AssemblerError: If assembly fails
            FileNotFoundError: If source file not found
        """
        filepath = Path(filepath)

        if self._verbose:
            print(f"Assembling {filepath}...")

        source = filepath.read_text()
        return self.assemble_string(source, str(filepath))

    # =========================================================================
    # Output Methods
    # =========================================================================

    def _require_result(self) -> list[int]:
        if self._memory is None:
            raise RegmachError("nothing assembled yet")
        return self._memory

    def get_memory(self) -> list[int]:
        """Get the memory image of the last successful run."""
        return list(self._require_result())

    def get_symbols(self) -> dict[str, int]:
        """Get the label table (label name -> address)."""
        return self._codegen.get_symbols() if self._codegen else {}

    def get_word_count(self) -> int:
        """Number of cells written by the last run."""
        return self._codegen.get_word_count() if self._codegen else 0

    def get_listing(self) -> str:
        """Get the assembly listing as a string."""
        return self._codegen.get_listing() if self._codegen else ""

    def format_image(self, output_format: str = "json") -> str:
        """
        Render the memory image as text.

        Formats:
            json: JSON list of every cell
            text: "address: value" for each non-zero cell
            words: every cell, one value per line
        """
        memory = self._require_result()

        if output_format == "json":
            return json.dumps(memory)
        if output_format == "text":
            width = len(str(len(memory) - 1))
            return "\n".join(
                f"{address:0{width}d}: {value}"
                for address, value in enumerate(memory)
                if value
            )
        if output_format == "words":
            return "\n".join(str(value) for value in memory)

        raise ValueError(
            f"unknown output format '{output_format}' "
            f"(expected one of {', '.join(self.OUTPUT_FORMATS)})"
        )

    def write_image(self, filepath: str | Path, output_format: str = "json") -> None:
        """Write the memory image to a file in the given format."""
        Path(filepath).write_text(self.format_image(output_format) + "\n")
        logger.info(f"Wrote {output_format} image to {filepath}")

        if self._verbose:
            print(f"Wrote {filepath}")

    def write_listing(self, filepath: str | Path) -> None:
        """Write the assembly listing to a file."""
        Path(filepath).write_text(self.get_listing() + "\n")

        if self._verbose:
            print(f"Wrote listing to {filepath}")

    def write_symbols(self, filepath: str | Path) -> None:
        """
        Write the label table, one "NAME = address" line per label,
        ordered by address.
        """
        symbols = self.get_symbols()
        lines = [
            f"{name} = {address}"
            for name, address in sorted(symbols.items(), key=lambda item: (item[1], item[0]))
        ]
        Path(filepath).write_text("\n".join(lines) + "\n")

        if self._verbose:
            print(f"Wrote symbols to {filepath}")

    def load_into(self, sink: MemorySink) -> int:
        """
        Commit the memory image into a sink, one (value, address) write
        per cell.

        Returns:
            Number of cells written
        """
        memory = self._require_result()
        for address, value in enumerate(memory):
            sink.write(value, address)
        logger.debug(f"Committed {len(memory)} cells to {type(sink).__name__}")
        return len(memory)


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(source: str, filename: str = "<input>", capacity: Optional[int] = None) -> list[int]:
    """
    Convenience function to assemble source code.

    Args:
        source: Assembly source code
        filename: Virtual filename for errors
        capacity: Number of memory cells (default: 1000)

    Returns:
        Memory image

    Raises:
        AssemblerError: If assembly fails
    """
    asm = Assembler(capacity=capacity)
    return asm.assemble_string(source, filename)


def assemble_file(filepath: str | Path, capacity: Optional[int] = None) -> list[int]:
    """
    Convenience function to assemble a file.

    Args:
        filepath: Path to source file
        capacity: Number of memory cells (default: 1000)

    Returns:
        Memory image

    Raises:
        AssemblerError: If assembly fails
    """
    asm = Assembler(capacity=capacity)
    return asm.assemble_file(filepath)
