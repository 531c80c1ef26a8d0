"""
rmasm - Register Machine Assembler Command-Line Interface
=========================================================

This module implements the command-line interface for the register machine
assembler.

Usage Examples
--------------
Basic assembly:
    $ rmasm count.asm

With output file and format:
    $ rmasm count.asm -o count.txt -f text

Generate all output files:
    $ rmasm count.asm -o count.json -l count.lst -s count.sym

Keep a RAM snapshot between sessions:
    $ rmasm count.asm --ram ram.json

Verbose mode:
    $ rmasm -v count.asm
"""

from pathlib import Path
from typing import Optional
import logging

import click

from regmach_sdk import __version__
from regmach_sdk.assembler import Assembler
from regmach_sdk.cli.errors import handle_cli_exception
from regmach_sdk.config import AssemblerConfig
from regmach_sdk.errors import MachineError
from regmach_sdk.machine import Ram, load_snapshot, save_snapshot

logger = logging.getLogger(__name__)

OUTPUT_SUFFIXES = {"json": ".json", "text": ".txt", "words": ".words"}


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output image file (default: input with a suffix for the format)",
)
@click.option(
    "-f", "--format", "output_format",
    type=click.Choice(["json", "text", "words"], case_sensitive=False),
    default="json",
    show_default=True,
    help="Image format: JSON list, 'address: value' lines, or one cell per line",
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate listing file",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate symbol file",
)
@click.option(
    "--capacity",
    type=click.IntRange(min=1),
    default=None,
    help="Number of memory cells (default: $REGMACH_CAPACITY or 1000)",
)
@click.option(
    "--strict-labels",
    is_flag=True,
    help="Reject labels declared more than once",
)
@click.option(
    "--ram",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Load the image into a RAM snapshot file (created if missing)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="rmasm")
def main(
    input_file: Path,
    output: Optional[Path],
    output_format: str,
    listing: Optional[Path],
    symbols: Optional[Path],
    capacity: Optional[int],
    strict_labels: bool,
    ram: Optional[Path],
    verbose: bool,
) -> None:
    """
    Assemble register machine source code into a memory image.

    INPUT_FILE is the assembly source file (.asm) to assemble.

    \b
    Examples:
        rmasm count.asm                 # Outputs count.json
        rmasm count.asm -f text         # Outputs count.txt
        rmasm count.asm -l count.lst    # Also write a listing
        rmasm count.asm --ram ram.json  # Also commit into RAM
    """
    setup_logging(verbose)

    output_format = output_format.lower()
    output_file = output or input_file.with_suffix(OUTPUT_SUFFIXES[output_format])

    try:
        asm = Assembler(
            capacity=capacity,
            strict_labels=strict_labels or None,
            verbose=verbose,
            config=AssemblerConfig.from_env(),
        )

        asm.assemble_file(input_file)
        asm.write_image(output_file, output_format)

        # Write optional auxiliary files
        if listing:
            asm.write_listing(listing)

        if symbols:
            asm.write_symbols(symbols)

        if ram:
            commit_to_ram(asm, ram)
            if verbose:
                click.echo(f"Committed image to RAM snapshot {ram}")

        # Print summary
        if verbose:
            click.echo(
                f"Assembly complete: {asm.get_word_count()} words in "
                f"{asm.capacity} cells, {len(asm.get_symbols())} labels"
            )

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


def commit_to_ram(asm: Assembler, path: Path) -> Ram:
    """
    Load the assembled image into the RAM stored at path and save it back.

    A missing snapshot starts as a zeroed RAM of the assembler's capacity.

    Raises:
        MachineError: If the snapshot is invalid or smaller than the image
    """
    if path.exists():
        ram = load_snapshot(path)
        logger.info(f"Loaded RAM snapshot {path} ({ram.size} cells)")
    else:
        ram = Ram(asm.capacity)

    if ram.size < asm.capacity:
        raise MachineError(
            f"RAM snapshot {path} holds {ram.size} cells, image needs {asm.capacity}"
        )

    asm.load_into(ram)
    save_snapshot(ram, path)
    return ram


if __name__ == "__main__":
    main()
