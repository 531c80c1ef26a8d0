"""
Register Machine Memory
=======================

The assembler's output is committed cell by cell into a memory sink. Any
object with a ``write(value, address)`` method can receive an image; Ram
is the in-process implementation, and it can be persisted between
sessions as a JSON snapshot.

Snapshot Format
---------------
    {"size": 1000, "cells": [1005, 10000, 0, ...]}

``cells`` holds exactly ``size`` integers.
"""

from pathlib import Path
from typing import Protocol
import json
import logging

from regmach_sdk.cpu import DEFAULT_CAPACITY
from regmach_sdk.errors import MachineError

logger = logging.getLogger(__name__)


class MemorySink(Protocol):
    """Anything that accepts finished words one cell at a time."""

    def write(self, value: int, address: int) -> None:
        ...


class Ram:
    """
    Word-addressed register machine RAM.

    Every cell holds an arbitrary Python int; the machine does not mask
    values to a word size.

    Attributes:
        size: Number of cells
    """

    def __init__(self, size: int = DEFAULT_CAPACITY):
        """
        Initialize RAM with every cell zeroed.

        Args:
            size: Number of cells (default: 1000)
        """
        if size <= 0:
            raise MachineError(f"RAM size must be positive, got {size}")
        self.size = size
        self._cells = [0] * size

    def __len__(self) -> int:
        return self.size

    def _check_address(self, address: int) -> None:
        if not 0 <= address < self.size:
            raise MachineError(f"address {address} outside RAM (0..{self.size - 1})")

    def read(self, address: int) -> int:
        """
        Read one cell.

        Raises:
            MachineError: If address is outside the RAM
        """
        self._check_address(address)
        return self._cells[address]

    def write(self, value: int, address: int) -> None:
        """
        Write one cell. Argument order matches the assembler's sink calls.

        Raises:
            MachineError: If address is outside the RAM
        """
        self._check_address(address)
        self._cells[address] = value

    def clear(self) -> None:
        """Zero every cell."""
        self._cells = [0] * self.size

    def load_image(self, image: list[int]) -> int:
        """
        Write a memory image through write(), starting at address 0.

        Returns:
            Number of cells written
        """
        if len(image) > self.size:
            raise MachineError(
                f"image of {len(image)} cells does not fit in RAM of {self.size} cells"
            )
        for address, value in enumerate(image):
            self.write(value, address)
        return len(image)

    def get_snapshot_data(self) -> list[int]:
        """Get RAM state for snapshot."""
        return list(self._cells)

    def apply_snapshot_data(self, data: list[int]) -> int:
        """Restore RAM state from snapshot, resizing to match."""
        if not data:
            raise MachineError("snapshot holds no cells")
        self.size = len(data)
        self._cells = list(data)
        return self.size


# =============================================================================
# Snapshot Persistence
# =============================================================================

def save_snapshot(ram: Ram, path: str | Path) -> None:
    """Persist RAM contents to a JSON snapshot file."""
    payload = {"size": ram.size, "cells": ram.get_snapshot_data()}
    Path(path).write_text(json.dumps(payload) + "\n")
    logger.info(f"Saved {ram.size}-cell RAM snapshot to {path}")


def load_snapshot(path: str | Path) -> Ram:
    """
    Load RAM contents from a JSON snapshot file.

    Raises:
        MachineError: If the file is not a valid snapshot
        FileNotFoundError: If the file does not exist
    """
    text = Path(path).read_text()
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise MachineError(f"{path}: not a RAM snapshot ({e})") from e

    if not isinstance(payload, dict):
        raise MachineError(f"{path}: not a RAM snapshot")

    size = payload.get("size")
    cells = payload.get("cells")
    if not isinstance(size, int) or not isinstance(cells, list):
        raise MachineError(f"{path}: snapshot needs 'size' and 'cells'")
    if len(cells) != size:
        raise MachineError(f"{path}: snapshot declares {size} cells but holds {len(cells)}")
    if not all(isinstance(cell, int) for cell in cells):
        raise MachineError(f"{path}: snapshot cells must be integers")

    ram = Ram(max(size, 1))
    ram.apply_snapshot_data(cells)
    logger.debug(f"Loaded {size}-cell RAM snapshot from {path}")
    return ram
