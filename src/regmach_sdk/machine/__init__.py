"""
Register Machine Collaborators
==============================

Memory sinks that receive assembled images, and snapshot persistence for
keeping RAM contents between sessions.

Usage:
    from regmach_sdk.machine import Ram, save_snapshot

    ram = Ram(1000)
    assembler.load_into(ram)
    save_snapshot(ram, "ram.json")
"""

from regmach_sdk.machine.memory import (
    MemorySink,
    Ram,
    save_snapshot,
    load_snapshot,
)

__all__ = [
    "MemorySink",
    "Ram",
    "save_snapshot",
    "load_snapshot",
]
