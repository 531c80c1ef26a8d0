"""
Register Machine SDK Command-Line Interface
===========================================

This package provides the command-line tools for the SDK:

- **rmasm**: register machine assembler

Each tool is a Click application with built-in help and consistent
exit codes (see ``regmach_sdk.cli.errors``).
"""

__all__ = ["rmasm"]
