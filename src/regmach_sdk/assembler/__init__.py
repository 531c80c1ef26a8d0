"""
Register Machine Assembler
==========================

This package turns register machine assembly source into a memory image:
a fixed-size list of integer cells that a register machine can load and
run.

Main Components
---------------
- **Assembler**: Main class that orchestrates the assembly process
- **Lexer**: Tokenizes source into tokens, with explicit line markers
- **Parser**: Groups tokens into statements (labels, instructions, directives)
- **CodeGenerator**: Emits words and resolves deferred arguments
- **ExpressionEvaluator**: Evaluates argument arithmetic against labels

Assembly Process
----------------
1. **Parsing (Lexer + Parser)**:
   - Upper-case the source and tokenize it
   - Group tokens into statements; arguments stay unevaluated

2. **Code Generation (CodeGenerator)** (two-pass):
   - Pass 1: Record labels, apply #ORG/#TIMES, emit base words
   - Pass 2: Evaluate every argument and OR it into its cell

Example Usage
-------------
>>> from regmach_sdk.assembler import assemble
>>> memory = assemble("TAKE 5\\nHLT")
>>> memory[:3]
[1005, 10000, 0]

Source Language
---------------
- Instructions: TAKE ADD SUB SAVE JMP TST INC DEC NULL (one operand), HLT
- Labels: ``name:`` records the current address
- Directives: #ORG n, #TIMES n, #DV expr
- Arguments: + - * and parentheses over numbers and labels
- Comments: ``;`` to end of line
"""

from regmach_sdk.assembler.assembler import Assembler, assemble, assemble_file
from regmach_sdk.assembler.lexer import Lexer, Token, TokenType, tokenize
from regmach_sdk.assembler.parser import (
    Parser,
    Statement,
    LineMarker,
    LabelDef,
    Instruction,
    Directive,
    UnevaluatedExpression,
    parse_source,
)
from regmach_sdk.assembler.codegen import CodeGenerator, Relocation
from regmach_sdk.assembler.expressions import ExpressionEvaluator, evaluate_expression

__all__ = [
    # Main class and functions
    "Assembler",
    "assemble",
    "assemble_file",
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    "tokenize",
    # Parser
    "Parser",
    "Statement",
    "LineMarker",
    "LabelDef",
    "Instruction",
    "Directive",
    "UnevaluatedExpression",
    "parse_source",
    # Code generator
    "CodeGenerator",
    "Relocation",
    # Expressions
    "ExpressionEvaluator",
    "evaluate_expression",
]
