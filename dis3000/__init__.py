"""
dis3000 - Disassembler for the 3000 8-bit instruction set
==========================================================
Decodes a raw 3000 binary image into a labelled assembly listing.

Architecture:
    ┌──────────┐    ┌────────────┐    ┌───────────┐    ┌───────────┐    ┌─────────┐
    │  Binary  │───>│ Classifier │───>│  Decoder  │───>│  Labels   │───>│ Listing │
    │ (bytes)  │    │ (opcodes)  │    │ (pass 1)  │    │ (pass 2)  │    │ / stats │
    └──────────┘    └────────────┘    └───────────┘    └───────────┘    └─────────┘

    - opcodes.py:      Static 201-entry opcode table + classify()
    - instructions.py: Instr / Jump / Label records, bytes + mnemonic text
    - disassembler.py: Two-pass decode and label insertion
    - stats.py:        Byte / instruction-size breakdown
    - listing.py:      Text and JSON listings
"""

__version__ = "0.2.0"

from .errors import (DisassemblerError, InvalidOpcode, UnexpectedEndOfFile,
                     InvalidJumpTarget, OpcodeTableError)
from .opcodes import Opcode, OpcodeInfo, OPCODES, JUMP_OPCODES, classify
from .instructions import Instruction, Instr, Jump, Label
from .disassembler import Disassembler, LabelResolver, SymbolTable, disassemble
from .stats import BinaryStats
from .listing import render_json, render_text


def disassemble_listing(data: bytes, *, name: str = "stdin", stats: bool = False,
                        output: str = "txt", label_prefix: str = "l",
                        strict_targets: bool = False) -> str:
    """Disassemble a binary and render it as a listing.

    Full pipeline: Classifier -> Decoder -> Label pass -> Listing.

    Args:
        data: The complete binary image.
        name: File name shown in the listing header.
        stats: Include the BinaryStats summary.
        output: 'txt' (default) or 'json'.
        label_prefix: Prefix for generated labels (default 'l' -> l0, l1, ...).
        strict_targets: Raise InvalidJumpTarget for jumps that do not land
            on an instruction boundary instead of logging a warning.
    """
    instrs = Disassembler(label_prefix=label_prefix,
                          strict_targets=strict_targets).disassemble(data)
    if output == 'json':
        return render_json(instrs, name, len(data), stats=stats)
    return render_text(instrs, name, len(data), stats=stats)
