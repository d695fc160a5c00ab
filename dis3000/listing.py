"""
Listing output for a disassembly.

Text listing, one row per record::

    00:    7f 0a    |   mvi 10, a
    02:    bc 05    |   call l0
    04:    c7       |   hlt
    05:             | l0:
    05:    0c 04    |   addi 4, a

JSON listing: ``{"file", "size", "instructions": [...], "stats"}``, with
``stats`` present only when requested.
"""

from __future__ import annotations
import json
from typing import Any, Dict, List, Optional, Sequence

from .instructions import Instruction
from .stats import BinaryStats

__all__ = ['format_row', 'format_header', 'render_text', 'render_json']


def format_row(ins: Instruction) -> str:
    """Format one record as ``<addr>: <hex bytes> | <mnemonic>``."""
    addr = f"{ins.address:02x}:"
    hex_bytes = ' '.join(f"{b:02x}" for b in ins.to_bytes())
    return f"{addr:6} {hex_bytes:8} | {ins}"


def format_header(name: str, size: int) -> str:
    return f"\nDisassembly of file `{name}` ({size} bytes)\n"


def render_text(instrs: Sequence[Instruction], name: str, size: int,
                stats: bool = False) -> str:
    lines: List[str] = [format_header(name, size)]
    if stats:
        lines.append(str(BinaryStats.from_instructions(instrs)))
    lines.extend(format_row(ins) for ins in instrs)
    return '\n'.join(lines) + '\n'


def render_json(instrs: Sequence[Instruction], name: str, size: int,
                stats: bool = False, indent: Optional[int] = 2) -> str:
    doc: Dict[str, Any] = {
        'file': name,
        'size': size,
        'instructions': [ins.to_dict() for ins in instrs],
    }
    if stats:
        doc['stats'] = BinaryStats.from_instructions(instrs).to_dict()
    return json.dumps(doc, indent=indent)
