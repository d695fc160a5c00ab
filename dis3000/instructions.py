"""
Decoded instruction records.

A disassembly is a flat list of three record types, each carrying the
address where it occurs in the image:

    Instr  : any non-jump instruction: opcode + 0..2 raw operand bytes
    Jump   : jump/call: opcode + raw target byte + the label it resolved to
    Label  : zero-length marker inserted by the disassembler at a jump target

``str(record)`` gives the mnemonic text used in listings, e.g.::

    Instr(0x00, Opcode.MVI_A, (10,))   ->  "  mvi 10, a"
    Jump(0x02, Opcode.CALL, 5, "l0")   ->  "  call l0"
    Label(0x05, "l0")                  ->  "l0:"
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Tuple

from .opcodes import Opcode, OpcodeInfo, OPCODES

__all__ = ['TAB', 'Instruction', 'Label', 'Jump', 'Instr']

# Indent used for instruction lines in the disassembly.
TAB = "  "


class Instruction:
    """Behaviour shared by every record in a disassembly."""
    address: int

    def to_bytes(self) -> bytes:
        """The bytes that encode this record in the image."""
        raise NotImplementedError

    @property
    def size(self) -> int:
        return len(self.to_bytes())

    @property
    def num_operands(self) -> int:
        raise NotImplementedError

    @property
    def num_opcodes(self) -> int:
        """1 for real instructions, 0 for labels."""
        return 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': type(self).__name__.lower(),
            'address': self.address,
            'bytes': self.to_bytes().hex(),
            'text': str(self),
        }


@dataclass(frozen=True)
class Label(Instruction):
    """A label inserted at a jump/call target."""
    address: int
    name: str

    def to_bytes(self) -> bytes:
        return b''

    @property
    def num_operands(self) -> int:
        return 0

    @property
    def num_opcodes(self) -> int:
        return 0

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d['name'] = self.name
        return d

    def __str__(self):
        return f"{self.name}:"


@dataclass(frozen=True)
class Jump(Instruction):
    """A jump or call whose target byte has been given a label."""
    address: int
    opcode: Opcode
    target: int
    label: str

    @property
    def info(self) -> OpcodeInfo:
        return OPCODES[self.opcode]

    def to_bytes(self) -> bytes:
        return bytes((self.opcode, self.target))

    @property
    def num_operands(self) -> int:
        return 1

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d.update(opcode=self.info.name, target=self.target, label=self.label)
        return d

    def __str__(self):
        return TAB + self.info.render(self.label)


@dataclass(frozen=True)
class Instr(Instruction):
    """Any other instruction, with its raw operand bytes."""
    address: int
    opcode: Opcode
    operands: Tuple[int, ...] = ()

    @property
    def info(self) -> OpcodeInfo:
        return OPCODES[self.opcode]

    def to_bytes(self) -> bytes:
        return bytes((self.opcode, *self.operands))

    @property
    def num_operands(self) -> int:
        return len(self.operands)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d.update(opcode=self.info.name, operands=list(self.operands))
        return d

    def __str__(self):
        return TAB + self.info.render(*self.operands)
