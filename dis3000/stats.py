"""
Summary statistics for a disassembled binary.

Labels are zero-length markers, so they are excluded from every count.
"""

from __future__ import annotations
from dataclasses import asdict, dataclass
from typing import Dict, Sequence

from .instructions import Instruction, Label

__all__ = ['BinaryStats']


def _percentage(num: int, denom: int) -> float:
    return num / denom * 100.0 if denom else 0.0


@dataclass(frozen=True)
class BinaryStats:
    """Size breakdown of a program.

    - number of instructions and program size in bytes
    - bytes split between opcodes and operands
    - count of one-, two- and three-byte instructions
    """
    total_instrs: int = 0
    total_bytes: int = 0
    opcode_bytes: int = 0
    operand_bytes: int = 0
    single_byte_instrs: int = 0
    two_byte_instrs: int = 0
    three_byte_instrs: int = 0

    @classmethod
    def from_instructions(cls, instrs: Sequence[Instruction]) -> BinaryStats:
        code = [ins for ins in instrs if not isinstance(ins, Label)]
        sizes = [ins.size for ins in code]
        return cls(
            total_instrs=len(code),
            total_bytes=sum(sizes),
            opcode_bytes=sum(ins.num_opcodes for ins in code),
            operand_bytes=sum(ins.num_operands for ins in code),
            single_byte_instrs=sizes.count(1),
            two_byte_instrs=sizes.count(2),
            three_byte_instrs=sizes.count(3),
        )

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    def __str__(self):
        lines = [
            f"Program size: {self.total_bytes} bytes",
            f"Instructions: {self.total_instrs}",
            f"Opcodes:      {self.opcode_bytes} "
            f"({_percentage(self.opcode_bytes, self.total_bytes):.2f}%)",
            f"Operands:     {self.operand_bytes} "
            f"({_percentage(self.operand_bytes, self.total_bytes):.2f}%)",
            "Instruction breakdown:",
        ]
        for width, count in ((1, self.single_byte_instrs),
                             (2, self.two_byte_instrs),
                             (3, self.three_byte_instrs)):
            lines.append(f"  {width}-byte: {count} "
                         f"({_percentage(count, self.total_instrs):.2f}%)")
        return '\n'.join(lines) + '\n'
