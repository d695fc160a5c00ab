"""
Opcode table and classifier for the 3000 instruction set.

Every instruction is one opcode byte followed by zero, one or two operand
bytes. Opcodes run contiguously from $00 to $C8 (201 entries); anything
above $C8 is not an instruction.

Operand meaning by family:
  register forms   : no operand, registers are encoded in the opcode
  immediate forms  : one byte (addi, mvi, cmpi, outi, ...)
  jump/call        : one byte, the absolute target address in the image
  stsi             : two bytes (immediate, stack offset)

Each entry carries a mnemonic template. ``{0}`` / ``{1}`` are replaced by the
operand values in decimal; for the jump class ``{0}`` is the target label.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum
from string import Formatter
from typing import Dict, FrozenSet, Mapping

from .errors import InvalidOpcode, OpcodeTableError

__all__ = [
    'OPCODE_MIN', 'OPCODE_MAX', 'OpcodeInfo', 'OPCODES', 'Opcode',
    'JUMP_OPCODES', 'classify', 'instruction_size', 'is_jump',
]

OPCODE_MIN = 0x00
OPCODE_MAX = 0xC8


@dataclass(frozen=True)
class OpcodeInfo:
    """Static metadata for one opcode."""
    code: int
    name: str
    size: int       # total bytes including the opcode
    template: str   # mnemonic text, operands as {0} / {1}
    jump: bool = False

    @property
    def opcode(self) -> Opcode:
        return Opcode(self.code)

    @property
    def num_operands(self) -> int:
        return self.size - 1

    def render(self, *operands) -> str:
        return self.template.format(*operands)

    def __str__(self):
        return f"{self.name:12s} (${self.code:02X}, {self.size}B)"


# ──────────────────────────────────────────────
# 3000 Opcode Table
# ──────────────────────────────────────────────
# Format: { opcode: OpcodeInfo }

OPCODES: Dict[int, OpcodeInfo] = {}

def _op(code: int, name: str, size: int, template: str, jump: bool = False):
    """Register an opcode entry."""
    if code in OPCODES:
        raise OpcodeTableError(f"opcode ${code:02X} registered twice "
                               f"({OPCODES[code].name}, {name})")
    OPCODES[code] = OpcodeInfo(code, name, size, template, jump)

def _jmp(code: int, name: str):
    """Register a jump-class opcode (single target-address operand)."""
    _op(code, name, 2, name.lower() + ' {0}', jump=True)

# ── add / addi ──
_op(0x00, 'ADD_A_A',   1, 'add a, a')
_op(0x01, 'ADD_A_B',   1, 'add a, b')
_op(0x02, 'ADD_A_C',   1, 'add a, c')
_op(0x03, 'ADD_A_SP',  1, 'add a, sp')
_op(0x04, 'ADD_B_A',   1, 'add b, a')
_op(0x05, 'ADD_B_B',   1, 'add b, b')
_op(0x06, 'ADD_B_C',   1, 'add b, c')
_op(0x07, 'ADD_B_SP',  1, 'add b, sp')
_op(0x08, 'ADD_C_A',   1, 'add c, a')
_op(0x09, 'ADD_C_B',   1, 'add c, b')
_op(0x0A, 'ADD_C_C',   1, 'add c, c')
_op(0x0B, 'ADD_C_SP',  1, 'add c, sp')
_op(0x0C, 'ADDI_A',    2, 'addi {0}, a')
_op(0x0D, 'ADDI_B',    2, 'addi {0}, b')
_op(0x0E, 'ADDI_C',    2, 'addi {0}, c')
_op(0x0F, 'ADDI_SP',   2, 'addi {0}, sp')

# ── addc / addci ──
_op(0x10, 'ADDC_A_A',  1, 'addc a, a')
_op(0x11, 'ADDC_A_B',  1, 'addc a, b')
_op(0x12, 'ADDC_A_C',  1, 'addc a, c')
_op(0x13, 'ADDC_A_SP', 1, 'addc a, sp')
_op(0x14, 'ADDC_B_A',  1, 'addc b, a')
_op(0x15, 'ADDC_B_B',  1, 'addc b, b')
_op(0x16, 'ADDC_B_C',  1, 'addc b, c')
_op(0x17, 'ADDC_B_SP', 1, 'addc b, sp')
_op(0x18, 'ADDC_C_A',  1, 'addc c, a')
_op(0x19, 'ADDC_C_B',  1, 'addc c, b')
_op(0x1A, 'ADDC_C_C',  1, 'addc c, c')
_op(0x1B, 'ADDC_C_SP', 1, 'addc c, sp')
_op(0x1C, 'ADDCI_A',   2, 'addci {0}, a')
_op(0x1D, 'ADDCI_B',   2, 'addci {0}, b')
_op(0x1E, 'ADDCI_C',   2, 'addci {0}, c')
_op(0x1F, 'ADDCI_SP',  2, 'addci {0}, sp')

# ── sub / subi ──
_op(0x20, 'SUB_B_A',   1, 'sub b, a')
_op(0x21, 'SUB_C_A',   1, 'sub c, a')
_op(0x22, 'SUB_A_B',   1, 'sub a, b')
_op(0x23, 'SUB_C_B',   1, 'sub c, b')
_op(0x24, 'SUB_A_C',   1, 'sub a, c')
_op(0x25, 'SUB_B_C',   1, 'sub b, c')
_op(0x26, 'SUB_A_SP',  1, 'sub a, sp')
_op(0x27, 'SUB_B_SP',  1, 'sub b, sp')
_op(0x28, 'SUB_C_SP',  1, 'sub c, sp')
_op(0x29, 'SUBI_A',    2, 'subi {0}, a')
_op(0x2A, 'SUBI_B',    2, 'subi {0}, b')
_op(0x2B, 'SUBI_C',    2, 'subi {0}, c')
_op(0x2C, 'SUBI_SP',   2, 'subi {0}, sp')

# ── subb / subbi (subtract with borrow) ──
_op(0x2D, 'SUBB_B_A',  1, 'subb b, a')
_op(0x2E, 'SUBB_C_A',  1, 'subb c, a')
_op(0x2F, 'SUBB_A_B',  1, 'subb a, b')
_op(0x30, 'SUBB_C_B',  1, 'subb c, b')
_op(0x31, 'SUBB_A_C',  1, 'subb a, c')
_op(0x32, 'SUBB_B_C',  1, 'subb b, c')
_op(0x33, 'SUBB_A_SP', 1, 'subb a, sp')
_op(0x34, 'SUBB_B_SP', 1, 'subb b, sp')
_op(0x35, 'SUBB_C_SP', 1, 'subb c, sp')
_op(0x36, 'SUBBI_A',   2, 'subbi {0}, a')
_op(0x37, 'SUBBI_B',   2, 'subbi {0}, b')
_op(0x38, 'SUBBI_C',   2, 'subbi {0}, c')
_op(0x39, 'SUBBI_SP',  2, 'subbi {0}, sp')

# ── and / ani ──
_op(0x3A, 'AND_B_A',   1, 'and b, a')
_op(0x3B, 'AND_C_A',   1, 'and c, a')
_op(0x3C, 'AND_A_B',   1, 'and a, b')
_op(0x3D, 'AND_C_B',   1, 'and c, b')
_op(0x3E, 'AND_A_C',   1, 'and a, c')
_op(0x3F, 'AND_B_C',   1, 'and b, c')
_op(0x40, 'ANI_A',     2, 'ani {0}, a')
_op(0x41, 'ANI_B',     2, 'ani {0}, b')
_op(0x42, 'ANI_C',     2, 'ani {0}, c')

# ── or / ori ──
_op(0x43, 'OR_B_A',    1, 'or b, a')
_op(0x44, 'OR_C_A',    1, 'or c, a')
_op(0x45, 'OR_A_B',    1, 'or a, b')
_op(0x46, 'OR_C_B',    1, 'or c, b')
_op(0x47, 'OR_A_C',    1, 'or a, c')
_op(0x48, 'OR_B_C',    1, 'or b, c')
_op(0x49, 'ORI_A',     2, 'ori {0}, a')
_op(0x4A, 'ORI_B',     2, 'ori {0}, b')
_op(0x4B, 'ORI_C',     2, 'ori {0}, c')

# ── xor / xri ──
_op(0x4C, 'XOR_B_A',   1, 'xor b, a')
_op(0x4D, 'XOR_C_A',   1, 'xor c, a')
_op(0x4E, 'XOR_A_B',   1, 'xor a, b')
_op(0x4F, 'XOR_C_B',   1, 'xor c, b')
_op(0x50, 'XOR_A_C',   1, 'xor a, c')
_op(0x51, 'XOR_B_C',   1, 'xor b, c')
_op(0x52, 'XRI_A',     2, 'xri {0}, a')
_op(0x53, 'XRI_B',     2, 'xri {0}, b')
_op(0x54, 'XRI_C',     2, 'xri {0}, c')

# ── not / neg ──
_op(0x55, 'NOT_A',     1, 'not a')
_op(0x56, 'NOT_B',     1, 'not b')
_op(0x57, 'NOT_C',     1, 'not c')
_op(0x58, 'NEG_A',     1, 'neg a')
_op(0x59, 'NEG_B',     1, 'neg b')
_op(0x5A, 'NEG_C',     1, 'neg c')

# ── inr / inr2 / inr3 ──
_op(0x5B, 'INR_A',     1, 'inr a')
_op(0x5C, 'INR_B',     1, 'inr b')
_op(0x5D, 'INR_C',     1, 'inr c')
_op(0x5E, 'INR_SP',    1, 'inr sp')
_op(0x5F, 'INR2_A',    1, 'inr2 a')
_op(0x60, 'INR2_B',    1, 'inr2 b')
_op(0x61, 'INR2_C',    1, 'inr2 c')
_op(0x62, 'INR2_SP',   1, 'inr2 sp')
_op(0x63, 'INR3_A',    1, 'inr3 a')
_op(0x64, 'INR3_B',    1, 'inr3 b')
_op(0x65, 'INR3_C',    1, 'inr3 c')
_op(0x66, 'INR3_SP',   1, 'inr3 sp')

# ── dcr / dcr2 / dcr3 ──
_op(0x67, 'DCR_A',     1, 'dcr a')
_op(0x68, 'DCR_B',     1, 'dcr b')
_op(0x69, 'DCR_C',     1, 'dcr c')
_op(0x6A, 'DCR_SP',    1, 'dcr sp')
_op(0x6B, 'DCR2_A',    1, 'dcr2 a')
_op(0x6C, 'DCR2_B',    1, 'dcr2 b')
_op(0x6D, 'DCR2_C',    1, 'dcr2 c')
_op(0x6E, 'DCR2_SP',   1, 'dcr2 sp')
_op(0x6F, 'DCR3_A',    1, 'dcr3 a')
_op(0x70, 'DCR3_B',    1, 'dcr3 b')
_op(0x71, 'DCR3_C',    1, 'dcr3 c')
_op(0x72, 'DCR3_SP',   1, 'dcr3 sp')

# ── mov / mvi ──
_op(0x73, 'MOV_A_B',   1, 'mov a, b')
_op(0x74, 'MOV_A_C',   1, 'mov a, c')
_op(0x75, 'MOV_B_A',   1, 'mov b, a')
_op(0x76, 'MOV_B_C',   1, 'mov b, c')
_op(0x77, 'MOV_C_A',   1, 'mov c, a')
_op(0x78, 'MOV_C_B',   1, 'mov c, b')
_op(0x79, 'MOV_Z_A',   1, 'mov z, a')
_op(0x7A, 'MOV_Z_B',   1, 'mov z, b')
_op(0x7B, 'MOV_Z_C',   1, 'mov z, c')
_op(0x7C, 'MOV_SP_A',  1, 'mov sp, a')
_op(0x7D, 'MOV_SP_B',  1, 'mov sp, b')
_op(0x7E, 'MOV_SP_C',  1, 'mov sp, c')
_op(0x7F, 'MVI_A',     2, 'mvi {0}, a')
_op(0x80, 'MVI_B',     2, 'mvi {0}, b')
_op(0x81, 'MVI_C',     2, 'mvi {0}, c')

# ── ld / st (memory via register pointer) ──
_op(0x82, 'LD_A_A',    1, 'ld a, a')
_op(0x83, 'LD_B_A',    1, 'ld b, a')
_op(0x84, 'LD_C_A',    1, 'ld c, a')
_op(0x85, 'LD_A_B',    1, 'ld a, b')
_op(0x86, 'LD_B_B',    1, 'ld b, b')
_op(0x87, 'LD_C_B',    1, 'ld c, b')
_op(0x88, 'LD_A_C',    1, 'ld a, c')
_op(0x89, 'LD_B_C',    1, 'ld b, c')
_op(0x8A, 'LD_C_C',    1, 'ld c, c')
_op(0x8B, 'ST_A_A',    1, 'st a, a')
_op(0x8C, 'ST_A_B',    1, 'st a, b')
_op(0x8D, 'ST_A_C',    1, 'st a, c')
_op(0x8E, 'ST_B_A',    1, 'st b, a')
_op(0x8F, 'ST_B_B',    1, 'st b, b')
_op(0x90, 'ST_B_C',    1, 'st b, c')
_op(0x91, 'ST_C_A',    1, 'st c, a')
_op(0x92, 'ST_C_B',    1, 'st c, b')
_op(0x93, 'ST_C_C',    1, 'st c, c')
_op(0x94, 'ST_Z_A',    1, 'st z, a')
_op(0x95, 'ST_Z_B',    1, 'st z, b')
_op(0x96, 'ST_Z_C',    1, 'st z, c')

# ── lds / sts / stsi (stack-relative) ──
_op(0x97, 'LDS_A',     2, 'lds {0}, a')
_op(0x98, 'LDS_B',     2, 'lds {0}, b')
_op(0x99, 'LDS_C',     2, 'lds {0}, c')
_op(0x9A, 'STS_A',     2, 'sts a, {0}')
_op(0x9B, 'STS_B',     2, 'sts b, {0}')
_op(0x9C, 'STS_C',     2, 'sts c, {0}')
_op(0x9D, 'STS_Z',     2, 'sts z, {0}')
_op(0x9E, 'STSI',      3, 'stsi {0}, {1}')   # the only 3-byte instruction

# ── cmp / cmpi ──
_op(0x9F, 'CMP_A_B',   1, 'cmp a, b')
_op(0xA0, 'CMP_A_C',   1, 'cmp a, c')
_op(0xA1, 'CMP_A_Z',   1, 'cmp a, z')
_op(0xA2, 'CMP_B_A',   1, 'cmp b, a')
_op(0xA3, 'CMP_B_C',   1, 'cmp b, c')
_op(0xA4, 'CMP_B_Z',   1, 'cmp b, z')
_op(0xA5, 'CMP_C_A',   1, 'cmp c, a')
_op(0xA6, 'CMP_C_B',   1, 'cmp c, b')
_op(0xA7, 'CMP_C_Z',   1, 'cmp c, z')
_op(0xA8, 'CMP_Z_A',   1, 'cmp z, a')
_op(0xA9, 'CMP_Z_B',   1, 'cmp z, b')
_op(0xAA, 'CMP_Z_C',   1, 'cmp z, c')
_op(0xAB, 'CMPI_A_BYTE', 2, 'cmpi a, {0}')
_op(0xAC, 'CMPI_BYTE_A', 2, 'cmpi {0}, a')
_op(0xAD, 'CMPI_B_BYTE', 2, 'cmpi b, {0}')
_op(0xAE, 'CMPI_BYTE_B', 2, 'cmpi {0}, b')
_op(0xAF, 'CMPI_C_BYTE', 2, 'cmpi c, {0}')
_op(0xB0, 'CMPI_BYTE_C', 2, 'cmpi {0}, c')

# ── Jumps and call (operand is an absolute target address) ──
_jmp(0xB1, 'JMP')
_jmp(0xB2, 'JE')
_jmp(0xB3, 'JNE')
_jmp(0xB4, 'JG')
_jmp(0xB5, 'JGE')
_jmp(0xB6, 'JL')
_jmp(0xB7, 'JLE')
_jmp(0xB8, 'JA')
_jmp(0xB9, 'JAE')
_jmp(0xBA, 'JB')
_jmp(0xBB, 'JBE')
_jmp(0xBC, 'CALL')
_op(0xBD, 'RET',       1, 'ret')

# ── I/O and control ──
_op(0xBE, 'OUT_A',     1, 'out a')
_op(0xBF, 'OUT_B',     1, 'out b')
_op(0xC0, 'OUT_C',     1, 'out c')
_op(0xC1, 'OUTI',      2, 'outi {0}')
_op(0xC2, 'DIC',       2, 'dic {0}')
_op(0xC3, 'DID',       2, 'did {0}')
_op(0xC4, 'DD_A',      1, 'dd a')
_op(0xC5, 'DD_B',      1, 'dd b')
_op(0xC6, 'DD_C',      1, 'dd c')
_op(0xC7, 'HLT',       1, 'hlt')
_op(0xC8, 'NOP',       1, 'nop')


# ──────────────────────────────────────────────
# Table invariants
# ──────────────────────────────────────────────

JUMP_CLASS_SIZE = 12  # 11 conditional/unconditional jumps + call


def _verify_table(table: Mapping[int, OpcodeInfo]) -> None:
    """Check the table is total over OPCODE_MIN..OPCODE_MAX and self-consistent.

    Raises OpcodeTableError on the first violation. Run once at import.
    """
    expected = set(range(OPCODE_MIN, OPCODE_MAX + 1))
    missing = sorted(expected - set(table))
    if missing:
        raise OpcodeTableError(
            "no entry for opcodes " + ', '.join(f"${c:02X}" for c in missing))
    extra = sorted(set(table) - expected)
    if extra:
        raise OpcodeTableError(
            "entries outside the opcode range: " + ', '.join(f"${c:02X}" for c in extra))

    names = set()
    jumps = 0
    for code, info in table.items():
        if info.code != code:
            raise OpcodeTableError(f"${code:02X}: entry claims code ${info.code:02X}")
        if info.size not in (1, 2, 3):
            raise OpcodeTableError(f"{info.name}: encoding length {info.size} not in 1..3")
        if info.name in names:
            raise OpcodeTableError(f"{info.name}: name used twice")
        names.add(info.name)

        # Template must consume exactly one field per operand byte
        fields = [f for _, f, _, _ in Formatter().parse(info.template) if f is not None]
        if len(fields) != info.num_operands:
            raise OpcodeTableError(
                f"{info.name}: template '{info.template}' has {len(fields)} "
                f"fields for {info.num_operands} operands")

        if info.jump:
            jumps += 1
            if info.size != 2:
                raise OpcodeTableError(f"{info.name}: jump-class opcodes must be 2 bytes")

    if jumps != JUMP_CLASS_SIZE:
        raise OpcodeTableError(
            f"expected {JUMP_CLASS_SIZE} jump-class opcodes, found {jumps}")


_verify_table(OPCODES)

Opcode = IntEnum('Opcode', {info.name: code for code, info in OPCODES.items()},
                 module=__name__)
Opcode.__doc__ = "Valid 3000 opcodes, named after their instruction."

JUMP_OPCODES: FrozenSet[Opcode] = frozenset(
    Opcode(code) for code, info in OPCODES.items() if info.jump)


# ──────────────────────────────────────────────
# Classifier
# ──────────────────────────────────────────────

def classify(byte: int, address: int = 0) -> OpcodeInfo:
    """Return the table entry for ``byte``.

    ``address`` is only used for the error report: raises InvalidOpcode if the
    byte is outside OPCODE_MIN..OPCODE_MAX.
    """
    if not OPCODE_MIN <= byte <= OPCODE_MAX:
        raise InvalidOpcode(byte, address)
    return OPCODES[byte]


def instruction_size(opcode: int) -> int:
    """Encoding length of a valid opcode (1, 2 or 3)."""
    return OPCODES[opcode].size


def is_jump(opcode: int) -> bool:
    return OPCODES[opcode].jump
