"""
Exceptions raised by the 3000 disassembler.

``DisassemblerError`` and its subclasses describe problems with the *input*
(a byte that is not an opcode, a buffer that ends mid-instruction, a jump
that lands nowhere). ``OpcodeTableError`` is different: it means the static
opcode table itself is inconsistent, which is a bug in this package and is
raised at import time.
"""

from __future__ import annotations

__all__ = [
    'DisassemblerError', 'InvalidOpcode', 'UnexpectedEndOfFile',
    'InvalidJumpTarget', 'OpcodeTableError',
]


class DisassemblerError(Exception):
    """Raised when a binary cannot be disassembled."""


class InvalidOpcode(DisassemblerError):
    """The byte at ``address`` is outside the valid opcode range."""
    def __init__(self, byte: int, address: int):
        self.byte = byte
        self.address = address
        super().__init__(
            f"invalid opcode encountered at byte {address}: `{byte:x}`")


class UnexpectedEndOfFile(DisassemblerError):
    """The input ended while operand bytes for ``opcode`` were still expected."""
    def __init__(self, opcode: int):
        self.opcode = opcode
        super().__init__(
            "unexpected end of file while processing instruction "
            f"with opcode {int(opcode):02x}")


class InvalidJumpTarget(DisassemblerError):
    """A jump/call target does not fall on a decoded instruction boundary.

    Only raised when the disassembler runs with ``strict_targets=True``.
    """
    def __init__(self, address: int, target: int, label: str):
        self.address = address
        self.target = target
        self.label = label
        super().__init__(
            f"jump at byte {address} targets {target:#04x} ({label}), "
            "which is not the start of an instruction")


class OpcodeTableError(Exception):
    """The built-in opcode table violates one of its own invariants."""
