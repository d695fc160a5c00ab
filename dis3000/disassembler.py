"""
Two-pass disassembler for 3000 binaries.

Turns a complete binary image into a list of Instr / Jump / Label records.

How the two-pass algorithm works:
  Pass 1 (decode): walk the bytes once, classifying each opcode and consuming
         its operand bytes. Every jump/call target is handed to the label
         resolver, which names targets in the order they are first seen
         (l0, l1, ...), not in address order.
  Pass 2 (labels): walk the decoded instructions again, recomputing each
         address from the opcode table, and emit a Label record in front of
         the instruction at every address in the symbol table.

Labels are only ever placed on instruction boundaries. A target that lands
inside an instruction, or past the end of the image, keeps its name in the
Jump record but gets no Label; it is logged as a warning, or raised as
InvalidJumpTarget when ``strict_targets`` is set.

All state (address counter, label counter, symbol table) is created per call,
so one Disassembler can be reused freely.
"""

from __future__ import annotations
import logging
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

from .errors import InvalidJumpTarget, UnexpectedEndOfFile
from .instructions import Instr, Instruction, Jump, Label
from .opcodes import OPCODES, classify

__all__ = ['SymbolTable', 'LabelResolver', 'Disassembler', 'disassemble']

log = logging.getLogger(__name__)

Decoded = Union[Instr, Jump]


# ──────────────────────────────────────────────
# Symbol table
# ──────────────────────────────────────────────

class SymbolTable:
    """Bidirectional address <-> label name map.

    Both directions are kept in plain dicts built together, so an address
    has at most one name and a name at most one address. Iteration yields
    (address, name) pairs in insertion order.
    """

    def __init__(self):
        self._by_addr: Dict[int, str] = {}
        self._by_name: Dict[str, int] = {}

    def insert(self, address: int, name: str) -> None:
        if address in self._by_addr:
            raise KeyError(f"address {address:#04x} already labelled "
                           f"'{self._by_addr[address]}'")
        if name in self._by_name:
            raise KeyError(f"label '{name}' already bound to "
                           f"{self._by_name[name]:#04x}")
        self._by_addr[address] = name
        self._by_name[name] = address

    def name_at(self, address: int) -> Optional[str]:
        return self._by_addr.get(address)

    def address_of(self, name: str) -> Optional[int]:
        return self._by_name.get(name)

    def __contains__(self, address: int) -> bool:
        return address in self._by_addr

    def __len__(self):
        return len(self._by_addr)

    def __iter__(self) -> Iterator[Tuple[int, str]]:
        return iter(self._by_addr.items())

    def __repr__(self):
        pairs = ', '.join(f"{addr:#04x}: {name!r}" for addr, name in self)
        return f"SymbolTable({{{pairs}}})"


class LabelResolver:
    """Hands out label names for jump targets.

    Names are ``<prefix><n>`` with ``n`` counting up from 0 in order of first
    request. Asking again for a known address returns the same name.
    """

    def __init__(self, prefix: str = "l"):
        self.prefix = prefix
        self.symbols = SymbolTable()
        self._counter = 0

    def _gensym(self) -> str:
        name = f"{self.prefix}{self._counter}"
        self._counter += 1
        return name

    def resolve(self, target: int) -> str:
        name = self.symbols.name_at(target)
        if name is None:
            name = self._gensym()
            self.symbols.insert(target, name)
            log.debug("new label %s -> %#04x", name, target)
        return name


# ──────────────────────────────────────────────
# The Disassembler
# ──────────────────────────────────────────────

class Disassembler:
    """Two-pass 3000 disassembler.

    Usage:
        dis = Disassembler()
        instrs = dis.disassemble(data)
        for ins in instrs:
            print(ins.address, ins)
    """

    def __init__(self, label_prefix: str = "l", strict_targets: bool = False):
        self.label_prefix = label_prefix      # Generated label names: l0, l1, ...
        self.strict_targets = strict_targets  # Raise on targets off an instruction boundary

    def disassemble(self, data: bytes) -> List[Instruction]:
        """Disassemble a complete image.

        Raises InvalidOpcode / UnexpectedEndOfFile on the first bad byte; no
        partial result is returned.
        """
        resolver = LabelResolver(self.label_prefix)
        instrs = self.decode(data, resolver)
        result = self.insert_labels(instrs, resolver.symbols)
        log.debug("disassembled %d bytes: %d instructions, %d labels",
                  len(data), len(instrs), len(resolver.symbols))
        return result

    def decode(self, data: bytes, resolver: LabelResolver) -> List[Decoded]:
        """Pass 1: decode every instruction, resolving jump targets to names."""
        instrs: List[Decoded] = []
        addr = 0  # current address in the image

        while addr < len(data):
            info = classify(data[addr], addr)
            end = addr + info.size
            if end > len(data):
                raise UnexpectedEndOfFile(info.opcode)
            operands = tuple(data[addr + 1:end])

            if info.jump:
                target = operands[0]
                ins = Jump(addr, info.opcode, target, resolver.resolve(target))
            else:
                ins = Instr(addr, info.opcode, operands)

            instrs.append(ins)
            addr = end

        return instrs

    def insert_labels(self, instrs: Sequence[Decoded],
                      symbols: SymbolTable) -> List[Instruction]:
        """Pass 2: interleave a Label before each labelled instruction."""
        result: List[Instruction] = []
        placed = set()
        addr = 0

        for ins in instrs:
            name = symbols.name_at(addr)
            if name is not None:
                result.append(Label(addr, name))
                placed.add(addr)
            result.append(ins)
            addr += OPCODES[ins.opcode].size

        if len(placed) != len(symbols):
            self._report_dangling(instrs, symbols, placed)

        return result

    def _report_dangling(self, instrs: Sequence[Decoded], symbols: SymbolTable,
                         placed: set) -> None:
        for target, name in symbols:
            if target in placed:
                continue
            # First jump that referenced this target, for the report
            source = next((j.address for j in instrs
                           if isinstance(j, Jump) and j.target == target), -1)
            if self.strict_targets:
                raise InvalidJumpTarget(source, target, name)
            log.warning("label %s (%#04x) referenced at %#04x is not on an "
                        "instruction boundary; no label emitted",
                        name, target, source)


def disassemble(data: bytes, **kwargs) -> List[Instruction]:
    """Disassemble ``data`` with a fresh Disassembler. kwargs go to its constructor."""
    return Disassembler(**kwargs).disassemble(data)
