"""
Tests for instruction records, statistics and listings.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import json

from dis3000 import disassemble, disassemble_listing
from dis3000.instructions import Instr, Jump, Label
from dis3000.listing import format_header, format_row, render_json, render_text
from dis3000.opcodes import Opcode
from dis3000.stats import BinaryStats

# 00: mvi 255, a ; l0: out a ; dcr a ; cmp a, z ; jne l0
SMALL_PROGRAM = [
    Instr(0x00, Opcode.MVI_A, (0xFF,)),
    Label(0x02, "l0"),
    Instr(0x02, Opcode.OUT_A),
    Instr(0x03, Opcode.DCR_A),
    Instr(0x04, Opcode.CMP_A_Z),
    Jump(0x05, Opcode.JNE, 0x02, "l0"),
]


class TestInstructionRecords:
    def test_to_bytes(self):
        assert Label(3, "l0").to_bytes() == b''
        assert Jump(0, Opcode.CALL, 0x05, "l0").to_bytes() == b'\xBC\x05'
        assert Instr(0, Opcode.HLT).to_bytes() == b'\xC7'
        assert Instr(0, Opcode.STSI, (1, 2)).to_bytes() == b'\x9E\x01\x02'

    def test_sizes_and_counts(self):
        label = Label(3, "l0")
        assert (label.size, label.num_opcodes, label.num_operands) == (0, 0, 0)
        jump = Jump(0, Opcode.JMP, 3, "l0")
        assert (jump.size, jump.num_opcodes, jump.num_operands) == (2, 1, 1)
        stsi = Instr(0, Opcode.STSI, (1, 2))
        assert (stsi.size, stsi.num_opcodes, stsi.num_operands) == (3, 1, 2)

    def test_mnemonic_text(self):
        assert str(Label(5, "add_4")) == "add_4:"
        assert str(Jump(2, Opcode.CALL, 5, "l0")) == "  call l0"
        assert str(Jump(2, Opcode.JBE, 5, "l3")) == "  jbe l3"
        assert str(Instr(0, Opcode.MVI_A, (10,))) == "  mvi 10, a"
        assert str(Instr(0, Opcode.STS_Z, (4,))) == "  sts z, 4"
        assert str(Instr(0, Opcode.CMPI_A_BYTE, (7,))) == "  cmpi a, 7"
        assert str(Instr(0, Opcode.CMPI_BYTE_A, (7,))) == "  cmpi 7, a"
        assert str(Instr(0, Opcode.STSI, (1, 2))) == "  stsi 1, 2"
        assert str(Instr(0, Opcode.AND_B_A)) == "  and b, a"
        assert str(Instr(0, Opcode.MOV_SP_C)) == "  mov sp, c"
        assert str(Instr(0, Opcode.HLT)) == "  hlt"

    def test_to_dict(self):
        assert Jump(2, Opcode.CALL, 5, "l0").to_dict() == {
            'kind': 'jump', 'address': 2, 'bytes': 'bc05', 'text': '  call l0',
            'opcode': 'CALL', 'target': 5, 'label': 'l0',
        }
        assert Label(5, "l0").to_dict() == {
            'kind': 'label', 'address': 5, 'bytes': '', 'text': 'l0:', 'name': 'l0',
        }
        assert Instr(0, Opcode.OUTI, (1,)).to_dict()['operands'] == [1]


class TestBinaryStats:
    def test_small_program(self):
        assert BinaryStats.from_instructions(SMALL_PROGRAM) == BinaryStats(
            total_instrs=5,
            total_bytes=7,
            opcode_bytes=5,
            operand_bytes=2,
            single_byte_instrs=3,
            two_byte_instrs=2,
            three_byte_instrs=0,
        )

    def test_empty(self):
        assert BinaryStats.from_instructions([]) == BinaryStats()

    def test_three_byte_counted(self):
        stats = BinaryStats.from_instructions(disassemble(bytes([0x9E, 1, 2, 0xC7])))
        assert stats.three_byte_instrs == 1
        assert stats.operand_bytes == 2
        assert stats.total_bytes == 4

    def test_text(self):
        text = str(BinaryStats.from_instructions(SMALL_PROGRAM))
        assert text.splitlines() == [
            "Program size: 7 bytes",
            "Instructions: 5",
            "Opcodes:      5 (71.43%)",
            "Operands:     2 (28.57%)",
            "Instruction breakdown:",
            "  1-byte: 3 (60.00%)",
            "  2-byte: 2 (40.00%)",
            "  3-byte: 0 (0.00%)",
        ]

    def test_empty_text_has_no_division_error(self):
        text = str(BinaryStats())
        assert "Opcodes:      0 (0.00%)" in text
        assert "  1-byte: 0 (0.00%)" in text


class TestListing:
    def test_rows(self):
        assert format_row(Instr(0x00, Opcode.MVI_A, (0x0A,))) == "00:    7f 0a    |   mvi 10, a"
        assert format_row(Label(0x05, "l0")) == "05:             | l0:"
        assert format_row(Instr(0x07, Opcode.RET)) == "07:    bd       |   ret"
        assert format_row(Instr(0x1A, Opcode.STSI, (1, 2))) == "1a:    9e 01 02 |   stsi 1, 2"

    def test_wide_address(self):
        assert format_row(Instr(0x1F4, Opcode.NOP)).startswith("1f4:   c8")

    def test_header(self):
        assert format_header("prog.bin", 8) == "\nDisassembly of file `prog.bin` (8 bytes)\n"

    def test_render_text(self):
        b = bytes([0x7F, 0x0A, 0xBC, 0x05, 0xC7, 0x0C, 0x04, 0xBD])
        text = render_text(disassemble(b), "simple.bin", len(b))
        lines = text.splitlines()
        assert "Disassembly of file `simple.bin` (8 bytes)" in lines
        assert lines[-6:] == [
            "00:    7f 0a    |   mvi 10, a",
            "02:    bc 05    |   call l0",
            "04:    c7       |   hlt",
            "05:             | l0:",
            "05:    0c 04    |   addi 4, a",
            "07:    bd       |   ret",
        ]

    def test_render_text_with_stats(self):
        b = bytes([0x7F, 0xFF, 0xBE, 0x67, 0xA1, 0xB3, 0x02])
        text = render_text(disassemble(b), "loop.bin", len(b), stats=True)
        assert "Program size: 7 bytes" in text
        assert text.index("Program size") < text.index("mvi 255, a")

    def test_render_json(self):
        b = bytes([0xC1, 0x01, 0xC7])
        doc = json.loads(render_json(disassemble(b), "x.bin", len(b), stats=True))
        assert doc['file'] == "x.bin"
        assert doc['size'] == 3
        assert [i['text'] for i in doc['instructions']] == ["  outi 1", "  hlt"]
        assert doc['stats']['total_instrs'] == 2

    def test_render_json_without_stats(self):
        doc = json.loads(render_json([], "empty", 0))
        assert doc == {'file': 'empty', 'size': 0, 'instructions': []}

    def test_disassemble_listing(self):
        text = disassemble_listing(bytes([0xB1, 0x00]), name="spin.bin")
        assert "00:             | l0:" in text
        assert "00:    b1 00    |   jmp l0" in text
        doc = json.loads(disassemble_listing(bytes([0xC7]), output='json'))
        assert doc['file'] == "stdin"
