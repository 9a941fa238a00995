import unittest

from lc3_core_tracer.arch.lc3.state import Lc3CpuState, MR_KBSR
from lc3_core_tracer.arch.lc3.disassembler import disassemble
from lc3_core_tracer.transport.bus import MemoryBus
from lc3_core_tracer.transport.keyboard import ScriptedKeyboard

class TestLc3Disassembler(unittest.TestCase):
    def setUp(self):
        self.state = Lc3CpuState()
        self.keyboard = ScriptedKeyboard("a")
        self.bus = MemoryBus(self.state, self.keyboard)

    def _load(self, address, words):
        for i, word in enumerate(words):
            self.bus.load(address + i, word)

    def test_disassemble_program(self):
        self._load(0x3000, [
            0x1021,  # ADD R0, R0, #1
            0x5401,  # AND R2, R0, R1
            0x923F,  # NOT R1, R0
            0x0402,  # BRz x3006
            0x0FFC,  # BR x3001
            0x0000,  # NOP
            0x2002,  # LD R0, x3009
            0x68BD,  # LDR R4, R2, #-3
            0xC1C0,  # RET
            0xC080,  # JMP R2
            0x4804,  # JSR x300F
            0x40C0,  # JSRR R3
            0xE002,  # LEA R0, x300F
            0xF025,  # HALT
            0xF026,  # TRAP x26
            0x8000,  # RTI
        ])
        lines = [text for _, _, text in disassemble(self.bus, 0x3000, 16)]
        self.assertEqual(lines, [
            "ADD R0, R0, #1",
            "AND R2, R0, R1",
            "NOT R1, R0",
            "BRz x3006",
            "BR x3001",
            "NOP",
            "LD R0, x3009",
            "LDR R4, R2, #-3",
            "RET",
            "JMP R2",
            "JSR x300F",
            "JSRR R3",
            "LEA R0, x300F",
            "HALT",
            "TRAP x26",
            ".FILL x8000",
        ])

    def test_address_and_hex_columns(self):
        self._load(0x3000, [0xF025])
        result = disassemble(self.bus, 0x3000, 1)
        self.assertEqual(result, [(0x3000, "F025", "HALT")])

    def test_stops_at_end_of_memory(self):
        result = disassemble(self.bus, 0xFFFE, 5)
        self.assertEqual([address for address, _, _ in result], [0xFFFE, 0xFFFF])

    def test_does_not_trigger_keyboard(self):
        disassemble(self.bus, MR_KBSR, 1)
        self.assertEqual(self.keyboard.pending(), 1)
        self.assertEqual(self.bus.get_and_clear_activity_log(), [])
