import unittest

from lc3_core_tracer.arch.lc3.cpu import Lc3Cpu
from lc3_core_tracer.arch.lc3.instructions import TrapHandler
from lc3_core_tracer.arch.lc3.state import Lc3CpuState, CondFlag, MR_KBSR, MR_KBDR
from lc3_core_tracer.transport.bus import MemoryBus
from lc3_core_tracer.transport.keyboard import ScriptedKeyboard

class TestLc3LoadStoreInstructions(unittest.TestCase):
    def setUp(self):
        self.state = Lc3CpuState()
        self.keyboard = ScriptedKeyboard()
        self.bus = MemoryBus(self.state, self.keyboard)
        self.cpu = Lc3Cpu(self.bus, TrapHandler(self.keyboard))

    def _execute(self, word, pc=0x3000):
        self.bus.write(pc, word)
        self.state.pc = pc
        return self.cpu.step()

    def test_ld(self):
        # LD R0, #2 -> mem[0x3003]
        self.bus.write(0x3003, 0x8001)
        self._execute(0x2002)
        self.assertEqual(self.state.registers[0], 0x8001)
        self.assertEqual(self.state.cond, CondFlag.NEG)

    def test_ld_negative_offset_wraps(self):
        # LD R1, #-256 at 0x0000 -> mem[0x0001 - 0x100] = mem[0xFF01]
        self.bus.write(0xFF01, 0x0042)
        self._execute(0x2300, pc=0x0000)
        self.assertEqual(self.state.registers[1], 0x0042)
        self.assertEqual(self.state.cond, CondFlag.POS)

    def test_ldi(self):
        # memory[0x3000] = 0x3002, memory[0x3002] = 0x1234
        # LDI R3, #-2 at 0x3001 -> computed address 0x3000
        self.bus.write(0x3000, 0x3002)
        self.bus.write(0x3002, 0x1234)
        self._execute(0xA7FE, pc=0x3001)
        self.assertEqual(self.state.registers[3], 0x1234)
        self.assertEqual(self.state.cond, CondFlag.POS)

    def test_ldi_reads_keyboard_status(self):
        # LDI R0, #0 -> mem[mem[0x3001]] = KBSR
        self.bus.write(0x3001, MR_KBSR)
        self.keyboard.feed("a")
        self._execute(0xA000)
        self.assertEqual(self.state.registers[0], 0x8000)
        self.assertEqual(self.state.cond, CondFlag.NEG)
        self.assertEqual(self.state.memory[MR_KBDR], ord("a"))

    def test_ldr(self):
        # LDR R4, R2, #-3
        self.state.registers[2] = 0x4003
        self.bus.write(0x4000, 0x0000)
        self.state.registers[4] = 0x5555
        self._execute(0x68BD)
        self.assertEqual(self.state.registers[4], 0x0000)
        self.assertEqual(self.state.cond, CondFlag.ZRO)

    def test_lea(self):
        # LEA R5, #-4 -> 0x3001 - 4 = 0x2FFD (not dereferenced)
        self.bus.write(0x2FFD, 0xFFFF)
        self._execute(0xEBFC)
        self.assertEqual(self.state.registers[5], 0x2FFD)
        self.assertEqual(self.state.cond, CondFlag.POS)

    def test_st_does_not_touch_flags(self):
        # ST R0, #5 -> mem[0x3006]
        self.state.registers[0] = 0x0000
        self.state.cond = CondFlag.NEG
        self.bus.write(0x3006, 0xFFFF)
        self._execute(0x3005)
        self.assertEqual(self.state.memory[0x3006], 0x0000)
        self.assertEqual(self.state.cond, CondFlag.NEG)

    def test_sti(self):
        # STI R1, #1 -> mem[mem[0x3002]]
        self.bus.write(0x3002, 0x5000)
        self.state.registers[1] = 0xCAFE
        self._execute(0xB201)
        self.assertEqual(self.state.memory[0x5000], 0xCAFE)

    def test_str(self):
        # STR R1, R2, #2
        self.state.registers[1] = 0x0BAD
        self.state.registers[2] = 0xFFFF
        self._execute(0x7282)
        self.assertEqual(self.state.memory[0x0001], 0x0BAD)  # 0xFFFF + 2 wraps

    def test_st_then_ld_round_trip(self):
        for value in (0x0000, 0x0001, 0x7FFF, 0x8000, 0xFFFF):
            # ST R0, #5 then LD R1, #4 (both address 0x3006)
            self.state.registers[0] = value
            self._execute(0x3005, pc=0x3000)
            self._execute(0x2204, pc=0x3001)
            self.assertEqual(self.state.registers[1], value)

if __name__ == "__main__":
    unittest.main()
