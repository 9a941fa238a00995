# src/lc3_core_tracer/arch/lc3/state.py
"""
LC-3 CPU固有の状態定義。

メモリ（65536ワード）とレジスタファイル（R0-R7, PC, COND）を一つの状態値として保持します。
"""
from array import array
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import List

from lc3_core_tracer.core.state import CpuState

MEMORY_SIZE = 1 << 16
REGISTER_COUNT = 8
WORD_MASK = 0xFFFF

# @intent:constant プログラムの実行開始アドレス。
PC_START = 0x3000

# @intent:constant メモリマップドI/O（キーボード）のアドレス。
MR_KBSR = 0xFE00  # keyboard status
MR_KBDR = 0xFE02  # keyboard data

# @intent:responsibility 条件フラグ。BR命令のnzpマスクと直接AND可能なビット配置にしています。
class CondFlag(IntFlag):
    POS = 1 << 0  # P
    ZRO = 1 << 1  # Z
    NEG = 1 << 2  # N

    # @intent:utility_function 表示用の一文字表記（N/Z/P）を返します。
    @property
    def letter(self) -> str:
        return {CondFlag.POS: "P", CondFlag.ZRO: "Z", CondFlag.NEG: "N"}.get(self, "?")

    @classmethod
    def from_letter(cls, letter: str) -> "CondFlag":
        table = {"P": cls.POS, "Z": cls.ZRO, "N": cls.NEG}
        key = letter.strip().upper()
        if key not in table:
            raise ValueError(f"Invalid condition flag: {letter!r} (expected N, Z or P)")
        return table[key]

# @intent:responsibility 上位4bitのオペコード。閉じた集合としてIntEnumで定義します。
class Opcode(IntEnum):
    BR = 0     # branch
    ADD = 1
    LD = 2
    ST = 3
    JSR = 4    # jump register
    AND = 5
    LDR = 6
    STR = 7
    RTI = 8    # unused
    NOT = 9
    LDI = 10
    STI = 11
    JMP = 12
    RES = 13   # reserved (unused)
    LEA = 14
    TRAP = 15

# @intent:responsibility TRAP命令の下位8bitで選択されるサービスルーチン。
class TrapVector(IntEnum):
    GETC = 0x20   # get character from keyboard, not echoed
    OUT = 0x21    # output a character
    PUTS = 0x22   # output a word string
    IN = 0x23     # get character from keyboard, echoed
    PUTSP = 0x24  # output a byte string
    HALT = 0x25   # halt the program

def _new_memory() -> array:
    return array("H", bytes(2 * MEMORY_SIZE))

# @intent:responsibility LC-3の全レジスタとメモリを一つの値として保持します。
# @intent:rationale グローバル変数を使わず、この状態値をCPUが所有し各命令へ明示的に渡します。
@dataclass
class Lc3CpuState(CpuState):
    """
    LC-3 の仮想マシン状態。

    memory はスナップショット間で共有されるため、比較・表示の対象から外しています。
    """
    pc: int = PC_START
    registers: List[int] = field(default_factory=lambda: [0] * REGISTER_COUNT)
    cond: CondFlag = CondFlag.ZRO
    memory: array = field(default_factory=_new_memory, repr=False, compare=False)

    # @intent:responsibility レジスタファイルのみを複製した状態を返します（メモリは共有）。
    def copy_registers(self) -> "Lc3CpuState":
        return Lc3CpuState(pc=self.pc, registers=list(self.registers), cond=self.cond, memory=self.memory)

    # @intent:responsibility 別の状態からレジスタファイルを書き戻します。
    def restore_registers(self, other: "Lc3CpuState") -> None:
        self.pc = other.pc
        self.registers[:] = other.registers
        self.cond = other.cond
