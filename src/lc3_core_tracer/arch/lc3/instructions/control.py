# src/lc3_core_tracer/arch/lc3/instructions/control.py
"""
制御命令（分岐、ジャンプ、サブルーチン）の実装。
"""
from lc3_core_tracer.core.snapshot import Operation
from lc3_core_tracer.transport.bus import MemoryBus
from lc3_core_tracer.arch.lc3.state import Lc3CpuState, Opcode
from .base import dr, sr1, pc_offset9, pc_offset11, pc_relative, fmt_reg, fmt_addr

R7 = 7

# --- BR ---
# @intent:responsibility BR命令をデコードします。nzpマスクをニーモニックの接尾辞で表します。
def decode_br(word: int, pc: int) -> Operation:
    nzp = dr(word)
    if nzp == 0:
        return Operation(word, Opcode.BR, "NOP")
    suffix = "".join(letter for bit, letter in ((4, "n"), (2, "z"), (1, "p")) if nzp & bit)
    mnemonic = "BR" if nzp == 0b111 else f"BR{suffix}"
    target = pc_relative(pc, pc_offset9(word))
    return Operation(word, Opcode.BR, mnemonic, [fmt_addr(target)])

# @intent:responsibility BR命令を実行します。nzpマスクと条件フラグが共通のビットを持つ場合に分岐します。
def execute_br(state: Lc3CpuState, bus: MemoryBus, op: Operation) -> None:
    if dr(op.word) & state.cond:
        state.pc = pc_relative(state.pc, pc_offset9(op.word))

# --- JMP / RET ---
# @intent:responsibility JMP命令をデコードします。R7へのジャンプはRETと表記します。
def decode_jmp(word: int, pc: int) -> Operation:
    base = sr1(word)
    if base == R7:
        return Operation(word, Opcode.JMP, "RET")
    return Operation(word, Opcode.JMP, "JMP", [fmt_reg(base)])

# @intent:responsibility JMP命令を実行します。PC <- BaseR
def execute_jmp(state: Lc3CpuState, bus: MemoryBus, op: Operation) -> None:
    state.pc = state.registers[sr1(op.word)]

# --- JSR / JSRR ---
# @intent:responsibility JSR/JSRR命令をデコードします。bit11で形式を判別します。
def decode_jsr(word: int, pc: int) -> Operation:
    if (word >> 11) & 0x1:
        return Operation(word, Opcode.JSR, "JSR", [fmt_addr(pc_relative(pc, pc_offset11(word)))])
    return Operation(word, Opcode.JSR, "JSRR", [fmt_reg(sr1(word))])

# @intent:responsibility JSR/JSRR命令を実行します。戻りアドレスをR7に保存してからジャンプします。
def execute_jsr(state: Lc3CpuState, bus: MemoryBus, op: Operation) -> None:
    word = op.word
    state.registers[R7] = state.pc
    if (word >> 11) & 0x1:
        state.pc = pc_relative(state.pc, pc_offset11(word))
    else:
        # R7は上で書き換え済みのため、JSRR R7 は戻りアドレスへジャンプする
        state.pc = state.registers[sr1(word)]

# --- RTI / RES ---
# @intent:responsibility 未使用・予約オペコードを表示用にデコードします（実行は致命的エラー）。
def decode_illegal(word: int, pc: int) -> Operation:
    return Operation(word, Opcode(word >> 12), ".FILL", [fmt_addr(word)])
