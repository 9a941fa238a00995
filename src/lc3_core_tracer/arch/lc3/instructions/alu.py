# src/lc3_core_tracer/arch/lc3/instructions/alu.py
"""
算術・論理演算命令（ADD, AND, NOT）の実装。
"""
from lc3_core_tracer.core.snapshot import Operation
from lc3_core_tracer.transport.bus import MemoryBus
from lc3_core_tracer.arch.lc3.state import Lc3CpuState, Opcode
from .base import dr, sr1, sr2, imm_mode, imm5, set_register, fmt_reg, fmt_imm

def _second_operand(state: Lc3CpuState, word: int) -> int:
    if imm_mode(word):
        return imm5(word)
    return state.registers[sr2(word)]

def _decode_binary(word: int, opcode: Opcode) -> Operation:
    operands = [fmt_reg(dr(word)), fmt_reg(sr1(word))]
    operands.append(fmt_imm(imm5(word)) if imm_mode(word) else fmt_reg(sr2(word)))
    return Operation(word, opcode, opcode.name, operands)

# --- ADD ---
# @intent:responsibility ADD命令をデコードします。
def decode_add(word: int, pc: int) -> Operation:
    return _decode_binary(word, Opcode.ADD)

# @intent:responsibility ADD命令を実行します。結果は16bitで折り返し、フラグを更新します。
def execute_add(state: Lc3CpuState, bus: MemoryBus, op: Operation) -> None:
    word = op.word
    set_register(state, dr(word), state.registers[sr1(word)] + _second_operand(state, word))

# --- AND ---
# @intent:responsibility AND命令をデコードします。
def decode_and(word: int, pc: int) -> Operation:
    return _decode_binary(word, Opcode.AND)

# @intent:responsibility AND命令を実行し、フラグを更新します。
def execute_and(state: Lc3CpuState, bus: MemoryBus, op: Operation) -> None:
    word = op.word
    set_register(state, dr(word), state.registers[sr1(word)] & _second_operand(state, word))

# --- NOT ---
# @intent:responsibility NOT命令をデコードします。
def decode_not(word: int, pc: int) -> Operation:
    return Operation(word, Opcode.NOT, "NOT", [fmt_reg(dr(word)), fmt_reg(sr1(word))])

# @intent:responsibility NOT命令を実行し、ビット反転結果でフラグを更新します。
def execute_not(state: Lc3CpuState, bus: MemoryBus, op: Operation) -> None:
    word = op.word
    set_register(state, dr(word), ~state.registers[sr1(word)])
