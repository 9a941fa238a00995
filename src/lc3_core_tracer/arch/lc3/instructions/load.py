# src/lc3_core_tracer/arch/lc3/instructions/load.py
"""
転送命令（LD, LDI, LDR, LEA, ST, STI, STR）の実装。

PCは実行時点で既に次の命令を指しています（フェッチ時に更新済み）。
"""
from lc3_core_tracer.core.snapshot import Operation
from lc3_core_tracer.transport.bus import MemoryBus
from lc3_core_tracer.arch.lc3.state import Lc3CpuState, Opcode, WORD_MASK
from .base import (
    dr, sr1, offset6, pc_offset9, pc_relative, set_register,
    fmt_reg, fmt_imm, fmt_addr,
)

def _decode_pc_relative(word: int, pc: int, opcode: Opcode) -> Operation:
    target = pc_relative(pc, pc_offset9(word))
    return Operation(word, opcode, opcode.name, [fmt_reg(dr(word)), fmt_addr(target)])

def _decode_base_offset(word: int, opcode: Opcode) -> Operation:
    return Operation(word, opcode, opcode.name,
                     [fmt_reg(dr(word)), fmt_reg(sr1(word)), fmt_imm(offset6(word))])

def _base_offset_address(state: Lc3CpuState, word: int) -> int:
    return (state.registers[sr1(word)] + offset6(word)) & WORD_MASK

# --- LD ---
# @intent:responsibility LD命令をデコードします。
def decode_ld(word: int, pc: int) -> Operation:
    return _decode_pc_relative(word, pc, Opcode.LD)

# @intent:responsibility LD命令を実行します。DR <- mem[PC + offset9]
def execute_ld(state: Lc3CpuState, bus: MemoryBus, op: Operation) -> None:
    word = op.word
    set_register(state, dr(word), bus.read(pc_relative(state.pc, pc_offset9(word))))

# --- LDI ---
# @intent:responsibility LDI命令をデコードします。
def decode_ldi(word: int, pc: int) -> Operation:
    return _decode_pc_relative(word, pc, Opcode.LDI)

# @intent:responsibility LDI命令を実行します。一段のポインタ間接参照: DR <- mem[mem[PC + offset9]]
def execute_ldi(state: Lc3CpuState, bus: MemoryBus, op: Operation) -> None:
    word = op.word
    pointer = bus.read(pc_relative(state.pc, pc_offset9(word)))
    set_register(state, dr(word), bus.read(pointer))

# --- LDR ---
# @intent:responsibility LDR命令をデコードします。
def decode_ldr(word: int, pc: int) -> Operation:
    return _decode_base_offset(word, Opcode.LDR)

# @intent:responsibility LDR命令を実行します。DR <- mem[BaseR + offset6]
def execute_ldr(state: Lc3CpuState, bus: MemoryBus, op: Operation) -> None:
    word = op.word
    set_register(state, dr(word), bus.read(_base_offset_address(state, word)))

# --- LEA ---
# @intent:responsibility LEA命令をデコードします。
def decode_lea(word: int, pc: int) -> Operation:
    return _decode_pc_relative(word, pc, Opcode.LEA)

# @intent:responsibility LEA命令を実行します。アドレスを計算するだけで参照はしません。
def execute_lea(state: Lc3CpuState, bus: MemoryBus, op: Operation) -> None:
    word = op.word
    set_register(state, dr(word), pc_relative(state.pc, pc_offset9(word)))

# --- ST ---
# @intent:responsibility ST命令をデコードします。
def decode_st(word: int, pc: int) -> Operation:
    return _decode_pc_relative(word, pc, Opcode.ST)

# @intent:responsibility ST命令を実行します。フラグは変化しません。
def execute_st(state: Lc3CpuState, bus: MemoryBus, op: Operation) -> None:
    word = op.word
    bus.write(pc_relative(state.pc, pc_offset9(word)), state.registers[dr(word)])

# --- STI ---
# @intent:responsibility STI命令をデコードします。
def decode_sti(word: int, pc: int) -> Operation:
    return _decode_pc_relative(word, pc, Opcode.STI)

# @intent:responsibility STI命令を実行します。mem[mem[PC + offset9]] <- SR
def execute_sti(state: Lc3CpuState, bus: MemoryBus, op: Operation) -> None:
    word = op.word
    pointer = bus.read(pc_relative(state.pc, pc_offset9(word)))
    bus.write(pointer, state.registers[dr(word)])

# --- STR ---
# @intent:responsibility STR命令をデコードします。
def decode_str(word: int, pc: int) -> Operation:
    return _decode_base_offset(word, Opcode.STR)

# @intent:responsibility STR命令を実行します。mem[BaseR + offset6] <- SR
def execute_str(state: Lc3CpuState, bus: MemoryBus, op: Operation) -> None:
    word = op.word
    bus.write(_base_offset_address(state, word), state.registers[dr(word)])
