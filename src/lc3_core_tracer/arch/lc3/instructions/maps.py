# src/lc3_core_tracer/arch/lc3/instructions/maps.py
"""
オペコードと命令実装のマッピング定義。
"""
from lc3_core_tracer.arch.lc3.state import Opcode
from . import alu
from . import load
from . import control
from . import trap

# @intent:map オペコードからデコード関数へのマッピングテーブル（全16オペコードを網羅）。
DECODE_MAP = {
    Opcode.BR: control.decode_br,
    Opcode.ADD: alu.decode_add,
    Opcode.LD: load.decode_ld,
    Opcode.ST: load.decode_st,
    Opcode.JSR: control.decode_jsr,
    Opcode.AND: alu.decode_and,
    Opcode.LDR: load.decode_ldr,
    Opcode.STR: load.decode_str,
    Opcode.RTI: control.decode_illegal,
    Opcode.NOT: alu.decode_not,
    Opcode.LDI: load.decode_ldi,
    Opcode.STI: load.decode_sti,
    Opcode.JMP: control.decode_jmp,
    Opcode.RES: control.decode_illegal,
    Opcode.LEA: load.decode_lea,
    Opcode.TRAP: trap.decode_trap,
}

# @intent:map オペコードから実行関数へのマッピングテーブル。
# TRAPは入出力を伴うためTrapHandlerが、RTI/RESは不正オペコードとしてCPUが扱います。
EXECUTE_MAP = {
    Opcode.BR: control.execute_br,
    Opcode.ADD: alu.execute_add,
    Opcode.LD: load.execute_ld,
    Opcode.ST: load.execute_st,
    Opcode.JSR: control.execute_jsr,
    Opcode.AND: alu.execute_and,
    Opcode.LDR: load.execute_ldr,
    Opcode.STR: load.execute_str,
    Opcode.NOT: alu.execute_not,
    Opcode.LDI: load.execute_ldi,
    Opcode.STI: load.execute_sti,
    Opcode.JMP: control.execute_jmp,
    Opcode.LEA: load.execute_lea,
}

ILLEGAL_OPCODES = frozenset({Opcode.RTI, Opcode.RES})
