# src/lc3_core_tracer/arch/lc3/instructions/__init__.py
"""
LC-3命令セット実装パッケージ。
"""
from lc3_core_tracer.transport.bus import MemoryBus
from lc3_core_tracer.core.snapshot import Operation
from lc3_core_tracer.arch.lc3.state import Lc3CpuState, Opcode
from .maps import DECODE_MAP, EXECUTE_MAP, ILLEGAL_OPCODES
from .trap import TrapHandler
from .base import sign_extend, update_flags

# @intent:responsibility 命令ワードをデコードします。
# @intent:pre-condition `pc`はフェッチ後（インクリメント済み）のPCである必要があります。
def decode_instruction(word: int, pc: int) -> Operation:
    """
    LC-3の命令ワードをデコードし、Operationオブジェクトを返します。
    4bitのオペコードは全て定義済みのため、未知の命令は存在しません。
    """
    return DECODE_MAP[Opcode(word >> 12)](word, pc)

# @intent:responsibility デコードされた通常命令（TRAP・不正オペコード以外）を実行します。
def execute_instruction(operation: Operation, state: Lc3CpuState, bus: MemoryBus) -> None:
    executor = EXECUTE_MAP.get(Opcode(operation.opcode))
    if executor is None:
        raise ValueError(f"No executor for opcode {Opcode(operation.opcode).name}")
    executor(state, bus, operation)

__all__ = [
    "decode_instruction", "execute_instruction", "TrapHandler",
    "ILLEGAL_OPCODES", "sign_extend", "update_flags",
]
