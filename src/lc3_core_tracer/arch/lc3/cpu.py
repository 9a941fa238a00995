# src/lc3_core_tracer/arch/lc3/cpu.py
"""
LC-3 CPUエミュレーションの中心モジュール（フェッチ・デコード・実行ループ）。
"""
from typing import Dict, List, Tuple

from lc3_core_tracer.core.cpu import AbstractCpu, IllegalOpcodeError
from lc3_core_tracer.core.snapshot import Operation
from lc3_core_tracer.arch.lc3.state import Lc3CpuState, CondFlag, Opcode, PC_START, REGISTER_COUNT
from lc3_core_tracer.transport.bus import MemoryBus
from lc3_core_tracer.arch.lc3.instructions import (
    decode_instruction, execute_instruction, TrapHandler, ILLEGAL_OPCODES,
)
from lc3_core_tracer.arch.lc3 import disassembler

# @intent:responsibility LC-3 CPUの具体的なエミュレーションロジック（フェッチ、デコード、実行）を提供します。
class Lc3Cpu(AbstractCpu):
    """
    LC-3 CPUをエミュレートするクラス。

    状態値（メモリとレジスタ）はバスと共有し、CPUが唯一の所有者として命令ごとに更新します。
    """
    # @intent:responsibility Lc3Cpuを初期化します。
    # @intent:pre-condition `bus`はこのCPUの状態値を参照している必要があります。
    def __init__(self, bus: MemoryBus, traps: TrapHandler):
        super().__init__(bus, bus.state)
        self._traps = traps

    @property
    def traps(self) -> TrapHandler:
        return self._traps

    # @intent:responsibility レジスタファイルを初期状態（PC=0x3000, COND=Z）に戻します。
    def _reset_state(self) -> None:
        self._state.pc = PC_START
        self._state.registers[:] = [0] * REGISTER_COUNT
        self._state.cond = CondFlag.ZRO

    # @intent:responsibility PCの命令ワードをフェッチし、PCを1進めます（16bitで折り返し）。
    def _fetch(self) -> int:
        word = self._bus.read(self._state.pc)
        self._state.pc = (self._state.pc + 1) & 0xFFFF
        return word

    # @intent:responsibility 命令ワードをデコードし、Operationオブジェクトを返します。
    def _decode(self, word: int) -> Operation:
        return decode_instruction(word, self._state.pc)

    # @intent:responsibility Operationを実行し、状態を更新します。
    # @intent:flow TRAPはTrapHandlerへ、RTI/RESは不正オペコードとしてエラー、それ以外は命令テーブルへ。
    def _execute(self, operation: Operation) -> None:
        opcode = Opcode(operation.opcode)
        if opcode is Opcode.TRAP:
            if self._traps.execute(self._state, self._bus, operation):
                self.halt()
        elif opcode in ILLEGAL_OPCODES:
            raise IllegalOpcodeError((self._state.pc - 1) & 0xFFFF, operation.word)
        else:
            execute_instruction(operation, self._state, self._bus)

    # @intent:responsibility スナップショット用にレジスタファイルのみを複製します。
    def _copy_state(self) -> Lc3CpuState:
        return self._state.copy_registers()

    # @intent:responsibility デバッガのステップバック用に、レジスタファイルを復元します。
    def restore_state(self, state: Lc3CpuState) -> None:
        self._state.restore_registers(state)

    # @intent:responsibility トレース表示用に、現在のレジスタ値を辞書形式で提供します。
    def get_register_map(self) -> Dict[str, int]:
        s = self._state
        registers = {f"R{i}": value for i, value in enumerate(s.registers)}
        registers["PC"] = s.pc
        return registers

    # @intent:responsibility トレース表示用に、現在のフラグ状態を辞書形式で提供します。
    def get_flag_state(self) -> Dict[str, bool]:
        cond = self._state.cond
        return {
            "N": bool(cond & CondFlag.NEG), "Z": bool(cond & CondFlag.ZRO), "P": bool(cond & CondFlag.POS)
        }

    # @intent:responsibility 指定範囲のメモリを逆アセンブルします。
    def disassemble(self, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
        return disassembler.disassemble(self._bus, start_addr, length)
