# lc3_core_tracer/debugger/debugger.py
"""
デバッガモジュール。

コアエンジンの実行を制御し、ユーザーが指定した条件（ブレークポイント）で
実行を中断させる責務を負います。実行履歴を保持し、ステップバックにも対応します。
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from lc3_core_tracer.arch.lc3.cpu import Lc3Cpu
from lc3_core_tracer.arch.lc3.state import Lc3CpuState
from lc3_core_tracer.core.snapshot import Snapshot
from lc3_core_tracer.transport.bus import BusAccessType

# @intent:responsibility ブレークポイントの条件タイプを定義します。
class BreakpointConditionType(Enum):
    PC_MATCH = "PC_MATCH"               # プログラムカウンタが特定のアドレスに一致
    MEMORY_READ = "MEMORY_READ"         # 特定のアドレスが読み込まれた
    MEMORY_WRITE = "MEMORY_WRITE"       # 特定のアドレスに書き込まれた
    REGISTER_VALUE = "REGISTER_VALUE"   # 特定のレジスタが特定の値になった
    REGISTER_CHANGE = "REGISTER_CHANGE" # 特定のレジスタの値が変化した

# @intent:responsibility 実行が停止した理由を定義します。
class StopReason(Enum):
    HALTED = "HALTED"
    BREAKPOINT = "BREAKPOINT"
    STEP_LIMIT = "STEP_LIMIT"

# @intent:responsibility ブレークポイントをトリガーする条件を定義します。
@dataclass(frozen=True)
class BreakpointCondition:
    """
    ブレークポイントがヒットするための条件を定義するデータクラス。
    register_name は "R0"〜"R7" または "PC" です。
    """
    condition_type: BreakpointConditionType
    value: Optional[int] = None           # PC_MATCH, REGISTER_VALUEで使用
    address: Optional[int] = None         # MEMORY_READ, MEMORY_WRITEで使用
    register_name: Optional[str] = None   # REGISTER_VALUE, REGISTER_CHANGEで使用
    enabled: bool = True                  # 有効/無効状態

def _register_value(state: Lc3CpuState, name: str) -> Optional[int]:
    name = name.upper()
    if name == "PC":
        return state.pc
    if len(name) == 2 and name[0] == "R" and name[1] in "01234567":
        return state.registers[int(name[1])]
    return None

# @intent:responsibility スナップショットを1行のトレース文字列に整形します。
def format_snapshot(snapshot: Snapshot) -> str:
    """
    例: x3000  1021  ADD R0, R0, #1          R0=x0001 ... R7=x0000 PC=x3001 CC=P
    """
    state = snapshot.state
    registers = " ".join(f"R{i}=x{value:04X}" for i, value in enumerate(state.registers))
    return (f"x{snapshot.metadata.address:04X}  {snapshot.operation.word:04X}  "
            f"{snapshot.operation.text:<22} {registers} PC=x{state.pc:04X} CC={state.cond.letter}")

# @intent:responsibility コアエンジンの実行制御とブレークポイント管理を行います。
class Debugger:
    """
    CPUの実行を制御し、ブレークポイントと実行履歴の管理を行うクラス。
    """
    def __init__(self, cpu: Lc3Cpu):
        self._cpu = cpu
        self._breakpoints: List[BreakpointCondition] = []
        self._previous_state: Lc3CpuState = cpu.get_state().copy_registers()
        self._last_snapshot: Optional[Snapshot] = None
        # @intent:responsibility 実行履歴を保持し、ステップバックをサポートします。
        self._history: List[Snapshot] = []
        # @intent:responsibility 履歴が尽きた時に戻るための初期状態を保持します。
        self._initial_state: Lc3CpuState = cpu.get_state().copy_registers()

    def add_breakpoint(self, condition: BreakpointCondition) -> None:
        if condition not in self._breakpoints:
            self._breakpoints.append(condition)

    def update_breakpoint(self, old_condition: BreakpointCondition, new_condition: BreakpointCondition) -> None:
        if old_condition in self._breakpoints:
            idx = self._breakpoints.index(old_condition)
            self._breakpoints[idx] = new_condition

    def remove_breakpoint(self, condition: BreakpointCondition) -> None:
        if condition in self._breakpoints:
            self._breakpoints.remove(condition)

    def get_breakpoints(self) -> List[BreakpointCondition]:
        return list(self._breakpoints)

    def get_history(self) -> List[Snapshot]:
        return list(self._history)

    def get_last_snapshot(self) -> Optional[Snapshot]:
        return self._last_snapshot

    def _hit_pc_breakpoint(self, pc: int) -> bool:
        return any(
            bp.enabled and bp.condition_type == BreakpointConditionType.PC_MATCH and bp.value == pc
            for bp in self._breakpoints
        )

    def _check_other_breakpoints(self, snapshot: Snapshot) -> bool:
        """
        Snapshotに基づいてPC_MATCH以外のブレークポイントをチェックします。
        """
        current_state = snapshot.state

        for bp in self._breakpoints:
            if not bp.enabled:
                continue

            if bp.condition_type == BreakpointConditionType.MEMORY_READ:
                for access in snapshot.bus_activity:
                    if access.access_type == BusAccessType.READ and access.address == bp.address:
                        return True
            elif bp.condition_type == BreakpointConditionType.MEMORY_WRITE:
                for access in snapshot.bus_activity:
                    if access.access_type == BusAccessType.WRITE and access.address == bp.address:
                        return True
            elif bp.condition_type == BreakpointConditionType.REGISTER_VALUE:
                if bp.register_name and _register_value(current_state, bp.register_name) == bp.value:
                    return True
            elif bp.condition_type == BreakpointConditionType.REGISTER_CHANGE:
                if bp.register_name:
                    current = _register_value(current_state, bp.register_name)
                    previous = _register_value(self._previous_state, bp.register_name)
                    if current is not None and current != previous:
                        return True
        return False

    def step_instruction(self) -> Snapshot:
        """
        CPUを1命令分実行し、その結果のSnapshotを返します。
        実行が終了している場合は命令を実行せず、履歴にも追加しません。
        """
        if not self._cpu.is_running:
            return self._cpu.step()

        self._previous_state = self._cpu.get_state().copy_registers()
        snapshot = self._cpu.step()
        self._last_snapshot = snapshot

        # 履歴に追加
        self._history.append(snapshot)

        return snapshot

    def step_back(self) -> Optional[Snapshot]:
        """
        実行履歴を1つ戻り、CPUとメモリの状態を復元します。
        KBSR/KBDRへのデバイス反映は取り消しません。
        """
        if not self._history:
            return None

        # 1. 履歴から最新のスナップショットを取り出し、削除する
        snapshot_to_revert = self._history.pop()

        # 2. メモリ書き込みの取り消し (Undo)
        bus = self._cpu.bus
        for access in reversed(snapshot_to_revert.bus_activity):
            if access.access_type == BusAccessType.WRITE and access.previous_data is not None:
                bus.load(access.address, access.previous_data)

        # 3. CPU状態の復元
        # 取り消したサイクルは実行中に行われたものなので、実行状態もRUNNINGに戻す
        self._cpu.resume()
        if self._history:
            previous_snapshot = self._history[-1]
            self._cpu.restore_state(previous_snapshot.state)
            self._last_snapshot = previous_snapshot
            return previous_snapshot

        # 履歴が尽きた場合は初期状態に復元
        self._cpu.restore_state(self._initial_state)
        self._last_snapshot = None
        return None

    def run(self, max_steps: Optional[int] = None) -> StopReason:
        """
        HALT、ブレークポイント、または命令数の上限に達するまでCPUの実行を継続します。
        不正オペコードの場合はIllegalOpcodeErrorがそのまま送出されます。
        """
        executed = 0

        # 現在のPCにあるブレークポイントでは停止せず、まず1命令進める
        if self._cpu.is_running and self._hit_pc_breakpoint(self._cpu.get_state().pc):
            snapshot = self.step_instruction()
            executed += 1
            if self._check_other_breakpoints(snapshot):
                return StopReason.BREAKPOINT

        while self._cpu.is_running:
            if max_steps is not None and executed >= max_steps:
                return StopReason.STEP_LIMIT

            current_pc = self._cpu.get_state().pc
            if self._hit_pc_breakpoint(current_pc):
                print(f"Breakpoint hit at PC: {current_pc:#06x}")
                return StopReason.BREAKPOINT

            snapshot = self.step_instruction()
            executed += 1

            if self._check_other_breakpoints(snapshot):
                print(f"Breakpoint hit at PC: {snapshot.state.pc:#06x}")
                return StopReason.BREAKPOINT

        return StopReason.HALTED
