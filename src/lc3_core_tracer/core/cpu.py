# lc3_core_tracer/core/cpu.py
"""
Core Layer (抽象CPU)

このモジュールは、CPUの実行状態の管理と命令サイクル（フェッチ→デコード→実行）の駆動に関する
抽象化を提供します。具体的な命令の振る舞いはInstruction Layerに移譲されます。
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, List, Optional, Tuple

from lc3_core_tracer.transport.bus import MemoryBus
from lc3_core_tracer.core.snapshot import Snapshot, Operation, Metadata
from lc3_core_tracer.core.state import CpuState

# @intent:responsibility 命令サイクルループの状態を定義します。HALTEDとABORTEDは終端状態です。
class RunState(Enum):
    RUNNING = "RUNNING"
    HALTED = "HALTED"
    ABORTED = "ABORTED"

# @intent:responsibility 未使用・予約オペコードに到達したことを表す致命的エラー。
class IllegalOpcodeError(RuntimeError):
    def __init__(self, address: int, word: int):
        super().__init__(f"Illegal opcode {word >> 12:#x} (word {word:#06x}) at address {address:#06x}")
        self.address = address
        self.word = word

# @intent:responsibility 抽象CPUの基本機能とインターフェースを定義します。
class AbstractCpu(ABC):
    """
    CPUエミュレーションの基底となる抽象クラス。
    バスとのインターフェース、実行状態の管理、命令サイクルの抽象化を提供します。
    """
    # @intent:responsibility CPUの状態とバスへの参照を初期化します。
    # @intent:pre-condition `bus`は有効なMemoryBus、`state`はそのバスが参照する状態値である必要があります。
    def __init__(self, bus: MemoryBus, state: CpuState):
        self._bus = bus
        self._state = state
        self._run_state = RunState.RUNNING
        self._step_count: int = 0
        # @intent:rationale Stateオブジェクトの直接操作を避けるため、protectedな命名規則を採用。
        #                  外部からのアクセスは`get_state()`メソッドを介して行う。

    # @intent:responsibility 状態を初期値に戻す処理をアーキテクチャごとに実装します。
    @abstractmethod
    def _reset_state(self) -> None:
        pass

    # @intent:responsibility CPUをリセットし、実行可能状態に戻します。
    def reset(self) -> None:
        """
        レジスタ・PC・フラグを初期値に戻します。メモリの内容は保持されます。
        """
        self._reset_state()
        self._run_state = RunState.RUNNING
        self._step_count = 0

    # @intent:responsibility 現在のCPUの状態を返します。
    def get_state(self) -> CpuState:
        return self._state

    @property
    def bus(self) -> MemoryBus:
        return self._bus

    @property
    def run_state(self) -> RunState:
        return self._run_state

    @property
    def is_running(self) -> bool:
        return self._run_state is RunState.RUNNING

    @property
    def step_count(self) -> int:
        return self._step_count

    # @intent:responsibility 実行を正常終了状態（HALTED）に遷移させます。
    def halt(self) -> None:
        self._run_state = RunState.HALTED

    # @intent:responsibility 実行状態をRUNNINGに戻します（デバッガのステップバック用）。
    def resume(self) -> None:
        self._run_state = RunState.RUNNING

    # @intent:responsibility 与えられた状態のレジスタ値を現在の状態へ書き戻します。
    @abstractmethod
    def restore_state(self, state: CpuState) -> None:
        pass

    # @intent:responsibility メモリから次の命令ワードをフェッチし、PCを進めます。
    @abstractmethod
    def _fetch(self) -> int:
        """
        現在のPCから命令ワードを読み出し、PCを次の命令の先頭へ進めてから値を返します。
        """
        pass

    # @intent:responsibility フェッチした命令ワードを解析し、Operationオブジェクトに変換します。
    @abstractmethod
    def _decode(self, word: int) -> Operation:
        pass

    # @intent:responsibility デコードされた命令を実行し、CPUの状態を更新します。
    @abstractmethod
    def _execute(self, operation: Operation) -> None:
        pass

    # @intent:responsibility CPUを1命令サイクル進め、その結果のスナップショットを返します。
    # @intent:rationale Template Methodパターンを採用し、共通の実行フロー（ログクリア→フェッチ→デコード→実行→Snapshot生成）を定義します。
    def step(self) -> Snapshot:
        """
        CPUを1命令サイクル進め、その時点でのCPUとバスの状態を含むSnapshotを返します。
        不正オペコードの場合はABORTEDに遷移し、IllegalOpcodeErrorを送出します。
        """
        # 1. 前処理: 前サイクルまでの残存ログを破棄
        self._bus.get_and_clear_activity_log()
        initial_pc = self._state.pc

        # 2. 終端状態の判定 (Hook)
        halt_snapshot = self._handle_halt(initial_pc)
        if halt_snapshot:
            return halt_snapshot

        # 3. フェッチ (PC更新を含む)
        word = self._fetch()

        # 4. デコード
        operation = self._decode(word)

        # 5. 実行
        try:
            self._execute(operation)
        except IllegalOpcodeError:
            self._run_state = RunState.ABORTED
            raise

        # 6. 後処理 & Snapshot生成
        return self._create_snapshot(initial_pc, operation)

    # @intent:responsibility 終端状態の場合の処理を行います。
    # @intent:return 終端状態であればその状態のSnapshot、そうでなければNone。
    def _handle_halt(self, current_pc: int) -> Optional[Snapshot]:
        if self.is_running:
            return None
        operation = Operation(word=0, opcode=0, mnemonic=self._run_state.value)
        return Snapshot(
            state=self._copy_state(),
            operation=operation,
            metadata=Metadata(step_count=self._step_count, address=current_pc, symbol_info=operation.text),
        )

    # @intent:responsibility スナップショット用に状態を複製します。
    def _copy_state(self) -> CpuState:
        return self._state

    # @intent:responsibility スナップショットを生成します。
    def _create_snapshot(self, initial_pc: int, operation: Operation) -> Snapshot:
        bus_activity = self._bus.get_and_clear_activity_log()
        self._step_count += 1
        return Snapshot(
            state=self._copy_state(),
            operation=operation,
            metadata=Metadata(step_count=self._step_count, address=initial_pc, symbol_info=operation.text),
            bus_activity=bus_activity
        )

    # @intent:responsibility 終端状態になるまで（または上限まで）命令サイクルを繰り返します。
    def run(self, max_steps: Optional[int] = None) -> RunState:
        """
        RUNNINGの間stepを繰り返し、最終的な実行状態を返します。
        max_stepsに達した場合はRUNNINGのまま戻ります。
        """
        executed = 0
        while self.is_running:
            if max_steps is not None and executed >= max_steps:
                break
            self.step()
            executed += 1
        return self._run_state

    @abstractmethod
    def get_register_map(self) -> Dict[str, int]:
        """
        現在のレジスタ値を辞書形式で返す。
        """
        pass

    @abstractmethod
    def get_flag_state(self) -> Dict[str, bool]:
        """
        現在の条件フラグの状態を辞書形式で返す。
        """
        pass

    @abstractmethod
    def disassemble(self, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
        """
        指定されたメモリ範囲を逆アセンブルし、(address, hex_word, mnemonic) のタプルリストを返す。
        """
        pass
