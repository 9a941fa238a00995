# lc3_core_tracer/transport/bus.py
"""
Transport Layer (メモリバス)

このモジュールは、LC-3の16bitアドレス空間への読み書きを仲介し、
メモリマップドI/O（キーボード状態・データレジスタ）の副作用を実装する責務を負います。
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from lc3_core_tracer.arch.lc3.state import Lc3CpuState, MR_KBSR, MR_KBDR, WORD_MASK
from lc3_core_tracer.transport.keyboard import InputDevice

# @intent:responsibility バスアクセスを記録するためのタイプを定義します。
class BusAccessType(Enum):
    READ = "READ"
    WRITE = "WRITE"
    IO_READ = "IO_READ"

# @intent:responsibility 個々のバスアクセス操作を記録します。
@dataclass(frozen=True) # 不変データ構造
class BusAccess:
    """
    バス上で行われた単一のアクセス（読み込みまたは書き込み）を記録するデータクラス。
    書き込みの場合、previous_data に上書き前の値を保持します（デバッガのステップバック用）。
    """
    address: int
    data: int # 16bit value
    access_type: BusAccessType
    previous_data: Optional[int] = None

# @intent:responsibility 状態値のメモリへのアクセスを仲介し、キーボードのポーリングを行うバス。
# @intent:rationale バスの全てのアクセスを記録し、Snapshotに含めることでシステムの観測可能性を高めます。
class MemoryBus:
    """
    LC-3 のメモリバス。

    KBSR の読み込みは、必ず1回だけ非ブロッキングでデバイスをポーリングし、
    KBSR/KBDR の両方を更新してから値を返します。それ以外のアドレスは通常のメモリです。
    アドレスは16bitで折り返すため、範囲外アクセスは発生しません。
    """
    # @intent:responsibility 状態値と入力デバイスへの参照を保持します。
    # @intent:pre-condition `state` はLc3CpuState、`keyboard` はInputDeviceである必要があります。
    def __init__(self, state: Lc3CpuState, keyboard: InputDevice,
                 status_address: int = MR_KBSR, data_address: int = MR_KBDR):
        if not isinstance(keyboard, InputDevice):
            raise TypeError("Keyboard must be an instance of a class derived from InputDevice.")
        if status_address == data_address:
            raise ValueError("Keyboard status and data addresses must differ.")
        self._state = state
        self._keyboard = keyboard
        self._status_address = status_address & WORD_MASK
        self._data_address = data_address & WORD_MASK
        self._bus_activity_log: List[BusAccess] = [] # バスアクセスログ

    @property
    def state(self) -> Lc3CpuState:
        return self._state

    @property
    def keyboard(self) -> InputDevice:
        return self._keyboard

    @property
    def status_address(self) -> int:
        return self._status_address

    @property
    def data_address(self) -> int:
        return self._data_address

    # @intent:responsibility バスアクセスをログに記録します。
    def _log_access(self, address: int, data: int, access_type: BusAccessType,
                    previous_data: Optional[int] = None) -> None:
        self._bus_activity_log.append(BusAccess(address, data, access_type, previous_data))

    # @intent:responsibility 記録されたバスアクティビティログを取得し、クリアします。
    def get_and_clear_activity_log(self) -> List[BusAccess]:
        log = self._bus_activity_log
        self._bus_activity_log = [] # ログをクリア
        return log

    # @intent:responsibility キーボードを1回ポーリングし、KBSR/KBDRを更新します。
    def _poll_keyboard(self) -> None:
        memory = self._state.memory
        if self._keyboard.poll():
            memory[self._status_address] = 1 << 15
            memory[self._data_address] = self._keyboard.read_blocking() & WORD_MASK
        else:
            memory[self._status_address] = 0
        self._log_access(self._status_address, memory[self._status_address], BusAccessType.IO_READ)

    # @intent:responsibility 指定されたアドレスから16bitのワードを読み出します。
    def read(self, address: int) -> int:
        """
        指定されたアドレスから16bitのワードを読み出します。
        KBSRの場合はデバイスのポーリング結果を反映してから返します。
        """
        address &= WORD_MASK
        if address == self._status_address:
            self._poll_keyboard()
        data = self._state.memory[address]
        self._log_access(address, data, BusAccessType.READ)
        return data

    # @intent:responsibility 副作用・ログなしでワードを読み出します。
    def peek(self, address: int) -> int:
        """
        逆アセンブラやTRAPの文字列出力、デバッガなど、観測用の読み込み。
        """
        return self._state.memory[address & WORD_MASK]

    # @intent:responsibility 指定されたアドレスに16bitのワードを書き込みます。書き込み禁止領域はありません。
    def write(self, address: int, data: int) -> None:
        address &= WORD_MASK
        data &= WORD_MASK
        previous = self._state.memory[address]
        self._state.memory[address] = data
        self._log_access(address, data, BusAccessType.WRITE, previous)

    # @intent:responsibility ログを記録せずに書き込みます（ローダー、デバッガの書き戻し用）。
    def load(self, address: int, data: int) -> None:
        self._state.memory[address & WORD_MASK] = data & WORD_MASK
