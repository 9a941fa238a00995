# src/lc3_core_tracer/arch/lc3/instructions/trap.py
"""
TRAPサービスルーチン（GETC, OUT, PUTS, IN, PUTSP, HALT）の実装。

TRAP命令は入出力デバイスを必要とするため、他の命令と異なりクラスとして実装し、
入力デバイスと出力ストリームを保持します。
出力は1文字を1バイトとしてバイナリストリームへ書き込みます（端末のエンコーディングを介しません）。
"""
import sys
from typing import BinaryIO, Callable, Dict, Optional

from lc3_core_tracer.core.snapshot import Operation
from lc3_core_tracer.transport.bus import MemoryBus
from lc3_core_tracer.transport.keyboard import InputDevice
from lc3_core_tracer.arch.lc3.state import Lc3CpuState, Opcode, TrapVector, WORD_MASK
from .base import trap_vector, set_register

IN_PROMPT = b"Enter a character: "
HALT_MESSAGE = b"HALT"

# @intent:responsibility TRAP命令をデコードします。既知のベクタはその名前で表記します。
def decode_trap(word: int, pc: int) -> Operation:
    vector = trap_vector(word)
    try:
        return Operation(word, Opcode.TRAP, TrapVector(vector).name)
    except ValueError:
        return Operation(word, Opcode.TRAP, "TRAP", [f"x{vector:02X}"])

# @intent:responsibility TRAPベクタに応じたサービスルーチンを実行します。
class TrapHandler:
    """
    6つの固定サービスルーチンを提供するTRAPハンドラ。
    未定義のベクタは何もしません（R7の保存のみ行われます）。
    """
    # @intent:pre-condition `output`はバイナリストリーム。省略時は標準出力の下層バッファを使います。
    def __init__(self, keyboard: InputDevice, output: Optional[BinaryIO] = None):
        self._keyboard = keyboard
        self._output = output if output is not None else sys.stdout.buffer
        # @intent:map トラップベクタからサービスルーチンへのマッピングテーブル。
        self._routines: Dict[TrapVector, Callable[[Lc3CpuState, MemoryBus], bool]] = {
            TrapVector.GETC: self._getc,
            TrapVector.OUT: self._out,
            TrapVector.PUTS: self._puts,
            TrapVector.IN: self._in,
            TrapVector.PUTSP: self._putsp,
            TrapVector.HALT: self._halt,
        }

    @property
    def output(self) -> BinaryIO:
        return self._output

    # @intent:responsibility TRAP命令を実行します。
    # @intent:return 実行を停止すべき場合（HALT）にTrue。
    def execute(self, state: Lc3CpuState, bus: MemoryBus, op: Operation) -> bool:
        state.registers[7] = state.pc
        try:
            vector = TrapVector(trap_vector(op.word))
        except ValueError:
            return False
        return self._routines[vector](state, bus)

    def _emit(self, data: bytes) -> None:
        self._output.write(data)
        self._output.flush()

    # @intent:responsibility 1文字を待ってR0に格納します（エコーなし）。
    def _getc(self, state: Lc3CpuState, bus: MemoryBus) -> bool:
        set_register(state, 0, self._keyboard.read_blocking())
        return False

    # @intent:responsibility R0の下位8bitを1バイトとして出力します。
    def _out(self, state: Lc3CpuState, bus: MemoryBus) -> bool:
        self._emit(bytes([state.registers[0] & 0xFF]))
        return False

    # @intent:responsibility R0が指すアドレスから、0のワードまで1ワード1文字で出力します。
    def _puts(self, state: Lc3CpuState, bus: MemoryBus) -> bool:
        chars = bytearray()
        address = state.registers[0]
        word = bus.peek(address)
        while word:
            chars.append(word & 0xFF)
            address = (address + 1) & WORD_MASK
            word = bus.peek(address)
        self._emit(bytes(chars))
        return False

    # @intent:responsibility プロンプトを表示して1文字を待ち、エコーしてR0に格納します。
    def _in(self, state: Lc3CpuState, bus: MemoryBus) -> bool:
        self._emit(IN_PROMPT)
        char = self._keyboard.read_blocking()
        self._emit(bytes([char & 0xFF]))
        set_register(state, 0, char)
        return False

    # @intent:responsibility 1ワードに2文字（下位バイト→上位バイト）詰めた文字列を出力します。
    def _putsp(self, state: Lc3CpuState, bus: MemoryBus) -> bool:
        chars = bytearray()
        address = state.registers[0]
        word = bus.peek(address)
        while word:
            chars.append(word & 0xFF)
            high = word >> 8
            if high:
                chars.append(high)
            address = (address + 1) & WORD_MASK
            word = bus.peek(address)
        self._emit(bytes(chars))
        return False

    # @intent:responsibility 停止メッセージを表示し、実行停止を要求します。
    def _halt(self, state: Lc3CpuState, bus: MemoryBus) -> bool:
        self._emit(HALT_MESSAGE + b"\n")
        return True
