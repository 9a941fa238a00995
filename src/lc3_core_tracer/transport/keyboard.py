# lc3_core_tracer/transport/keyboard.py
"""
Transport Layer (入力デバイス)

メモリマップドI/OとTRAPルーチンが利用する文字入力デバイスを定義します。
ホスト端末のモード切替（非カノニカル・エコーなし）もこのデバイスの責務です。
"""
import os
import select
import sys
import termios
from abc import ABC, abstractmethod
from collections import deque
from typing import Iterable, Optional, Union

# @intent:constant 入力終端時に返される値。getchar()のEOF(-1)を16bitに収めた値に相当します。
EOF_CHAR = 0xFFFF

# @intent:responsibility 文字入力デバイスの抽象インターフェースを定義します。
class InputDevice(ABC):
    """
    バスとTRAPハンドラに接続される文字入力デバイスの抽象基底クラス。
    """
    # @intent:responsibility ブロックせずに、文字が読み取り可能かどうかを返します。
    @abstractmethod
    def poll(self) -> bool:
        pass

    # @intent:responsibility 1文字が利用可能になるまで待ち、その文字コードを返します。
    # @intent:post-condition 入力が終端に達した場合はEOF_CHARを返します。
    @abstractmethod
    def read_blocking(self) -> int:
        pass

    # @intent:responsibility 実行期間中に保持するホスト資源の取得・解放。デフォルトは何もしません。
    def __enter__(self) -> "InputDevice":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        pass

# @intent:responsibility 事前に与えられた文字列を順に返す決定的な入力デバイスです。
# @intent:rationale テストおよび --input オプション用。端末を一切操作しません。
class ScriptedKeyboard(InputDevice):
    def __init__(self, data: Union[str, bytes, Iterable[int]] = b""):
        self._queue = deque()
        self.feed(data)

    # @intent:responsibility 入力キューに文字を追加します。
    def feed(self, data: Union[str, bytes, Iterable[int]]) -> None:
        if isinstance(data, str):
            data = data.encode("latin-1")
        for value in data:
            if not 0 <= value <= 0xFF:
                raise ValueError(f"Input character {value} is not an 8-bit value.")
            self._queue.append(value)

    def poll(self) -> bool:
        return bool(self._queue)

    def read_blocking(self) -> int:
        if not self._queue:
            return EOF_CHAR
        return self._queue.popleft()

    # @intent:responsibility 未消費の文字数を返します。
    def pending(self) -> int:
        return len(self._queue)

# @intent:responsibility ホスト端末（標準入力）から文字を読み取る入力デバイスです。
# @intent:rationale 端末モードはwithブロックのスコープで取得・解放し、
#                  割り込み（KeyboardInterrupt）を含む全ての終了経路で元に戻します。
class TerminalKeyboard(InputDevice):
    """
    ホスト端末のキーボード。

    with 文で使用すると、ブロック中は行バッファリングとローカルエコーを無効にします。
    シグナル（ISIG）は有効のままなので、Ctrl-C は KeyboardInterrupt として届きます。
    """
    def __init__(self, fd: Optional[int] = None):
        self._explicit_fd = fd
        self._saved_attrs: Optional[list] = None

    # @intent:rationale 標準入力のファイル記述子は使用時に解決します（生成時に端末を要求しない）。
    @property
    def _fd(self) -> int:
        return sys.stdin.fileno() if self._explicit_fd is None else self._explicit_fd

    def __enter__(self) -> "TerminalKeyboard":
        self.disable_input_buffering()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.restore_input_buffering()

    # @intent:responsibility 現在の端末属性を保存し、ICANONとECHOを無効にします。
    # @intent:pre-condition 端末でない入力（パイプ、ファイル）の場合は何もしません。
    def disable_input_buffering(self) -> None:
        if not os.isatty(self._fd):
            return
        self._saved_attrs = termios.tcgetattr(self._fd)
        new_attrs = termios.tcgetattr(self._fd)
        new_attrs[3] &= ~(termios.ICANON | termios.ECHO)  # lflag
        termios.tcsetattr(self._fd, termios.TCSANOW, new_attrs)

    # @intent:responsibility 保存しておいた端末属性を書き戻します。複数回呼んでも安全です。
    def restore_input_buffering(self) -> None:
        if self._saved_attrs is None:
            return
        termios.tcsetattr(self._fd, termios.TCSANOW, self._saved_attrs)
        self._saved_attrs = None

    @property
    def raw_mode(self) -> bool:
        return self._saved_attrs is not None

    def poll(self) -> bool:
        readable, _, _ = select.select([self._fd], [], [], 0)
        return bool(readable)

    def read_blocking(self) -> int:
        data = os.read(self._fd, 1)
        if not data:
            return EOF_CHAR
        return data[0]
