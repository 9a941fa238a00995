# lc3_core_tracer/core/snapshot.py
"""
実行状態の不変スナップショット

このモジュールは、1命令サイクル実行後のCPUとバスの状態を記録した不変のデータ構造を定義します。
トレース出力とデバッガ（履歴・ステップバック）への情報提供に用いる責務を負います。
"""
from dataclasses import dataclass, field
from typing import List, Optional

from lc3_core_tracer.core.state import CpuState
from lc3_core_tracer.transport.bus import BusAccess


# @intent:responsibility デコードされた命令の詳細を記録します。
@dataclass(frozen=True) # 不変データ構造
class Operation:
    """
    デコードされた命令の詳細（命令ワード、オペコード、ニーモニック、オペランド）を記録するデータクラス。
    """
    word: int # 例: 0x1021
    opcode: int # 上位4bit
    mnemonic: str # 例: "ADD"
    operands: List[str] = field(default_factory=list) # 例: ["R0", "R0", "#1"]
    length: int = 1 # 命令のワード長（LC-3では常に1）

    # @intent:responsibility アセンブリ表記の文字列を返します。
    @property
    def text(self) -> str:
        if self.operands:
            return f"{self.mnemonic} " + ", ".join(self.operands)
        return self.mnemonic

# @intent:responsibility 実行に関するメタデータを記録します。
@dataclass(frozen=True) # 不変データ構造
class Metadata:
    """
    実行に関するメタデータ（累計命令数、命令アドレスなど）を記録するデータクラス。
    """
    step_count: int
    address: int = 0 # 命令がフェッチされたアドレス
    symbol_info: Optional[str] = None # 例: "ADD R0, R0, #1"

# @intent:responsibility ある一時点におけるCPUとバスの状態を不変に記録します。
@dataclass(frozen=True) # 不変データ構造
class Snapshot:
    """
    1サイクル実行直後のCPUとバスの状態を記録した不変のデータ構造。
    state はレジスタファイルの複製であり、メモリは実行中のものと共有されます。
    """
    state: CpuState
    operation: Operation
    metadata: Metadata
    bus_activity: List[BusAccess] = field(default_factory=list)
