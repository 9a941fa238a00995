# lc3_core_tracer/core/state.py
"""
Core Layer (CPU状態)

このモジュールは、CPUの基本的な状態（プログラムカウンタ）を保持するデータ構造を定義します。
"""
from dataclasses import dataclass

# @intent:responsibility CPUのレジスタ状態を保持します。アーキテクチャ固有のレジスタはこれを拡張します。
@dataclass
class CpuState:
    """
    CPUのレジスタ状態を保持するデータクラス。
    これは抽象的な基底状態であり、具体的なアーキテクチャ（arch/lc3/state.py）で拡張されます。
    """
    pc: int = 0x0000  # Program Counter
    # @intent:rationale 初期値は0x0000とする。LC-3では0x3000で上書きされる。
