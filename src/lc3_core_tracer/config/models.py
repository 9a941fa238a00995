from dataclasses import dataclass, field
from typing import List, Optional

from lc3_core_tracer.arch.lc3.state import PC_START, MR_KBSR, MR_KBDR

@dataclass
class MappedIoConfig:
    kbsr: int = MR_KBSR  # keyboard status
    kbdr: int = MR_KBDR  # keyboard data

@dataclass
class CpuInitialState:
    pc: int = PC_START
    cond: str = "Z"  # "N", "Z", "P"
    registers: dict = field(default_factory=dict)  # 例: {"r6": 0xFE00}

@dataclass
class MachineConfig:
    images: List[str] = field(default_factory=list)
    initial_state: CpuInitialState = field(default_factory=CpuInitialState)
    mapped_io: MappedIoConfig = field(default_factory=MappedIoConfig)
    input: Optional[str] = None  # 端末の代わりに与える入力文字列
    trace: bool = False
    max_steps: Optional[int] = None
