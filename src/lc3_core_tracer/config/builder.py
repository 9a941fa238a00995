import re
import warnings
from typing import BinaryIO, List, Optional, Tuple

from lc3_core_tracer.arch.lc3.cpu import Lc3Cpu
from lc3_core_tracer.arch.lc3.instructions import TrapHandler
from lc3_core_tracer.arch.lc3.state import Lc3CpuState, CondFlag
from lc3_core_tracer.loader.loader import ImageLoader
from lc3_core_tracer.transport.bus import MemoryBus
from lc3_core_tracer.transport.keyboard import InputDevice
from .models import MachineConfig, CpuInitialState

_REGISTER_NAME = re.compile(r"^r([0-7])$")

# @intent:responsibility 構成（Config）に基づいて、状態値・バス・TRAPハンドラ・CPUを生成・接続し、初期状態を適用します。
class MachineBuilder:
    def __init__(self, loader: Optional[ImageLoader] = None):
        self._loader = loader or ImageLoader()

    def build_machine(self, config: MachineConfig, keyboard: InputDevice,
                      output: Optional[BinaryIO] = None,
                      extra_images: Optional[List[str]] = None) -> Tuple[Lc3Cpu, MemoryBus]:
        """
        マシンを組み立て、構成のイメージに続けて extra_images をロードします。
        ロードに失敗した場合は ImageLoadError がそのまま送出され、CPUは実行されません。
        """
        state = Lc3CpuState()
        bus = MemoryBus(state, keyboard,
                        status_address=config.mapped_io.kbsr,
                        data_address=config.mapped_io.kbdr)
        cpu = Lc3Cpu(bus, TrapHandler(keyboard, output))

        # 初期状態の適用
        self.apply_initial_state(cpu, config.initial_state)

        self._loader.load_images(list(config.images) + list(extra_images or []), state)
        return cpu, bus

    # @intent:responsibility Configで定義された初期状態をCPUに適用します。
    def apply_initial_state(self, cpu: Lc3Cpu, config_state: CpuInitialState) -> None:
        """
        CPUをリセットし、Configから指定された初期値を適用します。
        """
        cpu.reset()
        state = cpu.get_state()
        state.pc = config_state.pc & 0xFFFF
        state.cond = CondFlag.from_letter(config_state.cond)
        for reg_name, value in config_state.registers.items():
            match = _REGISTER_NAME.match(reg_name)
            if not match:
                warnings.warn(f"Unknown register '{reg_name}' in initial_state, ignored")
                continue
            state.registers[int(match.group(1))] = value & 0xFFFF
