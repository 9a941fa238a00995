import yaml
from typing import Dict, Any, Optional
from lc3_core_tracer.arch.lc3.state import CondFlag
from .models import MachineConfig, MappedIoConfig, CpuInitialState

class ConfigLoader:
    def load_from_file(self, path: str) -> MachineConfig:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
        return self.load_from_dict(data or {})

    def load_from_dict(self, data: Dict[str, Any]) -> MachineConfig:
        if not isinstance(data, dict):
            raise ValueError(f"Configuration root must be a mapping, got {type(data).__name__}")
        return self._parse_config(data)

    def _parse_config(self, data: Dict[str, Any]) -> MachineConfig:
        images = data.get("images", []) or []
        if not isinstance(images, list):
            raise ValueError(f"'images' must be a list: {images!r}")

        # Parse Initial State
        initial_state_data = data.get("initial_state", {}) or {}
        registers = {
            str(name).lower(): self._parse_int(value)
            for name, value in (initial_state_data.get("registers", {}) or {}).items()
        }
        initial_state = CpuInitialState(
            pc=self._parse_int(initial_state_data.get("pc", CpuInitialState.pc)),
            cond=self._parse_cond(initial_state_data.get("cond", CpuInitialState.cond)),
            registers=registers
        )

        # Parse Mapped I/O
        mapped_io_data = data.get("mapped_io", {}) or {}
        mapped_io = MappedIoConfig(
            kbsr=self._parse_int(mapped_io_data.get("kbsr", MappedIoConfig.kbsr)),
            kbdr=self._parse_int(mapped_io_data.get("kbdr", MappedIoConfig.kbdr)),
        )

        return MachineConfig(
            images=[str(path) for path in images],
            initial_state=initial_state,
            mapped_io=mapped_io,
            input=self._parse_input(data.get("input")),
            trace=bool(data.get("trace", False)),
            max_steps=self._parse_optional_int(data.get("max_steps"))
        )

    def _parse_optional_int(self, value: Any) -> Optional[int]:
        if value is None:
            return None
        return self._parse_int(value)

    def _parse_int(self, value: Any) -> int:
        if isinstance(value, bool):
            raise ValueError(f"Invalid integer format: {value}")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            text = value.strip().lower()
            if text.startswith("0x"):
                return int(text, 16)
            if text.startswith("x"):  # LC-3 assembly style
                return int(text[1:], 16)
            return int(text)
        raise ValueError(f"Invalid integer format: {value}")

    def _parse_cond(self, value: Any) -> str:
        # 不正な文字は実行前に弾く
        return CondFlag.from_letter(str(value)).letter

    def _parse_input(self, value: Any) -> Optional[str]:
        if value is None or isinstance(value, str):
            return value
        raise ValueError(f"'input' must be a string: {value!r}")
