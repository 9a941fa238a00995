# tests/transport/test_bus.py
"""
lc3_core_tracer.transport.busモジュールの単体テスト。
"""
import pytest
from unittest.mock import MagicMock

from lc3_core_tracer.arch.lc3.state import Lc3CpuState, MR_KBSR, MR_KBDR
from lc3_core_tracer.transport.bus import MemoryBus, BusAccess, BusAccessType
from lc3_core_tracer.transport.keyboard import InputDevice, ScriptedKeyboard

# @intent:test_suite メモリバスの読み書き、アドレスの折り返し、メモリマップドI/Oの副作用を検証します。

class TestMemoryBus:
    """
    MemoryBusの単体テスト。
    """
    @pytest.fixture
    def setup_bus(self):
        state = Lc3CpuState()
        keyboard = ScriptedKeyboard()
        bus = MemoryBus(state, keyboard)
        return bus, state, keyboard

    # @intent:test_case_init 不正な引数でバスを生成するとエラーになることを検証します。
    def test_init_validation(self):
        with pytest.raises(TypeError, match="InputDevice"):
            MemoryBus(Lc3CpuState(), object())
        with pytest.raises(ValueError, match="must differ"):
            MemoryBus(Lc3CpuState(), ScriptedKeyboard(), status_address=0xFE00, data_address=0xFE00)

    # @intent:test_case_rw 読み書きが状態値のメモリに反映されることを検証します。
    def test_read_write(self, setup_bus):
        bus, state, _ = setup_bus
        bus.write(0x3000, 0xABCD)
        assert state.memory[0x3000] == 0xABCD
        assert bus.read(0x3000) == 0xABCD
        assert bus.read(0x3001) == 0x0000

    # @intent:test_case_store_load 任意のアドレス・値について、書き込んだ値がそのまま読み出せることを検証します。
    @pytest.mark.parametrize("address,value", [
        (0x0000, 0x0000), (0x0001, 0xFFFF), (0x3000, 0x8000), (0xFDFF, 0x7FFF), (0xFFFF, 0x1234),
    ])
    def test_store_then_load(self, setup_bus, address, value):
        bus, _, _ = setup_bus
        bus.write(address, value)
        assert bus.read(address) == value

    # @intent:test_case_wrap アドレスと値が16bitで折り返されることを検証します。
    def test_address_and_value_wrap(self, setup_bus):
        bus, state, _ = setup_bus
        bus.write(0x10005, 0x1FFFF)
        assert state.memory[0x0005] == 0xFFFF
        assert bus.read(0x10005) == 0xFFFF
        assert bus.peek(-1) == state.memory[0xFFFF]

    # @intent:test_case_kbsr_empty 入力がない場合、KBSRの読み込みは0を返すことを検証します。
    def test_kbsr_without_input(self, setup_bus):
        bus, state, _ = setup_bus
        state.memory[MR_KBSR] = 0x8000  # 以前の値はポーリング結果で上書きされる
        assert bus.read(MR_KBSR) == 0x0000
        assert state.memory[MR_KBDR] == 0x0000

    # @intent:test_case_kbsr_ready 入力がある場合、KBSRの最上位bitが立ち、KBDRに1文字だけコピーされることを検証します。
    def test_kbsr_with_input(self, setup_bus):
        bus, state, keyboard = setup_bus
        keyboard.feed("ab")
        assert bus.read(MR_KBSR) == 0x8000
        assert bus.read(MR_KBDR) == ord("a")
        assert keyboard.pending() == 1

        assert bus.read(MR_KBSR) == 0x8000
        assert bus.read(MR_KBDR) == ord("b")

        assert bus.read(MR_KBSR) == 0x0000
        assert bus.read(MR_KBDR) == ord("b")  # データレジスタは保持される

    # @intent:test_case_poll_once KBSRの読み込み1回につき、ポーリングがちょうど1回行われることを検証します。
    def test_kbsr_polls_exactly_once(self):
        device = MagicMock(spec=InputDevice)
        device.poll.return_value = False
        bus = MemoryBus(Lc3CpuState(), device)

        bus.read(MR_KBSR)
        assert device.poll.call_count == 1
        device.read_blocking.assert_not_called()

        bus.read(MR_KBDR)
        bus.read(0x3000)
        assert device.poll.call_count == 1

    # @intent:test_case_kbdr_plain KBDRの読み込み自体はデバイスに触れないことを検証します。
    def test_kbdr_read_has_no_side_effect(self, setup_bus):
        bus, state, keyboard = setup_bus
        keyboard.feed("z")
        assert bus.read(MR_KBDR) == 0
        assert keyboard.pending() == 1

    # @intent:test_case_custom_addresses 構成でマップドI/Oのアドレスを変更できることを検証します。
    def test_custom_mapped_addresses(self):
        state = Lc3CpuState()
        bus = MemoryBus(state, ScriptedKeyboard("q"), status_address=0xFF00, data_address=0xFF02)
        assert bus.read(MR_KBSR) == 0
        assert bus.read(0xFF00) == 0x8000
        assert state.memory[0xFF02] == ord("q")

    # @intent:test_case_peek peekはデバイスをポーリングせず、ログにも残さないことを検証します。
    def test_peek_has_no_side_effects(self, setup_bus):
        bus, state, keyboard = setup_bus
        keyboard.feed("x")
        bus.get_and_clear_activity_log()
        assert bus.peek(MR_KBSR) == 0
        assert keyboard.pending() == 1
        assert bus.get_and_clear_activity_log() == []

    # @intent:test_case_load loadはログを残さずに書き込むことを検証します。
    def test_load_is_not_logged(self, setup_bus):
        bus, state, _ = setup_bus
        bus.load(0x4000, 0x1234)
        assert state.memory[0x4000] == 0x1234
        assert bus.get_and_clear_activity_log() == []

    # @intent:test_case_log バスアクセスが記録され、取得時にクリアされることを検証します。
    def test_activity_log(self, setup_bus):
        bus, _, keyboard = setup_bus
        bus.write(0x3000, 0x0001)
        bus.write(0x3000, 0x0002)
        bus.read(0x3000)
        keyboard.feed("k")
        bus.read(MR_KBSR)

        log = bus.get_and_clear_activity_log()
        assert log == [
            BusAccess(0x3000, 0x0001, BusAccessType.WRITE, 0x0000),
            BusAccess(0x3000, 0x0002, BusAccessType.WRITE, 0x0001),
            BusAccess(0x3000, 0x0002, BusAccessType.READ),
            BusAccess(MR_KBSR, 0x8000, BusAccessType.IO_READ),
            BusAccess(MR_KBSR, 0x8000, BusAccessType.READ),
        ]
        assert bus.get_and_clear_activity_log() == []
