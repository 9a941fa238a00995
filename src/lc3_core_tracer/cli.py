# lc3_core_tracer/cli.py
"""
コマンドラインのエントリポイント。

イメージファイルをロードし、端末モードをスコープで保持したままLC-3を実行します。
"""
import argparse
import sys
from typing import Optional, Sequence, TextIO

import yaml

from lc3_core_tracer.arch.lc3.cpu import Lc3Cpu
from lc3_core_tracer.config.builder import MachineBuilder
from lc3_core_tracer.config.loader import ConfigLoader
from lc3_core_tracer.config.models import MachineConfig
from lc3_core_tracer.core.cpu import IllegalOpcodeError, RunState
from lc3_core_tracer.debugger.debugger import format_snapshot
from lc3_core_tracer.loader.loader import ImageLoadError
from lc3_core_tracer.transport.keyboard import InputDevice, ScriptedKeyboard, TerminalKeyboard

EXIT_OK = 0
EXIT_LOAD_FAILURE = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130      # 128 + SIGINT
EXIT_ILLEGAL_OPCODE = 134   # 128 + SIGABRT

def _auto_int(value: str) -> int:
    return int(value, 0)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lc3", description="Run LC-3 object images.")
    parser.add_argument("images", nargs="*", metavar="image-file", help="LC-3 image file(s) to load, in order.")
    parser.add_argument("--config", default=None, help="YAML machine configuration.")
    parser.add_argument(
        "--input",
        default=None,
        help="Keystrokes fed to the machine instead of the terminal.",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Print one line per executed instruction to stderr.",
    )
    parser.add_argument(
        "--max-steps",
        type=_auto_int,
        default=None,
        help="Stop after this many instructions (default: run until HALT).",
    )
    return parser

# @intent:responsibility CPUを実行します。トレース有効時は1命令ごとにスナップショットを出力します。
def run_machine(cpu: Lc3Cpu, trace: bool = False, max_steps: Optional[int] = None,
                trace_stream: Optional[TextIO] = None) -> RunState:
    if not trace:
        return cpu.run(max_steps)

    stream = trace_stream if trace_stream is not None else sys.stderr
    executed = 0
    while cpu.is_running:
        if max_steps is not None and executed >= max_steps:
            break
        print(format_snapshot(cpu.step()), file=stream)
        executed += 1
    return cpu.run_state

def _make_keyboard(input_text: Optional[str]) -> InputDevice:
    if input_text is not None:
        return ScriptedKeyboard(input_text)
    return TerminalKeyboard()

def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = ConfigLoader().load_from_file(args.config) if args.config else MachineConfig()
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"invalid configuration: {args.config}: {e}", file=sys.stderr)
        return EXIT_USAGE

    if not config.images and not args.images:
        parser.print_usage()
        return EXIT_USAGE

    input_text = args.input if args.input is not None else config.input
    keyboard = _make_keyboard(input_text)

    # トラップ出力は1文字1バイトのため、テキスト層を介さずに書き込む
    sys.stdout.flush()
    try:
        cpu, _ = MachineBuilder().build_machine(config, keyboard, sys.stdout.buffer, extra_images=args.images)
    except ImageLoadError as e:
        print(f"failed to load image: {e.path}")
        return EXIT_LOAD_FAILURE
    except ValueError as e:
        print(f"invalid configuration: {args.config}: {e}", file=sys.stderr)
        return EXIT_USAGE

    trace = args.trace or config.trace
    max_steps = args.max_steps if args.max_steps is not None else config.max_steps

    try:
        # 端末モードは実行中のみ変更し、全ての終了経路で元に戻す
        with keyboard:
            final_state = run_machine(cpu, trace, max_steps)
    except IllegalOpcodeError as e:
        sys.stdout.flush()
        print(f"\nabort: {e}", file=sys.stderr)
        return EXIT_ILLEGAL_OPCODE
    except KeyboardInterrupt:
        print()
        return EXIT_INTERRUPTED

    if final_state is RunState.RUNNING:
        print(f"stopped after {max_steps} steps at PC x{cpu.get_state().pc:04X}", file=sys.stderr)
    return EXIT_OK

if __name__ == "__main__":
    sys.exit(main())
