# src/lc3_core_tracer/arch/lc3/disassembler.py
"""
LC-3 Disassembler

メモリ上のワード列を解析し、LC-3のアセンブリ言語（ニーモニック）に変換します。
Instruction Layerのデコードロジックを再利用し、バスからはpeek（副作用・ログなし）で読み出します。
"""
from typing import List, Tuple

from lc3_core_tracer.transport.bus import MemoryBus
from lc3_core_tracer.arch.lc3.instructions import decode_instruction

# @intent:responsibility 指定されたメモリ範囲を逆アセンブルし、表示用データを生成します。
def disassemble(bus: MemoryBus, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
    """
    指定された範囲のメモリを逆アセンブルします。

    Returns:
        List of (address, hex_word, mnemonic) tuples.
    """
    result = []
    for i in range(length):
        # メモリ境界チェック
        address = start_addr + i
        if address > 0xFFFF:
            break

        word = bus.peek(address)
        # PC相対オペランドはフェッチ後のPC（address + 1）を基準にする
        operation = decode_instruction(word, (address + 1) & 0xFFFF)
        result.append((address, f"{word:04X}", operation.text))

    return result
