# src/lc3_core_tracer/arch/lc3/instructions/base.py
"""
LC-3命令実装用の共通ユーティリティ。
"""
from lc3_core_tracer.arch.lc3.state import Lc3CpuState, CondFlag, WORD_MASK

# @intent:utility_function n bitの2の補数フィールドを、符号ビットを複製して16bitに拡張します。
def sign_extend(value: int, bit_count: int) -> int:
    value &= (1 << bit_count) - 1
    if (value >> (bit_count - 1)) & 1:
        value |= (WORD_MASK << bit_count) & WORD_MASK
    return value

# @intent:utility_function 16bitワードを符号付き整数として解釈します（表示用）。
def to_signed(value: int) -> int:
    value &= WORD_MASK
    return value - 0x10000 if value & 0x8000 else value

# @intent:utility_function 指定レジスタの値の符号に応じて条件フラグを一つだけ設定します。
def update_flags(state: Lc3CpuState, reg: int) -> None:
    value = state.registers[reg]
    if value == 0:
        state.cond = CondFlag.ZRO
    elif value >> 15: # a 1 in the left-most bit indicates negative
        state.cond = CondFlag.NEG
    else:
        state.cond = CondFlag.POS

# @intent:utility_function レジスタへ16bitに丸めた値を書き込み、フラグを更新します。
def set_register(state: Lc3CpuState, reg: int, value: int) -> None:
    state.registers[reg] = value & WORD_MASK
    update_flags(state, reg)

# --- 命令ワードのフィールド抽出 ---

def dr(word: int) -> int:
    """bits [11:9]: 転送先レジスタ / 格納元レジスタ / nzp"""
    return (word >> 9) & 0x7

def sr1(word: int) -> int:
    """bits [8:6]: 第1ソースレジスタ / ベースレジスタ"""
    return (word >> 6) & 0x7

def sr2(word: int) -> int:
    return word & 0x7

def imm_mode(word: int) -> bool:
    return bool((word >> 5) & 0x1)

def imm5(word: int) -> int:
    return sign_extend(word & 0x1F, 5)

def offset6(word: int) -> int:
    return sign_extend(word & 0x3F, 6)

def pc_offset9(word: int) -> int:
    return sign_extend(word & 0x1FF, 9)

def pc_offset11(word: int) -> int:
    return sign_extend(word & 0x7FF, 11)

def trap_vector(word: int) -> int:
    return word & 0xFF

# @intent:utility_function PC相対アドレスを16bitで折り返して計算します。
def pc_relative(pc: int, offset: int) -> int:
    return (pc + offset) & WORD_MASK

# --- 表示用の書式 ---

def fmt_reg(reg: int) -> str:
    return f"R{reg}"

def fmt_imm(value: int) -> str:
    return f"#{to_signed(value)}"

def fmt_addr(address: int) -> str:
    return f"x{address & WORD_MASK:04X}"
