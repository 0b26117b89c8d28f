"""
量子デモ操作 (Quantum Demonstration Operations)

QuantumSimulator 上で動くデモ用の量子操作

- 可逆ゲート (X を2回適用)
- 重ね合わせの測定による収縮
- 量子乱数生成
- ベルテスト（エンタングルメントの統計）
- ドイッチ・ジョザのアルゴリズム（1ビットオラクル4種）
- 量子テレポーテーション
"""

import logging
from typing import Callable, Dict, Tuple

from quantum_computer import Qubit, QuantumSimulator, Result

logger = logging.getLogger(__name__)

# オラクル U_f: |x⟩|y⟩ → |x⟩|y ⊕ f(x)⟩
Oracle = Callable[[QuantumSimulator, Qubit, Qubit], None]

MAX_RANDOM_BITS = 16


class UnknownOperationError(ValueError):
    """登録されていない操作名"""


def set_qubit(sim: QuantumSimulator, desired: Result, q: Qubit):
    """量子ビットを desired の基底状態にする"""
    sim.set(q, desired)


# ============================================================
# 可逆ゲートと測定
# ============================================================

def reversible_gate(sim: QuantumSimulator, initial: Result) -> Result:
    """
    X ゲートを2回適用して測定する

    X・X = I なので結果は常に初期値と一致する
    """
    with sim.qubits(1) as (q,):
        set_qubit(sim, initial, q)
        sim.x(q)
        sim.x(q)
        return sim.measure(q)


def measurement_collapsing_superposition(sim: QuantumSimulator,
                                         initial: Result) -> Tuple[Result, Result]:
    """
    重ね合わせ状態を2回続けて測定する

    1回目はランダムだが、1回目の測定で状態が収縮するため
    2回目は必ず1回目と同じ結果になる
    """
    with sim.qubits(1) as (q,):
        set_qubit(sim, initial, q)
        sim.h(q)
        first = sim.measure(q)
        second = sim.measure(q)
        return first, second


def generate_random_number(sim: QuantumSimulator, n_bits: int = 8) -> int:
    """
    量子乱数を生成

    n_bits 個の量子ビットをアダマールで一様な重ね合わせにして測定する。
    量子ビット i の測定結果が乱数のビット i になる。

    Returns:
        [0, 2^n_bits) の整数
    """
    if not 1 <= n_bits <= MAX_RANDOM_BITS:
        raise ValueError(f"n_bits must be between 1 and {MAX_RANDOM_BITS}: {n_bits}")

    number = 0
    with sim.qubits(n_bits) as qubits:
        for q in qubits:
            sim.h(q)
        for i, q in enumerate(qubits):
            if sim.measure(q) is Result.One:
                number |= 1 << i
    return number


# ============================================================
# ベルテスト
# ============================================================

def bell_test(sim: QuantumSimulator, count: int, initial: Result) -> Tuple[int, int, int]:
    """
    ベル状態を count 回作って測定する

    q0 を initial に、q1 を Zero にしてから H(q0), CNOT(q0, q1)。
    q0 の結果は50/50に分かれるが、q1 は常に q0 と一致する。

    Returns:
        (0の回数, 1の回数, q0とq1が一致した回数)
    """
    if count < 0:
        raise ValueError(f"count must be non-negative: {count}")

    num_ones = 0
    agrees = 0
    with sim.qubits(2) as (q0, q1):
        for _ in range(count):
            set_qubit(sim, initial, q0)
            set_qubit(sim, Result.Zero, q1)

            sim.h(q0)
            sim.cnot(q0, q1)
            result = sim.measure(q0)

            if sim.measure(q1) is result:
                agrees += 1
            if result is Result.One:
                num_ones += 1

    logger.debug("Bell test (initial=%s): %d ones, %d agree of %d",
                 initial, num_ones, agrees, count)
    return count - num_ones, num_ones, agrees


# ============================================================
# ドイッチ・ジョザのアルゴリズム
# ============================================================

def oracle_constant0(sim: QuantumSimulator, x: Qubit, y: Qubit):
    # f(x) = 0: 何もしない
    pass


def oracle_constant1(sim: QuantumSimulator, x: Qubit, y: Qubit):
    # f(x) = 1
    sim.x(y)


def oracle_identity(sim: QuantumSimulator, x: Qubit, y: Qubit):
    # f(x) = x
    sim.cnot(x, y)


def oracle_negation(sim: QuantumSimulator, x: Qubit, y: Qubit):
    # f(x) = NOT x
    sim.x(x)
    sim.cnot(x, y)
    sim.x(x)


def evaluate_oracle(sim: QuantumSimulator, oracle: Oracle, x_value: Result) -> Result:
    """基底状態 |x⟩|0⟩ にオラクルを1回適用して f(x) を読み出す"""
    with sim.qubits(2) as (x, y):
        set_qubit(sim, x_value, x)
        oracle(sim, x, y)
        return sim.measure(y)


def deutsch_jozsa(sim: QuantumSimulator, oracle: Oracle) -> Result:
    """
    1回のクエリで f が定数関数か均等関数かを判定

    Returns:
        Zero: 定数関数, One: 均等関数
    """
    with sim.qubits(2) as (x, y):
        # |01⟩ を準備してアダマール変換
        sim.x(y)
        sim.h(x)
        sim.h(y)

        oracle(sim, x, y)

        sim.h(x)
        return sim.measure(x)


def run_oracle(sim: QuantumSimulator, oracle: Oracle) -> Tuple[Result, Result, Result]:
    """(f(Zero), f(One), ドイッチ・ジョザの判定) を返す"""
    return (
        evaluate_oracle(sim, oracle, Result.Zero),
        evaluate_oracle(sim, oracle, Result.One),
        deutsch_jozsa(sim, oracle),
    )


def constant0(sim: QuantumSimulator) -> Tuple[Result, Result, Result]:
    return run_oracle(sim, oracle_constant0)


def constant1(sim: QuantumSimulator) -> Tuple[Result, Result, Result]:
    return run_oracle(sim, oracle_constant1)


def identity(sim: QuantumSimulator) -> Tuple[Result, Result, Result]:
    return run_oracle(sim, oracle_identity)


def negation(sim: QuantumSimulator) -> Tuple[Result, Result, Result]:
    return run_oracle(sim, oracle_negation)


# ============================================================
# 量子テレポーテーション
# ============================================================

def teleport(sim: QuantumSimulator, msg: Qubit, target: Qubit):
    """
    msg の状態を target に転送する

    1. 補助量子ビットと target でベル対を作る
    2. msg と補助量子ビットをベル測定
    3. 測定結果（古典2ビット）に応じて target に X / Z 補正
    """
    with sim.qubits(1) as (here,):
        sim.h(here)
        sim.cnot(here, target)

        sim.cnot(msg, here)
        sim.h(msg)

        if sim.measure(msg) is Result.One:
            sim.z(target)
        if sim.measure(here) is Result.One:
            sim.x(target)


def send_message(sim: QuantumSimulator, message: bool) -> bool:
    """古典1ビットを量子ビットに符号化してテレポートし、受信側で測定する"""
    with sim.qubits(2) as (msg, target):
        if message:
            sim.x(msg)
        teleport(sim, msg, target)
        return sim.measure(target) is Result.One


# ============================================================
# 名前による呼び出し
# ============================================================

OPERATIONS: Dict[str, Callable] = {
    "reversible_gate": reversible_gate,
    "measurement_collapsing_superposition": measurement_collapsing_superposition,
    "generate_random_number": generate_random_number,
    "bell_test": bell_test,
    "constant0": constant0,
    "constant1": constant1,
    "identity": identity,
    "negation": negation,
    "send_message": send_message,
}


def run_operation(sim: QuantumSimulator, name: str, *args):
    """登録名で操作を実行"""
    if name not in OPERATIONS:
        raise UnknownOperationError(f"Operation '{name}' not found")
    logger.debug("Running operation %s%s", name, args)
    return OPERATIONS[name](sim, *args)
