"""
量子シミュレーター (Quantum Simulator)

状態ベクトル方式の量子コンピューターシミュレーター

機能:
- 測定結果 (Result: Zero / One)
- 量子ゲート (Hadamard, Pauli-X/Y/Z, CNOT, etc.)
- 量子レジスタ (動的な量子ビットの確保・解放)
- シミュレーター (with 文で使うシミュレーションコンテキスト)
- 測定と状態の収縮 (Measurement)
"""

import itertools
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)

# 確率をゼロとみなす閾値
ZERO_TOLERANCE = 1e-10

# 量子ビットIDはシミュレーター間で重複しない
_qubit_ids = itertools.count()


# ============================================================
# 例外
# ============================================================

class QuantumSimulatorError(Exception):
    """シミュレーター関連のエラーの基底クラス"""


class InvalidQubitError(QuantumSimulatorError):
    """解放済み、または別のシミュレーターの量子ビットが使われた"""


class ReleasedQubitsNotInZeroStateError(QuantumSimulatorError):
    """|0⟩ 以外の状態で量子ビットが解放された"""


class SimulatorClosedError(QuantumSimulatorError):
    """終了したシミュレーターが使われた"""


# ============================================================
# 測定結果
# ============================================================

class Result(Enum):
    """1量子ビットの測定結果"""
    Zero = 0
    One = 1

    @classmethod
    def from_bool(cls, value: bool) -> 'Result':
        return cls.One if value else cls.Zero

    def __bool__(self) -> bool:
        return self is Result.One

    def __str__(self) -> str:
        return self.name


# ============================================================
# 量子ゲート
# ============================================================

class QuantumGate:
    """1量子ビットゲート（2x2 ユニタリ行列）"""

    def __init__(self, name: str, matrix):
        self.name = name
        self.matrix = np.array(matrix, dtype=complex)
        if self.matrix.shape != (2, 2):
            raise ValueError(f"Gate '{name}' must be a 2x2 matrix, got {self.matrix.shape}")

    def __str__(self) -> str:
        return f"{self.name} Gate"

    def __repr__(self) -> str:
        return f"QuantumGate({self.name})"


def _format_amplitude(amplitude: complex) -> str:
    """実数ならそのまま、複素数なら (a±bi) で表示"""
    if abs(amplitude.imag) < ZERO_TOLERANCE:
        return f"{amplitude.real:.4f}"
    if abs(amplitude.real) < ZERO_TOLERANCE:
        return f"{amplitude.imag:.4f}i"
    return f"({amplitude.real:.4f}{amplitude.imag:+.4f}i)"


_SQRT2_INV = 1 / np.sqrt(2)


def _phase_matrix(phi: float) -> np.ndarray:
    # 浮動小数の誤差で e^{iπ} の虚部が残らないよう丸める
    return np.diag([1.0, np.round(np.exp(1j * phi), 15)])


class Gates:
    """標準量子ゲートのコレクション"""

    I = QuantumGate("I", np.eye(2))

    # |0⟩ → (|0⟩ + |1⟩)/√2, |1⟩ → (|0⟩ - |1⟩)/√2
    H = QuantumGate("H", [[_SQRT2_INV, _SQRT2_INV],
                          [_SQRT2_INV, -_SQRT2_INV]])

    # NOT
    X = QuantumGate("X", [[0, 1], [1, 0]])

    Y = QuantumGate("Y", [[0, -1j], [1j, 0]])

    # 位相ゲート: |1⟩ に e^{iφ} を掛ける (Z: φ=π, S: φ=π/2, T: φ=π/4)
    Z = QuantumGate("Z", _phase_matrix(np.pi))
    S = QuantumGate("S", _phase_matrix(np.pi / 2))
    T = QuantumGate("T", _phase_matrix(np.pi / 4))

    @staticmethod
    def phase(phi: float) -> QuantumGate:
        """|1⟩ の位相を φ だけ回す"""
        return QuantumGate(f"P({phi:.2f})", _phase_matrix(phi))

    @staticmethod
    def Rx(theta: float) -> QuantumGate:
        """X軸周りの回転"""
        c, s = np.cos(theta / 2), np.sin(theta / 2)
        return QuantumGate(f"Rx({theta:.2f})", [[c, -1j * s], [-1j * s, c]])

    @staticmethod
    def Ry(theta: float) -> QuantumGate:
        """Y軸周りの回転"""
        c, s = np.cos(theta / 2), np.sin(theta / 2)
        return QuantumGate(f"Ry({theta:.2f})", [[c, -s], [s, c]])

    @staticmethod
    def Rz(theta: float) -> QuantumGate:
        """Z軸周りの回転"""
        return QuantumGate(f"Rz({theta:.2f})", [
            [np.exp(-1j * theta / 2), 0],
            [0, np.exp(1j * theta / 2)]
        ])


# ============================================================
# 量子レジスタ（複数量子ビット）
# ============================================================

class QuantumRegister:
    """
    量子レジスタ
    n量子ビットの状態は2^n次元のベクトル。
    位置 p の量子ビットは基底インデックスのビット p に対応する。
    """

    def __init__(self, n_qubits: int = 0, rng: Optional[np.random.Generator] = None):
        if n_qubits < 0:
            raise ValueError(f"n_qubits must be non-negative: {n_qubits}")
        self.rng = rng if rng is not None else np.random.default_rng()
        self.n_qubits = n_qubits
        self.reset()

    @property
    def n_states(self) -> int:
        return 2 ** self.n_qubits

    def reset(self):
        """|00...0⟩にリセット"""
        self.state = np.zeros(self.n_states, dtype=complex)
        self.state[0] = 1.0

    def _check_position(self, position: int):
        if not 0 <= position < self.n_qubits:
            raise IndexError(f"qubit position {position} out of range for {self.n_qubits} qubits")

    def get_probabilities(self) -> np.ndarray:
        """各基底状態の確率を返す"""
        return np.abs(self.state) ** 2

    def probability_one(self, position: int) -> float:
        """位置 position の量子ビットが |1⟩ と測定される確率"""
        self._check_position(position)
        mask = ((np.arange(self.n_states) >> position) & 1) == 1
        return float(np.sum(self.get_probabilities()[mask]))

    def add_qubit(self) -> int:
        """|0⟩ の量子ビットを最上位に追加し、その位置を返す"""
        self.state = np.kron(np.array([1.0, 0.0], dtype=complex), self.state)
        self.n_qubits += 1
        return self.n_qubits - 1

    def remove_qubit(self, position: int):
        """|0⟩ 状態の量子ビットを取り除く（上位の量子ビットは1つ下にずれる）"""
        if self.probability_one(position) > ZERO_TOLERANCE:
            raise ReleasedQubitsNotInZeroStateError(
                f"qubit at position {position} is not in the |0⟩ state")
        keep = ((np.arange(self.n_states) >> position) & 1) == 0
        self.state = self.state[keep]
        self.n_qubits -= 1
        if self.n_qubits == 0:
            # 残るのはグローバル位相だけなので捨てる
            self.reset()
        else:
            self._normalize()

    def _normalize(self):
        norm = np.sqrt(np.sum(np.abs(self.state) ** 2))
        if norm > 0:
            self.state = self.state / norm

    def apply_single_gate(self, gate: QuantumGate, target: int):
        """単一量子ビットゲートを適用"""
        self._check_position(target)
        # (上位ビット, 対象ビット, 下位ビット) に分けて2x2行列だけを掛ける
        upper = 2 ** (self.n_qubits - target - 1)
        lower = 2 ** target
        tensor = self.state.reshape(upper, 2, lower)
        self.state = np.einsum('ij,ajb->aib', gate.matrix, tensor).reshape(-1)

    def _bit(self, position: int) -> np.ndarray:
        """各基底インデックスの position ビット"""
        return (np.arange(self.n_states) >> position) & 1

    def _flip_where(self, mask: np.ndarray, target: int):
        """mask が立つ基底で target ビットを反転（振幅の入れ替え）"""
        source = np.flatnonzero(mask)
        new_state = self.state.copy()
        new_state[source ^ (1 << target)] = self.state[source]
        self.state = new_state

    def apply_cnot(self, control: int, target: int):
        """CNOTゲートを適用"""
        self._check_pair(control, target)
        self._flip_where(self._bit(control) == 1, target)

    def apply_cz(self, control: int, target: int):
        """CZゲート（制御Z）を適用"""
        self._check_pair(control, target)
        both = (self._bit(control) & self._bit(target)) == 1
        self.state = np.where(both, -self.state, self.state)

    def apply_toffoli(self, control1: int, control2: int, target: int):
        """トフォリゲート（CCNOT）を適用"""
        self._check_pair(control1, target)
        self._check_pair(control2, target)
        if control1 == control2:
            raise ValueError("Toffoli controls must be different qubits")
        self._flip_where((self._bit(control1) & self._bit(control2)) == 1, target)

    def _check_pair(self, control: int, target: int):
        self._check_position(control)
        self._check_position(target)
        if control == target:
            raise ValueError(f"control and target must be different qubits: {control}")

    def measure(self) -> List[int]:
        """全量子ビットを測定"""
        probs = self.get_probabilities()
        result_index = self.rng.choice(self.n_states, p=probs / probs.sum())

        # 測定後の状態に収縮
        self.state = np.zeros(self.n_states, dtype=complex)
        self.state[result_index] = 1.0

        return [(result_index >> i) & 1 for i in range(self.n_qubits)]

    def measure_qubit(self, position: int) -> int:
        """特定の量子ビットを測定して状態を収縮させる"""
        prob_1 = self.probability_one(position)
        if prob_1 <= ZERO_TOLERANCE:
            result = 0
        elif prob_1 >= 1 - ZERO_TOLERANCE:
            result = 1
        else:
            result = 1 if self.rng.random() < prob_1 else 0

        # 測定結果と矛盾する振幅を0にする
        bits = (np.arange(self.n_states) >> position) & 1
        self.state[bits != result] = 0
        self._normalize()

        return result

    def get_state_string(self, positions: Optional[Sequence[int]] = None) -> str:
        """
        状態を文字列で表現

        Args:
            positions: ケットの左から並べる量子ビット位置（デフォルトは最上位から順）
        """
        if positions is None:
            positions = range(self.n_qubits - 1, -1, -1)
        positions = list(positions)
        for p in positions:
            self._check_position(p)

        terms = []
        for index in np.flatnonzero(np.abs(self.state) > ZERO_TOLERANCE):
            ket = ''.join(str((int(index) >> p) & 1) for p in positions)
            terms.append(f"{_format_amplitude(self.state[index])}|{ket}⟩")
        return " + ".join(terms) if terms else "0"

    def __str__(self) -> str:
        return f"QuantumRegister({self.n_qubits} qubits): {self.get_state_string()}"


# ============================================================
# シミュレーター
# ============================================================

@dataclass(frozen=True)
class Qubit:
    """シミュレーターが発行する量子ビットのハンドル"""
    id: int

    def __str__(self) -> str:
        return f"q{self.id}"


class QuantumSimulator:
    """
    量子シミュレーター

    量子ビットの確保・解放とゲート操作のインターフェース。
    with 文で使うと終了時に残っている量子ビットをすべて解放する。

        with QuantumSimulator(seed=42) as sim:
            with sim.qubits(2) as (a, b):
                sim.h(a)
                sim.cnot(a, b)
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self.register = QuantumRegister(0, rng=np.random.default_rng(seed))
        self._positions: Dict[int, int] = {}
        self.closed = False

    def __enter__(self) -> 'QuantumSimulator':
        self._check_open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self):
        """残っている量子ビットをリセットして解放し、シミュレーターを終了する"""
        if self.closed:
            return
        leftover = self.allocated()
        if leftover:
            logger.debug("Releasing %d qubit(s) still allocated at close", len(leftover))
            for q in leftover:
                self.reset(q)
            self.release(leftover)
        self.closed = True

    def _check_open(self):
        if self.closed:
            raise SimulatorClosedError("simulator has been closed")

    def _position(self, q: Qubit) -> int:
        self._check_open()
        if not isinstance(q, Qubit) or q.id not in self._positions:
            raise InvalidQubitError(f"qubit {q} is not allocated in this simulator")
        return self._positions[q.id]

    @property
    def n_qubits(self) -> int:
        return self.register.n_qubits

    def allocated(self) -> List[Qubit]:
        """確保済みの量子ビット（位置順）"""
        return [Qubit(qid) for qid, _ in sorted(self._positions.items(), key=lambda kv: kv[1])]

    # 確保と解放
    def allocate(self, n: int = 1) -> List[Qubit]:
        """|0⟩ の量子ビットを n 個確保"""
        self._check_open()
        if n < 1:
            raise ValueError(f"must allocate at least one qubit: {n}")
        qubits = []
        for _ in range(n):
            qubit = Qubit(next(_qubit_ids))
            self._positions[qubit.id] = self.register.add_qubit()
            qubits.append(qubit)
        logger.debug("Allocated %s (total %d)", [str(q) for q in qubits], self.n_qubits)
        return qubits

    def release(self, qubits: Sequence[Qubit]):
        """|0⟩ 状態の量子ビットを解放"""
        positions = [self._position(q) for q in qubits]
        if len(set(positions)) != len(positions):
            raise InvalidQubitError("the same qubit was given more than once")
        # 先に全部チェックしてから取り除く
        for q, pos in zip(qubits, positions):
            if self.register.probability_one(pos) > ZERO_TOLERANCE:
                raise ReleasedQubitsNotInZeroStateError(
                    f"qubit {q} released while not in the |0⟩ state")

        for q in qubits:
            pos = self._positions.pop(q.id)
            self.register.remove_qubit(pos)
            for qid, other in self._positions.items():
                if other > pos:
                    self._positions[qid] = other - 1
        logger.debug("Released %s (total %d)", [str(q) for q in qubits], self.n_qubits)

    @contextmanager
    def qubits(self, n: int = 1) -> Iterator[List[Qubit]]:
        """n 個の量子ビットを確保し、ブロック終了時にリセットして解放する"""
        allocated = self.allocate(n)
        try:
            yield allocated
        finally:
            if not self.closed:
                for q in allocated:
                    if q.id in self._positions:
                        self.reset(q)
                self.release([q for q in allocated if q.id in self._positions])

    # 単一量子ビットゲート
    def apply(self, gate: QuantumGate, q: Qubit) -> 'QuantumSimulator':
        self.register.apply_single_gate(gate, self._position(q))
        return self

    def x(self, q: Qubit) -> 'QuantumSimulator':
        return self.apply(Gates.X, q)

    def y(self, q: Qubit) -> 'QuantumSimulator':
        return self.apply(Gates.Y, q)

    def z(self, q: Qubit) -> 'QuantumSimulator':
        return self.apply(Gates.Z, q)

    def h(self, q: Qubit) -> 'QuantumSimulator':
        return self.apply(Gates.H, q)

    def s(self, q: Qubit) -> 'QuantumSimulator':
        return self.apply(Gates.S, q)

    def t(self, q: Qubit) -> 'QuantumSimulator':
        return self.apply(Gates.T, q)

    def rx(self, theta: float, q: Qubit) -> 'QuantumSimulator':
        return self.apply(Gates.Rx(theta), q)

    def ry(self, theta: float, q: Qubit) -> 'QuantumSimulator':
        return self.apply(Gates.Ry(theta), q)

    def rz(self, theta: float, q: Qubit) -> 'QuantumSimulator':
        return self.apply(Gates.Rz(theta), q)

    # 多量子ビットゲート
    def cnot(self, control: Qubit, target: Qubit) -> 'QuantumSimulator':
        self.register.apply_cnot(self._position(control), self._position(target))
        return self

    def cz(self, control: Qubit, target: Qubit) -> 'QuantumSimulator':
        self.register.apply_cz(self._position(control), self._position(target))
        return self

    def ccx(self, control1: Qubit, control2: Qubit, target: Qubit) -> 'QuantumSimulator':
        self.register.apply_toffoli(
            self._position(control1), self._position(control2), self._position(target))
        return self

    # 測定
    def measure(self, q: Qubit) -> Result:
        """Z基底で測定（状態は収縮する）"""
        return Result(self.register.measure_qubit(self._position(q)))

    def reset(self, q: Qubit):
        """|0⟩ に戻す"""
        if self.measure(q) is Result.One:
            self.x(q)

    def set(self, q: Qubit, desired: Result):
        """測定して desired と異なれば反転する"""
        if self.measure(q) is not desired:
            self.x(q)

    def probability_one(self, q: Qubit) -> float:
        return self.register.probability_one(self._position(q))

    def get_state_string(self, qubits: Optional[Sequence[Qubit]] = None) -> str:
        """
        状態を文字列で表現

        qubits を渡すとケットのビットをその順（左から）に並べる。
        省略時は後に確保した量子ビットが左になる。
        """
        self._check_open()
        if qubits is None:
            return self.register.get_state_string()
        if len(qubits) != self.n_qubits:
            raise ValueError(f"expected all {self.n_qubits} qubits, got {len(qubits)}")
        return self.register.get_state_string([self._position(q) for q in qubits])

    def __str__(self) -> str:
        return f"QuantumSimulator({self.n_qubits} qubits, seed={self.seed})"
