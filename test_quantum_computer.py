#!/usr/bin/env python3
"""
状態ベクトル シミュレーターのテスト
"""

import numpy as np
import pytest

from quantum_computer import (
    Gates,
    InvalidQubitError,
    QuantumRegister,
    QuantumSimulator,
    ReleasedQubitsNotInZeroStateError,
    Result,
    SimulatorClosedError,
)


def test_result_conversions():
    assert str(Result.Zero) == "Zero"
    assert str(Result.One) == "One"
    assert Result.from_bool(True) is Result.One
    assert Result.from_bool(False) is Result.Zero
    assert bool(Result.One) and not bool(Result.Zero)
    assert Result(1) is Result.One


def test_gates_are_unitary():
    """全ゲートが U†U = I を満たす"""
    for gate in [Gates.I, Gates.H, Gates.X, Gates.Y, Gates.Z, Gates.S, Gates.T,
                 Gates.Rx(0.3), Gates.Ry(1.2), Gates.Rz(2.5)]:
        product = gate.matrix.conj().T @ gate.matrix
        assert np.allclose(product, np.eye(2)), f"{gate} is not unitary"


def test_register_bell_state():
    reg = QuantumRegister(2, rng=np.random.default_rng(0))
    reg.apply_single_gate(Gates.H, 0)
    reg.apply_cnot(0, 1)
    probs = reg.get_probabilities()
    assert np.allclose(probs, [0.5, 0, 0, 0.5])
    assert reg.get_state_string() == "0.7071|00⟩ + 0.7071|11⟩"


def test_register_measure_qubit_collapses_partner():
    reg = QuantumRegister(2, rng=np.random.default_rng(5))
    reg.apply_single_gate(Gates.H, 0)
    reg.apply_cnot(0, 1)
    first = reg.measure_qubit(0)
    assert reg.probability_one(1) == pytest.approx(float(first))
    assert np.sum(reg.get_probabilities()) == pytest.approx(1.0)


def test_register_toffoli():
    reg = QuantumRegister(3)
    reg.apply_single_gate(Gates.X, 0)
    reg.apply_single_gate(Gates.X, 1)
    reg.apply_toffoli(0, 1, 2)
    assert reg.measure() == [1, 1, 1]


def test_register_rejects_same_control_and_target():
    reg = QuantumRegister(2)
    with pytest.raises(ValueError):
        reg.apply_cnot(1, 1)


def test_register_add_and_remove_qubit():
    reg = QuantumRegister(1)
    reg.apply_single_gate(Gates.X, 0)
    pos = reg.add_qubit()
    assert pos == 1
    assert reg.n_qubits == 2
    assert reg.probability_one(0) == pytest.approx(1.0)
    assert reg.probability_one(1) == pytest.approx(0.0)

    reg.remove_qubit(1)
    assert reg.n_qubits == 1
    assert reg.probability_one(0) == pytest.approx(1.0)

    with pytest.raises(ReleasedQubitsNotInZeroStateError):
        reg.remove_qubit(0)


def test_simulator_allocate_and_release():
    with QuantumSimulator(seed=1) as sim:
        a, b, c = sim.allocate(3)
        assert sim.n_qubits == 3
        sim.x(c)
        sim.release([a])
        # 位置がずれても c はそのまま |1⟩
        assert sim.probability_one(c) == pytest.approx(1.0)
        sim.x(c)
        sim.release([b, c])
        assert sim.n_qubits == 0


def test_simulator_release_requires_zero_state():
    with QuantumSimulator(seed=1) as sim:
        (q,) = sim.allocate(1)
        sim.x(q)
        with pytest.raises(ReleasedQubitsNotInZeroStateError):
            sim.release([q])
        sim.reset(q)
        sim.release([q])


def test_simulator_released_qubit_is_invalid():
    with QuantumSimulator(seed=1) as sim:
        with sim.qubits(1) as (q,):
            sim.h(q)
        with pytest.raises(InvalidQubitError):
            sim.x(q)


def test_simulator_qubits_block_resets_entangled_qubits():
    with QuantumSimulator(seed=2) as sim:
        with sim.qubits(2) as (a, b):
            sim.h(a)
            sim.cnot(a, b)
        assert sim.n_qubits == 0


def test_simulator_set_and_measure():
    with QuantumSimulator(seed=3) as sim:
        with sim.qubits(1) as (q,):
            for desired in [Result.One, Result.Zero, Result.One]:
                sim.set(q, desired)
                assert sim.measure(q) is desired


def test_simulator_same_seed_same_outcomes():
    def outcomes(seed):
        with QuantumSimulator(seed=seed) as sim:
            results = []
            with sim.qubits(1) as (q,):
                for _ in range(50):
                    sim.h(q)
                    results.append(sim.measure(q))
                    sim.reset(q)
            return results

    assert outcomes(11) == outcomes(11)


def test_simulator_close_releases_leftover_qubits():
    sim = QuantumSimulator(seed=4)
    with sim:
        (q,) = sim.allocate(1)
        sim.h(q)
    assert sim.closed
    assert sim.n_qubits == 0
    with pytest.raises(SimulatorClosedError):
        sim.allocate(1)


def test_simulator_rejects_foreign_qubit():
    with QuantumSimulator() as one, QuantumSimulator() as other:
        (q,) = one.allocate(1)
        other.allocate(1)
        with pytest.raises(InvalidQubitError):
            other.x(q)
        one.release([q])


def test_register_cz_flips_phase_of_11():
    reg = QuantumRegister(2)
    reg.apply_single_gate(Gates.X, 0)
    reg.apply_single_gate(Gates.X, 1)
    reg.apply_cz(0, 1)
    assert reg.state[3] == pytest.approx(-1.0)
    assert reg.get_state_string() == "-1.0000|11⟩"


def test_phase_gate_family():
    assert np.allclose(Gates.phase(np.pi).matrix, Gates.Z.matrix)
    assert np.allclose(Gates.phase(np.pi / 2).matrix, Gates.S.matrix)
    assert np.allclose(Gates.T.matrix @ Gates.T.matrix, Gates.S.matrix)


def test_register_single_gate_on_middle_qubit():
    """3量子ビット中の真ん中だけに X が掛かる"""
    reg = QuantumRegister(3)
    reg.apply_single_gate(Gates.X, 1)
    assert reg.get_state_string() == "1.0000|010⟩"
    assert reg.get_state_string([0, 1, 2]) == "1.0000|010⟩"
    reg.apply_single_gate(Gates.X, 0)
    assert reg.get_state_string([0, 1, 2]) == "1.0000|110⟩"


def test_simulator_ccx():
    with QuantumSimulator(seed=8) as sim:
        with sim.qubits(3) as (a, b, c):
            sim.x(a).x(b)
            sim.ccx(a, b, c)
            assert sim.get_state_string([a, b, c]) == "1.0000|111⟩"
            sim.x(b)
            sim.ccx(a, b, c)
            assert sim.get_state_string([a, b, c]) == "1.0000|101⟩"


def test_simulator_cz_phase():
    with QuantumSimulator(seed=8) as sim:
        with sim.qubits(2) as (a, b):
            sim.h(a)
            sim.x(b)
            sim.cz(a, b)
            assert sim.get_state_string([a, b]) == "0.7071|01⟩ + -0.7071|11⟩"


def test_simulator_y_s_t_phases():
    with QuantumSimulator(seed=8) as sim:
        with sim.qubits(1) as (q,):
            sim.y(q)
            assert sim.get_state_string() == "1.0000i|1⟩"

        # 全部解放するとグローバル位相も消える
        with sim.qubits(1) as (q,):
            sim.x(q).s(q)
            assert sim.get_state_string() == "1.0000i|1⟩"

        with sim.qubits(1) as (q,):
            sim.x(q).t(q).t(q)
            assert sim.get_state_string() == "1.0000i|1⟩"


def test_simulator_rotations():
    with QuantumSimulator(seed=8) as sim:
        with sim.qubits(1) as (q,):
            # Rx(π) = -iX
            sim.rx(np.pi, q)
            assert sim.probability_one(q) == pytest.approx(1.0)
            assert sim.get_state_string() == "-1.0000i|1⟩"

            # H Rz(π) H = X（位相を除く）
            sim.reset(q)
            sim.h(q).rz(np.pi, q).h(q)
            assert sim.probability_one(q) == pytest.approx(1.0)

            sim.reset(q)
            sim.ry(np.pi / 2, q)
            assert sim.probability_one(q) == pytest.approx(0.5)


def test_simulator_state_string_uses_handle_order():
    with QuantumSimulator(seed=8) as sim:
        with sim.qubits(2) as (a, b):
            sim.x(a)
            # 省略時は後に確保した b が左
            assert sim.get_state_string() == "1.0000|01⟩"
            assert sim.get_state_string([a, b]) == "1.0000|10⟩"
            with pytest.raises(ValueError):
                sim.get_state_string([a])
