"""
デモ結果の視覚化

ベルテストの統計と量子乱数の分布を表示
"""

from typing import Sequence, Tuple

import numpy as np
import matplotlib.pyplot as plt

from quantum_computer import Result


def plot_bell_test(bell_results: Sequence[Tuple[Result, Tuple[int, int, int]]],
                   ax: plt.Axes = None) -> plt.Axes:
    """
    ベルテストの結果を棒グラフで表示

    Args:
        bell_results: [(初期値, (0の回数, 1の回数, 一致回数)), ...]
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(6, 4))

    labels = [str(initial) for initial, _ in bell_results]
    zeros = [res[0] for _, res in bell_results]
    ones = [res[1] for _, res in bell_results]
    agrees = [res[2] for _, res in bell_results]

    x_pos = np.arange(len(labels))
    width = 0.25

    ax.bar(x_pos - width, zeros, width, label='0s', color='#2E86AB')
    ax.bar(x_pos, ones, width, label='1s', color='#A23B72')
    ax.bar(x_pos + width, agrees, width, label='Agrees', color='#F18F01')

    if bell_results:
        trials = zeros[0] + ones[0]
        ax.axhline(y=trials / 2, color='gray', linestyle='--', alpha=0.5, label='50%')

    ax.set_xticks(x_pos)
    ax.set_xticklabels(labels)
    ax.set_xlabel('初期値')
    ax.set_ylabel('回数')
    ax.set_title('ベルテスト')
    ax.legend()

    return ax


def plot_random_numbers(numbers: Sequence[int], n_bits: int, ax: plt.Axes = None) -> plt.Axes:
    """量子乱数のヒストグラム"""
    if ax is None:
        fig, ax = plt.subplots(figsize=(6, 4))

    upper = 2 ** n_bits
    bins = min(upper, 32)
    ax.hist(numbers, bins=bins, range=(0, upper), color='#2E86AB', edgecolor='black')
    ax.set_xlim([0, upper])
    ax.set_xlabel('値')
    ax.set_ylabel('回数')
    ax.set_title(f'量子乱数 ({len(numbers)}個, {n_bits} bits)')

    return ax


def save_demo_figure(report, path: str) -> str:
    """ベルテストと乱数の2枚組の図を保存"""
    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(12, 5))
    fig.suptitle('Quantum examples', fontsize=14)

    plot_bell_test(report.bell_tests, ax1)
    plot_random_numbers(report.random_numbers, report.random_bits, ax2)

    plt.tight_layout()
    fig.savefig(path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    return path
