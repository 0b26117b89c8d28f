#!/usr/bin/env python3
"""
量子デモ ドライバー
==================
シミュレーター上で量子操作を順番に実行し、結果を表示する

セクション:
1. 可逆ゲート (5回)
2. 測定による重ね合わせの収縮 (15回)
3. 量子乱数 (10回)
4. ベルテスト (初期値 Zero / One の2回)
5. ドイッチ・ジョザ (オラクル4種)
6. テレポーテーション part 1 (msg == false, 5回)
7. テレポーテーション part 2 (msg == true, 5回)

使用例:
python quantum_demo.py
python quantum_demo.py --no-wait --seed 42 --plot demo.png
python quantum_demo.py --operation bell_test 100 One
"""

import argparse
import logging
import sys
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import demo_config
from quantum_computer import QuantumSimulator, Result
from quantum_operations import OPERATIONS, run_operation

logger = logging.getLogger(__name__)

REVERSIBLE_GATE_RUNS = 5
MEASUREMENT_COLLAPSE_RUNS = 15
RANDOM_NUMBER_RUNS = 10
BELL_TEST_INITIALS = (Result.Zero, Result.One)
ORACLES = (
    ("Const0", "constant0"),
    ("Const1", "constant1"),
    ("Identity", "identity"),
    ("Negation", "negation"),
)
TELEPORT_RUNS = 5


@dataclass
class DemoReport:
    """デモ1回分の結果"""
    reversible_gate: List[Tuple[Result, Result]] = field(default_factory=list)
    measurement_collapse: List[Tuple[Result, Tuple[Result, Result]]] = field(default_factory=list)
    random_numbers: List[int] = field(default_factory=list)
    random_bits: int = demo_config.DEFAULT_RANDOM_BITS
    bell_tests: List[Tuple[Result, Tuple[int, int, int]]] = field(default_factory=list)
    oracles: Dict[str, Tuple[Result, Result, Result]] = field(default_factory=dict)
    teleport_false: List[bool] = field(default_factory=list)
    teleport_true: List[bool] = field(default_factory=list)


def press_key(name: str, out: Callable = print, read: Callable = input):
    out(f"\n\nPress Enter to start {name}\n\n")
    read()


def run_demo(sim: QuantumSimulator,
             out: Callable = print,
             read: Callable = input,
             wait: bool = True,
             operations: Optional[Dict[str, Callable]] = None,
             bell_trials: int = demo_config.DEFAULT_BELL_TRIALS,
             random_bits: int = demo_config.DEFAULT_RANDOM_BITS) -> DemoReport:
    """
    全セクションを順番に実行する

    Args:
        sim: シミュレーター
        out: 1行出力する関数
        read: キー入力を待つ関数
        wait: False ならセクション間で入力を待たない
        operations: 名前 → 操作 のテーブル（デフォルトは OPERATIONS）
        bell_trials: ベルテスト1回あたりの試行数
        random_bits: 乱数のビット数
    """
    ops = OPERATIONS if operations is None else operations
    report = DemoReport(random_bits=random_bits)

    def section(name: str):
        logger.info("Starting section: %s", name)
        if wait:
            press_key(name, out, read)

    section("Reversable gate")
    for i in range(REVERSIBLE_GATE_RUNS):
        initial = Result.Zero if i % 2 == 0 else Result.One
        result = ops["reversible_gate"](sim, initial)
        report.reversible_gate.append((initial, result))
        out(f"Reversable gate result is: {result}. Initial value: {initial}")

    section("Measurement superposition collapsing")
    for i in range(MEASUREMENT_COLLAPSE_RUNS):
        initial = Result.One if i % 2 == 0 else Result.Zero
        first, second = ops["measurement_collapsing_superposition"](sim, initial)
        report.measurement_collapse.append((initial, (first, second)))
        out(f"Reversable gate result is: {first}. "
            f"Result2: {second}. Inital value: {initial}")

    section("Random number generator")
    for _ in range(RANDOM_NUMBER_RUNS):
        number = ops["generate_random_number"](sim, random_bits)
        report.random_numbers.append(number)
        out(f"Random number is: {number}")

    section("Bell test")
    for initial in BELL_TEST_INITIALS:
        num_zeros, num_ones, agrees = ops["bell_test"](sim, bell_trials, initial)
        report.bell_tests.append((initial, (num_zeros, num_ones, agrees)))
        out(f"Init:{str(initial):<4} "
            f"0s={num_zeros:<4} "
            f"1s={num_ones:<4} "
            f"Agrees = {agrees:<4}")

    section("Deutsch-Jozsa")
    for label, name in ORACLES:
        report.oracles[label] = tuple(ops[name](sim))
    for label, _ in ORACLES:
        a, b, c = report.oracles[label]
        out(f"{label}: {a} {b} {c}")

    section("Teleportation part 1")
    for _ in range(TELEPORT_RUNS):
        received = ops["send_message"](sim, False)
        report.teleport_false.append(received)
        out(f"Teleport (msg==false): {received}")

    section("Teleportation part 2")
    for _ in range(TELEPORT_RUNS):
        received = ops["send_message"](sim, True)
        report.teleport_true.append(received)
        out(f"Teleport (msg==true): {received}")

    out("\n\nEnd")
    if wait:
        read()

    return report


# ========================================
# 単一操作の実行
# ========================================

def parse_operation_arg(text: str):
    """コマンドライン引数を Result / bool / int に変換"""
    lowered = text.lower()
    if lowered in ("zero", "one"):
        return Result.Zero if lowered == "zero" else Result.One
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        return int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"cannot interpret operation argument: {text!r}")


def format_result(result) -> str:
    """タプルの結果は空白区切りで表示"""
    if isinstance(result, tuple):
        return " ".join(str(r) for r in result)
    return str(result)


# ========================================
# メイン
# ========================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Quantum examples - 量子操作のデモ',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
使用例:
  # 全セクションを順番に実行（セクションごとに Enter 待ち）
  python quantum_demo.py

  # 入力待ちなしで実行して図を保存
  python quantum_demo.py --no-wait --seed 42 --plot demo.png

  # 1つの操作だけ実行
  python quantum_demo.py --operation send_message true
        """
    )

    parser.add_argument('--no-wait', action='store_true', help='セクション間で入力を待たない')
    parser.add_argument('--seed', type=int, default=demo_config.QSIM_SEED, help='乱数シード')
    parser.add_argument('--bell-trials', type=int, default=demo_config.BELL_TEST_TRIALS,
                        help='ベルテストの試行回数')
    parser.add_argument('--random-bits', type=int, default=demo_config.RANDOM_NUMBER_BITS,
                        help='乱数のビット数 (1-16)')
    parser.add_argument('--plot', type=str, metavar='PATH', help='結果の図を保存するパス')
    parser.add_argument('--log-level', type=str.upper, default=demo_config.LOG_LEVEL,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='ログレベル')
    parser.add_argument('--operation', type=str, nargs='+', metavar=('NAME', 'ARG'),
                        help='登録済みの操作を1回だけ実行')
    parser.add_argument('--list', action='store_true', help='登録済みの操作を表示')
    parser.add_argument('--check-config', action='store_true', help='設定を確認して終了')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level, logging.WARNING),
                        format='%(asctime)s - %(levelname)s - %(message)s')

    if args.check_config:
        return 0 if demo_config.check_config() else 1

    if args.list:
        for name in OPERATIONS:
            print(name)
        return 0

    with QuantumSimulator(seed=args.seed) as sim:
        if args.operation:
            name, *raw_args = args.operation
            try:
                op_args = [parse_operation_arg(a) for a in raw_args]
            except argparse.ArgumentTypeError as e:
                parser.error(str(e))
            if name == "generate_random_number" and not op_args:
                op_args = [args.random_bits]
            result = run_operation(sim, name, *op_args)
            print(f"{name}: {format_result(result)}")
            return 0

        report = run_demo(sim,
                          wait=not args.no_wait,
                          bell_trials=args.bell_trials,
                          random_bits=args.random_bits)

    if args.plot:
        from visualize_results import save_demo_figure
        path = save_demo_figure(report, args.plot)
        print(f"📊 Saved figure: {path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
