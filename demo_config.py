"""
量子デモ 設定ファイル
====================
環境変数を .env ファイルから読み込みます
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# .envファイルを読み込み
load_dotenv()

DEFAULT_BELL_TRIALS = 1000
DEFAULT_RANDOM_BITS = 8
DEFAULT_LOG_LEVEL = "WARNING"


def _get_int(name: str, default: Optional[int]) -> Optional[int]:
    """整数の環境変数を読む（不正な値ならデフォルト）"""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


# シミュレーター設定
QSIM_SEED = _get_int("QSIM_SEED", None)
BELL_TEST_TRIALS = _get_int("QSIM_BELL_TRIALS", DEFAULT_BELL_TRIALS)
RANDOM_NUMBER_BITS = _get_int("QSIM_RANDOM_BITS", DEFAULT_RANDOM_BITS)

# ログ設定
LOG_LEVEL = os.getenv("QSIM_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()


# 設定確認
def check_config() -> bool:
    """設定が正しいか確認"""
    problems = []
    if BELL_TEST_TRIALS is None or BELL_TEST_TRIALS < 0:
        problems.append(f"QSIM_BELL_TRIALS={BELL_TEST_TRIALS}")
    if RANDOM_NUMBER_BITS is None or not 1 <= RANDOM_NUMBER_BITS <= 16:
        problems.append(f"QSIM_RANDOM_BITS={RANDOM_NUMBER_BITS}")
    if not isinstance(logging.getLevelName(LOG_LEVEL), int):
        problems.append(f"QSIM_LOG_LEVEL={LOG_LEVEL}")

    if problems:
        print(f"⚠️ 不正な設定: {', '.join(problems)}")
        print("   .envファイルを確認してください")
        return False

    print("✅ 設定OK")
    print(f"   Seed: {QSIM_SEED if QSIM_SEED is not None else '(random)'}")
    print(f"   Bell test trials: {BELL_TEST_TRIALS}")
    print(f"   Random number bits: {RANDOM_NUMBER_BITS}")
    print(f"   Log level: {LOG_LEVEL}")
    return True


if __name__ == "__main__":
    check_config()
