"""
services/navigation.py

문제 번호 이동/페이지 창 계산.
순수 Python 함수로 구성: 상태 변경, 영속화 없음.
"""

import math
import random
from typing import List, Optional

from config import PAGE_WINDOW_SIZE


def clamp(index: int, total: int) -> int:
    """
    임의의 정수를 [0, total-1] 범위로 보정한다.

    Returns:
        total이 0이면 항상 0.
    """
    if total <= 0:
        return 0
    if index < 0:
        return 0
    if index > total - 1:
        return total - 1
    return index


def parse_jump(value, total: int) -> Optional[int]:
    """
    "n번 문제로 이동" 입력(1-based)을 0-based 인덱스로 변환한다.

    숫자로 해석할 수 없거나 유한하지 않은 값이면 None (이동 없음).
    소수는 내림 처리 후 범위를 보정한다.
    """
    if isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return clamp(int(math.floor(number)) - 1, total)


def visible_window(current: int, total: int, size: int = PAGE_WINDOW_SIZE) -> List[int]:
    """
    현재 문제를 중심으로 최대 size개의 인덱스를 반환한다.

    양 끝에 가까우면 창을 안쪽으로 밀어 [0, total-1]을 벗어나지 않게 한다.
    예) total=10: current=0 → [0..4], current=5 → [3..7], current=9 → [5..9]
    """
    if total <= 0 or size <= 0:
        return []
    half = size // 2
    start = current - half
    end = start + size - 1
    if start < 0:
        end += -start
        start = 0
    if end > total - 1:
        over = end - (total - 1)
        start = max(0, start - over)
        end = total - 1
    return list(range(start, end + 1))


def random_index(current: int, total: int, rng: Optional[random.Random] = None) -> int:
    """학습 모드용 임의 이동. 문제가 2개 이상이면 현재 문제는 고르지 않는다."""
    if total < 2:
        return clamp(current, total)
    rng = rng or random
    r = rng.randrange(total)
    if r == current:
        r = (r + 1) % total
    return r
