import heapq
import numpy as np
import logging
from typing import Iterable, List, Tuple

from .errors import ContractViolation

logger = logging.getLogger(__name__)

DTW_METRICS = ("abs", "squared")
MATCH_QUALITY_SCALE = 20.0  # DTW 거리 1당 감점 (표시용 상수)


def dtw_distance(a: np.ndarray, b: np.ndarray, metric: str = "abs") -> float:
    """
    Dynamic Time Warping 거리 계산 (진폭 Y 성분만 사용)

    X(시간) 축은 DTW가 늘이거나 줄이는 대상이므로 로컬 비용에는
    Y 차이만 들어갑니다.

    Args:
        a, b: 같은 길이로 리샘플링된 (n, 2) 곡선
        metric: "abs" (|dy|) 또는 "squared" (dy^2)

    Returns:
        DTW 누적 비용 (>= 0)

    Raises:
        ContractViolation: 두 곡선의 길이가 다르거나 metric이 잘못된 경우
    """
    if len(a) != len(b):
        raise ContractViolation(f"DTW inputs must have equal length, got {len(a)} and {len(b)}")
    if metric not in DTW_METRICS:
        raise ContractViolation(f"unknown DTW metric: {metric!r}")

    ya = np.asarray(a, dtype=float)[:, 1] if len(a) else np.empty(0)
    yb = np.asarray(b, dtype=float)[:, 1] if len(b) else np.empty(0)
    n, m = len(ya), len(yb)

    diff = ya[:, None] - yb[None, :]
    cost = np.abs(diff) if metric == "abs" else diff ** 2

    dtw = np.full((n + 1, m + 1), np.inf)
    dtw[0, 0] = 0.0

    for i in range(1, n + 1):
        for j in range(1, m + 1):
            dtw[i, j] = cost[i - 1, j - 1] + min(
                dtw[i - 1, j],      # insertion
                dtw[i, j - 1],      # deletion
                dtw[i - 1, j - 1],  # match
            )

    return float(dtw[n, m])


def match_quality(distance: float, scale: float = MATCH_QUALITY_SCALE) -> float:
    """
    DTW 거리 → 0~100 표시용 매칭 점수 (단조 감소, 범위 고정)

    통계적 신뢰도가 아니라 화면 표시용 변환입니다.
    """
    return float(max(0.0, min(100.0, 100.0 - distance * scale)))


def rank_top_k(scored: Iterable[Tuple[str, float]], k: int = 10) -> List[Tuple[int, str, float]]:
    """
    Top-K 랭킹 (거리 오름차순, 동점이면 입력 순서 유지)

    Args:
        scored: [(entity_key, distance), ...] 코퍼스 순서대로
        k: 반환할 상위 개수

    Returns:
        [(corpus_position, entity_key, distance), ...] 거리 오름차순
    """
    if k < 1:
        return []

    # 크기 k 힙 선택: sort-then-truncate와 같은 순서
    top = heapq.nsmallest(
        k,
        ((d, pos, key) for pos, (key, d) in enumerate(scored)),
        key=lambda item: (item[0], item[1]),
    )
    results = [(pos, key, d) for d, pos, key in top]
    logger.debug(f"Top {len(results)} results: {[key for _, key, _ in results]}")
    return results
