import numpy as np
import logging
from typing import Sequence

from .errors import ContractViolation

logger = logging.getLogger(__name__)

# Constants
DEFAULT_POINT_COUNT = 20  # 리샘플링 기본 포인트 수


def as_points(points) -> np.ndarray:
    """
    포인트 시퀀스를 (k, 2) float 배열로 변환

    Args:
        points: [(x, y), ...] 또는 (k, 2) 배열

    Returns:
        (k, 2) shape의 float64 배열 (입력 복사본)
    """
    arr = np.array(points, dtype=float)
    if arr.size == 0:
        return arr.reshape(0, 2)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ContractViolation(f"expected a sequence of (x, y) points, got shape {arr.shape}")
    return arr


def series_to_points(values: Sequence[float]) -> np.ndarray:
    """
    값 시계열을 (periodIndex / (len-1), value) 포인트로 변환

    단일 값이면 x = 0 하나만 반환합니다.
    """
    y = np.asarray(values, dtype=float)
    if len(y) <= 1:
        x = np.zeros(len(y))
    else:
        x = np.arange(len(y)) / (len(y) - 1)
    return np.column_stack([x, y])


def _rescale_axis(v: np.ndarray) -> np.ndarray:
    lo, hi = v.min(), v.max()
    # 모든 값이 같으면 0으로 고정 (0으로 나누기 방지)
    if hi == lo:
        return np.zeros_like(v)
    return (v - lo) / (hi - lo)


def normalize_curve(points, screen_space: bool) -> np.ndarray:
    """
    포인트 시퀀스를 단위 정사각형 [0,1] x [0,1]로 정규화

    Args:
        points: 1개 이상의 (x, y) 포인트
        screen_space: True면 화면 좌표(아래로 갈수록 y 증가)로 보고 Y축을 뒤집음.
            값 시계열이면 False. 추론하지 않고 호출자가 반드시 지정합니다.

    Returns:
        정규화된 (k, 2) 배열. 범위가 0인 축은 0으로 매핑됩니다.
    """
    pts = as_points(points)
    if len(pts) == 0:
        return pts

    out = np.empty_like(pts)
    out[:, 0] = _rescale_axis(pts[:, 0])
    out[:, 1] = _rescale_axis(pts[:, 1])

    if screen_space and pts[:, 1].max() != pts[:, 1].min():
        out[:, 1] = 1.0 - out[:, 1]

    return out


def resample_curve(curve, n: int = DEFAULT_POINT_COUNT) -> np.ndarray:
    """
    곡선을 호 길이(arc length) 기준으로 균등하게 n개 포인트로 리샘플링

    Args:
        curve: 정규화된 (k, 2) 곡선
        n: 목표 포인트 수 (>= 2)

    Returns:
        (n, 2) 배열. 첫/마지막 포인트는 입력의 첫/마지막 포인트와 동일.
        입력이 1개 이하면 그대로 반환합니다.
    """
    if n < 2:
        raise ContractViolation(f"resample point count must be >= 2, got {n}")

    pts = as_points(curve)
    if len(pts) <= 1:
        return pts

    seg = np.diff(pts, axis=0)
    seg_len = np.sqrt((seg ** 2).sum(axis=1))
    total = float(seg_len.sum())

    if total == 0.0:
        # 모든 점이 같은 위치: 이동 거리 0
        logger.debug("Zero path length, repeating first point")
        return np.repeat(pts[:1], n, axis=0)

    step = total / (n - 1)
    out = [pts[0]]

    travelled = 0.0   # pts[idx-1]까지 누적 거리
    idx = 1
    for i in range(1, n - 1):
        target = i * step
        while idx < len(pts):
            length = seg_len[idx - 1]
            if length > 0 and travelled + length >= target:
                t = (target - travelled) / length
                out.append(pts[idx - 1] + t * seg[idx - 1])
                break
            travelled += length
            idx += 1
        else:
            # 부동소수점 오차로 경로 끝에 도달
            break

    while len(out) < n - 1:
        out.append(pts[-1])
    out.append(pts[-1])

    return np.array(out, dtype=float)


def normalize_pipeline(points, n: int, screen_space: bool) -> np.ndarray:
    """
    정규화 파이프라인: [0,1] 정규화 → 호 길이 리샘플링

    Args:
        points: 입력 포인트
        n: 목표 포인트 수
        screen_space: Y축 반전 여부 (normalize_curve 참고)

    Returns:
        리샘플링된 곡선
    """
    curve = normalize_curve(points, screen_space=screen_space)
    return resample_curve(curve, n)
