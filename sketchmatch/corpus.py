"""
준비된 엔티티별 시계열의 읽기 전용 인덱스

인덱스는 생성 후 변경하지 않습니다. 데이터를 다시 적재하면 새 인덱스를
만들어 CorpusHolder에서 교체합니다.
"""
import math
import logging
import threading
from typing import Dict, Iterator, List, Optional, Sequence

from .errors import ContractViolation
from .models import TimeSeries

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "All"
MIN_SUPPORT_PERIODS = 5  # 최소 non-zero 기간 수 (기간 수의 절반과 비교해 작은 쪽)


def minimum_support_filter(series: TimeSeries, period_count: int,
                           min_periods: int = MIN_SUPPORT_PERIODS) -> bool:
    """
    검색 대상이 될 만큼 non-zero 기간이 있는지 확인

    non-zero 값이 ``min(min_periods, period_count / 2)`` 개 이상이어야 합니다.
    기간이 짧은 코퍼스에서는 절반이 기준이 됩니다.
    """
    non_zero = sum(1 for v in series.values if v != 0)
    return non_zero >= min(min_periods, period_count / 2)


class SeriesCorpusIndex:
    """기간 축이 정렬된 TimeSeries 모음 (변경 불가, 삽입 순서 유지)"""

    def __init__(self, series: Sequence[TimeSeries], period_keys: Sequence[str],
                 min_support_periods: int = MIN_SUPPORT_PERIODS):
        self._period_keys = tuple(period_keys)
        self._min_support_periods = min_support_periods
        self._series: Dict[str, TimeSeries] = {}

        expected = tuple(range(len(self._period_keys)))
        for s in series:
            self._validate(s, expected)
            self._series[s.entity_key] = s

        self._eligible = tuple(
            s for s in self._series.values()
            if minimum_support_filter(s, len(self._period_keys), min_support_periods)
        )
        logger.info(
            f"Corpus index built: {len(self._series)} series, "
            f"{len(self._eligible)} eligible, {len(self._period_keys)} periods"
        )

    def _validate(self, s: TimeSeries, expected: tuple):
        if s.entity_key in self._series:
            raise ContractViolation("duplicate entity key in corpus", entity_key=s.entity_key)
        if len(s.values) != len(s.period_index):
            raise ContractViolation(
                f"{len(s.values)} values for {len(s.period_index)} periods",
                entity_key=s.entity_key,
            )
        if s.period_index != expected:
            raise ContractViolation(
                f"period index not aligned to the {len(expected)}-period corpus axis",
                entity_key=s.entity_key,
            )
        if not all(math.isfinite(v) for v in s.values):
            raise ContractViolation("non-finite value in series", entity_key=s.entity_key)

    @property
    def period_keys(self) -> tuple:
        return self._period_keys

    @property
    def period_count(self) -> int:
        return len(self._period_keys)

    def __len__(self) -> int:
        return len(self._series)

    def __iter__(self) -> Iterator[TimeSeries]:
        return iter(self._series.values())

    def get(self, entity_key: str) -> Optional[TimeSeries]:
        return self._series.get(entity_key)

    def categories(self) -> List[str]:
        """'All' + 첫 등장 순서의 카테고리 목록"""
        seen = dict.fromkeys(s.category for s in self._series.values() if s.category)
        return [ALL_CATEGORIES, *seen]

    def filter_by_category(self, category: str = ALL_CATEGORIES) -> List[TimeSeries]:
        if category == ALL_CATEGORIES:
            return list(self._series.values())
        return [s for s in self._series.values() if s.category == category]

    def is_supported(self, series: TimeSeries) -> bool:
        return minimum_support_filter(series, self.period_count, self._min_support_periods)

    def eligible(self, category: str = ALL_CATEGORIES) -> List[TimeSeries]:
        """카테고리 필터 → 최소 지지도 필터"""
        if category == ALL_CATEGORIES:
            return list(self._eligible)
        return [s for s in self._eligible if s.category == category]


EMPTY_CORPUS = SeriesCorpusIndex([], [])


class CorpusHolder:
    """
    현재 코퍼스 인덱스 보관

    검색은 current()로 받은 참조를 끝까지 사용하고,
    swap()은 참조만 바꾸며 이전 인덱스는 건드리지 않습니다.
    """

    def __init__(self, index: SeriesCorpusIndex = None):
        self._lock = threading.Lock()
        self._index = index if index is not None else EMPTY_CORPUS

    def current(self) -> SeriesCorpusIndex:
        with self._lock:
            return self._index

    def swap(self, index: SeriesCorpusIndex) -> SeriesCorpusIndex:
        """새 인덱스로 교체하고 이전 인덱스를 반환"""
        with self._lock:
            previous, self._index = self._index, index
        logger.info(f"Corpus swapped: {len(previous)} -> {len(index)} series")
        return previous
