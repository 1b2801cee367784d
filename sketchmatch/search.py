import logging
import numpy as np
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple

from .config import Settings, settings as default_settings
from .corpus import ALL_CATEGORIES, SeriesCorpusIndex
from .errors import ContractViolation
from .features import as_points, normalize_curve, normalize_pipeline, resample_curve, series_to_points
from .models import MatchResult, TimeSeries
from .similar import dtw_distance, match_quality, rank_top_k

logger = logging.getLogger(__name__)


class PatternSearchService:
    """
    그린 스트로크와 모양이 가장 비슷한 코퍼스 시계열 검색

    서비스는 설정값만 가지고 있습니다. 스트로크와 코퍼스 인덱스는 매 호출마다
    인자로 받고, 새 MatchResult 리스트를 반환합니다.
    """

    def __init__(self, config: Settings = None):
        config = config or default_settings
        self.point_count = config.resample_point_count
        self.top_k = config.top_k
        self.min_draw_points = config.min_draw_points
        self.quality_scale = config.match_quality_scale
        self.metric = config.dtw_metric
        self.workers = config.search_workers

    def prepare_stroke(self, stroke) -> np.ndarray:
        """스트로크 정규화(화면 좌표) → 리샘플링"""
        pts = as_points(stroke)
        if not np.all(np.isfinite(pts)):
            raise ContractViolation("stroke contains non-finite coordinates")
        return normalize_pipeline(pts, self.point_count, screen_space=True)

    def prepare_series(self, series: TimeSeries) -> np.ndarray:
        """
        시계열 정규화(값 모드) → 리샘플링

        기간이 1개뿐이면 리샘플링이 포인트 1개를 그대로 돌려주므로
        스케치와 같은 길이로 반복합니다. 기간이 없으면 (0, 0)을 반복합니다.
        """
        curve = normalize_curve(series_to_points(series.values), screen_space=False)
        resampled = resample_curve(curve, self.point_count)
        if len(resampled) < self.point_count:
            first = curve[:1] if len(curve) else np.zeros((1, 2))
            resampled = np.repeat(first, self.point_count, axis=0)
        return resampled

    def _score(self, sketch: np.ndarray, series: TimeSeries) -> float:
        return dtw_distance(sketch, self.prepare_series(series), metric=self.metric)

    def _score_all(self, sketch: np.ndarray, candidates: List[TimeSeries]) -> List[float]:
        if self.workers > 1 and len(candidates) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                # map()는 입력 순서대로 모든 결과를 기다림
                return list(pool.map(lambda s: self._score(sketch, s), candidates))
        return [self._score(sketch, s) for s in candidates]

    def search(self, stroke, corpus: SeriesCorpusIndex, category: str = ALL_CATEGORIES,
               top_k: Optional[int] = None, pattern_type: Optional[str] = None) -> List[MatchResult]:
        """
        스트로크와 DTW 거리가 가까운 순으로 코퍼스 시계열 랭킹

        Args:
            stroke: 드래그 한 번으로 그린 화면 좌표 포인트
            corpus: 검색할 인덱스 (변경하지 않음)
            category: 카테고리 이름 또는 "All"
            top_k: 최대 결과 수 (None이면 설정값)
            pattern_type: 예약 파라미터, 사용하지 않음

        Returns:
            dtw_distance 오름차순 MatchResult 리스트.
            스트로크가 너무 짧거나 대상 시계열이 없으면 빈 리스트.
        """
        results, _ = self.search_with_sketch(stroke, corpus, category, top_k, pattern_type)
        return results

    def search_with_sketch(self, stroke, corpus: SeriesCorpusIndex, category: str = ALL_CATEGORIES,
                           top_k: Optional[int] = None,
                           pattern_type: Optional[str] = None) -> Tuple[List[MatchResult], np.ndarray]:
        """
        search()와 같지만 정규화 + 리샘플링된 스케치도 함께 반환 (오버레이용)

        검색을 건너뛴 경우 스케치는 빈 (0, 2) 배열입니다.
        """
        top_k = self.top_k if top_k is None else top_k
        no_sketch = np.empty((0, 2))
        if pattern_type is not None:
            logger.debug(f"pattern_type={pattern_type!r} ignored")

        if len(stroke) < self.min_draw_points:
            logger.info(f"Stroke has {len(stroke)} points (< {self.min_draw_points}), search skipped")
            return [], no_sketch

        candidates = corpus.eligible(category)
        if not candidates:
            logger.info(f"No eligible series for category={category!r}")
            return [], no_sketch

        logger.info(f"Pattern search started: {len(stroke)} stroke points, {len(candidates)} candidates")
        sketch = self.prepare_stroke(stroke)
        distances = self._score_all(sketch, candidates)

        ranked = rank_top_k(((s.entity_key, d) for s, d in zip(candidates, distances)), k=top_k)

        results = []
        for pos, _, distance in ranked:
            s = candidates[pos]
            display = normalize_curve(series_to_points(s.values), screen_space=False)
            results.append(MatchResult(
                entity_key=s.entity_key,
                category=s.category,
                total_value=s.total_value,
                dtw_distance=distance,
                match_quality=match_quality(distance, self.quality_scale),
                series=[(float(x), float(y)) for x, y in display],
            ))

        logger.info(f"Pattern search finished: top {len(results)} = {[r.entity_key for r in results]}")
        return results, sketch
