from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional, Tuple

Point = Tuple[float, float]


class TimeSeries(BaseModel):
    """엔티티(상품)별 준비된 시계열. 코퍼스 로드 후 변경 불가"""
    model_config = ConfigDict(frozen=True)

    entity_key: str
    category: str = "Unknown"
    period_index: Tuple[int, ...]
    values: Tuple[float, ...]
    total_value: float = 0.0


class MatchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    entity_key: str
    category: str
    total_value: float
    dtw_distance: float
    match_quality: float  # 0~100
    series: Tuple[Point, ...]  # 정규화된 시계열 (표시용, 기간당 1포인트)


class IngestRequest(BaseModel):
    records: List[Dict[str, Any]] = Field(..., min_length=1)
    time_frame: Literal["monthly", "weekly"] = "monthly"
    metric: Literal["sales", "profit"] = "sales"


class IngestResponse(BaseModel):
    series_count: int
    eligible_count: int
    period_count: int


class SketchRequest(BaseModel):
    points: List[Point] = Field(default_factory=list)  # 화면 좌표 스트로크 (짧으면 빈 결과)
    category: str = "All"
    top_k: Optional[int] = Field(None, ge=1, le=100)
    # 예약 필드: 현재 매칭 알고리즘에서 사용하지 않음
    pattern_type: Optional[Literal["trend", "shape", "value"]] = None


class SimilarResponse(BaseModel):
    items: List[MatchResult]
    sketch_norm: List[Point]  # 정규화 + 리샘플링된 스케치 (오버레이용)
