import pandas as pd
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union
import json

from .models import TimeSeries

logger = logging.getLogger(__name__)

# Constants
DATE_COL = "OrderDate"
ENTITY_COL = "ProductName"
CATEGORY_COL = "CategoryName"
QUANTITY_COL = "OrderItemQuantity"
PRICE_COL = "PerUnitPrice"
PROFIT_COL = "Profit"
UNKNOWN_CATEGORY = "Unknown"

CORPUS_FILE = "corpus.parquet"
META_FILE = "meta.json"

_PERIOD_FORMATS = {
    "monthly": "%Y-%m",
    "weekly": "%Y-W%U",  # 일요일 기준 주차
}


def period_key(dates: pd.Series, time_frame: str = "monthly") -> pd.Series:
    """
    날짜 → 기간 키 문자열 ("2024-03" 또는 "2024-W09")

    Args:
        dates: datetime Series
        time_frame: "monthly" 또는 "weekly"
    """
    if time_frame not in _PERIOD_FORMATS:
        raise ValueError(f"Unknown time_frame: {time_frame}")
    return dates.dt.strftime(_PERIOD_FORMATS[time_frame])


def _to_frame(records: Union[pd.DataFrame, Iterable[dict]]) -> pd.DataFrame:
    df = records.copy() if isinstance(records, pd.DataFrame) else pd.DataFrame(list(records))
    for col in (DATE_COL, ENTITY_COL, CATEGORY_COL, QUANTITY_COL, PRICE_COL, PROFIT_COL):
        if col not in df.columns:
            df[col] = None
    return df


def build_time_series(records: Union[pd.DataFrame, Iterable[dict]],
                      time_frame: str = "monthly",
                      metric: str = "sales") -> Tuple[List[TimeSeries], List[str]]:
    """
    거래 레코드 → 상품별 기간 정렬 시계열

    Args:
        records: OrderDate, ProductName, CategoryName, OrderItemQuantity,
            PerUnitPrice, Profit 컬럼을 가진 레코드
        time_frame: "monthly" 또는 "weekly"
        metric: "sales" (수량 × 단가) 또는 "profit"

    Returns:
        (시계열 리스트, 기간 키 리스트) 튜플
        - 시계열은 레코드 첫 등장 순서
        - 모든 시계열이 같은 기간 축을 공유 (없는 기간은 0)
    """
    if metric not in ("sales", "profit"):
        raise ValueError(f"Unknown metric: {metric}")

    df = _to_frame(records)
    total_rows = len(df)

    df[DATE_COL] = pd.to_datetime(df[DATE_COL], errors="coerce")
    df = df[df[DATE_COL].notna() & df[ENTITY_COL].notna() & (df[ENTITY_COL].astype(str) != "")].copy()
    dropped = total_rows - len(df)
    if dropped > 0:
        logger.warning(f"Dropped {dropped} records without a valid date or product")

    if df.empty:
        logger.info("No usable records, corpus is empty")
        return [], []

    df[ENTITY_COL] = df[ENTITY_COL].astype(str)
    df[CATEGORY_COL] = df[CATEGORY_COL].fillna(UNKNOWN_CATEGORY).replace("", UNKNOWN_CATEGORY).astype(str)
    if metric == "sales":
        qty = pd.to_numeric(df[QUANTITY_COL], errors="coerce").fillna(0.0)
        price = pd.to_numeric(df[PRICE_COL], errors="coerce").fillna(0.0)
        df["value"] = qty * price
    else:
        df["value"] = pd.to_numeric(df[PROFIT_COL], errors="coerce").fillna(0.0)
    df["period"] = period_key(df[DATE_COL], time_frame)

    period_keys = sorted(df["period"].unique())

    # 상품 × 기간 합계 (상품은 첫 등장 순서)
    order = pd.unique(df[ENTITY_COL])
    table = (
        df.pivot_table(index=ENTITY_COL, columns="period", values="value", aggfunc="sum", fill_value=0.0)
        .reindex(index=order, columns=period_keys, fill_value=0.0)
    )
    # 상품의 카테고리는 첫 레코드 기준
    categories = df.groupby(ENTITY_COL, sort=False)[CATEGORY_COL].first()

    period_index = tuple(range(len(period_keys)))
    series = []
    for entity, row in table.iterrows():
        values = tuple(float(v) for v in row.to_numpy())
        series.append(TimeSeries(
            entity_key=entity,
            category=categories[entity],
            period_index=period_index,
            values=values,
            total_value=float(sum(values)),
        ))

    logger.info(f"Built {len(series)} series over {len(period_keys)} {time_frame} periods ({metric})")
    return series, list(period_keys)


def load_records(path: Union[str, Path]) -> pd.DataFrame:
    """
    거래 레코드 파일 로드 (.csv, .json, .parquet)
    """
    p = Path(path)
    suffix = p.suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(p)
    elif suffix == ".json":
        df = pd.read_json(p)
    elif suffix == ".parquet":
        df = pd.read_parquet(p)
    else:
        raise ValueError(f"Unsupported records format: {suffix}")
    logger.info(f"Loaded {len(df)} records from {p}")
    return df


def save_corpus_parquet(series: List[TimeSeries], period_keys: List[str], data_dir: Union[str, Path]) -> str:
    """
    준비된 코퍼스를 Parquet 파일로 저장 (기간 키는 meta.json)

    Returns:
        저장된 파일 경로
    """
    d = Path(data_dir)
    d.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame({
        "entity_key": [s.entity_key for s in series],
        "category": [s.category for s in series],
        "series_values": [list(s.values) for s in series],
        "total_value": [s.total_value for s in series],
    })
    p = d / CORPUS_FILE
    df.to_parquet(p, index=False, engine="pyarrow")
    (d / META_FILE).write_text(json.dumps({"period_keys": list(period_keys), "series_count": len(series)}, indent=2))
    logger.info(f"Saved corpus to {p}: {len(series)} series")
    return str(p)


def load_corpus_parquet(data_dir: Union[str, Path]) -> Optional[Tuple[List[TimeSeries], List[str]]]:
    """
    Parquet 파일에서 준비된 코퍼스 로드

    Returns:
        (시계열 리스트, 기간 키 리스트) 또는 None (파일 없으면)
    """
    d = Path(data_dir)
    p, meta = d / CORPUS_FILE, d / META_FILE
    if not (p.exists() and meta.exists()):
        logger.debug(f"No corpus cache found at {p}")
        return None

    df = pd.read_parquet(p, engine="pyarrow")
    period_keys = json.loads(meta.read_text())["period_keys"]
    period_index = tuple(range(len(period_keys)))
    series = [
        TimeSeries(
            entity_key=row.entity_key,
            category=row.category,
            period_index=period_index,
            values=tuple(float(v) for v in row.series_values),
            total_value=float(row.total_value),
        )
        for row in df.itertuples(index=False)
    ]
    logger.debug(f"Loaded corpus from {p}: {len(series)} series")
    return series, period_keys
