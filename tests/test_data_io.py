"""거래 레코드 → 시계열 준비 테스트"""
import pandas as pd
import pytest

from sketchmatch.corpus import SeriesCorpusIndex
from sketchmatch.data_io import (
    build_time_series, load_records, save_corpus_parquet, load_corpus_parquet, period_key
)

RECORDS = [
    {"OrderDate": "2024-01-05", "ProductName": "Desk", "CategoryName": "Furniture",
     "OrderItemQuantity": 2, "PerUnitPrice": 100.0, "Profit": 30.0},
    {"OrderDate": "2024-01-20", "ProductName": "Desk", "CategoryName": "Furniture",
     "OrderItemQuantity": 1, "PerUnitPrice": 100.0, "Profit": 15.0},
    {"OrderDate": "2024-03-02", "ProductName": "Laptop", "CategoryName": "Electronics",
     "OrderItemQuantity": 1, "PerUnitPrice": 900.0, "Profit": 120.0},
    {"OrderDate": "2024-02-11", "ProductName": "Lamp", "CategoryName": None,
     "OrderItemQuantity": 4, "PerUnitPrice": 12.5, "Profit": -2.0},
    {"OrderDate": "not a date", "ProductName": "Desk", "CategoryName": "Furniture",
     "OrderItemQuantity": 9, "PerUnitPrice": 100.0, "Profit": 0.0},
    {"OrderDate": "2024-02-01", "ProductName": None, "CategoryName": "Furniture",
     "OrderItemQuantity": 9, "PerUnitPrice": 100.0, "Profit": 0.0},
]


def test_monthly_sales():
    series, periods = build_time_series(RECORDS)

    assert periods == ["2024-01", "2024-02", "2024-03"]
    by_key = {s.entity_key: s for s in series}
    assert [s.entity_key for s in series] == ["Desk", "Laptop", "Lamp"]
    assert by_key["Desk"].values == (300.0, 0.0, 0.0)
    assert by_key["Laptop"].values == (0.0, 0.0, 900.0)
    assert by_key["Lamp"].values == (0.0, 50.0, 0.0)
    assert by_key["Desk"].total_value == 300.0
    assert all(s.period_index == (0, 1, 2) for s in series)


def test_missing_category_is_unknown():
    series, _ = build_time_series(RECORDS)

    assert {s.entity_key: s.category for s in series} == {
        "Desk": "Furniture", "Laptop": "Electronics", "Lamp": "Unknown",
    }


def test_profit_metric():
    series, _ = build_time_series(RECORDS, metric="profit")

    by_key = {s.entity_key: s for s in series}
    assert by_key["Desk"].values == (45.0, 0.0, 0.0)
    assert by_key["Lamp"].total_value == -2.0


def test_weekly_keys():
    dates = pd.Series(pd.to_datetime(["2024-01-03", "2024-01-07", "2024-03-14"]))

    assert period_key(dates, "weekly").tolist() == ["2024-W00", "2024-W01", "2024-W10"]


def test_output_builds_valid_index():
    series, periods = build_time_series(pd.DataFrame(RECORDS), time_frame="weekly")

    index = SeriesCorpusIndex(series, periods)
    assert len(index) == 3


def test_no_usable_records():
    assert build_time_series([{"OrderDate": None, "ProductName": "Desk"}]) == ([], [])


def test_unknown_options_raise():
    with pytest.raises(ValueError):
        build_time_series(RECORDS, metric="margin")
    with pytest.raises(ValueError):
        build_time_series(RECORDS, time_frame="daily")


def test_corpus_parquet_cache(tmp_path):
    series, periods = build_time_series(RECORDS)

    save_corpus_parquet(series, periods, tmp_path)
    loaded = load_corpus_parquet(tmp_path)

    assert loaded == (series, periods)


def test_missing_cache_returns_none(tmp_path):
    assert load_corpus_parquet(tmp_path / "nothing") is None


def test_load_records_csv(tmp_path):
    p = tmp_path / "orders.csv"
    pd.DataFrame(RECORDS[:3]).to_csv(p, index=False)

    df = load_records(p)

    assert len(df) == 3
    series, periods = build_time_series(df)
    assert [s.entity_key for s in series] == ["Desk", "Laptop"]
    assert periods == ["2024-01", "2024-03"]


def test_load_records_unsupported(tmp_path):
    with pytest.raises(ValueError):
        load_records(tmp_path / "orders.xlsx")
