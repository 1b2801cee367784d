#!/usr/bin/env python3
"""
거래 레코드 파일(.csv/.json/.parquet) → 상품별 시계열 코퍼스(data/corpus.parquet)

usage: python scripts/build_corpus.py RECORDS_FILE [monthly|weekly] [sales|profit]
"""
import sys

from sketchmatch.config import settings
from sketchmatch.corpus import SeriesCorpusIndex
from sketchmatch.data_io import build_time_series, load_records, save_corpus_parquet


def main(argv):
    if len(argv) < 2:
        print(__doc__)
        return 2

    path = argv[1]
    time_frame = argv[2] if len(argv) > 2 else settings.time_frame
    metric = argv[3] if len(argv) > 3 else settings.metric

    print(f"[INFO] Reading records from {path}...")
    records = load_records(path)
    print(f"[INFO] {len(records)} records")

    series, period_keys = build_time_series(records, time_frame=time_frame, metric=metric)
    if not series:
        print("[WARN] No usable records. Nothing saved.")
        return 1

    # 정렬 검증 (실패 시 ContractViolation)
    index = SeriesCorpusIndex(series, period_keys, settings.min_support_periods)

    out = save_corpus_parquet(series, period_keys, settings.data_dir)
    print(f"[OK] Saved {len(index)} series ({len(index.eligible())} searchable) to {out}")
    print(f"[INFO] Periods: {period_keys[0]} .. {period_keys[-1]} ({len(period_keys)} {time_frame})")
    print(f"[INFO] Categories: {', '.join(index.categories()[1:])}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
