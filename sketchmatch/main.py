# sketchmatch/main.py
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
import logging

from .config import settings
from .models import IngestRequest, IngestResponse, SketchRequest, SimilarResponse
from .corpus import CorpusHolder, SeriesCorpusIndex
from .data_io import build_time_series, save_corpus_parquet, load_corpus_parquet
from .errors import ContractViolation
from .search import PatternSearchService

# Logging configuration
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Rate limiter
limiter = Limiter(key_func=get_remote_address)

# FastAPI app
app = FastAPI(title=settings.api_title)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware with restricted origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"]
)

# 현재 코퍼스 (재적재 시 새 인덱스로 교체)
CORPUS = CorpusHolder()
SERVICE = PatternSearchService(settings)


@app.on_event("startup")
def warmup():
    """서버 시작 시 디스크 캐시(parquet)가 있으면 코퍼스 인덱스 생성"""
    logger.info("Starting warmup: loading cached corpus...")
    try:
        loaded = load_corpus_parquet(settings.data_dir)
        if loaded is None:
            logger.info("No cached corpus found. Please POST /ingest first.")
            return
        series, period_keys = loaded
        CORPUS.swap(SeriesCorpusIndex(series, period_keys, settings.min_support_periods))
        logger.info(f"Warmup completed: {len(series)} series loaded")
    except Exception as e:
        logger.error(f"Warmup failed: {e}")


@app.get("/health")
def health():
    return {"ok": True, "series_count": len(CORPUS.current())}


@app.get("/categories")
def categories():
    return {"categories": CORPUS.current().categories()}


@app.post("/ingest", response_model=IngestResponse)
@limiter.limit(settings.rate_limit_ingest)
def ingest(request: Request, req: IngestRequest):
    """
    거래 레코드로 코퍼스 재구성 후 교체

    Rate limit: 5/minute (설정 가능)
    """
    logger.info(f"Ingest started: {len(req.records)} records, time_frame={req.time_frame}, metric={req.metric}")

    try:
        series, period_keys = build_time_series(req.records, time_frame=req.time_frame, metric=req.metric)
        if not series:
            # 기존 코퍼스를 빈 코퍼스로 덮어쓰지 않음
            raise HTTPException(422, "No usable records: every record lacks a valid OrderDate or ProductName")
        index = SeriesCorpusIndex(series, period_keys, settings.min_support_periods)
        save_corpus_parquet(series, period_keys, settings.data_dir)
        CORPUS.swap(index)
    except HTTPException:
        logger.warning("Ingest rejected: no usable records")
        raise
    except ContractViolation as e:
        logger.error(f"Ingest rejected: {e}")
        raise HTTPException(422, str(e))
    except Exception as e:
        logger.error(f"Ingest failed: {e}")
        raise HTTPException(500, f"Ingest failed: {e}")

    return IngestResponse(
        series_count=len(index),
        eligible_count=len(index.eligible()),
        period_count=index.period_count,
    )


@app.post("/similar", response_model=SimilarResponse)
@limiter.limit(settings.rate_limit_similar)
def similar(request: Request, req: SketchRequest):
    """
    스케치와 유사한 시계열 검색

    Rate limit: 20/minute (설정 가능)
    """
    logger.info(f"Similar search started: stroke length={len(req.points)}, category={req.category}")
    corpus = CORPUS.current()

    try:
        items, sketch = SERVICE.search_with_sketch(req.points, corpus, category=req.category,
                                                   top_k=req.top_k, pattern_type=req.pattern_type)
    except ContractViolation as e:
        logger.error(f"Similar search rejected: {e}")
        raise HTTPException(422, str(e))
    except Exception as e:
        logger.error(f"Similar search failed: {e}")
        raise HTTPException(500, f"Similar search failed: {e}")

    return SimilarResponse(
        items=items,
        sketch_norm=[(float(x), float(y)) for x, y in sketch],
    )
