"""ディレクトリ検索 API.

GET /api/dir/products と GET /api/dir/search は同じハンドラ。
クエリの正規化（page/limit のクランプ、検索語の長さ制限）はここで行い、
TieredPaginator には検証済みの値だけを渡す。
"""

from __future__ import annotations

import logging
import re

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from dirrank import db
from dirrank.config import DEFAULT_LIMIT, FAST_PATH_ENABLED, LIMIT_MAX, PAGE_MAX, QUERY_MAX_LENGTH
from dirrank.errors import DataUnavailable
from dirrank.fast_path import FastPathRanker
from dirrank.listing import SupabaseListingQuery
from dirrank.models import ListingFilters, PageRequest, normalize_sort
from dirrank.paginator import TieredPaginator

logger = logging.getLogger(__name__)

app = FastAPI(title="Directory ranking API")


_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def clamp_int(value, default: int, lo: int, hi: int) -> int:
    """先頭の整数部分を読んで [lo, hi] に収める（"3.5" → 3）。読めなければ default."""
    m = _LEADING_INT.match(str(value if value is not None else ""))
    if not m:
        return default
    return max(lo, min(hi, int(m.group(1))))


def safe_text(value) -> str:
    """前後空白を除き QUERY_MAX_LENGTH 文字で切る."""
    return str(value or "").strip()[:QUERY_MAX_LENGTH]


def _first(params, *names: str) -> str | None:
    """エイリアスのうち最初に値があるものを返す（空白のみは無視）."""
    for name in names:
        v = params.get(name)
        if v is not None and str(v).strip():
            return str(v).strip()
    return None


def get_paginator() -> TieredPaginator:
    fast_path = FastPathRanker() if FAST_PATH_ENABLED else None
    return TieredPaginator(SupabaseListingQuery(), fast_path=fast_path)


def _ranked_products(request: Request, paginator: TieredPaginator):
    params = request.query_params
    # 検索ページは q / query / term のどれかで送ってくる
    q = safe_text(_first(params, "q", "query", "term"))
    micro_slug = safe_text(_first(params, "microSlug", "micro", "micro_slug"))
    page = clamp_int(params.get("page"), 1, 1, PAGE_MAX)
    limit = clamp_int(params.get("limit"), DEFAULT_LIMIT, 1, LIMIT_MAX)

    try:
        filters = ListingFilters(
            category_id=db.resolve_category_id(micro_slug or None),
            query=q or None,
            state_id=_first(params, "stateId", "state_id"),
            city_id=_first(params, "cityId", "city_id"),
            sort=normalize_sort(params.get("sort")),
        )
        result = paginator.paginate(filters, PageRequest(page=page, limit=limit))
    except DataUnavailable as e:
        logger.error("商品一覧の取得に失敗: %s", e)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "DIR_PRODUCTS_FAILED", "details": str(e)},
        )

    return {"success": True, "data": result.rows, "count": result.total_count}


@app.get("/api/dir/products")
def list_products(request: Request, paginator: TieredPaginator = Depends(get_paginator)):
    return _ranked_products(request, paginator)


@app.get("/api/dir/search")
def search_products(request: Request, paginator: TieredPaginator = Depends(get_paginator)):
    return _ranked_products(request, paginator)
