"""Supabase データベース操作モジュール.

商品・サブスクリプション・カテゴリの読み出しのみを行う（書き込みなし）。
PostgREST / 通信エラーはここで DataUnavailable に包み直す。
"""

from __future__ import annotations

import logging
from datetime import datetime

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from dirrank.config import (
    RANKED_PRODUCTS_RPC,
    SUPABASE_SECRET_KEY,
    SUPABASE_URL,
)
from dirrank.errors import DataUnavailable
from dirrank.models import SORT_PRICE_ASC, SORT_PRICE_DESC, ListingFilters, VendorSet

logger = logging.getLogger(__name__)

_client: Client | None = None

# 公開中ベンダーの埋め込み列
_VENDOR_COLUMNS = (
    "id, company_name, city, state, state_id, city_id, "
    "seller_rating, kyc_status, verification_badge, trust_score, is_active"
)
# 未契約判定用。vendors 配下に有効サブスクリプションを埋め込み、is.null で anti-join する
_SUBS_EMBED = "vendor_plan_subscriptions"
_SUBS_PATH = f"vendors.{_SUBS_EMBED}"


def _get_client() -> Client:
    global _client
    if _client is None:
        _client = create_client(SUPABASE_URL, SUPABASE_SECRET_KEY)
    return _client


def _table(name: str):
    """public スキーマのテーブルを参照する."""
    return _get_client().table(name)


def _rpc(fn: str, params: dict):
    """ストアドファンクションを呼び出す."""
    return _get_client().rpc(fn, params)


def _execute(query, what: str):
    try:
        return query.execute()
    except (APIError, httpx.HTTPError) as e:
        raise DataUnavailable(f"{what} の取得に失敗: {e}") from e


def resolve_category_id(slug: str | None) -> str | None:
    """micro_categories の slug から id を引く。見つからなければ None."""
    if not slug:
        return None
    resp = _execute(
        _table("micro_categories")
        .select("id")
        .eq("slug", slug)
        .order("updated_at", desc=True)
        .limit(1),
        "micro_categories",
    )
    rows = resp.data or []
    return rows[0]["id"] if rows else None


def _active_condition(now: datetime) -> str:
    """有効サブスクリプションの end_date 条件（or フィルタ用）."""
    return f"end_date.is.null,end_date.gt.{now.isoformat()}"


def get_active_subscriptions(now: datetime) -> list[dict]:
    """有効なサブスクリプションを開始日の新しい順に取得する.

    有効 = status が ACTIVE かつ end_date が NULL または now より後。

    Returns:
        [{"vendor_id", "plan_id", "status", "end_date", "start_date", "plan": {"name"}}, ...]
    """
    resp = _execute(
        _table("vendor_plan_subscriptions")
        .select("vendor_id, plan_id, status, end_date, start_date, plan:vendor_plans(name)")
        .eq("status", "ACTIVE")
        .or_(_active_condition(now))
        .order("start_date", desc=True),
        "vendor_plan_subscriptions",
    )
    return resp.data or []


def _apply_filters(query, filters: ListingFilters):
    query = query.eq("status", "ACTIVE").eq("vendors.is_active", True)
    if filters.category_id:
        query = query.eq("micro_category_id", filters.category_id)
    if filters.query:
        query = query.ilike("name", f"%{filters.query}%")
    if filters.state_id:
        query = query.eq("vendors.state_id", filters.state_id)
    if filters.city_id:
        query = query.eq("vendors.city_id", filters.city_id)
    return query


def _select_columns(base: str, vendor_columns: str, vendor_set: VendorSet) -> str:
    """vendors!inner 埋め込み付きの select 句を作る.

    未契約グループでは有効サブスクリプションも埋め込む（anti-join 用）。
    """
    if vendor_set.kind == "unsubscribed":
        vendor_columns = f"{vendor_columns}, {_SUBS_EMBED}(id)"
    return f"{base}, vendors!inner({vendor_columns})"


def _apply_vendor_set(query, vendor_set: VendorSet):
    if vendor_set.kind == "in":
        return query.in_("vendor_id", list(vendor_set.ids))
    if vendor_set.kind == "unsubscribed":
        # vendor_id を URL に並べず、同じ時点の有効サブスクリプションが無い vendor に絞る
        query = (
            query.eq(f"{_SUBS_PATH}.status", "ACTIVE")
            .or_(_active_condition(vendor_set.as_of), reference_table=_SUBS_PATH)
            .is_(_SUBS_PATH, "null")
        )
    return query


def _apply_sort(query, sort: str):
    if sort == SORT_PRICE_ASC:
        return query.order("price", desc=False)
    if sort == SORT_PRICE_DESC:
        return query.order("price", desc=True)
    return query.order("created_at", desc=True)


def _drop_subs_embed(row: dict) -> dict:
    vendors = row.get("vendors")
    if isinstance(vendors, dict) and _SUBS_EMBED in vendors:
        row = {**row, "vendors": {k: v for k, v in vendors.items() if k != _SUBS_EMBED}}
    return row


def count_products(filters: ListingFilters, vendor_set: VendorSet) -> int:
    """条件に合う商品件数を返す（行は取得しない）."""
    if vendor_set.kind == "in" and not vendor_set.ids:
        return 0
    columns = _select_columns("id", "id", vendor_set)
    query = _table("products").select(columns, count="exact", head=True)
    query = _apply_vendor_set(_apply_filters(query, filters), vendor_set)
    resp = _execute(query, "products (count)")
    return int(resp.count or 0)


def fetch_products(
    filters: ListingFilters,
    vendor_set: VendorSet,
    sort: str,
    offset: int,
    limit: int,
) -> list[dict]:
    """条件に合う商品を sort 順で offset から最大 limit 件取得する."""
    if limit <= 0 or (vendor_set.kind == "in" and not vendor_set.ids):
        return []
    query = _table("products").select(_select_columns("*", _VENDOR_COLUMNS, vendor_set))
    query = _apply_vendor_set(_apply_filters(query, filters), vendor_set)
    query = _apply_sort(query, sort).range(offset, offset + limit - 1)
    resp = _execute(query, "products")
    return [_drop_subs_embed(r) for r in resp.data or []]


def rank_products(filters: ListingFilters, sort: str, offset: int, limit: int) -> list[dict]:
    """集計済みランキング RPC を 1 回呼ぶ。各行に total_count が付く.

    エラーはそのまま送出する（呼び出し側でフォールバック判定する）。
    """
    resp = _rpc(
        RANKED_PRODUCTS_RPC,
        {
            "p_micro_id": filters.category_id,
            "p_city_id": filters.city_id,
            "p_state_id": filters.state_id,
            "p_q": filters.query or None,
            "p_sort": sort or None,
            "p_limit": limit,
            "p_offset": offset,
        },
    ).execute()
    return resp.data or []
