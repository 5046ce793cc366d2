"""ティア優先のページング.

処理フロー:
  1. 高速パス (RPC) でランキング済みの 1 ページを取得
  2. 失敗したらティアごとに件数取得 → 必要なティアだけ範囲取得（フォールバック）
  3. 各行にティア情報を付与

フォールバックはティアグループを上位から順に畳み込む。
1 グループあたり読み出しは最大 2 回（count → fetch）で、全件をメモリに載せない。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Callable

from dirrank.fast_path import FastPathRanker
from dirrank.listing import ListingQuery
from dirrank.models import (
    ListingFilters,
    PageRequest,
    PageResult,
    Tier,
    TierAssignment,
    VendorSet,
    normalize_sort,
)
from dirrank.resolver import resolve_tier_assignment
from dirrank.tiers import LOWEST_TIER, TIERS, tier_for_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TierGroup:
    """フォールバックで順に処理する vendor グループ."""

    tier: Tier | None  # None = サブスクリプションなし（最下位）
    vendor_set: VendorSet

    @property
    def name(self) -> str:
        return self.tier.label if self.tier else "UNSUBSCRIBED"


@dataclass(frozen=True)
class PageCursor:
    """フォールバックの畳み込み状態."""

    total_count: int
    remaining_offset: int
    remaining_limit: int
    rows: tuple[dict, ...] = ()


def build_groups(assignment: TierAssignment, as_of: datetime) -> list[TierGroup]:
    """上位ティアから順にグループを作る。vendor のいないティアは除く.

    最後の「未契約」グループは as_of 時点で有効なサブスクリプションを持たない vendor で、常に含める。
    """
    groups = []
    for tier in TIERS:
        ids = assignment.vendor_ids_for(tier.key)
        if ids:
            groups.append(TierGroup(tier, VendorSet.include(ids)))
    groups.append(TierGroup(None, VendorSet.unsubscribed(assignment.active_vendor_ids(), as_of)))
    return groups


def advance(
    cursor: PageCursor,
    group: TierGroup,
    listing: ListingQuery,
    filters: ListingFilters,
    sort: str,
) -> PageCursor:
    """1 グループ分カーソルを進める.

    件数はページが埋まった後も必ず加算する（total_count をページによらず一定にするため）。
    """
    group_count = listing.count(filters, group.vendor_set)
    cursor = replace(cursor, total_count=cursor.total_count + group_count)
    logger.debug("group=%s: count=%d", group.name, group_count)

    if group_count <= 0:
        return cursor

    # グループ全体が要求ウィンドウより前にある
    if cursor.remaining_offset >= group_count:
        return replace(cursor, remaining_offset=cursor.remaining_offset - group_count)

    if cursor.remaining_limit <= 0:
        return cursor

    rows = listing.fetch(
        filters,
        group.vendor_set,
        sort,
        cursor.remaining_offset,
        cursor.remaining_limit,
    )
    return replace(
        cursor,
        rows=cursor.rows + tuple(rows),
        remaining_offset=0,
        remaining_limit=max(0, cursor.remaining_limit - len(rows)),
    )


def annotate(rows: list[dict], assignment: TierAssignment) -> list[dict]:
    """各行にティア名・表示名・優先度を付与した新しい行リストを返す.

    未契約 vendor は最下位ティア (TRIAL) として扱う。
    vendor_plan_* と vendors.plan_* は RPC が既に設定している場合は上書きしない。
    """
    out = []
    for row in rows:
        vid = str(row.get("vendor_id") or "")
        tier = tier_for_key(assignment.tier_key_by_vendor.get(vid))
        plan_name = assignment.plan_name_by_vendor.get(vid) or LOWEST_TIER.label

        annotated = dict(row)
        annotated["tier_name"] = plan_name
        annotated["tier_label"] = tier.label
        annotated["tier_priority"] = tier.priority
        annotated.setdefault("vendor_plan_name", plan_name)
        annotated.setdefault("vendor_plan_tier", tier.label)
        annotated.setdefault("vendor_plan_priority", tier.priority)

        vendors = row.get("vendors")
        if isinstance(vendors, dict):
            vendors = dict(vendors)
            vendors.setdefault("plan_name", plan_name)
            vendors.setdefault("plan_tier", tier.label)
            vendors.setdefault("plan_priority", tier.priority)
            annotated["vendors"] = vendors

        out.append(annotated)
    return out


class TieredPaginator:
    """高速パス + ティア別フォールバックで 1 ページ分の結果を作る."""

    def __init__(
        self,
        listing: ListingQuery,
        fast_path: FastPathRanker | None = None,
        resolver: Callable[[datetime | None], TierAssignment] = resolve_tier_assignment,
    ):
        self.listing = listing
        self.fast_path = fast_path
        self.resolver = resolver

    def paginate(
        self,
        filters: ListingFilters,
        page: PageRequest,
        now: datetime | None = None,
    ) -> PageResult:
        sort = normalize_sort(filters.sort)
        # ティア判定と未契約グループの anti-join は同じ時刻で行う
        now = now or datetime.now(timezone.utc)

        if self.fast_path is not None:
            try:
                rows, total_count = self.fast_path.rank(filters, sort, page.offset, page.limit)
            except Exception as e:  # 高速パスの失敗は全てフォールバックで吸収する
                logger.warning("高速ランキング失敗。ティア別処理にフォールバック: %s", e)
            else:
                assignment = self.resolver(now)
                logger.info(
                    "高速パス: page=%d, rows=%d, total_count=%d",
                    page.page, len(rows), total_count,
                )
                return PageResult(annotate(rows, assignment), total_count)

        assignment = self.resolver(now)
        cursor = PageCursor(
            total_count=0,
            remaining_offset=page.offset,
            remaining_limit=page.limit,
        )
        for group in build_groups(assignment, now):
            cursor = advance(cursor, group, self.listing, filters, sort)

        logger.info(
            "フォールバック: page=%d, rows=%d, total_count=%d",
            page.page, len(cursor.rows), cursor.total_count,
        )
        return PageResult(annotate(list(cursor.rows), assignment), cursor.total_count)
