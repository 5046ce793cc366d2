"""データモデル定義."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

SORT_RELEVANCE = "relevance"
SORT_PRICE_ASC = "price_asc"
SORT_PRICE_DESC = "price_desc"
SORT_MODES = (SORT_RELEVANCE, SORT_PRICE_ASC, SORT_PRICE_DESC)


def normalize_sort(sort: str | None) -> str:
    """未知のソート指定は relevance 扱いにする."""
    s = (sort or "").strip().lower()
    return s if s in SORT_MODES else SORT_RELEVANCE


@dataclass(frozen=True)
class Tier:
    """プラン優先度のバケット."""

    key: str  # 例: "diamond"
    label: str  # 表示名 例: "DIAMOND"
    priority: int  # 大きいほど上位


@dataclass
class TierAssignment:
    """リクエスト単位の vendor_id → ティア対応表."""

    plan_name_by_vendor: dict[str, str] = field(default_factory=dict)
    tier_key_by_vendor: dict[str, str] = field(default_factory=dict)

    def vendor_ids_for(self, tier_key: str) -> list[str]:
        return [vid for vid, key in self.tier_key_by_vendor.items() if key == tier_key]

    def active_vendor_ids(self) -> list[str]:
        return list(self.tier_key_by_vendor)


@dataclass(frozen=True)
class ListingFilters:
    """1 回の検索条件。ページング中は変わらない."""

    category_id: str | None = None  # micro_categories.id
    query: str | None = None  # 商品名の部分一致
    state_id: str | None = None
    city_id: str | None = None
    sort: str = SORT_RELEVANCE


@dataclass(frozen=True)
class PageRequest:
    """ページ指定（page は 1 始まり）."""

    page: int = 1
    limit: int = 20

    def __post_init__(self):
        if self.page < 1:
            raise ValueError(f"page must be >= 1: {self.page}")
        if self.limit < 1:
            raise ValueError(f"limit must be >= 1: {self.limit}")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class PageResult:
    """1 ページ分の結果と、全ティア合計のヒット件数."""

    rows: list[dict]
    total_count: int


@dataclass(frozen=True)
class VendorSet:
    """商品を絞り込む vendor_id 集合.

    kind:
        "all"          — 絞り込みなし
        "in"           — ids に含まれる vendor のみ
        "unsubscribed" — as_of 時点で有効なサブスクリプションを持たない vendor のみ

    "unsubscribed" の ids は同じ時点で有効な vendor_id（メモリ上での判定用）。
    DB では ids を送らず、サブスクリプションとの anti-join で同じ集合を表す。
    """

    kind: str
    ids: tuple[str, ...] = ()
    as_of: datetime | None = None

    @classmethod
    def all(cls) -> VendorSet:
        return cls("all")

    @classmethod
    def include(cls, ids) -> VendorSet:
        return cls("in", tuple(ids))

    @classmethod
    def unsubscribed(cls, active_ids, as_of: datetime) -> VendorSet:
        return cls("unsubscribed", tuple(active_ids), as_of)

    def matches(self, vendor_id: str) -> bool:
        if self.kind == "in":
            return vendor_id in self.ids
        if self.kind == "unsubscribed":
            return vendor_id not in self.ids
        return True
