"""商品リスティングの読み出しインターフェース."""

from __future__ import annotations

from typing import Protocol

from dirrank import db
from dirrank.models import ListingFilters, VendorSet


class ListingQuery(Protocol):
    """件数取得と範囲取得の 2 操作だけを持つ読み取り専用ソース."""

    def count(self, filters: ListingFilters, vendor_set: VendorSet) -> int:
        ...

    def fetch(
        self,
        filters: ListingFilters,
        vendor_set: VendorSet,
        sort: str,
        offset: int,
        limit: int,
    ) -> list[dict]:
        ...


class SupabaseListingQuery:
    """products テーブル（公開中ベンダーのみ）に対する ListingQuery."""

    def count(self, filters: ListingFilters, vendor_set: VendorSet) -> int:
        return db.count_products(filters, vendor_set)

    def fetch(self, filters, vendor_set, sort, offset, limit):
        return db.fetch_products(filters, vendor_set, sort, offset, limit)
