"""共通フィクスチャ."""

import os

# dirrank.config は import 時に必須の環境変数を読む
os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")

import pytest  # noqa: E402

from dirrank.models import (  # noqa: E402
    SORT_PRICE_ASC,
    SORT_PRICE_DESC,
    TierAssignment,
)


class FakeListing:
    """メモリ上の商品リストに対する ListingQuery."""

    def __init__(self, products: list[dict]):
        self.products = products
        self.count_calls = []
        self.fetch_calls = []

    def _matching(self, filters, vendor_set):
        rows = [p for p in self.products if vendor_set.matches(p["vendor_id"])]
        if filters.query:
            rows = [p for p in rows if filters.query.lower() in p["name"].lower()]
        return rows

    def count(self, filters, vendor_set):
        self.count_calls.append(vendor_set)
        return len(self._matching(filters, vendor_set))

    def fetch(self, filters, vendor_set, sort, offset, limit):
        self.fetch_calls.append((vendor_set, sort, offset, limit))
        rows = self._matching(filters, vendor_set)
        if sort == SORT_PRICE_ASC:
            rows = sorted(rows, key=lambda p: p["price"])
        elif sort == SORT_PRICE_DESC:
            rows = sorted(rows, key=lambda p: p["price"], reverse=True)
        else:
            rows = sorted(rows, key=lambda p: p["created_at"], reverse=True)
        return [dict(r) for r in rows[offset:offset + limit]]


def _product(pid: str, vendor_id: str, price: int, day: int) -> dict:
    return {
        "id": pid,
        "vendor_id": vendor_id,
        "name": f"steel pipe {pid}",
        "price": price,
        "created_at": f"2026-01-{day:02d}T00:00:00+00:00",
    }


@pytest.fixture
def products() -> list[dict]:
    """V1=DIAMOND 3 件, V2=GOLD 2 件, V3=未契約 5 件."""
    return [
        _product("p1", "V1", 300, 3),
        _product("p2", "V1", 100, 2),
        _product("p3", "V1", 200, 1),
        _product("p4", "V2", 50, 5),
        _product("p5", "V2", 70, 4),
        _product("p6", "V3", 10, 10),
        _product("p7", "V3", 20, 9),
        _product("p8", "V3", 30, 8),
        _product("p9", "V3", 40, 7),
        _product("p10", "V3", 60, 6),
    ]


@pytest.fixture
def assignment() -> TierAssignment:
    return TierAssignment(
        plan_name_by_vendor={"V1": "Diamond Annual", "V2": "Gold Plus"},
        tier_key_by_vendor={"V1": "diamond", "V2": "gold"},
    )


@pytest.fixture
def listing(products) -> FakeListing:
    return FakeListing(products)


@pytest.fixture
def make_listing(products):
    """同じ商品データから独立した FakeListing を作る."""
    return lambda: FakeListing(products)
