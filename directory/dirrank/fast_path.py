"""集計済みランキング (dir_ranked_products RPC) のアダプタ.

RPC は 1 回の呼び出しでティア横断の順位付けとページングを行い、
全行に同じ total_count を付けて返す。ここで (rows, total_count) に分離する。
"""

from __future__ import annotations

import logging

from dirrank import db
from dirrank.errors import CapabilityUnavailable
from dirrank.models import ListingFilters

logger = logging.getLogger(__name__)


def _split_total(rows: list[dict]) -> tuple[list[dict], int]:
    """先頭行の total_count を取り出し、全行から total_count を除く."""
    total = int(rows[0].get("total_count") or 0) if rows else 0
    cleaned = [{k: v for k, v in r.items() if k != "total_count"} for r in rows]
    return cleaned, total


class FastPathRanker:
    """RPC による高速パス。失敗は全て CapabilityUnavailable にする."""

    def rank(
        self, filters: ListingFilters, sort: str, offset: int, limit: int
    ) -> tuple[list[dict], int]:
        try:
            rows, total = _split_total(db.rank_products(filters, sort, offset, limit))

            # ページが末尾を超えた場合、0 件ヒットと区別するため 1 回だけ件数を取り直す
            if not rows and offset > 0:
                _, total = _split_total(db.rank_products(filters, sort, 0, 1))
                logger.debug("末尾超過ページ: offset=%d, total_count=%d", offset, total)
        except Exception as e:
            raise CapabilityUnavailable(str(e)) from e

        return rows, total
