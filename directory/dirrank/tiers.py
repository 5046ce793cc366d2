"""プランティア定義と、プラン名 → ティアの分類."""

from __future__ import annotations

from dirrank.models import Tier

# 優先度の高い順
TIERS: tuple[Tier, ...] = (
    Tier("diamond", "DIAMOND", 700),
    Tier("gold", "GOLD", 600),
    Tier("silver", "SILVER", 500),
    Tier("booster", "BOOSTER", 400),
    Tier("certified", "CERTIFIED", 300),
    Tier("startup", "STARTUP", 200),
    Tier("trial", "TRIAL", 100),
)

LOWEST_TIER = TIERS[-1]

# 判定順に並べる。先にマッチしたものが勝つ
_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("diamond", ("diamond",)),
    ("gold", ("gold",)),
    ("silver", ("silver",)),
    ("booster", ("booster", "boost")),
    ("certified", ("certified", "certificate")),
    ("startup", ("startup",)),
    ("trial", ("trial", "free")),
)

_BY_KEY = {t.key: t for t in TIERS}


def classify(plan_name: str | None) -> str:
    """プラン名をティアキーに分類する.

    小文字化・前後空白除去のうえ部分一致で判定する。
    空文字・該当なしは最下位ティア (trial)。
    """
    name = str(plan_name or "").strip().lower()
    if not name:
        return LOWEST_TIER.key
    for key, words in _KEYWORDS:
        if any(w in name for w in words):
            return key
    return LOWEST_TIER.key


def tier_for_key(key: str | None) -> Tier:
    """ティアキーから Tier を引く。未知のキーは最下位ティア."""
    return _BY_KEY.get(key or "", LOWEST_TIER)
