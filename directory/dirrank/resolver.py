"""有効サブスクリプションから vendor ごとのティアを決定する."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from dirrank import db
from dirrank.models import TierAssignment
from dirrank.tiers import classify

logger = logging.getLogger(__name__)


def resolve_tier_assignment(now: datetime | None = None) -> TierAssignment:
    """現時点で有効なサブスクリプションから TierAssignment を作る.

    サブスクリプションは開始日の新しい順に届くので、vendor ごとに最初の 1 件を採用する。
    読み出し失敗時は DataUnavailable をそのまま送出する。
    """
    now = now or datetime.now(timezone.utc)
    subs = db.get_active_subscriptions(now)

    assignment = TierAssignment()
    for s in subs:
        vid = str(s.get("vendor_id") or "").strip()
        if not vid or vid in assignment.plan_name_by_vendor:
            continue
        plan = s.get("plan") or {}
        plan_name = plan.get("name") or ""
        assignment.plan_name_by_vendor[vid] = plan_name
        assignment.tier_key_by_vendor[vid] = classify(plan_name)

    logger.debug("有効サブスクリプション: %d 件 → vendor %d 件", len(subs), len(assignment.tier_key_by_vendor))
    return assignment
