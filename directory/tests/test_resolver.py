"""resolver モジュールのテスト."""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from dirrank.errors import DataUnavailable
from dirrank.resolver import resolve_tier_assignment

NOW = datetime(2026, 3, 1, tzinfo=timezone.utc)


class TestResolveTierAssignment:
    """resolve_tier_assignment のテスト."""

    @patch("dirrank.db.get_active_subscriptions")
    def test_latest_subscription_wins(self, mock_subs):
        """開始日の新しい順に届くので vendor ごとに最初の 1 件を採用すること."""
        mock_subs.return_value = [
            {"vendor_id": "V1", "start_date": "2026-02-01", "plan": {"name": "Gold"}},
            {"vendor_id": "V2", "start_date": "2026-01-15", "plan": {"name": "Booster 30"}},
            {"vendor_id": "V1", "start_date": "2025-12-01", "plan": {"name": "Diamond"}},
        ]

        result = resolve_tier_assignment(NOW)

        mock_subs.assert_called_once_with(NOW)
        assert result.tier_key_by_vendor == {"V1": "gold", "V2": "booster"}
        assert result.plan_name_by_vendor == {"V1": "Gold", "V2": "Booster 30"}

    @patch("dirrank.db.get_active_subscriptions")
    def test_missing_plan_is_trial(self, mock_subs):
        mock_subs.return_value = [{"vendor_id": "V1", "plan": None}]

        result = resolve_tier_assignment(NOW)

        assert result.tier_key_by_vendor == {"V1": "trial"}
        assert result.plan_name_by_vendor == {"V1": ""}

    @patch("dirrank.db.get_active_subscriptions")
    def test_blank_vendor_ids_skipped(self, mock_subs):
        mock_subs.return_value = [
            {"vendor_id": None, "plan": {"name": "Gold"}},
            {"vendor_id": "  ", "plan": {"name": "Gold"}},
        ]

        result = resolve_tier_assignment(NOW)

        assert result.tier_key_by_vendor == {}

    @patch("dirrank.db.get_active_subscriptions")
    def test_empty(self, mock_subs):
        mock_subs.return_value = []

        result = resolve_tier_assignment(NOW)

        assert result.active_vendor_ids() == []

    @patch("dirrank.db.get_active_subscriptions")
    def test_read_failure_propagates(self, mock_subs):
        mock_subs.side_effect = DataUnavailable("boom")

        with pytest.raises(DataUnavailable):
            resolve_tier_assignment(NOW)
