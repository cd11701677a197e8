"""
Tests for monthly decision limits and the fail-open policy.
"""
from datetime import datetime
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.services.decisions.limits import (
    LIMIT_CODE_DECISIONS,
    DecisionLimits,
    fail_open_from_env,
    get_decision_limit,
    start_of_month,
)


class TestPlanLimits:

    @pytest.mark.parametrize("plan,limit", [
        ("free", 3), ("starter", 3), ("growth", 10), ("enterprise", 50),
        ("admin", 0), ("", 3), (None, 3), ("platinum", 3),
    ])
    def test_limits(self, plan, limit):
        assert get_decision_limit(plan) == limit

    def test_start_of_month(self):
        assert start_of_month(datetime(2026, 5, 17, 13, 45, 12, 999)) == datetime(2026, 5, 1)


class TestDecisionLimits:

    def test_under_limit(self):
        repo = MagicMock()
        repo.count_by_user_since.return_value = 2

        result = DecisionLimits(repo).can_create_decision("user-1", "free", now=datetime(2026, 5, 17))

        assert result.allowed is True
        assert result.current == 2
        repo.count_by_user_since.assert_called_once_with("user-1", datetime(2026, 5, 1))

    def test_at_limit(self):
        repo = MagicMock()
        repo.count_by_user_since.return_value = 10

        result = DecisionLimits(repo).can_create_decision("user-1", "growth")

        assert result.allowed is False
        assert result.error_code == LIMIT_CODE_DECISIONS
        assert result.limit == 10

    def test_admin_never_counts(self):
        repo = MagicMock()

        result = DecisionLimits(repo).can_create_decision("user-1", "admin")

        assert result.allowed is True
        repo.count_by_user_since.assert_not_called()

    def test_count_error_fails_open(self):
        repo = MagicMock()
        repo.count_by_user_since.side_effect = SQLAlchemyError("db down")
        logger = MagicMock()

        result = DecisionLimits(repo, fail_open_on_count_error=True, logger=logger).can_create_decision("user-1", "free")

        assert result.allowed is True
        logger.warning.assert_called_once()

    def test_count_error_fails_closed(self):
        repo = MagicMock()
        repo.count_by_user_since.side_effect = SQLAlchemyError("db down")

        with pytest.raises(SQLAlchemyError):
            DecisionLimits(repo, fail_open_on_count_error=False).can_create_decision("user-1", "free")

    @pytest.mark.parametrize("value,expected", [("true", True), ("1", True), ("false", False), ("no", False)])
    def test_fail_open_env(self, monkeypatch, value, expected):
        monkeypatch.setenv("DECISION_LIMIT_FAIL_OPEN", value)
        assert fail_open_from_env() is expected
