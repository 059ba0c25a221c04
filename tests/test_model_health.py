"""
Unit tests for social.graze.ebsi.model.health
"""

import pytest

from social.graze.ebsi.model.health import HealthGauge


class TestHealthGauge:
    """Test suite for HealthGauge."""

    @pytest.mark.asyncio
    async def test_starts_healthy(self):
        """Test a new gauge is healthy."""
        assert await HealthGauge().is_healthy() is True

    @pytest.mark.asyncio
    async def test_failures_cross_threshold(self):
        """Test repeated failures make the gauge unhealthy."""
        gauge = HealthGauge(health_threshold=2)

        assert await gauge.record_failure() == 1
        assert await gauge.record_failure(weight=2) == 3
        assert await gauge.is_healthy() is False

    @pytest.mark.asyncio
    async def test_tick_recovers(self):
        """Test ticking decays failure pressure."""
        gauge = HealthGauge(value=3, health_threshold=2)

        assert await gauge.tick() == 2
        assert await gauge.is_healthy() is True

    @pytest.mark.asyncio
    async def test_tick_stops_at_zero(self):
        """Test ticking never takes the gauge below zero."""
        gauge = HealthGauge()

        assert await gauge.tick() == 0
        assert await gauge.tick() == 0
