"""Shared fixtures for PillarStreak tests."""

from __future__ import annotations

from collections.abc import Generator
from datetime import datetime
import logging
from zoneinfo import ZoneInfo

import pytest

from pillarstreak.utils import dt_utils
from tests.helpers import NOW


@pytest.fixture(autouse=True)
def reset_default_timezone() -> Generator[None, None, None]:
    """Every test starts (and ends) with UTC as the local calendar timezone."""
    dt_utils.set_default_timezone(ZoneInfo("UTC"))
    yield
    dt_utils.set_default_timezone(ZoneInfo("UTC"))


@pytest.fixture
def now() -> datetime:
    """Fixed reference instant: 2026-01-18 12:00 UTC."""
    return NOW


@pytest.fixture
def madrid() -> ZoneInfo:
    """Switch the local calendar to Europe/Madrid (UTC+1 in winter)."""
    tz = ZoneInfo("Europe/Madrid")
    dt_utils.set_default_timezone(tz)
    return tz


@pytest.fixture
def pillar_caplog(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    """Capture package logs down to DEBUG."""
    caplog.set_level(logging.DEBUG, logger="pillarstreak")
    return caplog
