"""Pytest fixtures shared by the hydrabot tests."""

from datetime import datetime
from typing import List, Optional

import pytest
import pytz

from hydrabot.parser_engine.contract import FallbackOutcome
from hydrabot.parser_engine.resolver import IntentResolver
from hydrabot.utils.time import Clock

# 2026-10-19 10:00:00 IST
FIXED_UTC_NOW = datetime(2026, 10, 19, 4, 30, 0, tzinfo=pytz.UTC)


def make_clock(utc_now: datetime = FIXED_UTC_NOW) -> Clock:
    return Clock(utc_now=lambda: utc_now)


class StubFallback:
    """Stands in for FallbackClient; records every message it is asked about."""

    def __init__(self, outcome: Optional[FallbackOutcome] = None) -> None:
        self.outcome = outcome or FallbackOutcome()
        self.messages: List[str] = []

    def classify(self, text: str) -> FallbackOutcome:
        self.messages.append(text)
        return self.outcome


@pytest.fixture
def clock() -> Clock:
    return make_clock()


@pytest.fixture
def stub_fallback() -> StubFallback:
    return StubFallback()


@pytest.fixture
def resolver(stub_fallback, clock) -> IntentResolver:
    return IntentResolver(fallback=stub_fallback, clock=clock)
