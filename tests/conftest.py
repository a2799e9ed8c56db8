"""Root conftest - logging setup and shared factories."""

from typing import Callable

import pytest

from qanalytics.libraries.performance.models import EquityPoint, ExitReason, TradeRecord
from qanalytics.system import LoggerFactory, LoggingConfig

from builders import build_equity_curve


@pytest.fixture(autouse=True, scope="session")
def quiet_logging():
    """Keep test output clean and never write log files."""
    LoggerFactory.configure(LoggingConfig(level="WARNING", enable_file=False))
    yield
    LoggerFactory.reset()


@pytest.fixture
def make_trade() -> Callable[..., TradeRecord]:
    """Factory for TradeRecord with sensible defaults."""
    counter = {"id": 0}

    def _make(
        pnl: float,
        direction: str = "LONG",
        duration_bars: int = 10,
        exit_reason: ExitReason = ExitReason.SIGNAL,
        entry_time: int = 0,
    ) -> TradeRecord:
        counter["id"] += 1
        return TradeRecord(
            trade_id=counter["id"],
            direction=direction,
            entry_time=entry_time,
            entry_price=100.0,
            exit_time=entry_time + duration_bars * 60,
            exit_price=100.0 + pnl / 10,
            qty=10.0,
            pnl_usd=pnl,
            pnl_pct=pnl / 1000.0,
            duration_seconds=duration_bars * 60,
            duration_bars=duration_bars,
            exit_reason=exit_reason,
        )

    return _make


@pytest.fixture
def equity_curve_factory() -> Callable[..., list[EquityPoint]]:
    """Factory fixture around build_equity_curve."""
    return build_equity_curve
