"""Reporting service for performance metrics and algo diagnostics."""

from qanalytics.services.reporting.config import ReportingConfig
from qanalytics.services.reporting.formatters import display_backtest_report
from qanalytics.services.reporting.models import BacktestReport
from qanalytics.services.reporting.service import ReportingService, create_empty_report

__all__ = [
    "ReportingService",
    "ReportingConfig",
    "BacktestReport",
    "create_empty_report",
    "display_backtest_report",
]
