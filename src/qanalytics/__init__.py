"""
QAnalytics - Backtest Performance & Diagnostics

Public API for turning simulation output (trades, equity curve, diagnostic
events) into performance metrics and algorithm-tuning reports.
"""

from importlib.metadata import version

try:
    __version__ = version("qanalytics")
except Exception:
    __version__ = "0.0.0.dev"  # Fallback for development


__all__ = [
    "__version__",
]
