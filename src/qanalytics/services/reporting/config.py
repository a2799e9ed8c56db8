"""Configuration for reporting service.

Defines starting capital, ratio conventions and equity curve downsampling.
"""

from typing import Literal

from pydantic import BaseModel, Field

from qanalytics.system import get_system_config


class ReportingConfig(BaseModel):
    """Reporting settings.

    Attributes:
        initial_capital: Starting capital in USD
        risk_free_rate: Annual risk-free rate as fraction (0 = report convention)
        trading_days_per_year: Annualization base (365 for 24/7 markets)
        target_return: Annual Sortino target rate as fraction
        downsample_enabled: Reduce the stored equity curve
        downsample_strategy: "lttb", "drawdown_peaks" or "uniform"
        downsample_target_points: Desired stored curve length

    Examples:
        >>> config = ReportingConfig(initial_capital=50000.0, downsample_strategy="drawdown_peaks")

        From YAML-backed system config:
        >>> config = ReportingConfig.from_system_config()
    """

    initial_capital: float = Field(default=10000.0, description="Starting capital in USD")
    risk_free_rate: float = Field(default=0.0, description="Annual risk-free rate as fraction")
    trading_days_per_year: int = Field(default=365, gt=0, description="Annualization base")
    target_return: float = Field(default=0.0, description="Annual Sortino target rate as fraction")
    downsample_enabled: bool = Field(default=True, description="Downsample the stored equity curve")
    downsample_strategy: Literal["lttb", "drawdown_peaks", "uniform"] = Field(
        default="lttb",
        description="Downsampling strategy",
    )
    downsample_target_points: int = Field(default=1000, ge=2, description="Target stored curve length")

    model_config = {"frozen": True}

    @classmethod
    def from_system_config(cls) -> "ReportingConfig":
        """Seed from the cached system configuration."""
        system = get_system_config()
        return cls(
            initial_capital=system.analytics.initial_capital,
            risk_free_rate=system.analytics.risk_free_rate,
            trading_days_per_year=system.analytics.trading_days_per_year,
            target_return=system.analytics.target_return,
            downsample_enabled=system.downsampling.enabled,
            downsample_strategy=system.downsampling.strategy,  # type: ignore[arg-type]
            downsample_target_points=system.downsampling.target_points,
        )
