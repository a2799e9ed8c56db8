"""qanalytics services package.

Services compose the pure libraries into run-level operations. Each service is
independently testable and takes its configuration by injection.
"""

from qanalytics.services.reporting import ReportingConfig, ReportingService

__all__: list[str] = [
    "ReportingService",
    "ReportingConfig",
]
