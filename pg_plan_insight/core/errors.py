"""
Exceptions raised by the plan analysis core.
"""


class PlanAnalysisError(Exception):
    """Base class for plan analysis errors."""


class PlanInputError(PlanAnalysisError, TypeError):
    """The plan input is absent or of an unsupported type."""


class PlanLimitExceeded(PlanAnalysisError):
    """The plan is larger or deeper than the configured limits allow."""

    def __init__(self, limit: str, value: int, maximum: int):
        super().__init__(f"Plan exceeds {limit}: {value} > {maximum}")
        self.limit = limit
        self.value = value
        self.maximum = maximum
