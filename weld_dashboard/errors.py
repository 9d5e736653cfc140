"""Exceptions surfaced to the presentation layer."""


class WeldDashboardError(Exception):
    """Base class for all dashboard errors."""


class DataLoadError(WeldDashboardError):
    """The primary (weld operations) dataset could not be loaded."""


class FilterValidationError(WeldDashboardError):
    """A filter bound is not a valid DD.MM.YYYY date.

    The filter operation is rejected as a whole; the current view is kept.
    """

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"Invalid date for '{field}': {value!r} (expected DD.MM.YYYY)")


class RuleError(WeldDashboardError):
    """A defect rule uses an unsupported operator."""
